"""ABOUTME: Closed-form oscillator functions for the synthesis core.
ABOUTME: Maps time, frequency and waveform kind (plus optional vibrato) to a signal value."""

from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

TWELFTH_ROOT_OF_2 = 2.0 ** (1.0 / 12.0)

Signal = Union[float, np.ndarray]

_default_rng = np.random.default_rng()


class Waveform(Enum):
    """Available oscillator waveforms."""
    SINE = "sine"
    TRIANGLE = "triangle"
    SQUARE = "square"
    SAW_ANALOG = "saw_analog"    # additive, band-limited by partial count
    SAW_DIGITAL = "saw_digital"  # direct phase ramp
    NOISE = "noise"              # white noise, [-1, 1]


def approx_sin(x: Signal) -> Signal:
    """Fast cubic approximation of sin(x).

    Same period and zero crossings as np.sin; between them the shape is a
    cubic, so it is not a close match to the sine itself.
    """
    x = np.asarray(x, dtype=np.float64) * 0.15915
    x = x - np.floor(x)
    out = 20.875 * x * (x - 0.5) * (x - 1.0)
    return float(out) if out.ndim == 0 else out


def angular(hertz: Signal) -> Signal:
    """Convert frequency in Hz to angular velocity (rad/s)."""
    return 2.0 * np.pi * hertz


def scale(note_id: int) -> float:
    """Equal-tempered frequency for a note id; id 0 is 8 Hz."""
    return 8.0 * TWELFTH_ROOT_OF_2 ** note_id


def oscillate(
    time: Signal,
    hertz: float,
    waveform: Waveform,
    lfo_hertz: float = 0.0,
    lfo_amplitude: float = 0.0,
    saw_partials: float = 50.0,
    rng: Optional[np.random.Generator] = None,
    wave: Callable[[Signal], Signal] = np.sin,
) -> Signal:
    """
    Evaluate one oscillator at a time offset.

    Args:
        time: Time since note-on in seconds (float or numpy array)
        hertz: Base frequency
        waveform: Waveform kind
        lfo_hertz: Vibrato frequency
        lfo_amplitude: Vibrato depth, scaled by the base frequency
        saw_partials: Upper bound (exclusive) on harmonics for SAW_ANALOG
        rng: Random source for NOISE (module generator if None)
        wave: Trig primitive, np.sin or approx_sin

    Returns:
        Signal value, a float for scalar time or an array for array time

    SAW_DIGITAL divides by the time offset and is singular at t == 0; numpy
    reports it with a RuntimeWarning and the value is not finite.
    """
    t = np.asarray(time, dtype=np.float64)
    phase = angular(hertz) * t + lfo_amplitude * hertz * wave(angular(lfo_hertz) * t)

    if waveform is Waveform.SINE:
        out = wave(phase)

    elif waveform is Waveform.TRIANGLE:
        out = np.arcsin(wave(phase)) * 2.0 / np.pi

    elif waveform is Waveform.SQUARE:
        out = np.where(wave(phase) > 0.0, 1.0, -1.0)

    elif waveform is Waveform.SAW_ANALOG:
        out = np.zeros_like(t)
        k = 1.0
        while k < saw_partials:
            out = out + wave(phase * k) / k
            k += 1.0
        out = out * (2.0 / np.pi)

    elif waveform is Waveform.SAW_DIGITAL:
        out = phase * np.fmod(t, 1.0 / hertz) / np.pi / t - np.pi * 0.5

    elif waveform is Waveform.NOISE:
        source = rng if rng is not None else _default_rng
        out = source.uniform(-1.0, 1.0, size=t.shape) if t.ndim else source.uniform(-1.0, 1.0)

    else:
        out = np.zeros_like(t)

    out = np.asarray(out, dtype=np.float64)
    return float(out) if out.ndim == 0 else out
