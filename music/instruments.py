"""ABOUTME: Preset instrument voices combining an ADSR envelope with weighted oscillator mixes.
ABOUTME: Each voice also decides when its note is finished (by amplitude or by elapsed time)."""

from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Tuple, Type

import numpy as np

from music.envelope import ADSR
from music.note import Note
from music.oscillator import Waveform, oscillate, scale

# max_life_time sentinel: the note may sound forever
UNLIMITED = -1.0


class Instrument:
    """
    Base class for the fixed set of preset voices.

    A voice is read-only while it synthesizes: the envelope is a pure function
    of the note's times, so one instance can serve any number of notes.

    Subclasses provide the preset data (envelope, volume, max_life_time, name)
    and the oscillator mix in `_mix`.
    """

    PRESET_ENVELOPE = ADSR()
    PRESET_VOLUME = 1.0
    PRESET_MAX_LIFE_TIME = UNLIMITED
    PRESET_NAME = "Instrument"

    # True: finished when the envelope falls silent.
    # False: finished once max_life_time has elapsed since note-on.
    check_amplitude = True

    def __init__(
        self,
        envelope: Optional[ADSR] = None,
        volume: Optional[float] = None,
        max_life_time: Optional[float] = None,
        name: Optional[str] = None,
        wave: Callable = np.sin,
    ):
        self.envelope = envelope if envelope is not None else self.PRESET_ENVELOPE
        self.volume = self.PRESET_VOLUME if volume is None else volume
        self.max_life_time = self.PRESET_MAX_LIFE_TIME if max_life_time is None else max_life_time
        self.name = name or self.PRESET_NAME
        self.wave = wave

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, volume={self.volume})"

    def note_finished(self, amplitude: float, time_global: float = 0.0, time_on: float = 0.0,
                      held: bool = False) -> bool:
        if self.check_amplitude:
            # A held note still ramping up from 0 has not started yet
            if held and time_global - time_on <= self.envelope.attack_time:
                return False
            return amplitude <= 0.0
        return self.max_life_time > 0.0 and time_global - time_on >= self.max_life_time

    def sound(self, time_global: float, note: Note,
              rng: Optional[np.random.Generator] = None) -> Tuple[float, bool]:
        """
        Synthesize this voice for one note at one instant.

        Args:
            time_global: Current time
            note: The sounding note
            rng: Random source for noise partials

        Returns:
            Tuple of (sample value, note finished)
        """
        amplitude = self.envelope.amplitude(time_global, note.on, note.off)
        finished = self.note_finished(amplitude, time_global, note.on, held=note.is_held())
        mix = self._mix(time_global - note.on, note.id, rng)
        return amplitude * mix * self.volume, finished

    def _osc(self, time: float, hertz: float, waveform: Waveform,
             rng: Optional[np.random.Generator] = None, **kwargs) -> float:
        return oscillate(time, hertz, waveform, rng=rng, wave=self.wave, **kwargs)

    def _mix(self, time: float, note_id: int, rng: Optional[np.random.Generator]) -> float:
        """Oscillator mix at `time` seconds after note-on. Each preset voice overrides this."""
        raise NotImplementedError


class Bell(Instrument):
    """Three sine partials an octave apart, slight vibrato on the lowest."""

    PRESET_ENVELOPE = ADSR(attack_time=0.01, decay_time=1.0, sustain_amplitude=0.0, release_time=1.0)
    PRESET_VOLUME = 1.0
    PRESET_MAX_LIFE_TIME = 3.0
    PRESET_NAME = "Bell"

    def _mix(self, time, note_id, rng):
        return (1.0 * self._osc(time, scale(note_id + 12), Waveform.SINE, lfo_hertz=5.0, lfo_amplitude=0.001)
                + 0.5 * self._osc(time, scale(note_id + 24), Waveform.SINE)
                + 0.25 * self._osc(time, scale(note_id + 36), Waveform.SINE))


class Harmonica(Instrument):
    PRESET_ENVELOPE = ADSR(attack_time=0.0, decay_time=1.0, sustain_amplitude=0.95, release_time=0.1)
    PRESET_VOLUME = 0.3
    PRESET_MAX_LIFE_TIME = UNLIMITED
    PRESET_NAME = "Harmonica"

    def _mix(self, time, note_id, rng):
        return (1.0 * self._osc(time, scale(note_id - 12), Waveform.SAW_ANALOG,
                                lfo_hertz=5.0, lfo_amplitude=0.001, saw_partials=100.0)
                + 1.0 * self._osc(time, scale(note_id), Waveform.SQUARE, lfo_hertz=5.0, lfo_amplitude=0.001)
                + 0.5 * self._osc(time, scale(note_id + 12), Waveform.SQUARE)
                + 0.05 * self._osc(time, scale(note_id + 24), Waveform.NOISE, rng=rng))


class Drum(Instrument):
    """Drum voices are never released (off stays put), so they stop by elapsed time."""

    check_amplitude = False


class Kick(Drum):
    PRESET_ENVELOPE = ADSR(attack_time=0.01, decay_time=0.15, sustain_amplitude=0.0, release_time=0.0)
    PRESET_VOLUME = 1.0
    PRESET_MAX_LIFE_TIME = 1.5
    PRESET_NAME = "Drum Kick"

    def _mix(self, time, note_id, rng):
        return (0.99 * self._osc(time, scale(note_id - 36), Waveform.SINE, lfo_hertz=1.0, lfo_amplitude=1.0)
                + 0.01 * self._osc(time, 0.0, Waveform.NOISE, rng=rng))


class Snare(Drum):
    PRESET_ENVELOPE = ADSR(attack_time=0.0, decay_time=0.2, sustain_amplitude=0.0, release_time=0.0)
    PRESET_VOLUME = 1.0
    PRESET_MAX_LIFE_TIME = 1.0
    PRESET_NAME = "Drum Snare"

    def _mix(self, time, note_id, rng):
        return (0.5 * self._osc(time, scale(note_id - 24), Waveform.SINE, lfo_hertz=0.5, lfo_amplitude=1.0)
                + 0.5 * self._osc(time, 0.0, Waveform.NOISE, rng=rng))


class HiHat(Drum):
    PRESET_ENVELOPE = ADSR(attack_time=0.01, decay_time=0.05, sustain_amplitude=0.0, release_time=0.0)
    PRESET_VOLUME = 0.5
    PRESET_MAX_LIFE_TIME = 1.5
    PRESET_NAME = "Drum HiHat"

    def _mix(self, time, note_id, rng):
        return (0.1 * self._osc(time, scale(note_id - 12), Waveform.SQUARE, lfo_hertz=1.5, lfo_amplitude=1.0)
                + 0.9 * self._osc(time, 0.0, Waveform.NOISE, rng=rng))


# Preset key -> voice class. The set is closed; configuration refers to these keys.
INSTRUMENT_PRESETS: Dict[str, Type[Instrument]] = {
    "Bell": Bell,
    "Harmonica": Harmonica,
    "Kick": Kick,
    "Snare": Snare,
    "HiHat": HiHat,
}


def create_instrument(preset: str, **overrides: Any) -> Instrument:
    """
    Build a preset voice, optionally overriding its parameters.

    Recognized overrides: attack_time, decay_time, sustain_amplitude,
    release_time, start_amplitude (envelope fields), volume, max_life_time,
    name (display name) and wave.

    Raises:
        KeyError: unknown preset key or override name
    """
    cls = INSTRUMENT_PRESETS[preset]

    envelope_fields = {}
    for field in ("attack_time", "decay_time", "sustain_amplitude", "release_time", "start_amplitude"):
        if field in overrides:
            envelope_fields[field] = float(overrides.pop(field))

    unknown = set(overrides) - {"volume", "max_life_time", "name", "wave"}
    if unknown:
        raise KeyError(f"Unknown instrument options: {sorted(unknown)}")

    envelope = replace(cls.PRESET_ENVELOPE, **envelope_fields) if envelope_fields else None
    return cls(envelope=envelope, **overrides)
