#!/usr/bin/env python3
"""ABOUTME: ADSR envelope tests - held-note continuity, release decay and the silence clamp.
ABOUTME: Also covers the zero-length attack and release windows."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from music.envelope import ADSR, SILENCE_THRESHOLD

ENV = ADSR(attack_time=0.1, decay_time=0.2, sustain_amplitude=0.5, release_time=0.3, start_amplitude=1.0)


def held(env, life_time, on=1.0):
    # off < on keeps the note held
    return env.amplitude(on + life_time, on, 0.0)


def test_attack_decay_sustain_shape():
    assert held(ENV, 0.05) == pytest.approx(0.5)
    assert held(ENV, 0.1) == pytest.approx(1.0)
    assert held(ENV, 0.2) == pytest.approx(0.75)
    assert held(ENV, 0.3) == pytest.approx(0.5)
    assert held(ENV, 10.0) == 0.5


def test_held_amplitude_is_continuous_at_boundaries():
    eps = 1e-9
    for boundary in (ENV.attack_time, ENV.attack_time + ENV.decay_time):
        assert held(ENV, boundary - eps) == pytest.approx(held(ENV, boundary + eps), abs=1e-6)


def test_release_is_non_increasing_and_reaches_zero():
    on, off = 0.0, 0.5
    times = np.linspace(off, off + ENV.release_time + 0.2, 400)
    values = [ENV.amplitude(t, on, off) for t in times]

    assert values[0] == pytest.approx(0.5)
    assert all(b <= a for a, b in zip(values, values[1:]))
    for t, value in zip(times, values):
        if t >= off + ENV.release_time:
            assert value == 0.0


def test_release_starts_from_amplitude_at_release_moment():
    # Released during the attack ramp: halfway up
    assert ENV.amplitude(0.05, 0.0, 0.05) == pytest.approx(0.5)
    # Released during decay
    assert ENV.amplitude(0.2, 0.0, 0.2) == pytest.approx(0.75)


def test_values_below_threshold_clamp_to_zero():
    value = held(ENV, 0.0005)  # 0.005 on the attack ramp
    assert value == 0.0
    assert held(ENV, 0.002) > SILENCE_THRESHOLD


def test_zero_length_attack_window():
    env = ADSR(attack_time=0.0, decay_time=1.0, sustain_amplitude=0.95, release_time=0.1)
    assert held(env, 0.0) == 0.0
    assert held(env, 0.5) == pytest.approx(0.975)
    assert held(env, 2.0) == pytest.approx(0.95)


def test_zero_length_release_window_is_silent():
    env = ADSR(attack_time=0.01, decay_time=0.15, sustain_amplitude=0.0, release_time=0.0)
    assert env.amplitude(0.05, 0.0, 0.05) == 0.0
    assert env.amplitude(0.5, 0.0, 0.05) == 0.0


def test_equal_on_and_off_counts_as_released():
    assert ENV.amplitude(0.0, 0.0, 0.0) == 0.0


def test_envelope_is_immutable():
    with pytest.raises(AttributeError):
        ENV.attack_time = 1.0
