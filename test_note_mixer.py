#!/usr/bin/env python3
"""ABOUTME: Note mixer tests - summing, pruning of finished notes and note on/off handling.
ABOUTME: Includes a concurrent insert-while-mixing check for the single-lock design."""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from music.instruments import Bell, Harmonica, Kick
from music.note import InstrumentRegistry, Note, UnknownInstrumentError
from music.note_mixer import NoteMixer


def make_mixer():
    registry = InstrumentRegistry()
    bell = registry.register(Bell())
    kick = registry.register(Kick())
    return NoteMixer(registry, rng=np.random.default_rng(0)), bell, kick


def test_empty_mixer_returns_exact_zero():
    mixer, _, _ = make_mixer()
    for t in (0.0, 0.5, 123.456):
        assert mixer.get_sample(t) == 0.0


def test_sum_of_notes():
    mixer, bell, _ = make_mixer()
    a = Note(id=40, on=0.1, off=0.0, active=True, channel=bell)
    b = Note(id=52, on=0.2, off=0.0, active=True, channel=bell)
    mixer.add_notes([a, b])

    instrument = mixer.registry.get(bell)
    expected = instrument.sound(0.5, a)[0] + instrument.sound(0.5, b)[0]
    assert mixer.get_sample(0.5) == pytest.approx(expected)
    assert mixer.active_count() == 2


def test_finished_note_is_pruned():
    mixer, _, kick = make_mixer()
    mixer.add_note(Note(id=64, on=1.0, off=0.0, active=True, channel=kick))

    mixer.get_sample(1.1)
    assert mixer.active_count() == 1

    # Kick max life time is 1.5s
    mixer.get_sample(2.5)
    assert mixer.active_count() == 0
    assert mixer.get_sample(2.6) == 0.0


def test_unknown_instrument_is_rejected_at_insert():
    mixer, _, _ = make_mixer()
    with pytest.raises(UnknownInstrumentError):
        mixer.add_note(Note(id=64, on=1.0, active=True, channel=7))
    with pytest.raises(UnknownInstrumentError):
        mixer.add_notes([Note(id=64, on=1.0, active=True, channel=None)])
    assert mixer.active_count() == 0


def test_note_on_note_off_and_retrigger():
    mixer, bell, _ = make_mixer()

    note = mixer.note_on(60, bell, 1.0)
    assert note.is_held()
    assert mixer.note_on(60, bell, 1.2) is note
    assert note.on == 1.0

    assert mixer.note_off(60, bell, 1.5)
    assert not note.is_held()
    assert note.off == 1.5
    assert not mixer.note_off(60, bell, 1.6)

    # Still sounding its release: re-trigger in place
    assert mixer.note_on(60, bell, 1.7) is note
    assert note.on == 1.7
    assert mixer.active_count() == 1


def test_note_on_then_sample_at_same_time_keeps_note():
    registry = InstrumentRegistry()
    bell = registry.register(Bell())
    harmonica = registry.register(Harmonica())
    mixer = NoteMixer(registry, rng=np.random.default_rng(0))

    mixer.note_on(60, bell, 1.0)
    mixer.note_on(60, harmonica, 1.0)
    assert mixer.get_sample(1.0) == 0.0
    assert mixer.active_count() == 2

    assert mixer.get_sample(1.0 + 1.0 / 8000.0) != 0.0
    assert mixer.active_count() == 2


def test_released_note_fades_out_and_is_removed():
    mixer, bell, _ = make_mixer()
    mixer.note_on(60, bell, 0.1)
    mixer.release_all(0.5)
    assert mixer.get_sample(0.6) != 0.0
    # Bell release time is 1.0s
    mixer.get_sample(1.6)
    assert mixer.active_count() == 0


def test_render_block():
    mixer, bell, _ = make_mixer()
    mixer.add_note(Note(id=60, on=0.01, off=0.0, active=True, channel=bell))
    out = mixer.render(0.02, 256, 8000.0)
    assert out.shape == (256,)
    assert np.any(out != 0.0)


def test_concurrent_insert_while_mixing():
    mixer, bell, _ = make_mixer()
    per_thread = 50
    stop = threading.Event()
    errors = []

    def insert():
        try:
            for _ in range(per_thread):
                # Held since 0.1s: audible at t=0.5, never finished there
                mixer.add_note(Note(id=60, on=0.1, off=0.0, active=True, channel=bell))
        except Exception as e:
            errors.append(e)

    def pull():
        try:
            while not stop.is_set():
                mixer.get_sample(0.5)
        except Exception as e:
            errors.append(e)

    puller = threading.Thread(target=pull)
    puller.start()
    writers = [threading.Thread(target=insert) for _ in range(4)]
    for w in writers:
        w.start()
    for w in writers:
        w.join()
    stop.set()
    puller.join()

    assert errors == []
    assert mixer.active_count() == 4 * per_thread
