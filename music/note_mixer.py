"""ABOUTME: Thread-safe collection of sounding notes mixed into one sample per query.
ABOUTME: Notes leave the collection only when their instrument reports them finished."""

import threading
from typing import Iterable, List, Optional

import numpy as np

from music.note import InstrumentRegistry, Note, UnknownInstrumentError


class NoteMixer:
    """
    Sums every active note's instrument output.

    One lock guards the note list. Insertion and the whole
    iterate/sum/prune cycle each run inside a single critical section, so
    the pruning always matches the sum it produced.
    """

    def __init__(self, registry: InstrumentRegistry, rng: Optional[np.random.Generator] = None):
        self.registry = registry
        self.rng = rng if rng is not None else np.random.default_rng()
        self.notes: List[Note] = []
        self._lock = threading.Lock()

    def _check_note(self, note: Note):
        if note.channel not in self.registry:
            raise UnknownInstrumentError(note.channel)

    def add_note(self, note: Note):
        """Insert a note (e.g. one fired by the sequencer)."""
        self._check_note(note)
        with self._lock:
            self.notes.append(note)

    def add_notes(self, notes: Iterable[Note]):
        notes = list(notes)
        for note in notes:
            self._check_note(note)
        with self._lock:
            self.notes.extend(notes)

    def note_on(self, note_id: int, channel: int, time_global: float) -> Note:
        """
        Start (or re-trigger) a held note for an external note-on request.

        A note with the same id and instrument that is already released is
        re-triggered in place; a held one is left alone.

        Returns:
            The sounding note
        """
        self.registry.get(channel)
        with self._lock:
            for note in self.notes:
                if note.id == note_id and note.channel == channel:
                    if not note.is_held():
                        note.on = time_global
                        note.active = True
                    return note
            note = Note(id=note_id, on=time_global, active=True, channel=channel)
            self.notes.append(note)
            return note

    def note_off(self, note_id: int, channel: int, time_global: float) -> bool:
        """
        Release the held note matching id and instrument.

        Returns:
            True if a held note was released
        """
        with self._lock:
            for note in self.notes:
                if note.id == note_id and note.channel == channel and note.is_held():
                    note.off = time_global
                    return True
        return False

    def release_all(self, time_global: float):
        """Release every held note; they finish through their envelopes."""
        with self._lock:
            for note in self.notes:
                if note.is_held():
                    note.off = time_global

    def active_count(self) -> int:
        with self._lock:
            return len(self.notes)

    def get_sample(self, time_global: float) -> float:
        """
        Mix all active notes at `time_global` and drop the finished ones.

        Returns:
            Sum of instrument outputs (0.0 with no active notes)
        """
        with self._lock:
            output = 0.0

            for note in self.notes:
                value, finished = self.registry.get(note.channel).sound(time_global, note, self.rng)
                output += value
                if finished:
                    note.active = False

            self.notes = [note for note in self.notes if note.active]

        return output

    def render(self, start_time: float, num_samples: int, sample_rate: float) -> np.ndarray:
        """Pull `num_samples` consecutive samples starting at `start_time`."""
        dt = 1.0 / sample_rate
        out = np.zeros(num_samples, dtype=np.float64)
        for i in range(num_samples):
            out[i] = self.get_sample(start_time + i * dt)
        return out
