"""ABOUTME: Step sequencer that advances a circular beat grid from elapsed time.
ABOUTME: Fires a note for every channel whose pattern marks the step just reached."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from music.note import InstrumentRegistry, Note

TRIGGER_CHAR = "x"
DEFAULT_NOTE_ID = 64


@dataclass
class Channel:
    """An instrument (registry index) plus one pattern character per grid step."""
    instrument: int
    pattern: str = ""

    def triggers_at(self, step: int, trigger: str = TRIGGER_CHAR) -> bool:
        # Steps past the end of a short pattern never trigger
        return step < len(self.pattern) and self.pattern[step] == trigger


class SequencerEngine:
    """
    Advances the beat grid and produces newly triggered notes.

    Features:
    - Grid of beats x sub_beats steps, wrapping at the end
    - Catch-up loop: one update spanning several sub-beats fires every step
    - Per-channel mute
    - Optional step callback for UI updates

    The engine only creates notes. Callers hand them to the mixer.
    """

    def __init__(
        self,
        tempo: float = 120.0,
        beats: int = 4,
        sub_beats: int = 4,
        note_id: int = DEFAULT_NOTE_ID,
        trigger: str = TRIGGER_CHAR,
        registry: Optional[InstrumentRegistry] = None,
    ):
        """
        Initialize the sequencer engine.

        Args:
            tempo: Beats per minute
            beats: Beats in the loop
            sub_beats: Steps per beat
            note_id: Pitch id given to every triggered note
            trigger: Pattern character that marks a trigger
            registry: Optional registry used to validate channel instruments
        """
        if beats <= 0 or sub_beats <= 0:
            raise ValueError(f"beats and sub_beats must be positive, got {beats} and {sub_beats}")

        self.beats = beats
        self.sub_beats = sub_beats
        self.total_steps = beats * sub_beats
        self.note_id = note_id
        self.trigger = trigger
        self.registry = registry

        self.current_step = 0
        self.time_total = 0.0
        self.set_tempo(tempo)

        self.channels: List[Channel] = []
        self.notes: List[Note] = []

        self.on_step_callback: Optional[Callable[[int], None]] = None
        self.channel_mute_state: Dict[int, bool] = {}  # channel index -> is_muted

    def set_tempo(self, tempo: float):
        """Set beats per minute and recompute the sub-beat duration."""
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}")
        self.tempo = float(tempo)
        self.beat_time = 60.0 / self.tempo / self.sub_beats

    def get_step_duration(self) -> float:
        """Duration of one grid step in seconds."""
        return self.beat_time

    def set_step_callback(self, callback: Optional[Callable[[int], None]]):
        """
        Set callback function called each step with the new step number.

        Args:
            callback: Function(step_index) called when the step advances
        """
        self.on_step_callback = callback

    def add_channel(self, instrument: int, pattern: str = "") -> int:
        """
        Register a channel.

        Args:
            instrument: Registry index of the instrument to trigger
            pattern: One character per step; `trigger` marks a hit

        Returns:
            Channel index
        """
        if self.registry is not None:
            self.registry.get(instrument)

        if len(pattern) < self.total_steps:
            print(f"[Sequencer] Pattern {pattern!r} covers {len(pattern)} of "
                  f"{self.total_steps} steps; missing steps will not trigger")

        self.channels.append(Channel(instrument=instrument, pattern=pattern))
        return len(self.channels) - 1

    def update(self, delta_time: float, time_now: float = 0.0) -> List[Note]:
        """
        Advance by `delta_time` seconds and trigger notes on the steps reached.

        Args:
            delta_time: Elapsed time since the previous update
            time_now: On-time stamped on every note triggered by this call.
                Pass the current clock; with the default every note starts at
                0.0 with off == on, which already counts as released.

        Returns:
            Notes triggered by this call (also kept in self.notes)
        """
        self.notes = []

        self.time_total += delta_time
        while self.time_total >= self.beat_time:
            self.time_total -= self.beat_time
            self._advance_step()

            for channel_idx, channel in enumerate(self.channels):
                if self.is_channel_muted(channel_idx):
                    continue
                if channel.triggers_at(self.current_step, self.trigger):
                    self.notes.append(Note(
                        id=self.note_id,
                        on=time_now,
                        active=True,
                        channel=channel.instrument,
                    ))

        return self.notes

    def _advance_step(self):
        """Internal: Advance to next step and trigger callback."""
        self.current_step = (self.current_step + 1) % self.total_steps

        if self.on_step_callback:
            self.on_step_callback(self.current_step)

    def reset(self):
        """Return to step 0 and drop any accumulated time."""
        self.current_step = 0
        self.time_total = 0.0
        self.notes = []

    def get_current_step(self) -> int:
        """Get the current step index (0-based)."""
        return self.current_step

    def set_current_step(self, step: int):
        """Set the current step index."""
        self.current_step = max(0, min(self.total_steps - 1, step))

    def mute_channel(self, channel_idx: int):
        """Mark a channel as muted - it won't trigger when the pattern plays."""
        self.channel_mute_state[channel_idx] = True

    def unmute_channel(self, channel_idx: int):
        self.channel_mute_state[channel_idx] = False

    def is_channel_muted(self, channel_idx: int) -> bool:
        return self.channel_mute_state.get(channel_idx, False)

    def get_beat_position(self, step: int) -> tuple:
        """
        Calculate beat and position within beat for a given step.

        Returns:
            Tuple of (beat_number, position_in_beat)
        """
        return (step // self.sub_beats, step % self.sub_beats)
