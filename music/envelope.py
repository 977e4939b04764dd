"""ABOUTME: Linear ADSR envelope evaluated as a pure function of note timing.
ABOUTME: Amplitude is recomputed from (global, on, off) every call, so one shape serves many notes."""

from dataclasses import dataclass

# Amplitudes at or below this are clamped to exactly 0.0 and count as silence.
SILENCE_THRESHOLD = 0.01


@dataclass(frozen=True)
class ADSR:
    """Attack/decay/sustain/release shape (times in seconds)."""

    attack_time: float = 0.1
    decay_time: float = 0.1
    sustain_amplitude: float = 1.0
    release_time: float = 0.2
    start_amplitude: float = 1.0

    def _held_amplitude(self, life_time: float) -> float:
        """Amplitude of a held note `life_time` seconds after note-on."""
        if life_time <= self.attack_time:
            # Zero-length attack window: nothing to ramp through
            if self.attack_time <= 0.0:
                return 0.0
            return life_time / self.attack_time * self.start_amplitude

        if life_time <= self.attack_time + self.decay_time:
            return ((life_time - self.attack_time) / self.decay_time
                    * (self.sustain_amplitude - self.start_amplitude)
                    + self.start_amplitude)

        return self.sustain_amplitude

    def amplitude(self, time_global: float, time_on: float, time_off: float) -> float:
        """
        Envelope amplitude at `time_global`.

        Args:
            time_global: Current time
            time_on: Note-on time
            time_off: Note-off time; the note is held while time_on > time_off

        Returns:
            Amplitude, clamped to exactly 0.0 at or below SILENCE_THRESHOLD
        """
        if time_on > time_off:
            amplitude = self._held_amplitude(time_global - time_on)
        else:
            release_amplitude = self._held_amplitude(time_off - time_on)
            if self.release_time <= 0.0:
                amplitude = 0.0
            else:
                amplitude = ((time_global - time_off) / self.release_time
                             * -release_amplitude + release_amplitude)

        return amplitude if amplitude > SILENCE_THRESHOLD else 0.0
