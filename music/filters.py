"""ABOUTME: One-pole low-pass and high-pass filters with one persisted history sample.
ABOUTME: Each instance must be fed a single, strictly ordered sample stream."""

import numpy as np


class OnePoleFilter:
    """Shared state and coefficient handling for the one-pole filters."""

    def __init__(self, frequency: float = 120.0, sample_rate: float = 44100.0):
        self.alpha = 0.0
        self.prev_sample = 0.0
        self.sample_rate = sample_rate
        self.set_frequency(frequency)

    def set_frequency(self, frequency: float):
        """Recompute the smoothing coefficient for a new cutoff frequency."""
        self.frequency = frequency
        self.alpha = float(np.exp(-2.0 * np.pi * frequency / self.sample_rate))

    def reset(self):
        """Forget the previous output sample."""
        self.prev_sample = 0.0

    def process(self, time_global: float, sample: float) -> float:
        """Filter one sample and update prev_sample. Implemented by LowPassFilter and HighPassFilter."""
        raise NotImplementedError

    def process_block(self, samples: np.ndarray, start_time: float = 0.0) -> np.ndarray:
        """
        Filter a block sample by sample, carrying state across calls.

        Args:
            samples: Input samples
            start_time: Global time of the first sample

        Returns:
            Filtered samples (float64)
        """
        dt = 1.0 / self.sample_rate
        filtered = np.empty(len(samples), dtype=np.float64)
        for i, sample in enumerate(samples):
            filtered[i] = self.process(start_time + i * dt, float(sample))
        return filtered


class LowPassFilter(OnePoleFilter):
    """Exponential moving average."""

    def process(self, time_global: float, sample: float) -> float:
        output = (1.0 - self.alpha) * sample + self.alpha * self.prev_sample
        self.prev_sample = output
        return output


class HighPassFilter(OnePoleFilter):
    """One-pole high-pass in the form alpha * (2 * prev - in).

    Not the textbook difference equation; existing patches are tuned against it.
    """

    def process(self, time_global: float, sample: float) -> float:
        output = self.alpha * (2.0 * self.prev_sample - sample)
        self.prev_sample = output
        return output
