"""Audio host: drives the sequencer and pulls samples from the note mixer."""
from typing import Dict, Optional

import numpy as np

from config_manager import ConfigManager
from music.instruments import INSTRUMENT_PRESETS, create_instrument
from music.note import InstrumentRegistry
from music.note_mixer import NoteMixer
from music.oscillator import approx_sin
from music.sequencer_engine import SequencerEngine

# Check for PyAudio availability
try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    AUDIO_AVAILABLE = False
    pyaudio = None


class AudioHost:
    """Builds the synthesis graph from configuration and renders it block by block.

    Each block runs one sequencer update (the control step), inserts the
    triggered notes into the mixer, then queries the mixer once per sample.
    """

    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config if config is not None else ConfigManager()
        self.sample_rate = self.config.get_sample_rate()
        self.buffer_size = self.config.get_buffer_size()
        self.time_global = 0.0
        self._pending_time = 0.0  # rendered but not yet seen by the sequencer

        self.audio = None
        self.stream = None
        self.running = False

        wave = approx_sin if self.config.use_fast_sine() else np.sin
        self.registry = InstrumentRegistry()
        self.instrument_index: Dict[str, int] = {}
        for preset in INSTRUMENT_PRESETS:
            overrides = self.config.get_instrument_overrides(preset)
            overrides.setdefault("wave", wave)
            self.instrument_index[preset] = self.registry.register(create_instrument(preset, **overrides))

        self.sequencer = SequencerEngine(
            tempo=self.config.get_bpm(),
            beats=self.config.get_beats(),
            sub_beats=self.config.get_sub_beats(),
            note_id=self.config.get_note_id(),
            registry=self.registry,
        )
        for channel in self.config.get_channels():
            self.sequencer.add_channel(self.instrument_index[channel["instrument"]], channel.get("pattern", ""))

        self.mixer = NoteMixer(self.registry, rng=np.random.default_rng(self.config.get_noise_seed()))

    def process(self, num_samples: int) -> np.ndarray:
        """
        Render the next `num_samples` samples and advance the host clock.

        The sequencer is advanced by the time rendered since its last update,
        so steps reached by the start of this block fire at its first sample.
        """
        block_start = self.time_global

        self.mixer.add_notes(self.sequencer.update(self._pending_time, time_now=block_start))
        out = self.mixer.render(block_start, num_samples, self.sample_rate)

        self._pending_time = num_samples / self.sample_rate
        self.time_global = block_start + self._pending_time
        return out

    def render_seconds(self, seconds: float) -> np.ndarray:
        """Offline render of `seconds` of audio in buffer-sized blocks."""
        total = int(seconds * self.sample_rate)
        blocks = []
        while total > 0:
            n = min(self.buffer_size, total)
            blocks.append(self.process(n))
            total -= n
        return np.concatenate(blocks) if blocks else np.zeros(0, dtype=np.float64)

    def _audio_callback(self, in_data, frame_count, time_info, status):
        try:
            mixed = self.process(frame_count)
            out = np.clip(mixed * 32767, -32767, 32767).astype(np.int16)
            return (out.tobytes(), pyaudio.paContinue)
        except Exception:
            return (np.zeros(frame_count, dtype=np.int16).tobytes(), pyaudio.paContinue)

    def start(self) -> bool:
        """Open the default output device and start streaming. Returns False without audio."""
        if not AUDIO_AVAILABLE or pyaudio is None:
            print("[AudioHost] PyAudio not available; use render_seconds() for offline output")
            return False
        try:
            self.audio = pyaudio.PyAudio()
            default_output = self.audio.get_default_output_device_info()
            self.stream = self.audio.open(
                format=pyaudio.paInt16, channels=1, rate=self.sample_rate,
                output=True, output_device_index=default_output['index'],
                frames_per_buffer=self.buffer_size, stream_callback=self._audio_callback, start=False
            )
            self.stream.start_stream()
            self.running = True
        except Exception as e:
            print(f"[AudioHost] Audio initialization failed: {e}")
            self.running = False
        return self.running

    def close(self):
        self.running = False
        if self.stream: self.stream.stop_stream(); self.stream.close()
        if self.audio: self.audio.terminate()
        self.stream = None
        self.audio = None

    def is_available(self) -> bool: return AUDIO_AVAILABLE and self.running
