"""Configuration file management."""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class ConfigManager:
    """Manages synthesizer configuration."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        if config_file is None:
            config_file = Path(__file__).parent / "config.json"
        self.config_file = Path(config_file)
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, filling in defaults for missing keys."""
        config = self._default_config()
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    config.update(json.load(f))
            except Exception as e:
                print(f"[Config] Could not read {self.config_file}, using defaults: {e}")
                return self._default_config()
        return config

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "sample_rate": 44100,
            "buffer_size": 256,
            "tempo": 120,
            "beats": 4,
            "sub_beats": 4,
            "note_id": 64,
            "noise_seed": None,
            "fast_sine": False,
            "channels": [
                {"instrument": "Kick", "pattern": "x...x...x...x..."},
                {"instrument": "Snare", "pattern": "....x.......x..."},
                {"instrument": "HiHat", "pattern": "x.x.x.x.x.x.x.x."},
            ],
            "instrument_overrides": {},
        }

    def save_config(self):
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except Exception as e:
            print(f"[Config] Error saving config: {e}")

    # ── Audio ────────────────────────────────────────────────────

    def get_sample_rate(self) -> int:
        return int(self.config.get("sample_rate", 44100))

    def get_buffer_size(self) -> int:
        return int(self.config.get("buffer_size", 256))

    def get_noise_seed(self) -> Optional[int]:
        """Seed for the noise source; None means a fresh, non-reproducible one."""
        seed = self.config.get("noise_seed")
        return None if seed is None else int(seed)

    def use_fast_sine(self) -> bool:
        return bool(self.config.get("fast_sine", False))

    # ── Sequencer ────────────────────────────────────────────────

    def get_bpm(self) -> float:
        """Return the sequencer tempo (default 120)."""
        return float(self.config.get("tempo", 120))

    def set_bpm(self, bpm: float):
        """Persist the tempo and save. Clamped to [20, 300]."""
        self.config["tempo"] = max(20.0, min(300.0, float(bpm)))
        self.save_config()

    def get_beats(self) -> int:
        return int(self.config.get("beats", 4))

    def get_sub_beats(self) -> int:
        return int(self.config.get("sub_beats", 4))

    def get_note_id(self) -> int:
        return int(self.config.get("note_id", 64))

    def get_channels(self) -> List[Dict[str, str]]:
        """Return the channel list: dicts with 'instrument' (preset key) and 'pattern'."""
        return list(self.config.get("channels", []))

    def set_channels(self, channels: List[Dict[str, str]]):
        self.config["channels"] = list(channels)
        self.save_config()

    # ── Instruments ──────────────────────────────────────────────

    def get_instrument_overrides(self, preset: str) -> Dict[str, Any]:
        """Per-preset parameter overrides (attack_time, volume, name, ...)."""
        return dict(self.config.get("instrument_overrides", {}).get(preset, {}))
