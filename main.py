#!/usr/bin/env python3
"""Batida - procedural drum/voice synth - Main Entry Point."""
import argparse
import sys
import time

import numpy as np

from config_manager import ConfigManager
from music.audio_host import AudioHost


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play or render the configured beat grid.")
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument("--seconds", type=float, default=8.0, help="How long to play or render")
    parser.add_argument("--bpm", type=float, default=None, help="Override (and save) the tempo")
    parser.add_argument("--offline", action="store_true", help="Render without an audio device")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = ConfigManager(args.config)
    if args.bpm is not None:
        config.set_bpm(args.bpm)

    host = AudioHost(config)

    if not args.offline and host.start():
        try:
            time.sleep(args.seconds)
        except KeyboardInterrupt:
            pass
        finally:
            host.close()
        return 0

    audio = host.render_seconds(args.seconds)
    peak = float(np.max(np.abs(audio))) if len(audio) else 0.0
    rms = float(np.sqrt(np.mean(audio ** 2))) if len(audio) else 0.0
    print(f"Rendered {len(audio)} samples at {host.sample_rate} Hz (peak {peak:.4f}, rms {rms:.4f})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
