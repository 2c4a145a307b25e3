#!/usr/bin/env python3
"""Render a full kit from the project root.

Usage:
    python -m drumkit.main                 # generic kit into ./kit
    python -m drumkit.main 808 out/        # 808-flavoured kit into ./out
"""

import logging
import os
import sys

import numpy as np

from drumkit.engine.params import VOICE_DEFAULTS, voice_settings
from drumkit.engine.voices import generate
from shared.audio import save_wav

log = logging.getLogger(__name__)


def render_kit(out_dir, machine=None, seed=None):
    """Render every voice into out_dir/VOICE.wav. Returns the written paths."""
    os.makedirs(out_dir, exist_ok=True)
    rng = np.random.default_rng(seed)
    paths = []
    for voice in VOICE_DEFAULTS:
        s = voice_settings(voice, machine=machine)
        samples = generate(s, voice, rng)
        path = os.path.join(out_dir, f"{voice}.wav")
        save_wav(path, samples, s.sample_rate, s.bit_depth, s.channels)
        paths.append(path)
    return paths


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")
    machine = sys.argv[1] if len(sys.argv) > 1 else None
    out_dir = sys.argv[2] if len(sys.argv) > 2 else "kit"
    paths = render_kit(out_dir, machine)
    log.info("wrote %d samples to %s", len(paths), out_dir)


if __name__ == "__main__":
    main()
