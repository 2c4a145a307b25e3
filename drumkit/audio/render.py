"""Offline WAV rendering and mixing for the drum machine.

Usage:
    python -m drumkit.audio.render render kick --machine 808 -o kick.wav
    python -m drumkit.audio.render render snare --length 300 --seed 7
    python -m drumkit.audio.render mix rms kick.wav snare.wav -o combined.wav
"""

import argparse
import logging
from dataclasses import replace

import numpy as np

from drumkit.engine.params import PRESETS, random_settings, voice_settings
from drumkit.engine.voices import VOICES, generate
from primitives.envelope import fade_out, quadratic_fade
from primitives.oscillators import NOISE_NAMES
from shared.audio import load_wav, save_wav
from shared.errors import InvalidParameters, SynthError
from shared.mixing import mix_files

log = logging.getLogger(__name__)

# --quality in kHz -> sample rate
QUALITY = {44: 44100, 48: 48000, 96: 96000, 192: 192000}

# Fade applied to the tail of a mix so it never ends on a click
MIX_FADE_SECONDS = 0.01

# CLI flag -> Settings field
_OVERRIDES = {
    "waveform": "waveform_type",
    "attack": "attack",
    "decay": "decay",
    "sustain": "sustain",
    "release": "release",
    "drive": "drive",
    "filter": "filter_cutoff",
    "sweep": "sweep",
    "pitchdecay": "pitch_decay",
    "noiseamount": "noise_amount",
    "start": "start_frequency",
    "end": "end_frequency",
}


def build_parser():
    parser = argparse.ArgumentParser(description="Drum machine offline renderer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    r = sub.add_parser("render", help="Render one voice to a WAV file")
    r.add_argument("voice", choices=sorted(VOICES))
    r.add_argument("-o", "--output", help="Output WAV file (default VOICE.wav)")
    r.add_argument("--machine", choices=sorted(PRESETS))
    r.add_argument("--random", action="store_true",
                   help="Randomize the kick parameters (kick only)")
    r.add_argument("--length", type=float, help="Length in milliseconds")
    r.add_argument("--quality", type=int, default=96, choices=sorted(QUALITY),
                   help="Sample rate in kHz (default 96)")
    r.add_argument("--bitdepth", type=int, default=16, choices=(8, 16, 24, 32))
    r.add_argument("--channels", type=int, default=1, choices=(1, 2))
    r.add_argument("--noise", choices=sorted(NOISE_NAMES))
    r.add_argument("--seed", type=int, help="Seed for the noise generator")
    r.add_argument("--waveform", type=int,
                   help="0 sine, 1 triangle, 2 sawtooth, 3 square, 4-6 noise")
    for flag in ("attack", "decay", "sustain", "release", "drive", "filter",
                 "sweep", "pitchdecay", "noiseamount", "start", "end"):
        r.add_argument(f"--{flag}", type=float)

    m = sub.add_parser("mix", help="Mix WAV files into one")
    m.add_argument("method", choices=("linear", "rms", "weighted"))
    m.add_argument("inputs", nargs="+", help="Input WAV files (at least two)")
    m.add_argument("-o", "--output", default="combined.wav")
    m.add_argument("--weights", type=float, nargs="+")
    m.add_argument("--bitdepth", type=int, default=16, choices=(8, 16, 24, 32))
    return parser


def settings_from_args(args):
    sample_rate = QUALITY[args.quality]
    duration = args.length / 1000.0 if args.length is not None else None
    changes = {name: getattr(args, flag) for flag, name in _OVERRIDES.items()
               if getattr(args, flag) is not None}
    if args.noise is not None:
        changes["noise_type"] = NOISE_NAMES[args.noise]
    if args.random:
        if args.voice != "kick":
            raise InvalidParameters(f"--random only randomizes the kick, not {args.voice}")
        s = random_settings(np.random.default_rng(args.seed))
        changes.update(sample_rate=sample_rate, bit_depth=args.bitdepth,
                       channels=args.channels)
        if duration is not None:
            changes["duration"] = duration
    else:
        s = voice_settings(args.voice, machine=args.machine, sample_rate=sample_rate,
                           duration=duration, bit_depth=args.bitdepth,
                           channels=args.channels)
    return replace(s, **changes)


def render(args):
    s = settings_from_args(args)
    rng = np.random.default_rng(args.seed)
    samples = generate(s, args.voice, rng)
    out = args.output or f"{args.voice}.wav"
    save_wav(out, samples, s.sample_rate, s.bit_depth, s.channels)
    r, g, b = s.color()
    print(f"Saved {out}: {len(samples)} samples, {s.sample_rate} Hz, "
          f"{s.bit_depth}-bit, colour #{r:02x}{g:02x}{b:02x}")


def mix(args):
    if len(args.inputs) < 2:
        raise SynthError("mixing needs at least two input files")
    first, sr = load_wav(args.inputs[0])
    buffers = [first]
    for path in args.inputs[1:]:
        audio, _ = load_wav(path, sr=sr)
        buffers.append(audio)
    for path, b in zip(args.inputs, buffers):
        log.debug("loaded %s: %d samples", path, len(b))

    combined = mix_files(buffers, args.method, args.weights)
    combined = fade_out(combined, MIX_FADE_SECONDS, sr, quadratic_fade)
    save_wav(args.output, combined, sr, args.bitdepth)
    print(f"Mixed {len(buffers)} files into {args.output}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s %(levelname)s: %(message)s")
    try:
        if args.command == "render":
            render(args)
        else:
            mix(args)
    except SynthError as e:
        log.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
