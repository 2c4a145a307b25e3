"""Settings record and presets for the drum machine.

A Settings instance fully describes one render. Preset factories return fresh
instances, so callers can tweak them freely; use Settings.copy() to branch one
preset into many variations.
"""

import copy
import hashlib
from dataclasses import dataclass, field, replace

import numpy as np

from primitives.oscillators import NoiseType, Waveform
from shared.errors import InvalidParameters

SR = 96000


@dataclass
class Settings:
    start_frequency: float
    end_frequency: float
    sample_rate: int = SR
    duration: float = 1.0
    waveform_type: int = Waveform.SINE

    # ADSR: times in seconds, sustain is a level
    attack: float = 0.005
    decay: float = 0.3
    sustain: float = 0.2
    release: float = 0.3

    drive: float = 0.2
    filter_cutoff: float = 5000.0
    filter_resonance: float = 0.707
    sweep: float = 0.7
    pitch_decay: float = 0.4
    noise_type: NoiseType = NoiseType.NONE
    noise_amount: float = 0.0

    # Layering
    num_oscillators: int = 1
    oscillator_levels: list = field(default_factory=lambda: [1.0])
    saturator_amount: float = 0.3
    filter_bands: list = field(default_factory=lambda: [200.0, 1000.0, 3000.0])

    # Output shape
    bit_depth: int = 16
    channels: int = 1
    fade_duration: float = 0.01
    smooth_frequency_transitions: bool = True

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise InvalidParameters(f"sample rate must be positive, got {self.sample_rate}")
        if self.duration <= 0:
            raise InvalidParameters(f"duration must be positive, got {self.duration}")
        if self.channels <= 0:
            raise InvalidParameters(f"channels must be positive, got {self.channels}")
        if self.num_oscillators < 0:
            raise InvalidParameters(
                f"num_oscillators must not be negative, got {self.num_oscillators}")

    @property
    def num_samples(self) -> int:
        return int(self.sample_rate * self.duration)

    def oscillator_level(self, i: int) -> float:
        """Gain of oscillator i; unset levels are unity."""
        if i < self.num_oscillators and i < len(self.oscillator_levels):
            return self.oscillator_levels[i]
        return 1.0

    def copy(self) -> "Settings":
        return copy.deepcopy(self)

    def color(self) -> tuple:
        """Stable (r, g, b) identity colour hashed from the timbre fields."""
        key = "%d%f%f%f%f%f%f%f%f" % (
            int(self.waveform_type), self.attack, self.decay, self.sustain,
            self.release, self.drive, self.filter_cutoff, self.sweep,
            self.pitch_decay)
        digest = hashlib.sha1(key.encode()).digest()
        return digest[0], digest[1], digest[2]


# ---------------------------------------------------------------------------
# Kick presets
# ---------------------------------------------------------------------------

def new_settings(start_frequency, end_frequency, sample_rate=SR, duration=1.0,
                 bit_depth=16, channels=1) -> Settings:
    """Generic kick defaults."""
    return Settings(start_frequency, end_frequency, sample_rate=sample_rate,
                    duration=duration, bit_depth=bit_depth, channels=channels)


def _kick(start, end, sample_rate, duration, bit_depth, **overrides):
    return replace(new_settings(start, end, sample_rate, duration, bit_depth), **overrides)


def preset_606(sample_rate=SR, duration=1.0, bit_depth=16):
    return _kick(65.0, 45.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.SINE, attack=0.01, decay=0.3,
                 sustain=0.1, release=0.2, drive=0.4, filter_cutoff=5000.0,
                 sweep=0.7, pitch_decay=0.5, fade_duration=0.015)


def preset_707(sample_rate=SR, duration=1.0, bit_depth=16):
    return _kick(60.0, 40.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.TRIANGLE, attack=0.005, decay=0.3,
                 sustain=0.2, release=0.2, drive=0.3, filter_cutoff=5000.0,
                 sweep=0.6, pitch_decay=0.3, fade_duration=0.01)


def preset_808(sample_rate=SR, duration=1.0, bit_depth=16):
    """Deep sub-bass with a long decay."""
    return _kick(55.0, 30.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.SINE, attack=0.01, decay=0.8,
                 sustain=0.2, release=0.6, drive=0.2, filter_cutoff=4000.0,
                 sweep=0.9, pitch_decay=0.5, fade_duration=0.02)


def preset_909(sample_rate=SR, duration=1.0, bit_depth=16):
    return _kick(70.0, 50.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.TRIANGLE, attack=0.002, decay=0.2,
                 sustain=0.1, release=0.3, drive=0.4, filter_cutoff=8000.0,
                 sweep=0.7, pitch_decay=0.2, fade_duration=0.015)


def preset_linn(sample_rate=SR, duration=1.0, bit_depth=16):
    return _kick(60.0, 40.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.SINE, attack=0.01, decay=0.5,
                 sustain=0.1, release=0.3, drive=0.4, filter_cutoff=5000.0,
                 sweep=0.6, pitch_decay=0.4, fade_duration=0.02)


def preset_deep_house(sample_rate=SR, duration=1.0, bit_depth=16):
    return _kick(45.0, 25.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.SINE, attack=0.005, decay=0.9,
                 sustain=0.3, release=0.7, drive=0.6, filter_cutoff=3500.0,
                 sweep=0.8, pitch_decay=0.6, fade_duration=0.03)


def preset_experimental(sample_rate=SR, duration=1.0, bit_depth=16):
    """Sawtooth with heavy drive and an extreme sweep."""
    return _kick(80.0, 20.0, sample_rate, duration, bit_depth,
                 waveform_type=Waveform.SAWTOOTH, attack=0.001, decay=0.7,
                 release=0.4, drive=0.8, filter_cutoff=3000.0, sweep=1.2,
                 pitch_decay=0.8, fade_duration=0.01)


PRESETS = {
    "606": preset_606,
    "707": preset_707,
    "808": preset_808,
    "909": preset_909,
    "linn": preset_linn,
    "deephouse": preset_deep_house,
    "experimental": preset_experimental,
}


# Ranges for random_settings (min, max)
RANDOM_RANGES = {
    "attack": (0.0, 0.02),
    "decay": (0.2, 1.0),
    "sustain": (0.0, 0.5),
    "release": (0.2, 0.7),
    "drive": (0.0, 1.0),
    "filter_cutoff": (2000.0, 8000.0),
    "sweep": (0.0, 1.5),
    "pitch_decay": (0.0, 1.5),
    "fade_duration": (0.0, 0.1),
}


def random_settings(rng: np.random.Generator = None) -> Settings:
    """Random kick around 55 -> 30 Hz.

    One in ten renders uses a stepped sweep, and one in ten may pick any
    waveform including noise; otherwise it is sine or triangle.
    """
    rng = rng if rng is not None else np.random.default_rng()
    s = new_settings(55.0, 30.0)
    for name, (lo, hi) in RANDOM_RANGES.items():
        setattr(s, name, float(lo + rng.random() * (hi - lo)))
    s.smooth_frequency_transitions = not (rng.random() < 0.1)
    if rng.random() < 0.1:
        s.waveform_type = Waveform(int(rng.integers(len(Waveform))))
    else:
        s.waveform_type = Waveform(int(rng.integers(2)))
    return s


# ---------------------------------------------------------------------------
# Per-voice starting points
# ---------------------------------------------------------------------------

VOICE_DEFAULTS = {
    "kick": {},
    "snare": dict(start_frequency=200.0, end_frequency=100.0, duration=0.5,
                  attack=0.005, decay=0.2, sustain=0.1, release=0.1,
                  filter_cutoff=8000.0, drive=0.2, noise_amount=0.5),
    "clap": dict(duration=2.0, waveform_type=Waveform.SQUARE, attack=0.005,
                 decay=0.1, sustain=0.0, release=0.05, filter_cutoff=5000.0,
                 drive=0.3, pitch_decay=0.3, noise_amount=0.5),
    "closed_hh": dict(duration=0.15, attack=0.001, decay=0.05, sustain=0.0,
                      release=0.05, drive=0.3, noise_amount=0.6,
                      fade_duration=0.02),
    "open_hh": dict(duration=0.6, attack=0.002, decay=0.3, sustain=0.2,
                    release=0.2, drive=0.3, noise_amount=0.6,
                    fade_duration=0.1),
    "rimshot": dict(duration=0.1, attack=0.001, decay=0.04, sustain=0.0,
                    release=0.03, drive=0.4, noise_amount=0.8),
    "tom": dict(start_frequency=160.0, end_frequency=90.0, duration=0.6,
                attack=0.002, decay=0.3, sustain=0.1, release=0.2,
                filter_cutoff=3000.0, noise_amount=0.3),
    "percussion": dict(start_frequency=400.0, end_frequency=300.0,
                       duration=0.3, attack=0.001, decay=0.12, sustain=0.0,
                       release=0.1, noise_amount=0.4),
    "ride": dict(duration=1.5, attack=0.002, decay=0.8, sustain=0.2,
                 release=0.5, noise_amount=0.5),
    "crash": dict(duration=2.0, attack=0.002, decay=1.2, sustain=0.2,
                  release=0.7, drive=0.3, noise_amount=0.7),
    "bass": dict(start_frequency=55.0, end_frequency=55.0, attack=0.01,
                 decay=0.4, sustain=0.5, release=0.3, drive=0.3),
    "lead": dict(start_frequency=440.0, end_frequency=440.0, attack=0.01,
                 decay=0.3, sustain=0.6, release=0.3),
    "xylophone": dict(start_frequency=880.0, end_frequency=870.0,
                      duration=0.8, attack=0.001, decay=0.25, sustain=0.0,
                      release=0.2),
    "sweep": dict(start_frequency=1000.0, end_frequency=50.0),
}


def voice_settings(voice, machine=None, sample_rate=SR, duration=None,
                   bit_depth=16, channels=1) -> Settings:
    """Starting Settings for a voice, optionally coloured by a machine preset.

    With a machine, the kick is the machine preset itself and every other
    voice keeps the machine's drive on top of its own defaults.
    """
    if voice not in VOICE_DEFAULTS:
        raise ValueError(f"Unknown voice: {voice!r}")
    if machine is not None:
        if machine not in PRESETS:
            raise ValueError(f"Unknown machine: {machine!r}")
        s = PRESETS[machine](sample_rate, 1.0, bit_depth)
    else:
        s = new_settings(55.0, 30.0, sample_rate, 1.0, bit_depth)

    overrides = dict(VOICE_DEFAULTS[voice])
    if machine is not None:
        overrides.pop("drive", None)
    if duration is not None:
        overrides["duration"] = duration
    overrides["channels"] = channels
    return replace(s, **overrides)
