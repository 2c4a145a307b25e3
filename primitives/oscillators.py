"""Oscillator bank — periodic waveforms, detuned unison stacks, coloured noise.

Every generator returns a fresh float64 buffer. Noise generators take an
explicit ``np.random.Generator`` so a render can be reproduced from a seed and
two renders never share generator state.
"""

from enum import IntEnum

import numpy as np
from numba import njit

from shared.errors import InvalidParameters, UnsupportedWaveform

# Number of stairs used when a pitch sweep is not smooth
PITCH_STEPS = 16


class Waveform(IntEnum):
    SINE = 0
    TRIANGLE = 1
    SAWTOOTH = 2
    SQUARE = 3
    WHITE_NOISE = 4
    PINK_NOISE = 5
    BROWN_NOISE = 6


class NoiseType(IntEnum):
    NONE = 0
    WHITE = 1
    PINK = 2
    BROWN = 3


NOISE_NAMES = {
    "none": NoiseType.NONE,
    "white": NoiseType.WHITE,
    "pink": NoiseType.PINK,
    "brown": NoiseType.BROWN,
}


def resolve_waveform(code) -> Waveform:
    """Map a waveform code (int or Waveform) to the enum, or fail naming it."""
    try:
        return Waveform(code)
    except ValueError:
        raise UnsupportedWaveform(code) from None


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


# ---------------------------------------------------------------------------
# Periodic oscillators
# ---------------------------------------------------------------------------

def sawtooth(freq, length, sample_rate):
    """Phase-wrapped ramp in [-1, 1)."""
    x = np.arange(length) * freq / sample_rate
    return 2.0 * (x - np.floor(0.5 + x))


def detuned_oscillators(freq, detune_ratios, length, sample_rate):
    """Average of sawtooths at freq * (1 + d) for each detune ratio d.

    Dividing by the voice count keeps the stack inside the range of a single
    oscillator however many voices are stacked.
    """
    combined = np.zeros(length)
    n_osc = len(detune_ratios)
    for d in detune_ratios:
        combined += sawtooth(freq * (1.0 + d), length, sample_rate) / n_osc
    return combined


def sweep_frequencies(start, end, duration, t, smooth=True):
    """Exponential pitch sweep start * (end/start) ** (t/duration).

    With smooth=False the sweep position is quantized into PITCH_STEPS stairs.
    """
    if start <= 0 or end <= 0:
        raise InvalidParameters(
            f"sweep frequencies must be positive (start={start}, end={end})")
    position = np.asarray(t, dtype=np.float64) / duration
    if not smooth:
        position = np.floor(position * PITCH_STEPS) / PITCH_STEPS
    return start * (end / start) ** position


def tone(waveform, freqs, t, noise_amount=0.0, rng=None):
    """Evaluate one waveform over a time grid with a per-sample frequency.

    This is the only place a waveform code turns into samples; an unknown code
    raises UnsupportedWaveform instead of falling back to a sine.
    """
    waveform = resolve_waveform(waveform)
    x = freqs * t
    if waveform == Waveform.SINE:
        return np.sin(2.0 * np.pi * x)
    if waveform == Waveform.TRIANGLE:
        return 2.0 * np.abs(2.0 * (x - np.floor(x + 0.5))) - 1.0
    if waveform == Waveform.SAWTOOTH:
        return 2.0 * (x - np.floor(0.5 + x))
    if waveform == Waveform.SQUARE:
        return np.copysign(1.0, np.sin(2.0 * np.pi * x))
    if waveform == Waveform.WHITE_NOISE:
        return white_noise(len(t), noise_amount, rng)
    if waveform == Waveform.PINK_NOISE:
        return pink_noise(len(t), noise_amount, rng)
    if waveform == Waveform.BROWN_NOISE:
        return brown_noise(len(t), noise_amount, rng)
    raise UnsupportedWaveform(waveform)


# ---------------------------------------------------------------------------
# Noise
# ---------------------------------------------------------------------------

@njit(cache=True)
def _pink_kernel(white, amount):
    """Paul Kellet's pink filter: six leaky accumulators plus a one-sample tap."""
    n = len(white)
    out = np.zeros(n)
    b0 = 0.0
    b1 = 0.0
    b2 = 0.0
    b3 = 0.0
    b4 = 0.0
    b5 = 0.0
    b6 = 0.0
    for i in range(n):
        w = white[i]
        b0 = 0.99886 * b0 + w * 0.0555179
        b1 = 0.99332 * b1 + w * 0.0750759
        b2 = 0.96900 * b2 + w * 0.1538520
        b3 = 0.86650 * b3 + w * 0.3104856
        b4 = 0.55000 * b4 + w * 0.5329522
        b5 = -0.7616 * b5 - w * 0.0168980
        value = (b0 + b1 + b2 + b3 + b4 + b5 + b6 + w * 0.5362) * amount / 3.5
        b6 = w * 0.115926
        if value > amount:
            value = amount
        elif value < -amount:
            value = -amount
        out[i] = value
    return out


@njit(cache=True)
def _brown_kernel(white, amount):
    """Leaky integrator over pre-scaled white noise."""
    n = len(white)
    out = np.zeros(n)
    last = 0.0
    for i in range(n):
        value = (last + 0.02 * white[i]) / 1.02
        last = value
        value *= 3.5  # make up for the integrator's gain loss
        if value > amount:
            value = amount
        elif value < -amount:
            value = -amount
        out[i] = value
    return out


def white_noise(length, amount, rng=None):
    """Uniform noise in [-amount, amount]."""
    return _rng(rng).uniform(-1.0, 1.0, length) * amount


def pink_noise(length, amount, rng=None):
    white = _rng(rng).uniform(-1.0, 1.0, length)
    return _pink_kernel(white, float(amount))


def brown_noise(length, amount, rng=None):
    white = _rng(rng).uniform(-1.0, 1.0, length) * amount / 10.0
    return _brown_kernel(white, float(amount))


def generate_noise(noise_type, length, amount, rng=None):
    """Dispatch on NoiseType; NONE gives silence."""
    noise_type = NoiseType(noise_type)
    if noise_type == NoiseType.WHITE:
        return white_noise(length, amount, rng)
    if noise_type == NoiseType.PINK:
        return pink_noise(length, amount, rng)
    if noise_type == NoiseType.BROWN:
        return brown_noise(length, amount, rng)
    return np.zeros(length)
