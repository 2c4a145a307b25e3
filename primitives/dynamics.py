"""Distortion and dynamics — drive, limiting, clipping, gain followers.

Gain followers smooth toward a target with one-pole coefficients derived from
attack / release times in seconds.
"""

from dataclasses import dataclass

import numpy as np
from numba import njit

from primitives.filters import biquad_band_pass
from shared.errors import MismatchedBufferLength


def _time_to_coeff(seconds, sr):
    """Convert a time constant in seconds to a one-pole smoothing coefficient."""
    if seconds <= 0:
        return 0.0
    return float(np.exp(-1.0 / (seconds * sr)))


def _as_buffer(samples):
    return np.asarray(samples, dtype=np.float64)


# ---------------------------------------------------------------------------
# Waveshaping
# ---------------------------------------------------------------------------

def drive_sample(sample, amount):
    """Soft saturation s*(1+a)/(1+a*|s|). Identity for amount <= 0."""
    if amount > 0:
        return sample * (1.0 + amount) / (1.0 + amount * abs(sample))
    return sample


def drive(samples, amount):
    samples = _as_buffer(samples)
    if amount <= 0:
        return samples.copy()
    out = samples * (1.0 + amount) / (1.0 + amount * np.abs(samples))
    return np.clip(out, -1.0, 1.0)


def limiter(samples):
    """Hard clip to [-1, 1]."""
    return np.clip(_as_buffer(samples), -1.0, 1.0)


def saturate(samples, amount):
    """Tanh saturation, normalised so a full-scale input stays full-scale."""
    samples = _as_buffer(samples)
    if amount <= 0:
        return samples.copy()
    k = 1.0 + amount
    return np.tanh(samples * k) / np.tanh(k)


def soft_clip(samples, drive_amount):
    """(3 + drive) * s / (1 + drive * |s|), clamped."""
    samples = _as_buffer(samples)
    out = (3.0 + drive_amount) * samples / (1.0 + drive_amount * np.abs(samples))
    return np.clip(out, -1.0, 1.0)


def bitcrusher(samples, bit_depth, sample_rate_reduction=1):
    """Quantise to 1/2**bits steps and keep only every n-th sample."""
    samples = _as_buffer(samples)
    bits = min(max(int(bit_depth), 1), 16)
    reduction = max(int(sample_rate_reduction), 1)
    step = 1.0 / 2.0 ** bits
    out = np.round(samples / step) * step
    if reduction > 1:
        keep = np.arange(len(out)) % reduction == 0
        out[~keep] = 0.0
    return np.clip(out, -1.0, 1.0)


# ---------------------------------------------------------------------------
# Gain followers
# ---------------------------------------------------------------------------

@njit(cache=True)
def _compress_kernel(samples, detector, threshold, attack_coeff, release_coeff):
    """Smooth gain toward threshold/|d| above threshold, toward 1 below."""
    n = len(samples)
    out = np.zeros(n)
    gain = 1.0
    for i in range(n):
        level = abs(detector[i])
        if level > threshold and level > 0.0:
            gain = attack_coeff * gain + (1.0 - attack_coeff) * (threshold / level)
        else:
            gain = release_coeff * gain + (1.0 - release_coeff)
        out[i] = samples[i] * gain
    return out


@njit(cache=True)
def _gate_kernel(samples, threshold, attack_coeff, release_coeff):
    n = len(samples)
    out = np.zeros(n)
    gain = 1.0
    for i in range(n):
        if abs(samples[i]) > threshold:
            gain = attack_coeff * gain + (1.0 - attack_coeff)
        else:
            gain = release_coeff * gain
        out[i] = samples[i] * gain
    return out


@njit(cache=True)
def _expand_kernel(samples, threshold, ratio, attack_coeff, release_coeff):
    n = len(samples)
    out = np.zeros(n)
    env = 0.0
    for i in range(n):
        inp = abs(samples[i])
        if inp > env:
            env = attack_coeff * env + (1.0 - attack_coeff) * inp
        else:
            env = release_coeff * env + (1.0 - release_coeff) * inp
        gain = 1.0
        if env < threshold:
            gain = env * ratio / threshold
            if gain > 1.0:
                gain = 1.0
        out[i] = samples[i] * gain
    return out


def compressor(samples, threshold, ratio, attack, release, sample_rate):
    """Feed-forward compressor.

    Above threshold the gain glides toward threshold/|s|, which pins the peak
    at the threshold; ``ratio`` is accepted for signature compatibility with
    the other followers but the gain law is the hard-knee limit form.
    """
    samples = _as_buffer(samples)
    return _compress_kernel(samples, samples, float(threshold),
                            _time_to_coeff(attack, sample_rate),
                            _time_to_coeff(release, sample_rate))


def noise_gate(samples, threshold, attack, release, sample_rate):
    """Gain glides toward 1 above threshold and toward 0 at or below it."""
    return _gate_kernel(_as_buffer(samples), float(threshold),
                        _time_to_coeff(attack, sample_rate),
                        _time_to_coeff(release, sample_rate))


def expander(samples, threshold, ratio, attack, release, sample_rate):
    """Downward expander driven by a peak envelope follower starting at 0."""
    return _expand_kernel(_as_buffer(samples), float(threshold), float(ratio),
                          _time_to_coeff(attack, sample_rate),
                          _time_to_coeff(release, sample_rate))


def sidechain_compressor(target, trigger, threshold, ratio, attack, release, sample_rate):
    """Compress `target` with the gain computed from `trigger`."""
    target = _as_buffer(target)
    trigger = _as_buffer(trigger)
    if len(target) != len(trigger):
        raise MismatchedBufferLength((len(target), len(trigger)))
    return _compress_kernel(target, trigger, float(threshold),
                            _time_to_coeff(attack, sample_rate),
                            _time_to_coeff(release, sample_rate))


@dataclass
class CompressorSettings:
    threshold: float
    ratio: float
    attack: float
    release: float


def multiband_compression(samples, bands, compressors, sample_rate):
    """Split into (low, high) bands, compress each, recombine.

    The sum is scaled back to unity peak only when it overshoots.
    """
    if len(bands) != len(compressors):
        raise ValueError(
            f"bands ({len(bands)}) and compressors ({len(compressors)}) must pair up")
    samples = _as_buffer(samples)
    out = np.zeros(len(samples))
    for (low, high), c in zip(bands, compressors):
        band = biquad_band_pass(samples, low, high, sample_rate)
        out += compressor(band, c.threshold, c.ratio, c.attack, c.release, sample_rate)
    peak = np.max(np.abs(out)) if len(out) else 0.0
    if peak > 1.0:
        out /= peak
    return out
