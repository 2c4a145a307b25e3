"""Mixing and level analysis for finished sample buffers.

The three mixers share one contract: at least one buffer, all of the same
length, result clamped to [-1, 1].
"""

import numpy as np

from shared.errors import EmptyInput, MismatchedBufferLength, MismatchedWeightCount


def _stack(buffers):
    if len(buffers) == 0:
        raise EmptyInput("no samples provided")
    lengths = [len(b) for b in buffers]
    if len(set(lengths)) > 1:
        raise MismatchedBufferLength(lengths)
    return np.vstack([np.asarray(b, dtype=np.float64) for b in buffers])


def linear_summation(*buffers):
    """Per-sample average of all buffers."""
    return np.clip(_stack(buffers).mean(axis=0), -1.0, 1.0)


def weighted_summation(weights, *buffers):
    """Per-sample sum of weight[j] * buffer[j]."""
    if len(weights) != len(buffers):
        raise MismatchedWeightCount(len(weights), len(buffers))
    stacked = _stack(buffers)
    w = np.asarray(weights, dtype=np.float64)
    return np.clip(w @ stacked, -1.0, 1.0)


def rms_mixing(*buffers):
    """Per-sample root mean square. The result is never negative."""
    stacked = _stack(buffers)
    return np.clip(np.sqrt(np.mean(stacked ** 2, axis=0)), -1.0, 1.0)


MIXERS = {
    "linear": linear_summation,
    "rms": rms_mixing,
}


def pad_samples(a, b):
    """Zero-pad the shorter buffer. Returns two new arrays of equal length."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    n = max(len(a), len(b))
    return (np.pad(a, (0, n - len(a))), np.pad(b, (0, n - len(b))))


def find_peak_amplitude(samples):
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        return 0.0
    return float(np.max(np.abs(samples)))


def normalize_samples(samples, target_peak):
    """Scale so the peak hits target_peak, then clamp.

    Silence or a non-positive target leaves the buffer unchanged.
    """
    samples = np.array(samples, dtype=np.float64)
    peak = find_peak_amplitude(samples)
    if peak == 0.0 or target_peak <= 0:
        return samples
    return np.clip(samples * (target_peak / peak), -1.0, 1.0)


def analyze_highest_frequency(samples, sample_rate):
    """Zero-crossing frequency estimate: strict sign changes / (2 * duration).

    Touching zero is not a crossing. Returns 0.0 for fewer than two samples.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if len(samples) < 2:
        return 0.0
    prev, cur = samples[:-1], samples[1:]
    crossings = np.count_nonzero(((prev > 0) & (cur < 0)) | ((prev < 0) & (cur > 0)))
    duration = (len(samples) - 1) / sample_rate
    return crossings / (2.0 * duration)


def mix_files(buffers, method="linear", weights=None):
    """Pad every buffer to the longest, mix, and restore the loudest input peak."""
    if len(buffers) == 0:
        raise EmptyInput("no samples provided")
    n = max(len(b) for b in buffers)
    padded = [np.pad(np.asarray(b, dtype=np.float64), (0, n - len(b))) for b in buffers]
    if method == "weighted":
        if weights is None:
            raise MismatchedWeightCount(0, len(padded))
        mixed = weighted_summation(weights, *padded)
    elif method in MIXERS:
        mixed = MIXERS[method](*padded)
    else:
        raise ValueError(f"Unknown mixing method: {method!r}")
    loudest = max(find_peak_amplitude(b) for b in padded)
    return normalize_samples(mixed, loudest)
