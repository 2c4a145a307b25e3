"""Stereo placement: equal-power panning, widening, per-channel feedback delay."""

import numpy as np
from numba import njit

from shared.errors import MismatchedBufferLength


def _pair(left, right):
    left = np.asarray(left, dtype=np.float64)
    right = np.asarray(right, dtype=np.float64)
    if len(left) != len(right):
        raise MismatchedBufferLength((len(left), len(right)))
    return left, right


def panning(samples, pan):
    """Equal-power pan. -1 is hard left, 0 centre, 1 hard right.

    Returns (left, right).
    """
    samples = np.asarray(samples, dtype=np.float64)
    pan = min(max(pan, -1.0), 1.0)
    theta = (pan + 1.0) * np.pi / 4.0
    left = samples * np.cos(theta)
    right = samples * np.sin(theta)
    # cos(pi/2) is 6e-17, not 0; hard-panned sides must be silent
    if pan == 1.0:
        left = np.zeros_like(samples)
    elif pan == -1.0:
        right = np.zeros_like(samples)
    return left, right


def stereo_widening(left, right, width):
    left, right = _pair(left, right)
    gain = 1.0 + width
    return np.clip(left * gain, -1.0, 1.0), np.clip(right * gain, -1.0, 1.0)


@njit(cache=True)
def _delay_channel(audio, delay_samples, feedback, mix):
    n = len(audio)
    buf = np.zeros(delay_samples)
    out = np.zeros(n)
    idx = 0
    for i in range(n):
        delayed = buf[idx]
        out[i] = audio[i] * (1.0 - mix) + delayed * mix
        buf[idx] = audio[i] + delayed * feedback
        idx = (idx + 1) % delay_samples
    return out


def stereo_delay(left, right, sample_rate, delay_left, delay_right, feedback, mix):
    """Independent feedback delay per channel; delay times in seconds."""
    left, right = _pair(left, right)
    n_left = max(int(delay_left * sample_rate), 1)
    n_right = max(int(delay_right * sample_rate), 1)
    return (_delay_channel(left, n_left, float(feedback), float(mix)),
            _delay_channel(right, n_right, float(feedback), float(mix)))
