"""Reverbs: a Schroeder comb/all-pass network and a parallel delay bank."""

import numpy as np
from numba import njit

from shared.errors import MalformedReverbConfig

# Delay lengths in samples, mutually prime-ish so the echoes don't stack up
SCHROEDER_COMBS = (1557, 1617, 1491, 1422)
SCHROEDER_ALLPASSES = (225, 556)


@njit(cache=True)
def _comb_bank(audio, delays, decay):
    """Sum of feedback combs; each comb outputs the value it just wrote."""
    n = len(audio)
    out = np.zeros(n)
    for j in range(len(delays)):
        d = delays[j]
        buf = np.zeros(d)
        for i in range(n):
            k = i % d
            buf[k] = audio[i] + buf[k] * decay
            out[i] += buf[k]
    return out


@njit(cache=True)
def _allpass_series(audio, delays, decay):
    x = audio.copy()
    for j in range(len(delays)):
        d = delays[j]
        buf = np.zeros(d)
        out = np.zeros(len(x))
        for i in range(len(x)):
            k = i % d
            old = buf[k]
            buf[k] = x[i] + old * decay
            out[i] = buf[k] - old
        x = out
    return x


def schroeder_reverb(samples, decay, comb_delays=SCHROEDER_COMBS,
                     allpass_delays=SCHROEDER_ALLPASSES):
    """Four parallel combs summed, then two all-passes in series.

    Delays are in samples. The output is the wet signal only and is not
    clamped; callers limit it.
    """
    if len(comb_delays) != 4 or len(allpass_delays) != 2:
        raise MalformedReverbConfig(
            f"expected 4 comb delays and 2 all-pass delays, "
            f"got {len(comb_delays)} and {len(allpass_delays)}")
    combs = np.asarray(comb_delays, dtype=np.int64)
    allpasses = np.asarray(allpass_delays, dtype=np.int64)
    if np.any(combs <= 0) or np.any(allpasses <= 0):
        raise MalformedReverbConfig(
            f"delays must be positive: combs={list(comb_delays)}, "
            f"allpasses={list(allpass_delays)}")
    wet = _comb_bank(np.asarray(samples, dtype=np.float64), combs, float(decay))
    return _allpass_series(wet, allpasses, float(decay))


@njit(cache=True)
def _delay_bank(audio, delays, decays, mix):
    n = len(audio)
    out = np.zeros(n)
    size = 0
    for j in range(len(delays)):
        size = max(size, delays[j])
    bufs = np.zeros((len(delays), size))
    for i in range(n):
        wet = 0.0
        for j in range(len(delays)):
            k = i % delays[j]
            fed = bufs[j, k] * decays[j]
            wet += fed
            bufs[j, k] = audio[i] + fed
        value = audio[i] + wet * mix
        if value > 1.0:
            value = 1.0
        elif value < -1.0:
            value = -1.0
        out[i] = value
    return out


def delay_reverb(samples, sample_rate, delay_times, decays, mix=1.0):
    """Parallel feedback delay lines added on top of the dry signal.

    delay_times are in seconds, one decay per line. Each line is at least one
    sample long. The result is dry + mix * wet, clamped to [-1, 1].
    """
    if len(delay_times) != len(decays):
        raise MalformedReverbConfig(
            f"need one decay per delay line, got {len(delay_times)} delays "
            f"and {len(decays)} decays")
    samples = np.asarray(samples, dtype=np.float64)
    if len(delay_times) == 0:
        return np.clip(samples, -1.0, 1.0)
    delays = np.array([max(int(d * sample_rate), 1) for d in delay_times], dtype=np.int64)
    return _delay_bank(samples, delays, np.asarray(decays, dtype=np.float64), float(mix))
