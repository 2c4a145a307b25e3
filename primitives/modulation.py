"""Modulation effects — tremolo, vibrato, FM / ring mod, chorus, flanger,
phaser, wah-wah and resampling pitch shift.

LFOs are phase accumulators in cycles, wrapped to [0, 1). Delay-based effects
use a circular buffer that is read before it is written each sample.
"""

import numpy as np
from numba import njit

from shared.errors import InvalidParameters


def _lfo_phase(n, rate, sr):
    return np.mod(np.arange(n) * (rate / sr), 1.0)


def _as_buffer(samples):
    return np.asarray(samples, dtype=np.float64)


# ---------------------------------------------------------------------------
# Amplitude / frequency modulation
# ---------------------------------------------------------------------------

def tremolo(samples, sample_rate, rate, depth):
    """Amplitude x (1 - depth + depth * sin(2 pi phase))."""
    samples = _as_buffer(samples)
    phase = _lfo_phase(len(samples), rate, sample_rate)
    return samples * (1.0 - depth + depth * np.sin(2.0 * np.pi * phase))


def ring_modulation(samples, carrier_freq, sample_rate):
    samples = _as_buffer(samples)
    phase = _lfo_phase(len(samples), carrier_freq, sample_rate)
    return samples * np.sin(2.0 * np.pi * phase)


@njit(cache=True)
def _fm_kernel(samples, carrier_freq, mod_depth, sr):
    n = len(samples)
    out = np.zeros(n)
    two_pi = 2.0 * np.pi
    phase = 0.0
    for i in range(n):
        phase += (carrier_freq + mod_depth * samples[i]) / sr * two_pi
        if phase > two_pi:
            phase -= two_pi
        elif phase < 0.0:
            phase += two_pi
        out[i] = np.sin(phase)
    return out


def frequency_modulation(samples, carrier_freq, mod_depth, sample_rate):
    """Use the input as the modulator of a sine carrier; returns the carrier."""
    return _fm_kernel(_as_buffer(samples), float(carrier_freq), float(mod_depth),
                      float(sample_rate))


# ---------------------------------------------------------------------------
# Delay-line modulation
# ---------------------------------------------------------------------------

@njit(cache=True)
def _vibrato_kernel(samples, lfo_inc, max_delay):
    n = len(samples)
    size = 2 * max_delay
    buf = np.zeros(size)
    out = np.zeros(n)
    idx = 0
    phase = 0.0
    for i in range(n):
        delay = int(abs(np.sin(2.0 * np.pi * phase)) * max_delay)
        out[i] = buf[(idx - delay + size) % size]
        buf[idx] = samples[i]
        idx = (idx + 1) % size
        phase += lfo_inc
        if phase >= 1.0:
            phase -= 1.0
    return out


def pitch_modulation(samples, mod_freq, mod_depth, sample_rate):
    """Vibrato: read a 2*max_delay circular buffer at |sin(lfo)| * max_delay.

    mod_depth is the maximum deviation in seconds. A depth shorter than one
    sample leaves the signal untouched.
    """
    samples = _as_buffer(samples)
    max_delay = int(mod_depth * sample_rate)
    if max_delay <= 0:
        return samples.copy()
    return _vibrato_kernel(samples, mod_freq / sample_rate, max_delay)


@njit(cache=True)
def _modulated_delay_kernel(samples, sr, base_delay, depth, rate, feedback, mix):
    n = len(samples)
    size = int((base_delay + depth) * sr) + 2
    buf = np.zeros(size)
    out = np.zeros(n)
    idx = 0
    phase = 0.0
    lfo_inc = rate / sr
    for i in range(n):
        lfo = np.sin(2.0 * np.pi * phase)
        delay = int((base_delay + depth * lfo) * sr)
        delayed = buf[(idx - delay + size) % size]
        buf[idx] = samples[i] + delayed * feedback
        out[i] = samples[i] * (1.0 - mix) + delayed * mix
        idx = (idx + 1) % size
        phase += lfo_inc
        if phase >= 1.0:
            phase -= 1.0
    return out


def chorus(samples, sample_rate, delay, depth, rate, mix):
    """Single-voice chorus. delay and depth in seconds, no feedback."""
    return _modulated_delay_kernel(_as_buffer(samples), float(sample_rate),
                                   float(delay), float(depth), float(rate), 0.0,
                                   float(mix))


def flanger(samples, sample_rate, base_delay, mod_depth, mod_rate, feedback, mix):
    """Short modulated delay with the delayed signal fed back into the line."""
    return _modulated_delay_kernel(_as_buffer(samples), float(sample_rate),
                                   float(base_delay), float(mod_depth),
                                   float(mod_rate), float(feedback), float(mix))


# ---------------------------------------------------------------------------
# Swept biquads
# ---------------------------------------------------------------------------

@njit(cache=True)
def _clamp_centre(freq, sr):
    if freq < 20.0:
        return 20.0
    if freq > sr / 2.0:
        return sr / 2.0
    return freq


@njit(cache=True)
def _rbj_allpass(freq, q, sr):
    w0 = 2.0 * np.pi * freq / sr
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2.0 * q)
    a0 = 1.0 + alpha
    return ((1.0 - alpha) / a0, (-2.0 * cos_w0) / a0, 1.0,
            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)


@njit(cache=True)
def _rbj_bandpass(freq, q, sr):
    w0 = 2.0 * np.pi * freq / sr
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2.0 * q)
    a0 = 1.0 + alpha
    return (alpha / a0, 0.0, -alpha / a0,
            (-2.0 * cos_w0) / a0, (1.0 - alpha) / a0)


@njit(cache=True)
def _phaser_kernel(samples, sr, rate, depth, feedback):
    n = len(samples)
    out = np.zeros(n)
    # Direct Form 1 state, one row per all-pass stage: x1, x2, y1, y2
    state = np.zeros((2, 4))
    phase = 0.0
    lfo_inc = rate / sr
    for i in range(n):
        centre = _clamp_centre(1000.0 + depth * 1000.0 * np.sin(2.0 * np.pi * phase), sr)
        b0, b1, b2, a1, a2 = _rbj_allpass(centre, 0.7, sr)
        fb = feedback * out[i - 1] if i > 0 else 0.0
        x = samples[i] + fb
        for s in range(2):
            y = b0 * x + b1 * state[s, 0] + b2 * state[s, 1] \
                - a1 * state[s, 2] - a2 * state[s, 3]
            state[s, 1] = state[s, 0]
            state[s, 0] = x
            state[s, 3] = state[s, 2]
            state[s, 2] = y
            x = y + fb
        out[i] = state[1, 2]
        phase += lfo_inc
        if phase >= 1.0:
            phase -= 1.0
    return out


def phaser(samples, sample_rate, rate, depth, feedback):
    """Two cascaded all-pass biquads swept around 1 kHz (Q 0.7).

    Each stage input also receives feedback * previous output sample.
    """
    return _phaser_kernel(_as_buffer(samples), float(sample_rate), float(rate),
                          float(depth), float(feedback))


@njit(cache=True)
def _wah_kernel(samples, sr, base_freq, sweep_freq, q):
    n = len(samples)
    out = np.zeros(n)
    x1 = 0.0
    x2 = 0.0
    y1 = 0.0
    y2 = 0.0
    phase = 0.0
    lfo_inc = sweep_freq / sr
    for i in range(n):
        centre = _clamp_centre(base_freq + 500.0 * np.sin(2.0 * np.pi * phase), sr)
        b0, b1, b2, a1, a2 = _rbj_bandpass(centre, q, sr)
        x = samples[i]
        y = b0 * x + b1 * x1 + b2 * x2 - a1 * y1 - a2 * y2
        x2 = x1
        x1 = x
        y2 = y1
        y1 = y
        out[i] = y
        phase += lfo_inc
        if phase >= 1.0:
            phase -= 1.0
    return out


def wah_wah(samples, sample_rate, base_freq, sweep_freq, q):
    """Bandpass whose centre swings +/-500 Hz around base_freq."""
    if q <= 0:
        raise InvalidParameters(f"wah-wah Q must be positive, got {q}")
    return _wah_kernel(_as_buffer(samples), float(sample_rate), float(base_freq),
                       float(sweep_freq), float(q))


# ---------------------------------------------------------------------------
# Pitch shift
# ---------------------------------------------------------------------------

def pitch_shift(samples, semitones):
    """Resample by 2**(semitones/12) with linear interpolation.

    The buffer gets shorter when shifting up and longer when shifting down.
    """
    samples = _as_buffer(samples)
    rate = 2.0 ** (semitones / 12.0)
    new_length = int(len(samples) / rate)
    if new_length == 0:
        return np.zeros(0)
    src = np.arange(new_length) * rate
    lower = np.floor(src).astype(np.int64)
    upper = np.minimum(lower + 1, len(samples) - 1)
    frac = src - lower
    return samples[lower] * (1.0 - frac) + samples[upper] * frac
