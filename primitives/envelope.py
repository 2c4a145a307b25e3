"""ADSR envelope and fade curves.

The envelope exists in two forms that agree sample for sample: ``envelope_at``
evaluates one point in time (used inline while a voice sweeps its pitch), and
``adsr_curve`` / ``apply_envelope`` build the whole-buffer multiplier.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def envelope_at(t, attack, decay, sustain, release, duration):
    """ADSR level at time t (seconds).

    attack   : ramp 0 -> 1 over `attack` seconds
    decay    : ramp 1 -> sustain over `decay` seconds
    sustain  : flat until `duration - release`
    release  : ramp sustain -> 0, ending at `duration`

    Zero-length phases are skipped by the comparisons, so nothing divides by
    zero. Overlapping phases collapse the sustain to zero length.
    """
    if attack <= 0.0 and t <= 0.0:
        return 1.0
    if t < attack:
        return t / attack
    if t < attack + decay:
        return 1.0 - (t - attack) / decay * (1.0 - sustain)
    if t < duration - release:
        return sustain
    if t < duration:
        return sustain * (1.0 - (t - (duration - release)) / release)
    return 0.0


@njit(cache=True)
def _envelope_kernel(t, attack, decay, sustain, release, duration):
    out = np.zeros(len(t))
    for i in range(len(t)):
        out[i] = envelope_at(t[i], attack, decay, sustain, release, duration)
    return out


def envelope_curve(t, attack, decay, sustain, release, duration):
    """envelope_at over an array of times, for a note of `duration` seconds."""
    return _envelope_kernel(np.asarray(t, dtype=np.float64), float(attack),
                            float(decay), float(sustain), float(release),
                            float(duration))


def adsr_curve(length, sample_rate, attack, decay, sustain, release):
    """Whole-buffer envelope; the note lasts length / sample_rate seconds."""
    t = np.arange(int(length)) / sample_rate
    return envelope_curve(t, attack, decay, sustain, release, int(length) / sample_rate)


def apply_envelope(samples, attack, decay, sustain, release, sample_rate):
    samples = np.asarray(samples, dtype=np.float64)
    return samples * adsr_curve(len(samples), sample_rate, attack, decay, sustain, release)


# ---------------------------------------------------------------------------
# Fade curves: normalized time t in [0, 1] -> gain in [0, 1]
# ---------------------------------------------------------------------------

def linear_fade(t):
    return t


def quadratic_fade(t):
    return t * t


def exponential_fade(t):
    return np.power(2.0, 10.0 * (t - 1.0))


def logarithmic_fade(t):
    # log10(9t + 1) hits exactly 0 at t=0 and 1 at t=1
    return np.log10(9.0 * t + 1.0)


def sine_fade(t):
    return np.sin(np.pi * t / 2.0)


FADE_CURVES = {
    "linear": linear_fade,
    "quadratic": quadratic_fade,
    "exponential": exponential_fade,
    "logarithmic": logarithmic_fade,
    "sine": sine_fade,
}


def _fade_length(n_samples, fade_duration, sample_rate):
    return max(0, min(int(fade_duration * sample_rate), n_samples))


def fade_in(samples, fade_duration, sample_rate, curve=linear_fade):
    """Multiply the first fade_duration seconds by curve(i / n_fade)."""
    out = np.array(samples, dtype=np.float64)
    n_fade = _fade_length(len(out), fade_duration, sample_rate)
    if n_fade == 0:
        return out
    out[:n_fade] *= curve(np.arange(n_fade) / n_fade)
    return out


def fade_out(samples, fade_duration, sample_rate, curve=linear_fade):
    """Multiply the last fade_duration seconds by curve(1 - i / n_fade)."""
    out = np.array(samples, dtype=np.float64)
    n_fade = _fade_length(len(out), fade_duration, sample_rate)
    if n_fade == 0:
        return out
    start = len(out) - n_fade
    out[start:] *= curve(1.0 - np.arange(n_fade) / n_fade)
    return out
