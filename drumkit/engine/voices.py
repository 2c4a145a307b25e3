"""Drum-machine voices — each one turns a Settings record into a finished buffer.

Pipelines run one way: oscillator / noise -> envelope -> filters -> drive ->
limiter. Every voice returns float64 samples bounded to [-1, 1] and takes an
optional ``np.random.Generator`` for its noise.
"""

import logging
import time

import numpy as np

from primitives.dynamics import drive, limiter
from primitives.envelope import apply_envelope, envelope_curve, fade_out, linear_fade
from primitives.filters import band_pass_filter, high_pass_filter, low_pass_filter
from primitives.modulation import pitch_modulation
from primitives.oscillators import (
    NoiseType, Waveform, detuned_oscillators, generate_noise, pink_noise,
    resolve_waveform, sweep_frequencies, tone, white_noise,
)
from primitives.reverb import SCHROEDER_ALLPASSES, SCHROEDER_COMBS, schroeder_reverb
from shared.errors import UnsupportedWaveform

log = logging.getLogger(__name__)

_TONAL = (Waveform.SINE, Waveform.TRIANGLE, Waveform.SAWTOOTH, Waveform.SQUARE)

# Lead vibrato: rate in Hz, maximum delay deviation in seconds
LEAD_VIBRATO_RATE = 5.0
LEAD_VIBRATO_DEPTH = 0.001


def _rng(rng):
    return rng if rng is not None else np.random.default_rng()


def _time_grid(s):
    return np.arange(s.num_samples) / s.sample_rate


def _sweep(s, t):
    return sweep_frequencies(s.start_frequency, s.end_frequency, s.duration, t,
                             smooth=s.smooth_frequency_transitions)


def _envelope(s, samples):
    return apply_envelope(samples, s.attack, s.decay, s.sustain, s.release, s.sample_rate)


def _finish(s, samples):
    return limiter(drive(samples, s.drive))


def _swept_sine(s):
    t = _time_grid(s)
    return tone(Waveform.SINE, _sweep(s, t), t)


# ---------------------------------------------------------------------------
# Drums
# ---------------------------------------------------------------------------

def kick(s, rng=None):
    """Swept oscillator plus optional noise layer, enveloped inline, then drive."""
    rng = _rng(rng)
    t = _time_grid(s)
    samples = tone(s.waveform_type, _sweep(s, t), t, s.noise_amount, rng)
    samples = samples * s.oscillator_level(0)
    if s.noise_type != NoiseType.NONE:
        samples += generate_noise(s.noise_type, len(t), s.noise_amount, rng)
    samples *= envelope_curve(t, s.attack, s.decay, s.sustain, s.release, s.duration)
    return _finish(s, samples)


def snare(s, rng=None):
    """Short tonal body over the first 30% plus band-passed pink rattle."""
    waveform = resolve_waveform(s.waveform_type)
    if waveform not in _TONAL:
        raise UnsupportedWaveform(s.waveform_type)
    n = s.num_samples
    n_tonal = int(s.duration * s.sample_rate * 0.3)
    samples = np.zeros(n)
    t = _time_grid(s)[:n_tonal]
    # slightly flat of the sweep
    samples[:n_tonal] = tone(waveform, _sweep(s, t) * 0.99, t)

    noise = pink_noise(n, s.noise_amount, _rng(rng))
    samples += band_pass_filter(noise, 150.0, 8000.0, s.sample_rate)
    log.debug("snare: %d tonal samples of %d", n_tonal, n)
    return _finish(s, _envelope(s, samples))


def clap(s, rng=None):
    """Three low-passed noise bursts, 20 ms apart."""
    rng = _rng(rng)
    n = s.num_samples
    samples = np.zeros(n)
    burst_count = 3
    gap = 0.02
    burst_duration = max(0.0, (s.duration - (burst_count - 1) * gap) / burst_count)
    burst_samples = int(burst_duration * s.sample_rate)
    for burst in range(burst_count):
        start = int(burst * gap * s.sample_rate)
        noise = white_noise(burst_samples, s.noise_amount, rng)
        noise = low_pass_filter(noise, s.filter_cutoff, s.sample_rate)
        noise = _envelope(s, noise)
        end = min(start + burst_samples, n)
        if end > start:
            samples[start:end] += noise[:end - start]
    return limiter(samples)


def _hihat(s, rng):
    noise = white_noise(s.num_samples, s.noise_amount, _rng(rng))
    noise = high_pass_filter(noise, 5000.0, s.sample_rate)
    noise = band_pass_filter(noise, 5000.0, 10000.0, s.sample_rate)
    samples = drive(_envelope(s, noise), s.drive)
    samples = fade_out(samples, s.fade_duration, s.sample_rate, linear_fade)
    return limiter(samples)


def closed_hh(s, rng=None):
    return _hihat(s, rng)


def open_hh(s, rng=None):
    """Same chain as the closed hat; the longer envelope comes from Settings."""
    return _hihat(s, rng)


def rimshot(s, rng=None):
    noise = white_noise(s.num_samples, s.noise_amount, _rng(rng))
    noise = band_pass_filter(noise, 2000.0, 6000.0, s.sample_rate)
    return _finish(s, _envelope(s, noise))


def tom(s, rng=None):
    samples = _envelope(s, _swept_sine(s))
    noise = pink_noise(s.num_samples, s.noise_amount, _rng(rng))
    samples += 0.2 * low_pass_filter(noise, s.filter_cutoff, s.sample_rate)
    return _finish(s, samples)


def percussion(s, rng=None):
    """Bongo / conga style: swept sine with a little band-passed pink noise."""
    samples = _envelope(s, _swept_sine(s))
    noise = pink_noise(s.num_samples, s.noise_amount, _rng(rng))
    samples += 0.1 * band_pass_filter(noise, 300.0, 1000.0, s.sample_rate)
    return _finish(s, samples)


def ride(s, rng=None):
    noise = white_noise(s.num_samples, s.noise_amount, _rng(rng))
    noise = high_pass_filter(noise, 5000.0, s.sample_rate)
    return _finish(s, _envelope(s, noise))


def crash(s, rng=None):
    noise = white_noise(s.num_samples, s.noise_amount, _rng(rng))
    noise = band_pass_filter(noise, 2000.0, 15000.0, s.sample_rate)
    return _finish(s, _envelope(s, noise))


# ---------------------------------------------------------------------------
# Tonal voices
# ---------------------------------------------------------------------------

def bass(s, rng=None):
    wave = detuned_oscillators(s.start_frequency, [-0.01, 0.01], s.num_samples, s.sample_rate)
    wave = low_pass_filter(wave, 150.0, s.sample_rate)
    return _finish(s, _envelope(s, wave))


def lead(s, rng=None):
    """Detuned saw stack, enveloped, with a slow 5 Hz vibrato."""
    stack = detuned_oscillators(s.start_frequency, [-0.02, 0.02], s.num_samples, s.sample_rate)
    wave = pitch_modulation(_envelope(s, stack), LEAD_VIBRATO_RATE, LEAD_VIBRATO_DEPTH,
                            s.sample_rate)
    return _finish(s, wave)


def xylophone(s, rng=None):
    samples = _envelope(s, _swept_sine(s))
    samples = schroeder_reverb(samples, 0.3, SCHROEDER_COMBS, SCHROEDER_ALLPASSES)
    return limiter(samples)


def generate_sweep(s, rng=None):
    """The raw swept waveform: no envelope, no drive, no limiter."""
    t = _time_grid(s)
    return tone(s.waveform_type, _sweep(s, t), t, s.noise_amount, rng)


VOICES = {
    "kick": kick,
    "snare": snare,
    "clap": clap,
    "closed_hh": closed_hh,
    "open_hh": open_hh,
    "rimshot": rimshot,
    "tom": tom,
    "percussion": percussion,
    "ride": ride,
    "crash": crash,
    "bass": bass,
    "lead": lead,
    "xylophone": xylophone,
    "sweep": generate_sweep,
}


def generate(settings, voice, rng=None):
    """Render `voice` ("kick", "snare", ...) from settings."""
    try:
        render = VOICES[voice]
    except KeyError:
        raise ValueError(f"Unknown sound type: {voice!r}") from None
    t0 = time.perf_counter()
    samples = render(settings, rng)
    elapsed = time.perf_counter() - t0
    seconds = len(samples) / settings.sample_rate
    log.info("render %s: %.2fs audio (%d samples) in %.3fs (%.0fx RT)",
             voice, seconds, len(samples), elapsed,
             seconds / elapsed if elapsed > 0 else float("inf"))
    return samples
