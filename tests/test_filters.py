"""Test the filter bank — one-pole RC sections and RBJ biquads.

Run: pytest tests/test_filters.py
"""

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from primitives.filters import (
    BiquadFilter, band_pass_filter, biquad_band_pass, biquad_filter,
    high_pass_filter, low_pass_filter,
)
from primitives.oscillators import white_noise

SR = 44100


def make_sine(freq, seconds=1.0, sr=SR):
    t = np.arange(int(sr * seconds)) / sr
    return np.sin(2 * np.pi * freq * t)


def rms(x):
    return float(np.sqrt(np.mean(x ** 2)))


# ---------------------------------------------------------------------------
# One-pole filters
# ---------------------------------------------------------------------------
def test_low_pass_starts_at_input_and_passes_dc():
    x = np.full(500, 0.3)
    out = low_pass_filter(x, 1000.0, SR)
    assert out[0] == 0.3
    assert np.allclose(out, 0.3)


def test_high_pass_blocks_dc():
    out = high_pass_filter(np.full(1000, 0.5), 1000.0, SR)
    assert out[0] == 0.5
    assert abs(out[-1]) < 1e-3


def test_low_pass_attenuates_highs():
    high = make_sine(15000.0)
    low = make_sine(50.0)
    assert rms(low_pass_filter(high, 200.0, SR)) < 0.1 * rms(high)
    assert rms(low_pass_filter(low, 200.0, SR)) > 0.8 * rms(low)


def test_band_pass_preserves_length():
    noise = white_noise(1000, 0.5, np.random.default_rng(42))
    out = band_pass_filter(noise, 5000.0, 10000.0, SR)
    assert len(out) == 1000


def test_empty_input():
    empty = np.zeros(0)
    assert len(low_pass_filter(empty, 1000.0, SR)) == 0
    assert len(high_pass_filter(empty, 1000.0, SR)) == 0
    assert len(band_pass_filter(empty, 100.0, 1000.0, SR)) == 0
    assert len(biquad_filter(empty, "lowpass", 1000.0, 0.707, SR)) == 0


def test_fresh_state_per_call():
    noise = white_noise(2000, 1.0, np.random.default_rng(1))
    a = low_pass_filter(noise, 800.0, SR)
    b = low_pass_filter(noise, 800.0, SR)
    assert np.array_equal(a, b)


# ---------------------------------------------------------------------------
# Biquad
# ---------------------------------------------------------------------------
def test_process_buffer_matches_per_sample():
    noise = white_noise(500, 1.0, np.random.default_rng(5))
    filt = BiquadFilter.lowpass(1000, 0.707, SR)
    expected = np.array([filt.process(x) for x in noise])
    filt.reset()
    assert np.allclose(filt.process_buffer(noise), expected)


def test_lowpass_biquad_rejects_highs():
    x = make_sine(10000.0)
    out = BiquadFilter.lowpass(500, 0.707, SR).process_buffer(x)
    assert rms(out[len(out) // 2:]) < 0.05 * rms(x)


def test_allpass_keeps_magnitude():
    x = make_sine(1000.0)
    out = biquad_filter(x, "allpass", 1000.0, 0.7, SR)
    half = len(x) // 2
    assert abs(rms(out[half:]) - rms(x[half:])) < 0.01 * rms(x)


def test_notch_removes_centre():
    x = make_sine(1000.0)
    out = biquad_filter(x, "notch", 1000.0, 1.0, SR)
    assert rms(out[len(out) // 2:]) < 0.01


def test_biquad_band_pass_prefers_centre():
    centre = biquad_band_pass(make_sine(3000.0), 2000.0, 4000.0, SR)
    far = biquad_band_pass(make_sine(200.0), 2000.0, 4000.0, SR)
    assert rms(centre) > 5 * rms(far)


def test_shelves_boost_their_side():
    lo = make_sine(50.0)
    hi = make_sine(12000.0)
    low_shelf = BiquadFilter.low_shelf(200, 12.0, SR)
    high_shelf = BiquadFilter.high_shelf(4000, 12.0, SR)
    assert rms(low_shelf.process_buffer(lo)) > 2 * rms(lo)
    assert rms(high_shelf.process_buffer(hi)) > 2 * rms(hi)


def test_unknown_biquad_type():
    with pytest.raises(ValueError):
        biquad_filter(np.zeros(10), "comb", 1000.0, 1.0, SR)
