"""Test drive, clipping and the gain followers.

Run: pytest tests/test_dynamics.py
"""

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from primitives.dynamics import (
    CompressorSettings, bitcrusher, compressor, drive, drive_sample, expander,
    limiter, multiband_compression, noise_gate, saturate, sidechain_compressor,
    soft_clip,
)
from shared.errors import MismatchedBufferLength

SR = 44100


# ---------------------------------------------------------------------------
# Waveshaping
# ---------------------------------------------------------------------------
def test_drive_sample():
    assert drive_sample(0.5, 0.0) == 0.5
    assert np.isclose(drive_sample(0.5, 1.0), 0.5 * 2.0 / 1.5)
    assert drive_sample(1.0, 3.0) == 1.0


def test_drive_keeps_range_and_input():
    x = np.linspace(-1.0, 1.0, 101)
    out = drive(x, 2.0)
    assert np.max(np.abs(out)) <= 1.0
    assert np.all(np.abs(out) >= np.abs(x) - 1e-12)
    assert np.array_equal(drive(x, 0.0), x)


def test_limiter_clamps():
    out = limiter(np.array([-3.0, -0.5, 0.0, 0.5, 3.0]))
    assert np.array_equal(out, [-1.0, -0.5, 0.0, 0.5, 1.0])
    assert np.array_equal(limiter(out), out)


def test_saturate_full_scale_stays_full_scale():
    out = saturate(np.array([-1.0, 0.0, 1.0]), 2.0)
    assert np.allclose(out, [-1.0, 0.0, 1.0])
    assert saturate(np.array([0.5]), 2.0)[0] > 0.5


def test_soft_clip_bounded():
    x = np.linspace(-2.0, 2.0, 201)
    out = soft_clip(x, 1.0)
    assert np.max(np.abs(out)) <= 1.0
    assert np.isclose(soft_clip(np.array([0.1]), 0.0)[0], 0.3)


def test_bitcrusher_quantises_and_decimates():
    x = np.full(6, 0.3)
    out = bitcrusher(x, 2)
    assert np.allclose(out, 0.25)
    out = bitcrusher(x, 2, sample_rate_reduction=2)
    assert np.allclose(out[::2], 0.25)
    assert np.all(out[1::2] == 0.0)


# ---------------------------------------------------------------------------
# Gain followers
# ---------------------------------------------------------------------------
def test_instant_compressor_pins_peak_at_threshold():
    out = compressor(np.ones(100), 0.5, 4.0, 0.0, 0.0, SR)
    assert np.allclose(out, 0.5)


def test_compressor_leaves_quiet_signal_alone():
    x = np.full(200, 0.2)
    assert np.allclose(compressor(x, 0.5, 4.0, 0.01, 0.1, SR), x)


def test_slow_attack_glides():
    out = compressor(np.ones(2000), 0.5, 4.0, 0.01, 0.1, SR)
    assert out[0] > 0.9
    assert np.all(np.diff(out) <= 1e-12)
    assert out[-1] < out[0]


def test_noise_gate():
    x = np.concatenate([np.full(100, 0.8), np.full(100, 0.01)])
    out = noise_gate(x, 0.1, 0.0, 0.0, SR)
    assert np.allclose(out[:100], 0.8)
    assert np.all(out[100:] == 0.0)


def test_expander_attenuates_below_threshold():
    out = expander(np.full(50, 0.1), 0.5, 2.0, 0.0, 0.0, SR)
    assert np.allclose(out, 0.1 * 0.4)
    loud = expander(np.full(50, 0.9), 0.5, 2.0, 0.0, 0.0, SR)
    assert np.allclose(loud, 0.9)


def test_sidechain_follows_trigger():
    target = np.full(100, 0.4)
    trigger = np.concatenate([np.ones(50), np.zeros(50)])
    out = sidechain_compressor(target, trigger, 0.5, 4.0, 0.0, 0.0, SR)
    assert np.allclose(out[:50], 0.2)
    assert np.allclose(out[50:], 0.4)


def test_sidechain_length_mismatch():
    with pytest.raises(MismatchedBufferLength):
        sidechain_compressor(np.zeros(10), np.zeros(11), 0.5, 4.0, 0.01, 0.1, SR)


def test_multiband_bounded():
    rng = np.random.default_rng(0)
    x = rng.uniform(-1.0, 1.0, 4000)
    c = CompressorSettings(threshold=0.3, ratio=4.0, attack=0.001, release=0.05)
    out = multiband_compression(x, [(20.0, 500.0), (500.0, 5000.0)], [c, c], SR)
    assert len(out) == len(x)
    assert np.max(np.abs(out)) <= 1.0


def test_multiband_band_count_mismatch():
    c = CompressorSettings(0.3, 4.0, 0.001, 0.05)
    with pytest.raises(ValueError):
        multiband_compression(np.zeros(10), [(20.0, 500.0)], [c, c], SR)
