"""Test the mixers and level analysis.

Run: pytest tests/test_mixing.py
"""

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from shared.errors import EmptyInput, MismatchedBufferLength, MismatchedWeightCount
from shared.mixing import (
    analyze_highest_frequency, find_peak_amplitude, linear_summation, mix_files,
    normalize_samples, pad_samples, rms_mixing, weighted_summation,
)

SR = 44100


# ---------------------------------------------------------------------------
# Mixers
# ---------------------------------------------------------------------------
def test_linear_is_average():
    out = linear_summation(np.full(10, 0.2), np.full(10, 0.6))
    assert np.allclose(out, 0.4)


def test_linear_single_buffer_is_identity():
    x = np.linspace(-1.0, 1.0, 11)
    assert np.allclose(linear_summation(x), x)


def test_weighted_clamps():
    out = weighted_summation([1.0, 1.0], np.full(5, 0.8), np.full(5, 0.7))
    assert np.allclose(out, 1.0)
    out = weighted_summation([0.5, -0.5], np.full(5, 0.8), np.full(5, 0.2))
    assert np.allclose(out, 0.3)


def test_rms_of_equal_constants():
    out = rms_mixing(np.full(100, 0.5), np.full(100, 0.5))
    assert np.allclose(out, 0.5)


def test_rms_is_never_negative():
    out = rms_mixing(np.full(10, -0.5), np.full(10, -0.3))
    assert np.all(out >= 0.0)


def test_mixers_clamp_out_of_range_input():
    assert np.all(linear_summation(np.full(4, 3.0), np.full(4, 2.0)) == 1.0)
    assert np.all(linear_summation(np.full(4, -3.0), np.full(4, -2.0)) == -1.0)
    assert np.all(rms_mixing(np.full(4, -3.0), np.full(4, 2.0)) == 1.0)
    assert np.all(weighted_summation([2.0], np.full(4, -0.9)) == -1.0)


def test_mixer_errors():
    with pytest.raises(EmptyInput):
        linear_summation()
    with pytest.raises(MismatchedBufferLength):
        rms_mixing(np.zeros(3), np.zeros(4))
    with pytest.raises(MismatchedWeightCount):
        weighted_summation([1.0], np.zeros(3), np.zeros(3))
    # weight count is checked before the buffers
    with pytest.raises(MismatchedWeightCount):
        weighted_summation([1.0, 2.0])


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------
def test_pad_samples():
    a, b = pad_samples([1.0, 2.0], [1.0])
    assert np.array_equal(a, [1.0, 2.0])
    assert np.array_equal(b, [1.0, 0.0])


def test_peak_and_normalize():
    x = np.array([0.1, -0.4, 0.2])
    assert find_peak_amplitude(x) == 0.4
    assert find_peak_amplitude(np.zeros(0)) == 0.0
    out = normalize_samples(x, 0.8)
    assert np.isclose(find_peak_amplitude(out), 0.8)
    assert np.array_equal(x, [0.1, -0.4, 0.2])


def test_normalize_silence_unchanged():
    assert np.all(normalize_samples(np.zeros(8), 1.0) == 0.0)
    x = np.array([0.5, -0.5])
    assert np.array_equal(normalize_samples(x, 0.0), x)


def test_frequency_estimate():
    t = np.arange(SR) / SR
    x = np.sin(2 * np.pi * 440.0 * t + 0.3)
    assert abs(analyze_highest_frequency(x, SR) - 440.0) < 2.0


def test_frequency_estimate_short_or_touching_zero():
    assert analyze_highest_frequency(np.array([0.5]), SR) == 0.0
    assert analyze_highest_frequency(np.array([1.0, 0.0, 1.0, 0.0]), SR) == 0.0


# ---------------------------------------------------------------------------
# File mixing
# ---------------------------------------------------------------------------
def test_mix_files_pads_and_restores_peak():
    a = np.full(100, 0.5)
    b = np.full(50, 0.25)
    out = mix_files([a, b], "linear")
    assert len(out) == 100
    assert np.isclose(find_peak_amplitude(out), 0.5)


def test_mix_files_weighted_and_unknown():
    a = np.full(10, 0.5)
    out = mix_files([a, a], "weighted", [0.5, 0.5])
    assert np.allclose(out, 0.5)
    with pytest.raises(MismatchedWeightCount):
        mix_files([a, a], "weighted")
    with pytest.raises(ValueError):
        mix_files([a, a], "median")
    with pytest.raises(EmptyInput):
        mix_files([])
