"""Test the drum-machine voices and their Settings presets.

Run: pytest tests/test_voices.py
"""

import logging

import numpy as np
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from drumkit.engine.params import (
    PRESETS, SR, VOICE_DEFAULTS, Settings, new_settings, preset_808,
    random_settings, voice_settings,
)
from drumkit.engine.voices import VOICES, generate, kick, snare
from primitives.oscillators import NoiseType, Waveform
from shared.errors import InvalidParameters, UnsupportedWaveform
from shared.mixing import analyze_highest_frequency

FAST_SR = 44100


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
def test_new_settings_defaults():
    s = new_settings(55.0, 30.0)
    assert s.sample_rate == SR == 96000
    assert s.num_samples == 96000
    assert s.waveform_type == Waveform.SINE
    assert s.noise_type == NoiseType.NONE
    assert s.smooth_frequency_transitions


def test_invalid_settings():
    with pytest.raises(InvalidParameters):
        Settings(55.0, 30.0, sample_rate=0)
    with pytest.raises(InvalidParameters):
        Settings(55.0, 30.0, duration=-1.0)


def test_presets_are_fresh_and_distinct():
    starts = set()
    for name, factory in PRESETS.items():
        a = factory()
        b = factory()
        a.drive = 99.0
        assert b.drive != 99.0, name
        starts.add((a.start_frequency, a.end_frequency, a.waveform_type))
    assert len(starts) >= 5
    exp = PRESETS["experimental"]()
    assert exp.waveform_type == Waveform.SAWTOOTH and exp.drive == 0.8


def test_copy_is_deep():
    s = preset_808()
    c = s.copy()
    c.oscillator_levels.append(0.5)
    assert s.oscillator_levels == [1.0]


def test_oscillator_level():
    s = new_settings(55.0, 30.0)
    s.num_oscillators = 2
    s.oscillator_levels = [0.5]
    assert s.oscillator_level(0) == 0.5
    assert s.oscillator_level(1) == 1.0
    s.oscillator_levels = []
    assert s.oscillator_level(0) == 1.0


def test_color_is_stable_and_timbre_sensitive():
    a = preset_808()
    assert a.color() == preset_808().color()
    assert all(0 <= c <= 255 for c in a.color())
    b = a.copy()
    b.decay += 0.1
    assert b.color() != a.color()
    c = a.copy()
    c.sample_rate = 44100
    assert c.color() == a.color()


def test_random_settings_in_range():
    rng = np.random.default_rng(1)
    for _ in range(20):
        s = random_settings(rng)
        assert 0.0 <= s.attack <= 0.02
        assert 2000.0 <= s.filter_cutoff <= 8000.0
        assert s.waveform_type in tuple(Waveform)


def test_voice_settings():
    s = voice_settings("snare", sample_rate=FAST_SR)
    assert s.sample_rate == FAST_SR
    assert s.duration == 0.5
    assert s.start_frequency == 200.0
    s = voice_settings("snare", machine="experimental", duration=0.2, channels=2)
    assert s.drive == 0.8
    assert s.duration == 0.2
    assert s.channels == 2
    with pytest.raises(ValueError):
        voice_settings("cowbell")
    with pytest.raises(ValueError):
        voice_settings("kick", machine="tr-8")


# ---------------------------------------------------------------------------
# Voices
# ---------------------------------------------------------------------------
def test_808_kick():
    s = preset_808()
    out = kick(s, np.random.default_rng(0))
    assert len(out) == 96000
    assert np.max(np.abs(out)) <= 1.0
    assert analyze_highest_frequency(out, s.sample_rate) < 100.0


@pytest.mark.parametrize("voice", sorted(VOICES))
def test_every_voice_renders(voice):
    s = voice_settings(voice, sample_rate=FAST_SR)
    out = generate(s, voice, np.random.default_rng(42))
    assert len(out) == s.num_samples
    assert np.all(np.isfinite(out))
    assert np.max(np.abs(out)) <= 1.0
    assert np.any(out != 0.0)


def test_voices_cover_defaults():
    assert set(VOICES) == set(VOICE_DEFAULTS)


def test_seeded_render_is_reproducible():
    s = voice_settings("snare", sample_rate=FAST_SR)
    a = generate(s, "snare", np.random.default_rng(9))
    b = generate(s, "snare", np.random.default_rng(9))
    assert np.array_equal(a, b)


def test_kick_noise_layer():
    s = voice_settings("kick", sample_rate=FAST_SR, duration=0.2)
    plain = kick(s, np.random.default_rng(0))
    s.noise_type = NoiseType.WHITE
    s.noise_amount = 0.3
    noisy = kick(s, np.random.default_rng(0))
    assert not np.array_equal(plain, noisy)


def test_stepped_kick_renders():
    s = voice_settings("kick", sample_rate=FAST_SR, duration=0.2)
    s.smooth_frequency_transitions = False
    assert len(kick(s)) == s.num_samples


def test_snare_rejects_noise_waveform():
    s = voice_settings("snare", sample_rate=FAST_SR)
    s.waveform_type = Waveform.PINK_NOISE
    with pytest.raises(UnsupportedWaveform):
        snare(s)


def test_unknown_voice():
    with pytest.raises(ValueError, match="Unknown sound type"):
        generate(new_settings(55.0, 30.0), "cowbell")


def test_generate_logs_realtime_factor(caplog):
    s = voice_settings("rimshot", sample_rate=FAST_SR)
    with caplog.at_level(logging.INFO, logger="drumkit.engine.voices"):
        generate(s, "rimshot", np.random.default_rng(0))
    assert any("render rimshot" in r.getMessage() for r in caplog.records)


def test_lead_keeps_saw_harmonics():
    s = voice_settings("lead", sample_rate=FAST_SR)
    out = generate(s, "lead", np.random.default_rng(0))
    power = np.abs(np.fft.rfft(out)) ** 2
    freqs = np.fft.rfftfreq(len(out), 1.0 / FAST_SR)
    fundamental = power[(freqs > 380.0) & (freqs < 500.0)].sum()
    second = power[(freqs > 800.0) & (freqs < 960.0)].sum()
    assert second > 0.1 * fundamental


def test_voice_settings_validates_overrides():
    with pytest.raises(InvalidParameters):
        voice_settings("snare", duration=0.0)
    with pytest.raises(InvalidParameters):
        voice_settings("kick", machine="808", channels=0)
