"""Signal analysis and FM demodulation helpers."""

import numpy as np

from fmtuner.devices.dsp import (
    NO_SIGNAL,
    TARGET_AUDIO_SAMPLE_RATE,
    SignalReport,
    analyze_signal,
    fm_demodulate,
)

SAMPLE_RATE = 2.048e6


def fm_tone(num_samples, audio_freq=1000.0, deviation=75_000.0):
    t = np.arange(num_samples, dtype=np.float64) / SAMPLE_RATE
    phase = (deviation / audio_freq) * np.sin(2 * np.pi * audio_freq * t)
    return np.exp(1j * phase).astype(np.complex64)


def test_analyze_empty_block():
    assert analyze_signal(np.array([], dtype=np.complex64), SAMPLE_RATE) == NO_SIGNAL


def test_analyze_silence():
    report = analyze_signal(np.zeros(4096, dtype=np.complex64), SAMPLE_RATE)
    assert report == NO_SIGNAL
    assert not report.is_station


def test_analyze_returns_plain_floats():
    report = analyze_signal(fm_tone(1024 * 16), SAMPLE_RATE)
    assert isinstance(report.strength, float)
    assert isinstance(report.is_station, bool)


def test_stereo_flag():
    assert SignalReport(1.0, 1.0, 0.2, True).is_stereo
    assert not SignalReport(1.0, 1.0, 0.01, True).is_stereo


def test_demodulate_short_block_is_empty():
    audio = fm_demodulate(np.ones(4, dtype=np.complex64), SAMPLE_RATE)
    assert audio.size == 0
    assert audio.dtype == np.float32


def test_demodulate_tone_to_normalised_audio():
    num_samples = 1024 * 32
    audio = fm_demodulate(fm_tone(num_samples), SAMPLE_RATE)

    expected = num_samples * TARGET_AUDIO_SAMPLE_RATE / SAMPLE_RATE
    assert audio.dtype == np.float32
    assert abs(audio.size - expected) < expected * 0.05
    assert np.max(np.abs(audio)) <= 0.5 + 1e-6
    assert np.max(np.abs(audio)) > 0.1
