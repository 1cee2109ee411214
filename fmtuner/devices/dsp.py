"""Signal analysis and FM demodulation for the RTL-SDR receiver."""

from dataclasses import dataclass

import numpy as np
import scipy.signal as signal

FM_BANDWIDTH = 200e3  # Bandwidth of an FM signal (approx 200 kHz)
TARGET_AUDIO_SAMPLE_RATE = 48000  # Desired audio output sample rate
MAX_FREQ_DEVIATION = 75e3  # Maximum frequency deviation for FM (75 kHz)
DEEMPHASIS_TIME_CONSTANT = 75e-6

# Station detection thresholds
SIGNAL_THRESHOLD = 0.08
MIN_SIGNAL_QUALITY = 0.4
MIN_BANDWIDTH_POWER_RATIO = 0.15
MIN_STEREO_RATIO = 0.05


@dataclass(frozen=True)
class SignalReport:
    strength: float
    quality: float
    stereo_ratio: float
    is_station: bool

    @property
    def is_stereo(self) -> bool:
        return self.stereo_ratio > MIN_STEREO_RATIO


NO_SIGNAL = SignalReport(0.0, 0.0, 0.0, False)


def analyze_signal(samples_iq: np.ndarray, sample_rate: float) -> SignalReport:
    """Decide whether a block of IQ samples centred on a frequency holds an FM station."""
    if len(samples_iq) < 2:
        return NO_SIGNAL

    spectrum = np.abs(np.fft.fftshift(np.fft.fft(samples_iq)))
    mean_power = np.mean(spectrum)
    if mean_power <= 0:
        return NO_SIGNAL

    center_idx = len(spectrum) // 2
    bin_width = sample_rate / len(spectrum)
    bandwidth_idx = max(2, int(FM_BANDWIDTH / bin_width))

    # Power inside the FM channel
    start_idx = max(0, center_idx - bandwidth_idx // 2)
    end_idx = min(len(spectrum), center_idx + bandwidth_idx // 2)
    signal_power = np.mean(spectrum[start_idx:end_idx])

    # Noise power from the neighbouring bins on both sides
    noise_start = max(0, start_idx - bandwidth_idx)
    noise_end = min(len(spectrum), end_idx + bandwidth_idx)
    sides = [spectrum[noise_start:start_idx], spectrum[end_idx:noise_end]]
    sides = [side for side in sides if side.size]
    noise_power = np.mean([np.mean(side) for side in sides]) if sides else 0.0

    signal_quality = signal_power / (noise_power + 1e-10)

    # Stereo pilot tone at 19 kHz
    pilot_idx = center_idx + int(19e3 / bin_width)
    pilot_power = np.mean(spectrum[max(0, pilot_idx - 2):pilot_idx + 3])
    stereo_ratio = pilot_power / (signal_power + 1e-10)

    bandwidth_power_ratio = signal_power / mean_power

    # Modulation depth must look like broadcast FM
    freq_dev = np.std(np.angle(samples_iq[1:] * np.conj(samples_iq[:-1]))) * sample_rate / (2 * np.pi)
    freq_dev_ratio = freq_dev / MAX_FREQ_DEVIATION

    strength = signal_power / mean_power
    is_station = bool(
        strength > SIGNAL_THRESHOLD and
        signal_quality > MIN_SIGNAL_QUALITY and
        bandwidth_power_ratio > MIN_BANDWIDTH_POWER_RATIO and
        0.05 < freq_dev_ratio < 1.5
    )
    return SignalReport(float(strength), float(signal_quality), float(stereo_ratio), is_station)


def fm_demodulate(samples_iq: np.ndarray, sample_rate: float) -> np.ndarray:
    """Demodulate wideband FM IQ samples to mono audio at TARGET_AUDIO_SAMPLE_RATE."""
    cutoff_channel = FM_BANDWIDTH / 2
    if cutoff_channel < sample_rate / 2:
        fir_coeffs = signal.firwin(65, cutoff_channel, fs=sample_rate, window='hamming')
        filtered_iq = signal.lfilter(fir_coeffs, 1.0, samples_iq)
    else:
        filtered_iq = samples_iq

    decimation = max(1, int(sample_rate / (FM_BANDWIDTH * 1.5)))
    if decimation > 1:
        demod_input_iq = filtered_iq[::decimation]
        current_sample_rate = sample_rate / decimation
    else:
        demod_input_iq = filtered_iq
        current_sample_rate = sample_rate

    if len(demod_input_iq) < 2:
        return np.array([], dtype=np.float32)

    demodulated = np.angle(demod_input_iq[1:] * np.conj(demod_input_iq[:-1]))

    alpha = np.exp(-1.0 / (current_sample_rate * DEEMPHASIS_TIME_CONSTANT))
    demodulated = signal.lfilter([1.0 - alpha], [1.0, -alpha], demodulated)

    num_audio_samples = int(len(demodulated) * TARGET_AUDIO_SAMPLE_RATE / current_sample_rate)
    if num_audio_samples < 1:
        return np.array([], dtype=np.float32)
    audio = signal.resample(demodulated, num_audio_samples)

    max_abs = np.max(np.abs(audio))
    if max_abs > 1e-9:
        audio = (audio / max_abs) * 0.5
    else:
        audio = np.zeros_like(audio)
    return audio.astype(np.float32)
