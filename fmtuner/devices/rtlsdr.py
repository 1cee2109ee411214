"""RTL-SDR receiver: tuning, FM audio playback, seek and scan."""

import logging
import threading
import time
from typing import Callable, List, Optional

import numpy as np
import sounddevice as sd
from rtlsdr import RtlSdr

from ..core.tuner import ErrorCallback, FrequencyCallback, TunerDevice, TunerError, TunerState
from .dsp import TARGET_AUDIO_SAMPLE_RATE, analyze_signal, fm_demodulate

logger = logging.getLogger(__name__)

# SDR parameters
DEFAULT_SAMPLE_RATE = 2.048e6  # Sample rate (e.g., 2.048 Msps). Lower rates can reduce CPU.
SDR_BLOCK_SIZE = 1024 * 32  # SDR Sample block size

# Seek/scan parameters
SCAN_STEP_TENTHS = 1  # 0.1 MHz
SCAN_SAMPLES = 1024 * 64  # Number of samples to collect for each frequency check
SCAN_DWELL_TIME = 0.05  # seconds to let the tuner settle after retuning


class RtlSdrTuner(TunerDevice):
    """
    Drives an RTL-SDR dongle as an FM receiver.
    Streaming, seeking and scanning run in background threads; their results
    are handed to ``dispatch`` so the session sees them on its own thread.
    """

    def __init__(
        self,
        device_index: int = 0,
        min_frequency: float = 87.5,
        max_frequency: float = 108.0,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
        sample_rate: float = DEFAULT_SAMPLE_RATE,
    ):
        self.device_index = device_index
        self.min_frequency = min_frequency
        self.max_frequency = max_frequency
        self.sample_rate = sample_rate
        self._dispatch = dispatch or (lambda fn: fn())
        self.sdr: Optional[RtlSdr] = None
        self.audio_stream: Optional[sd.OutputStream] = None
        self._state = TunerState.IDLE
        self._frequency = min_frequency
        self._muted = False
        self._device_lock = threading.Lock()
        self._audio_lock = threading.Lock()
        self._stream_thread: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._cancel_scan = threading.Event()
        self._on_scan_stopped: Optional[Callable[[], None]] = None

    def open(self) -> None:
        """Initializes the RTL-SDR dongle."""
        try:
            self.sdr = RtlSdr(self.device_index)
            self.sdr.sample_rate = self.sample_rate
            self.sdr.gain = 'auto'
            self.sdr.center_freq = self._frequency * 1e6
            _ = self.sdr.read_samples(256)
        except Exception as e:
            self.sdr = None
            raise TunerError(
                f"Error initializing SDR: {e}. Is it plugged in? Is librtlsdr installed?",
                title="Receiver unavailable",
            ) from e
        logger.info("SDR initialized. Sample rate: %.3f Msps", self.sdr.sample_rate / 1e6)

    @property
    def state(self) -> TunerState:
        return self._state

    @property
    def frequency(self) -> float:
        return self._frequency

    def _require_sdr(self) -> RtlSdr:
        if self.sdr is None:
            raise TunerError("SDR not initialized", title="Receiver unavailable")
        return self.sdr

    def set_muted(self, muted: bool) -> None:
        """Set the mute state of the audio stream."""
        with self._audio_lock:
            self._muted = muted
            if self.audio_stream:
                if muted:
                    self.audio_stream.stop()
                else:
                    self.audio_stream.start()

    def start(self, frequency: float) -> None:
        """Tune to ``frequency`` (MHz) and play it."""
        sdr = self._require_sdr()
        self._stop_streaming()
        try:
            with self._device_lock:
                sdr.center_freq = frequency * 1e6
            self._frequency = frequency
            self._start_streaming()
        except TunerError:
            raise
        except Exception as e:
            self._stop_streaming()
            raise TunerError(f"Error tuning to {frequency:.1f} MHz: {e}") from e
        self._state = TunerState.PLAYING
        logger.info("Streaming live from %.1f MHz", frequency)

    def stop(self) -> None:
        self._stop_streaming()
        self._state = TunerState.IDLE

    def _start_streaming(self) -> None:
        with self._audio_lock:
            self.audio_stream = sd.OutputStream(
                samplerate=TARGET_AUDIO_SAMPLE_RATE,
                channels=1,
                dtype='float32',
                blocksize=0,
                latency='low'
            )
            if not self._muted:
                self.audio_stream.start()
        self._stream_thread = threading.Thread(target=self._stream_loop, daemon=True)
        self._stream_thread.start()

    def _stream_loop(self) -> None:
        def sdr_callback(samples_iq_chunk: np.ndarray, context: "RtlSdrTuner") -> None:
            try:
                audio_data = fm_demodulate(samples_iq_chunk, context.sample_rate)
                if audio_data.size == 0:
                    return
                with context._audio_lock:
                    stream = context.audio_stream
                    if stream is not None and not context._muted:
                        stream.write(audio_data)
            except Exception as e:
                logger.warning("DSP error: %s", e)

        try:
            self.sdr.read_samples_async(sdr_callback, num_samples=SDR_BLOCK_SIZE, context=self)
        except Exception as e:
            logger.error("SDR streaming stopped: %s", e)

    def _stop_streaming(self) -> None:
        if self._stream_thread is not None:
            try:
                self.sdr.cancel_read_async()
            except Exception as e:
                logger.debug("Error during cancel_read_async (may be benign): %s", e)
            self._stream_thread.join(timeout=1.0)
            self._stream_thread = None

        with self._audio_lock:
            if self.audio_stream:
                try:
                    self.audio_stream.stop()
                    self.audio_stream.close()
                except Exception as e:
                    logger.warning("Error stopping audio stream: %s", e)
                self.audio_stream = None

    def _has_station(self, tenths: int) -> bool:
        with self._device_lock:
            self.sdr.center_freq = tenths * 1e5
            time.sleep(SCAN_DWELL_TIME)
            samples = self.sdr.read_samples(SCAN_SAMPLES)
        return analyze_signal(samples, self.sample_rate).is_station

    def _band_tenths(self) -> range:
        return range(int(round(self.min_frequency * 10)), int(round(self.max_frequency * 10)) + 1, SCAN_STEP_TENTHS)

    def _run_worker(self, target: Callable[[], None]) -> None:
        self._worker = threading.Thread(target=target, daemon=True)
        self._worker.start()

    def seek_up(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        self._seek(1, on_success, on_error)

    def seek_down(self, on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        self._seek(-1, on_success, on_error)

    def _seek(self, direction: int, on_success: FrequencyCallback, on_error: ErrorCallback) -> None:
        self._require_sdr()
        band = list(self._band_tenths())
        if direction < 0:
            band.reverse()
        current = int(round(self._frequency * 10))
        # Walk the whole band once, starting next to the current frequency
        ahead = [t for t in band if (t - current) * direction > 0]
        ordered = ahead + [t for t in band if t not in ahead]

        def seek() -> None:
            try:
                self._stop_streaming()
                for tenths in ordered:
                    if self._has_station(tenths):
                        frequency = tenths / 10
                        self._dispatch(lambda: self._resume_after_seek(frequency, on_error, on_success=on_success))
                        return
                error = TunerError("No station found in the band", title="Seek failed")
            except Exception as e:
                error = e if isinstance(e, TunerError) else TunerError(str(e), title="Seek failed")
            self._dispatch(lambda: self._resume_after_seek(self._frequency, on_error, error=error))

        self._run_worker(seek)

    def _resume_after_seek(
        self,
        frequency: float,
        on_error: ErrorCallback,
        on_success: Optional[FrequencyCallback] = None,
        error: Optional[Exception] = None,
    ) -> None:
        # Runs on the dispatching thread, so playback restarts there
        if self._state is TunerState.SCANNING:
            logger.debug("Dropping seek result %.1f MHz, a scan is running", frequency)
            return
        try:
            self.start(frequency)
        except TunerError as e:
            error = e
        if error is not None:
            on_error(error)
        elif on_success is not None:
            on_success(frequency)

    def scan_start(
        self,
        on_frequency_found: FrequencyCallback,
        on_finished: Callable[[List[float]], None],
        on_error: ErrorCallback,
    ) -> None:
        self._require_sdr()
        self._stop_streaming()
        self._cancel_scan.clear()
        self._on_scan_stopped = None
        self._state = TunerState.SCANNING

        def scan() -> None:
            found: List[float] = []
            try:
                for tenths in self._band_tenths():
                    if self._cancel_scan.is_set():
                        break
                    if self._has_station(tenths):
                        frequency = tenths / 10
                        found.append(frequency)
                        logger.info("Found station at %.1f MHz", frequency)
                        self._dispatch(lambda f=frequency: on_frequency_found(f))
            except Exception as e:
                self._state = TunerState.IDLE
                self._dispatch(lambda: on_error(TunerError(str(e), title="Scan failed")))
                return

            self._state = TunerState.IDLE
            if self._cancel_scan.is_set():
                if self._on_scan_stopped is not None:
                    self._dispatch(self._on_scan_stopped)
            else:
                self._dispatch(lambda: on_finished(found))

        self._run_worker(scan)

    def scan_stop(self, on_success: Callable[[], None], on_error: ErrorCallback) -> None:
        if self._state is not TunerState.SCANNING:
            self._dispatch(lambda: on_error(TunerError("No scan is running", title="Scan stop failed")))
            return
        self._on_scan_stopped = on_success
        self._cancel_scan.set()

    def close(self) -> None:
        """Closes the SDR device and cleans up resources."""
        self._cancel_scan.set()
        self._stop_streaming()
        self._state = TunerState.IDLE
        if self.sdr:
            try:
                sdr_to_close = self.sdr
                self.sdr = None
                sdr_to_close.close()
                logger.info("SDR closed.")
            except Exception as e:
                logger.warning("Error closing SDR: %s", e)
