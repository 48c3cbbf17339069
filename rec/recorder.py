"""Microphone capture with background buffering."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

import numpy as np
import sounddevice as sd

from rec.audio import AudioBuffer
from rec.config import CHUNK_MS, INPUT_CHANNELS, SAMPLE_RATE
from rec.errors import DeviceError
from rec.status import StatusChannel

logger = logging.getLogger(__name__)


class AudioRecorder:
    """Manages audio recording with background buffering.

    PortAudio delivers blocks on its own thread; a collector thread moves them
    from a queue into the buffer. ``stop()`` closes the stream first and then
    joins the collector once the queue is drained, so the buffer holds every
    block delivered before the stop and nothing after it.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        channels: int = INPUT_CHANNELS,
        chunk_ms: float = CHUNK_MS,
        device: int | str | None = None,
    ):
        """
        Initialize the audio recorder.

        Args:
            sample_rate: Sample rate in Hz (default: from config)
            channels: Number of input channels (default: from config)
            chunk_ms: Chunk size in milliseconds (default: from config)
            device: Input device index or name (None for the system default)
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.device = device

        self._recording = False
        self._state_lock = threading.Lock()
        self._audio_queue: queue.Queue[np.ndarray] = queue.Queue()
        self._audio_buffer: list[np.ndarray] = []
        self._buffer_lock = threading.Lock()
        self._stream: sd.InputStream | None = None
        self._recorder_thread: threading.Thread | None = None
        self._stop_recorder = threading.Event()

    def _audio_callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        """Callback for audio input stream."""
        if status:
            logger.warning(f"Audio status: {status}")
        data = indata if indata.ndim == 2 else indata.reshape(-1, 1)
        self._audio_queue.put_nowait(data.copy())

    def _recorder_loop(self) -> None:
        """Collect chunks until stop is requested and the queue is empty."""
        while True:
            try:
                chunk = self._audio_queue.get(timeout=0.1)
            except queue.Empty:
                if self._stop_recorder.is_set():
                    return
                continue
            with self._buffer_lock:
                self._audio_buffer.append(chunk)

    def start(self) -> None:
        """
        Start audio recording into a fresh buffer.

        Raises:
            DeviceError: If no input device is available or the stream fails to open
        """
        with self._state_lock:
            if self._recording:
                return

            with self._buffer_lock:
                self._audio_buffer = []
            self._audio_queue = queue.Queue()

            try:
                sd.query_devices(self.device, kind="input")
                stream = sd.InputStream(
                    channels=self.channels,
                    samplerate=self.sample_rate,
                    dtype="float32",
                    callback=self._audio_callback,
                    blocksize=int(self.sample_rate * (self.chunk_ms / 1000.0)),
                    device=self.device,
                )
            except (sd.PortAudioError, ValueError) as e:
                # PortAudioError: host API failure
                # ValueError: no (matching) input device
                raise DeviceError(f"No usable input device: {e}") from e

            self._stop_recorder.clear()
            self._recorder_thread = threading.Thread(target=self._recorder_loop, daemon=True)
            self._recorder_thread.start()

            try:
                stream.start()
            except sd.PortAudioError as e:
                self._stop_recorder.set()
                self._recorder_thread.join()
                stream.close()
                raise DeviceError(f"Could not start input device: {e}") from e

            self._stream = stream
            self._recording = True

    def stop(self) -> None:
        """Stop recording and wait for the buffer to be finalized. Idempotent."""
        with self._state_lock:
            if not self._recording:
                return
            self._recording = False

            if self._stream:
                try:
                    self._stream.stop()
                    self._stream.close()
                except (sd.PortAudioError, RuntimeError, AttributeError) as e:
                    # PortAudioError: PortAudio/sounddevice errors
                    # RuntimeError: Stream already closed or invalid state
                    # AttributeError: Stream object is invalid
                    logger.debug(f"Error closing input stream: {e}")
                self._stream = None

            self._stop_recorder.set()
            if self._recorder_thread is not None:
                self._recorder_thread.join()
                self._recorder_thread = None

    def get_buffer(self) -> AudioBuffer:
        """Return and clear the captured audio."""
        with self._buffer_lock:
            chunks, self._audio_buffer = self._audio_buffer, []

        if not chunks:
            return AudioBuffer.empty(self.sample_rate, self.channels)
        return AudioBuffer(np.concatenate(chunks), self.sample_rate)

    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._recording


class AudioCapture:
    """Record from the microphone until the user signals stop.

    Args:
        wait_for_stop: Blocking callable that returns once the user asks to stop
        status: Channel for "Recording..." notifications
        recorder: Recorder to use (a default AudioRecorder if omitted)
    """

    def __init__(
        self,
        wait_for_stop: Callable[[], object],
        status: StatusChannel | None = None,
        recorder: AudioRecorder | None = None,
    ):
        self.wait_for_stop = wait_for_stop
        self.status = status or StatusChannel()
        self.recorder = recorder or AudioRecorder()

    def record(self) -> AudioBuffer:
        """Capture audio until ``wait_for_stop`` returns.

        Raises:
            DeviceError: If recording cannot start
        """
        self.recorder.start()
        self.status.show("Recording...")
        try:
            self.wait_for_stop()
        finally:
            self.recorder.stop()

        audio = self.recorder.get_buffer()
        logger.info(f"Captured {audio.duration:.1f}s of audio ({audio.frame_count} frames)")
        return audio
