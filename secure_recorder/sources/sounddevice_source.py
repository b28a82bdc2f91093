"""Audio capture source using sounddevice library.

This module pushes AudioFrames from any PulseAudio/PipeWire source to a
consumer callback as PortAudio delivers them.
"""

import logging
import threading
from typing import Any

import numpy as np
import sounddevice as sd
from numpy.typing import NDArray

from secure_recorder.config import AudioConfig
from secure_recorder.core.frame import AudioFrame, SourceRole
from secure_recorder.core.protocols import EndedCallback, FramesCallback
from secure_recorder.exceptions import CaptureError, RecorderError

logger = logging.getLogger(__name__)


class SoundDeviceSource:
    """Captures audio from a device using sounddevice.

    Every PortAudio callback is wrapped in an AudioFrame and passed to the
    consumer on the PortAudio thread. If the consumer raises a
    RecorderError the stream is aborted. A stream that finishes without
    stop() being called is reported through ``on_ended``.

    Args:
        device_index: Sounddevice device index.
        device_name: Human-readable device name for logging.
        config: Audio configuration parameters.
        role: Whether this device is the primary or secondary source.

    Example:
        source = SoundDeviceSource(device_index=11, device_name="Monitor", config=config)
        source.start(session.submit, session.capture_ended)
        ...
        source.stop()
    """

    def __init__(
        self,
        device_index: int,
        device_name: str,
        config: AudioConfig,
        role: SourceRole = SourceRole.PRIMARY,
    ) -> None:
        self._device_index = device_index
        self._device_name = device_name
        self._config = config
        self._role = role
        self._stream: sd.InputStream | None = None
        self._on_frames: FramesCallback | None = None
        self._on_ended: EndedCallback | None = None
        self._stopping = threading.Event()
        self._overflow_count = 0

    @property
    def name(self) -> str:
        """Human-readable name of the capture source."""
        return self._device_name

    @property
    def role(self) -> SourceRole:
        return self._role

    @property
    def is_active(self) -> bool:
        """Whether the source is currently capturing audio."""
        return self._stream is not None and self._stream.active

    def _audio_callback(
        self,
        indata: NDArray[np.float32],
        frames: int,
        time_info: Any,
        status: sd.CallbackFlags,
    ) -> None:
        """Callback invoked by sounddevice when audio data is available.

        This runs in a separate thread - must be thread-safe and fast.
        """
        if status.input_overflow:
            self._overflow_count += 1
            if self._overflow_count % 10 == 1:  # Log every 10th overflow
                logger.warning(
                    "Input overflow on %s (count: %d)", self._device_name, self._overflow_count
                )

        if self._on_frames is None:
            return

        # Copy data since sounddevice may reuse the buffer
        frame = AudioFrame(indata.copy(), self._config.sample_rate, self._role)
        try:
            self._on_frames(frame)
        except RecorderError as e:
            logger.error("Aborting capture from %s: %s", self._device_name, e)
            raise sd.CallbackAbort from e

    def _finished_callback(self) -> None:
        """Invoked by sounddevice once the stream is inactive."""
        if self._stopping.is_set() or self._on_ended is None:
            return
        self._on_ended(f"Capture stream from {self._device_name} ended unexpectedly")

    def start(self, on_frames: FramesCallback, on_ended: EndedCallback) -> None:
        """Start capturing audio from this source.

        Raises:
            CaptureError: If the stream cannot be opened.
        """
        if self._stream is not None:
            logger.warning("Source %s already started", self._device_name)
            return

        self._on_frames = on_frames
        self._on_ended = on_ended
        self._stopping.clear()
        self._overflow_count = 0

        try:
            self._stream = sd.InputStream(
                device=self._device_index,
                samplerate=self._config.sample_rate,
                channels=self._config.channels,
                dtype=self._config.dtype,
                blocksize=self._config.block_size,
                callback=self._audio_callback,
                finished_callback=self._finished_callback,
            )
            self._stream.start()
            logger.info("Started capture from %s (index %d)", self._device_name, self._device_index)
        except sd.PortAudioError as e:
            self._stream = None
            raise CaptureError(f"Failed to start capture from {self._device_name}: {e}") from e

    def stop(self) -> None:
        """Stop capturing audio from this source."""
        if self._stream is None:
            return

        self._stopping.set()
        try:
            self._stream.stop()
            self._stream.close()
        except sd.PortAudioError as e:
            logger.error("Error stopping stream %s: %s", self._device_name, e)
        finally:
            self._stream = None
            self._on_frames = None
            self._on_ended = None
            logger.info("Stopped capture from %s", self._device_name)
