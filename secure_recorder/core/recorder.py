"""Recording controller.

This module provides the Recorder class that resolves capture devices,
drives one RecordingSession until the duration limit, a signal or a
failure, and optionally seals the finished file.
"""

import logging
import signal
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from types import FrameType
from typing import TYPE_CHECKING, Any

from secure_recorder.config import TARGET_SAMPLE_RATE, EncryptionConfig, RecordingConfig
from secure_recorder.core.frame import SourceRole
from secure_recorder.core.protocols import CaptureSource, EnvelopeUploader
from secure_recorder.core.session import RecordingSession
from secure_recorder.exceptions import SessionError
from secure_recorder.export import SealedRecording, seal_container
from secure_recorder.sources.capture_group import CaptureGroup

if TYPE_CHECKING:
    from secure_recorder.sources.enumerator import AudioDevice

logger = logging.getLogger(__name__)

CaptureFactory = Callable[[RecordingConfig], CaptureSource]

_WAIT_INTERVAL = 0.1


@dataclass(frozen=True)
class RecordingResult:
    """Outcome of a completed recording.

    Attributes:
        samples: Samples written to the WAV file.
        duration: Recorded duration in seconds.
        sealed: Envelope details when the recording was sealed.
    """

    samples: int
    duration: float
    sealed: SealedRecording | None = None


def resolve_devices(config: RecordingConfig) -> tuple["AudioDevice | None", "AudioDevice | None"]:
    """Resolve the configured devices.

    Returns:
        Tuple of (monitor_device, microphone_device).
    """
    from secure_recorder.sources.enumerator import DeviceEnumerator

    monitor = None
    mic = None

    with DeviceEnumerator() as enumerator:
        if config.primary.enabled:
            monitor = enumerator.resolve_monitor(config.primary.device_name)
            logger.info("Using monitor: %s", monitor.description)

        if config.secondary.enabled:
            mic = enumerator.resolve_microphone(config.secondary.device_name)
            logger.info("Using microphone: %s", mic.description)

    return monitor, mic


def build_capture(config: RecordingConfig) -> CaptureSource:
    """Build the capture group for the configured devices.

    When only one device is enabled it becomes the primary source.

    Raises:
        SessionError: If no source is enabled.
    """
    from secure_recorder.sources.sounddevice_source import SoundDeviceSource

    monitor, mic = resolve_devices(config)
    devices = [d for d in (monitor, mic) if d is not None]
    if not devices:
        raise SessionError("No audio sources enabled")

    primary = SoundDeviceSource(
        device_index=devices[0].index,
        device_name=devices[0].name,
        config=config.audio,
        role=SourceRole.PRIMARY,
    )
    secondary = None
    if len(devices) > 1:
        secondary = SoundDeviceSource(
            device_index=devices[1].index,
            device_name=devices[1].name,
            config=config.audio,
            role=SourceRole.SECONDARY,
        )
    return CaptureGroup(primary, secondary, buffer_size=config.secondary_buffer)


class Recorder:
    """Runs one recording from start to a finalized (and optionally sealed) file.

    Handles graceful shutdown on SIGINT/SIGTERM when run from the main
    thread.

    Args:
        config: Recording configuration.
        capture_factory: Builds the capture source; defaults to real devices.

    Example:
        config = RecordingConfig(output_path=Path("call.wav"), duration=60)
        result = Recorder(config).run()
    """

    def __init__(
        self,
        config: RecordingConfig,
        capture_factory: CaptureFactory = build_capture,
    ) -> None:
        self._config = config
        self._capture_factory = capture_factory
        self._done = threading.Event()
        self._session = RecordingSession(
            config.output_path,
            max_queue_depth=config.queue_depth,
            on_error=lambda error: self._done.set(),
        )
        self._original_sigint: Any = None
        self._original_sigterm: Any = None

    @property
    def session(self) -> RecordingSession:
        return self._session

    def request_stop(self) -> None:
        """Ask run() to stop at its next check."""
        self._done.set()

    def _setup_signal_handlers(self) -> None:
        """Install signal handlers for graceful shutdown."""
        if threading.current_thread() is not threading.main_thread():
            return

        def handler(signum: int, frame: FrameType | None) -> None:
            sig_name = signal.Signals(signum).name
            logger.info("Received %s, stopping recording...", sig_name)
            self._done.set()

        self._original_sigint = signal.signal(signal.SIGINT, handler)
        self._original_sigterm = signal.signal(signal.SIGTERM, handler)

    def _restore_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)

    def _wait(self) -> None:
        """Block until the duration limit, a stop request or an abort."""
        start_time = time.monotonic()
        while not self._done.wait(_WAIT_INTERVAL):
            if self._config.duration is not None:
                elapsed = time.monotonic() - start_time
                if elapsed >= self._config.duration:
                    logger.info("Duration limit reached (%.1f seconds)", elapsed)
                    return

    def run(
        self,
        encryption: EncryptionConfig | None = None,
        uploader: EnvelopeUploader | None = None,
    ) -> RecordingResult:
        """Record until stopped, finalize, and seal if asked to.

        Args:
            encryption: Credentials for sealing; None leaves the WAV as is.
            uploader: Receives the envelope; required when sealing.

        Raises:
            RecorderError: If capture, writing, finalizing or sealing fails.
        """
        if encryption is not None and uploader is None:
            raise SessionError("An uploader is required to seal the recording")

        logger.info("Starting recording session")
        logger.info("Output: %s", self._config.output_path)

        capture = self._capture_factory(self._config)
        self._done.clear()
        self._setup_signal_handlers()
        try:
            self._session.start(capture)
            logger.info("Recording from %s... Press Ctrl+C to stop", capture.name)
            self._wait()
            self._session.stop()
            if self._session.error is not None:
                raise self._session.error
        finally:
            self._restore_signal_handlers()
            if self._session.error is not None:
                self._session.join()

        samples = self._session.samples_written
        duration = samples / TARGET_SAMPLE_RATE
        sealed = None
        if encryption is not None and uploader is not None:
            sealed = seal_container(self._config.output_path, encryption, uploader)

        return RecordingResult(samples=samples, duration=duration, sealed=sealed)
