"""Recording session orchestration.

This module provides the RecordingSession state machine that turns capture
callbacks into a finalized WAV file. Frames are mixed, resampled and
encoded on the capture thread, then handed through a bounded queue to a
single writer thread so the capture callback never waits on disk I/O.
"""

import logging
import queue
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from secure_recorder.config import TARGET_SAMPLE_RATE
from secure_recorder.core.frame import AudioFrame
from secure_recorder.core.mixer import SourceMixer
from secure_recorder.core.protocols import CaptureSource, PcmSink
from secure_recorder.core.resampler import StreamResampler
from secure_recorder.exceptions import (
    AlreadyRecordingError,
    BackpressureError,
    CaptureError,
    FinalizeError,
    MixerError,
    RecorderError,
    SessionError,
)
from secure_recorder.writers.pcm import encode_pcm16
from secure_recorder.writers.wav_writer import WavStreamWriter

logger = logging.getLogger(__name__)

# Queued after the last chunk by stop()
_DRAIN = object()

_POLL_INTERVAL = 0.05

WriterFactory = Callable[[Path, int], PcmSink]


class SessionState(Enum):
    """Lifecycle states of a recording session."""

    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    ERROR = "error"


class RecordingSession:
    """Owns one WAV output and the writer thread feeding it.

    The session moves IDLE -> RECORDING -> FINALIZING -> IDLE for a clean
    recording. Any capture, write, backpressure or finalize failure moves
    it to ERROR: the file is closed with its placeholder header and the
    capture handle is released. Starting again from IDLE or ERROR is
    always allowed.

    Args:
        output_path: Path of the WAV file to create.
        max_queue_depth: Encoded chunks allowed to wait for the writer
            before the session aborts with BackpressureError.
        target_sample_rate: Output sample rate in Hz.
        writer_factory: Builds the sink for a recording (path, rate).
        on_error: Called once with the error when the session aborts.

    Example:
        session = RecordingSession(Path("call.wav"))
        session.start(capture)
        ...
        session.stop()  # blocks until the header is patched
    """

    def __init__(
        self,
        output_path: Path,
        max_queue_depth: int = 64,
        target_sample_rate: int = TARGET_SAMPLE_RATE,
        writer_factory: WriterFactory = WavStreamWriter,
        on_error: Callable[[RecorderError], None] | None = None,
    ) -> None:
        if max_queue_depth <= 0:
            raise ValueError(f"max_queue_depth must be positive, got {max_queue_depth}")

        self._output_path = Path(output_path)
        self._max_queue_depth = max_queue_depth
        self._target_sample_rate = target_sample_rate
        self._writer_factory = writer_factory
        self._on_error = on_error
        self._mixer = SourceMixer()
        self._resampler = StreamResampler(target_sample_rate)

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._error: RecorderError | None = None
        self._writer: PcmSink | None = None
        self._queue: queue.Queue[object] | None = None
        self._worker: threading.Thread | None = None
        self._aborted = threading.Event()
        self._capture: CaptureSource | None = None
        self._samples_written = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> RecorderError | None:
        """The error that moved the session to ERROR, if any."""
        return self._error

    @property
    def output_path(self) -> Path:
        return self._output_path

    @property
    def samples_written(self) -> int:
        """Samples written by the current or most recent recording."""
        writer = self._writer
        if writer is not None and self._state is SessionState.RECORDING:
            return writer.samples_written
        return self._samples_written

    @property
    def pending_chunks(self) -> int:
        """Encoded chunks waiting for the writer thread."""
        chunks = self._queue
        return chunks.qsize() if chunks is not None else 0

    def start(self, capture: CaptureSource | None = None) -> None:
        """Open the output file and begin accepting frames.

        Args:
            capture: Optional capture source to start; it is released when
                the session stops or aborts. Without one, frames are fed
                through submit() directly.

        Raises:
            AlreadyRecordingError: If a recording is in progress.
            WriteError: If the output file cannot be created.
            CaptureError: If the capture source fails to start.
        """
        # An aborted recording may still be closing its file
        previous = self._worker
        if previous is not None and self._state is SessionState.ERROR:
            previous.join()

        with self._lock:
            if self._state in (SessionState.RECORDING, SessionState.FINALIZING):
                raise AlreadyRecordingError(
                    f"Recording to {self._output_path} already in progress"
                )

            writer = self._writer_factory(self._output_path, self._target_sample_rate)
            try:
                writer.open()
            except RecorderError as e:
                self._state = SessionState.ERROR
                self._error = e
                raise

            chunks: queue.Queue[object] = queue.Queue(maxsize=self._max_queue_depth)
            aborted = threading.Event()
            self._writer = writer
            self._queue = chunks
            self._aborted = aborted
            self._capture = capture
            self._error = None
            self._samples_written = 0
            self._resampler.reset()
            self._state = SessionState.RECORDING
            self._worker = threading.Thread(
                target=self._write_loop,
                args=(writer, chunks, aborted),
                name="wav-writer",
                daemon=True,
            )
            self._worker.start()

        logger.info("Recording started: %s", self._output_path)

        if capture is not None:
            try:
                capture.start(self.submit, self.capture_ended)
            except RecorderError as e:
                self._abort(e)
                raise

    def submit(self, *frames: AudioFrame) -> None:
        """Mix, resample and queue one capture callback's frames.

        Called from the real-time capture thread. Frames arriving in any
        state other than RECORDING are dropped.

        Raises:
            BackpressureError: If the writer queue is full; the session
                has already aborted when this is raised.
            MixerError: If the frames cannot be mixed.
        """
        if self._state is not SessionState.RECORDING:
            return

        try:
            mono = self._mixer.mix(frames)
        except MixerError as e:
            self._abort(e)
            raise
        samples = self._resampler.process(mono, frames[0].sample_rate)
        chunk = encode_pcm16(samples)

        with self._lock:
            if self._state is not SessionState.RECORDING or self._queue is None:
                return
            try:
                self._queue.put_nowait(chunk)
                return
            except queue.Full:
                error = BackpressureError(self._max_queue_depth)

        self._abort(error)
        raise error

    def capture_ended(self, reason: str) -> None:
        """Abort the recording because a capture stream went away."""
        self._abort(CaptureError(reason))

    def stop(self) -> None:
        """Drain queued audio, patch the header and return to IDLE.

        Does nothing unless the session is RECORDING. Blocks until the
        output file is complete.

        Raises:
            RecorderError: If a write failed while draining or the header
                could not be patched; the session is left in ERROR.
        """
        with self._lock:
            if self._state is not SessionState.RECORDING:
                logger.debug("stop() ignored in state %s", self._state.value)
                return
            self._state = SessionState.FINALIZING
            writer = self._writer
            chunks = self._queue
            worker = self._worker
            aborted = self._aborted

        if writer is None or chunks is None or worker is None:
            raise SessionError("Session not properly initialized")

        logger.info("Stopping recording, draining %d pending chunks", chunks.qsize())
        self._release_capture()

        while not aborted.is_set():
            try:
                chunks.put(_DRAIN, timeout=_POLL_INTERVAL)
                break
            except queue.Full:
                continue
        worker.join()

        if self._state is SessionState.ERROR:
            raise self._error or SessionError("Recording aborted while draining")

        try:
            writer.finalize()
        except FinalizeError as e:
            self._abort(e)
            raise
        finally:
            self._samples_written = writer.samples_written

        with self._lock:
            self._writer = None
            self._queue = None
            self._worker = None
            self._state = SessionState.IDLE

        logger.info(
            "Recording complete: %s (%d samples)", self._output_path, self._samples_written
        )

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the writer thread to exit.

        Returns:
            True if no writer thread is running any more.
        """
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def _abort(self, error: RecorderError) -> None:
        """Move to ERROR and wake the writer thread to tear down."""
        with self._lock:
            if self._state not in (SessionState.RECORDING, SessionState.FINALIZING):
                return
            self._state = SessionState.ERROR
            self._error = error
            aborted = self._aborted

        aborted.set()
        logger.error("Recording aborted: %s", error)

        if self._on_error is not None:
            self._on_error(error)

    def _write_loop(
        self,
        writer: PcmSink,
        chunks: "queue.Queue[object]",
        aborted: threading.Event,
    ) -> None:
        """Append queued chunks in FIFO order until drained or aborted."""
        while not aborted.is_set():
            try:
                chunk = chunks.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue

            if chunk is _DRAIN:
                return

            try:
                writer.append(chunk)  # type: ignore[arg-type]
            except RecorderError as e:
                self._abort(e)
                break

        # Aborted: leave the placeholder header so the file reads as incomplete
        self._samples_written = writer.samples_written
        writer.abandon()
        while True:
            try:
                chunks.get_nowait()
            except queue.Empty:
                break
        self._release_capture()

    def _release_capture(self) -> None:
        with self._lock:
            capture, self._capture = self._capture, None

        if capture is None:
            return

        try:
            capture.stop()
        except RecorderError as e:
            logger.error("Error stopping capture %s: %s", capture.name, e)
