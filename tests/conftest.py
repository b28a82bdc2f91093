"""Pytest configuration and fixtures for secure recorder tests."""

import logging
import threading
from pathlib import Path

import numpy as np
import pytest

from secure_recorder.core.frame import AudioFrame, SourceRole
from secure_recorder.writers.wav_writer import WavStreamWriter

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


class FakeCapture:
    """CaptureSource stand-in driven by the test instead of PortAudio."""

    def __init__(self, name="fake", frames_on_start=(), start_error=None):
        self.name = name
        self.frames_on_start = list(frames_on_start)
        self.start_error = start_error
        self.on_frames = None
        self.on_ended = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def started(self):
        return self.start_calls > 0

    @property
    def stopped(self):
        return self.stop_calls > 0

    def start(self, on_frames, on_ended):
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self.on_frames = on_frames
        self.on_ended = on_ended
        for frames in self.frames_on_start:
            on_frames(*frames)

    def stop(self):
        self.stop_calls += 1

    def push(self, *frames):
        self.on_frames(*frames)

    def end(self, reason="device revoked"):
        self.on_ended(reason)


class StallingWriter(WavStreamWriter):
    """Writer whose append() blocks until ``release`` is set."""

    def __init__(self, path: Path, sample_rate: int) -> None:
        super().__init__(path, sample_rate)
        self.release = threading.Event()

    def append(self, data: bytes) -> None:
        self.release.wait(timeout=10)
        super().append(data)


@pytest.fixture
def make_frame():
    """Build AudioFrames from plain lists or arrays."""

    def _make(samples, sample_rate=48000, source=SourceRole.PRIMARY):
        return AudioFrame(np.asarray(samples, dtype=np.float32), sample_rate, source)

    return _make


@pytest.fixture
def sine():
    """Generate sine waves for testing.

    Returns mono 1-D arrays, or (frames, channels) arrays when channels > 1.
    """

    def _sine(freq=440.0, duration=0.1, sample_rate=48000, amplitude=1.0, channels=1):
        t = np.arange(int(round(duration * sample_rate))) / sample_rate
        wave = (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)
        if channels == 1:
            return wave
        return np.column_stack([wave] * channels)

    return _sine


@pytest.fixture
def fake_capture():
    return FakeCapture()


@pytest.fixture
def capture_factory():
    """Build FakeCapture instances with custom behaviour."""
    return FakeCapture


@pytest.fixture
def stalling_writer():
    """Factory fixture returning (writer_factory, created_writers)."""
    created = []

    def _factory(path, sample_rate):
        writer = StallingWriter(path, sample_rate)
        created.append(writer)
        return writer

    yield _factory, created

    for writer in created:
        writer.release.set()


@pytest.fixture
def wav_path(tmp_path):
    return tmp_path / "recording.wav"
