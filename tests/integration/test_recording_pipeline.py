"""End-to-end recording scenarios from capture frames to the WAV file on disk."""

import numpy as np
import pytest

from secure_recorder.config import AudioConfig
from secure_recorder.core.frame import SourceRole
from secure_recorder.core.session import RecordingSession, SessionState
from secure_recorder.exceptions import AlreadyRecordingError, BackpressureError
from secure_recorder.writers.wav_header import HEADER_SIZE, read_header, require_finalized

pytestmark = pytest.mark.integration


def _pcm(path):
    return np.frombuffer(path.read_bytes()[HEADER_SIZE:], dtype="<i2")


@pytest.mark.parametrize("sample_rate", [48000, 44100])
def test_two_seconds_of_silence(wav_path, make_frame, sample_rate):
    session = RecordingSession(wav_path, max_queue_depth=256)
    session.start()

    block_size = AudioConfig().block_size
    silence = np.zeros((2 * sample_rate, 2))
    for start in range(0, silence.shape[0], block_size):
        session.submit(make_frame(silence[start:start + block_size], sample_rate=sample_rate))
    session.stop()

    header = require_finalized(wav_path)
    assert header.data_length == 64000
    assert header.chunk_size == 36 + 64000
    assert header.sample_rate == 16000
    assert wav_path.stat().st_size == HEADER_SIZE + 64000
    assert not _pcm(wav_path).any()


def test_full_scale_sum_is_clipped(wav_path, make_frame, sine):
    session = RecordingSession(wav_path)
    session.start()

    wave = sine(freq=440.0, duration=1.0, sample_rate=44100, amplitude=1.0)
    for start in range(0, wave.size, 4410):
        block = wave[start:start + 4410]
        session.submit(
            make_frame(block, sample_rate=44100),
            make_frame(block, sample_rate=44100, source=SourceRole.SECONDARY),
        )
    session.stop()

    pcm = _pcm(wav_path)
    assert pcm.size == 16000
    assert pcm.max() == 32767
    assert pcm.min() == -32768

    # Where the mixed signal is well past full scale the sign must survive
    ideal = 2.0 * np.sin(2 * np.pi * 440.0 * np.arange(pcm.size) / 16000)
    assert np.all(pcm[ideal > 1.2] == 32767)
    assert np.all(pcm[ideal < -1.2] == -32768)


def test_second_start_is_rejected(wav_path, make_frame):
    session = RecordingSession(wav_path)
    session.start()

    with pytest.raises(AlreadyRecordingError):
        session.start()

    session.submit(make_frame(np.full((4800, 2), 0.5)))
    session.stop()

    assert session.state is SessionState.IDLE
    assert list(wav_path.parent.glob("*.wav")) == [wav_path]
    assert require_finalized(wav_path).sample_count == 1600


def test_stalled_writer_aborts_with_backpressure(wav_path, make_frame, stalling_writer):
    factory, created = stalling_writer
    session = RecordingSession(wav_path, max_queue_depth=2, writer_factory=factory)
    session.start()

    with pytest.raises(BackpressureError):
        for _ in range(10):
            session.submit(make_frame(np.full((4800, 2), 0.25)))

    assert session.state is SessionState.ERROR
    assert isinstance(session.error, BackpressureError)

    header = read_header(wav_path)
    assert header.chunk_size == 0
    assert header.data_length == 0
    assert not header.is_finalized

    created[0].release.set()
    assert session.join(timeout=5)
    assert not read_header(wav_path).is_finalized
