"""Core recording components."""

from secure_recorder.core.frame import AudioFrame, SourceRole
from secure_recorder.core.mixer import SourceMixer
from secure_recorder.core.protocols import CaptureSource, EnvelopeUploader, PcmSink
from secure_recorder.core.resampler import StreamResampler, resample
from secure_recorder.core.session import RecordingSession, SessionState

__all__ = [
    "AudioFrame",
    "CaptureSource",
    "EnvelopeUploader",
    "PcmSink",
    "RecordingSession",
    "SessionState",
    "SourceMixer",
    "SourceRole",
    "StreamResampler",
    "resample",
]
