"""Capture source implementations.

The device-backed modules (``sounddevice_source``, ``enumerator``) load
PortAudio and PulseAudio on import, so they are imported explicitly where
devices are used.
"""

from secure_recorder.sources.capture_group import CaptureGroup

__all__ = ["CaptureGroup"]
