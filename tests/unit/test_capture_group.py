"""Unit tests for CaptureGroup."""

import numpy as np
import pytest

from secure_recorder.core.frame import SourceRole
from secure_recorder.exceptions import CaptureError
from secure_recorder.sources.capture_group import CaptureGroup


@pytest.fixture
def delivered():
    return []


@pytest.fixture
def ended():
    return []


def _deliver(store):
    def on_frames(*frames):
        store.append(frames)

    return on_frames


@pytest.mark.unit
class TestCaptureGroup:
    """Test cases for CaptureGroup."""

    def test_primary_only(self, capture_factory, make_frame, delivered, ended):
        primary = capture_factory("monitor")
        group = CaptureGroup(primary)
        group.start(_deliver(delivered), ended.append)

        frame = make_frame(np.zeros(4))
        primary.push(frame)

        assert delivered == [(frame,)]
        assert group.name == "monitor"

    def test_pairs_secondary_with_primary(self, capture_factory, make_frame, delivered, ended):
        primary = capture_factory("monitor")
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary)
        group.start(_deliver(delivered), ended.append)

        mic_frame = make_frame(np.ones(4), source=SourceRole.SECONDARY)
        monitor_frame = make_frame(np.zeros(4))
        secondary.push(mic_frame)
        primary.push(monitor_frame)
        primary.push(monitor_frame)

        assert delivered == [(monitor_frame, mic_frame), (monitor_frame,)]
        assert group.name == "monitor + mic"

    def test_secondary_frames_kept_in_order(self, capture_factory, make_frame, delivered, ended):
        primary = capture_factory("monitor")
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary)
        group.start(_deliver(delivered), ended.append)

        first = make_frame([0.1], source=SourceRole.SECONDARY)
        second = make_frame([0.2], source=SourceRole.SECONDARY)
        secondary.push(first)
        secondary.push(second)
        monitor_frame = make_frame([0.0])
        primary.push(monitor_frame)
        primary.push(monitor_frame)

        assert [pair[1] for pair in delivered] == [first, second]

    def test_drops_oldest_secondary_when_full(self, capture_factory, make_frame, delivered, ended):
        primary = capture_factory("monitor")
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary, buffer_size=2)
        group.start(_deliver(delivered), ended.append)

        frames = [make_frame([i / 10], source=SourceRole.SECONDARY) for i in range(3)]
        for frame in frames:
            secondary.push(frame)
        primary.push(make_frame([0.0]))

        assert group.dropped_frames == 1
        assert delivered[0][1] is frames[1]

    def test_end_is_forwarded(self, capture_factory, delivered, ended):
        primary = capture_factory("monitor")
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary)
        group.start(_deliver(delivered), ended.append)

        secondary.end("mic unplugged")
        assert ended == ["mic unplugged"]

    def test_stop_stops_both(self, capture_factory, make_frame, delivered, ended):
        primary = capture_factory("monitor")
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary)
        group.start(_deliver(delivered), ended.append)
        secondary.push(make_frame([0.5], source=SourceRole.SECONDARY))

        group.stop()
        primary.push(make_frame([0.0]))

        assert primary.stopped and secondary.stopped
        assert delivered == []

    def test_primary_failure_releases_secondary(self, capture_factory, delivered, ended):
        primary = capture_factory("monitor", start_error=CaptureError("no device"))
        secondary = capture_factory("mic")
        group = CaptureGroup(primary, secondary)

        with pytest.raises(CaptureError):
            group.start(_deliver(delivered), ended.append)
        assert secondary.stopped
