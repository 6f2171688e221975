"""
Unit tests for session lifecycle, aggregation and reporting.

Tests cover:
- Idle / Tracking / Reported transitions
- Report statistics, normalization and zero-frame safety
- Read-only report generation
- Serialized concurrent ticks
- Session registry isolation
"""

import json
import threading
from datetime import datetime, timedelta

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracking_analysis.observations import (
    BodyMovement,
    FaceObservation,
    HeadMovement,
    PoseObservation,
    PostureFlags
)
from tracking_analysis.session import SessionRegistry, SessionState, TrackingSession
from utils.synthetic_feed import SyntheticObservationFeed


class FakeClock:
    """Controllable clock for duration tests."""

    def __init__(self, start: datetime):
        self.now = start

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


def make_face(attention: float = 0.8, emotion: str = "happy") -> FaceObservation:
    """Create a face observation for testing."""
    return FaceObservation(
        looking_away=False,
        abnormal_position=False,
        emotion_scores={emotion: 1.0},
        dominant_emotion=emotion,
        attention=attention,
        head_movement=HeadMovement(stability=0.9),
    )


def make_pose(slouching: bool = False) -> PoseObservation:
    """Create a pose observation for testing."""
    return PoseObservation(
        posture=PostureFlags(slouching=slouching),
        movement=BodyMovement(stability_score=0.8),
    )


class TestLifecycle:
    """Test session state transitions."""

    def test_idle_tracking_reported(self):
        """Test the normal lifecycle."""
        session = TrackingSession()
        assert session.state is SessionState.IDLE

        session.start_tracking()
        assert session.state is SessionState.TRACKING

        session.analyze(make_face(), make_pose())
        session.generate_report()
        assert session.state is SessionState.REPORTED

    def test_analyze_while_idle_starts_implicitly(self):
        """Test the first analyze() call starts tracking."""
        session = TrackingSession()
        session.analyze(make_face(), None)

        assert session.state is SessionState.TRACKING
        assert session.frame_count == 1
        assert session.aggregator.start_time is not None

    def test_analyze_after_report_resumes(self):
        """Test ticks after a report keep accumulating."""
        session = TrackingSession()
        session.start_tracking()
        session.analyze(make_face(), None)
        session.generate_report()

        session.analyze(make_face(), None)

        assert session.state is SessionState.TRACKING
        assert session.frame_count == 2

    def test_start_resets_state(self):
        """Test start_tracking() discards previous totals and history."""
        session = TrackingSession()
        session.start_tracking()
        for _ in range(10):
            session.analyze(make_face(), make_pose())
        session.generate_report()

        session.start_tracking()

        assert session.frame_count == 0
        assert len(session.analyzer.attention_history) == 0
        assert session.generate_report().total_frames == 0


class TestReport:
    """Test report statistics."""

    def test_zero_frame_report(self):
        """Test a report right after start has safe zero defaults."""
        session = TrackingSession()
        session.start_tracking()
        report = session.generate_report()

        assert report.total_frames == 0
        assert report.average_attention == 0
        assert report.emotion_breakdown == {}
        assert all(value == 0 for value in report.posture_breakdown.values())
        assert report.dominant_emotion == "neutral"
        assert report.suspicious_activity_count == 0
        assert report.duration_seconds >= 0

    def test_report_before_start(self):
        """Test a report without start_tracking() has zero duration."""
        session = TrackingSession()
        report = session.generate_report()

        assert report.duration_seconds == 0
        assert report.start_time == report.end_time
        assert session.state is SessionState.IDLE

    def test_duration(self):
        """Test duration is measured from start_tracking()."""
        clock = FakeClock(datetime(2024, 5, 1, 10, 0, 0))
        session = TrackingSession(clock=clock)
        session.start_tracking()
        clock.advance(90)

        report = session.generate_report()

        assert report.start_time == datetime(2024, 5, 1, 10, 0, 0)
        assert report.duration_seconds == pytest.approx(90.0)

    def test_average_attention(self):
        """Test average of reported attention over frames."""
        session = TrackingSession()
        session.start_tracking()
        for _ in range(4):
            session.analyze(make_face(attention=0.8), None)

        assert session.generate_report().average_attention == pytest.approx(0.8)

    def test_breakdowns(self):
        """Test fractions of reported labels, absent frames included."""
        session = TrackingSession()
        session.start_tracking()
        session.analyze(None, None)
        session.analyze(None, None)
        for _ in range(8):
            session.analyze(make_face(emotion="happy"), make_pose())

        report = session.generate_report()

        assert report.emotion_breakdown == pytest.approx({"unknown": 0.2, "happy": 0.8})
        assert report.dominant_emotion == "happy"
        assert report.posture_breakdown["good"] == pytest.approx(0.8)
        assert report.posture_breakdown["unknown"] == pytest.approx(0.2)
        assert report.posture_breakdown["slouching"] == 0

    def test_dominant_emotion_unknown(self):
        """Test "unknown" is dominant when most frames had no face."""
        session = TrackingSession()
        session.start_tracking()
        for _ in range(8):
            session.analyze(None, None)
        for _ in range(2):
            session.analyze(make_face(emotion="happy"), None)

        report = session.generate_report()

        assert report.emotion_breakdown == pytest.approx({"unknown": 0.8, "happy": 0.2})
        assert report.dominant_emotion == "unknown"

    def test_breakdowns_are_immutable(self):
        """Test report breakdowns cannot be modified by callers."""
        session = TrackingSession()
        session.start_tracking()
        session.analyze(make_face(emotion="happy"), make_pose())
        report = session.generate_report()

        with pytest.raises(TypeError):
            report.emotion_breakdown["happy"] = 0.0
        with pytest.raises(TypeError):
            report.posture_breakdown["good"] = 0.0
        assert report.emotion_breakdown["happy"] == pytest.approx(1.0)
        assert report.to_dict()["posture_breakdown"]["good"] == pytest.approx(1.0)

    def test_breakdowns_normalized(self):
        """Test breakdowns sum to one for a simulated session."""
        session = TrackingSession()
        session.start_tracking()
        for face, pose in SyntheticObservationFeed(seed=5).take(250):
            session.analyze(face, pose)

        report = session.generate_report()

        assert report.total_frames == 250
        assert sum(report.emotion_breakdown.values()) == pytest.approx(1.0)
        assert sum(report.posture_breakdown.values()) == pytest.approx(1.0)
        assert 0.0 <= report.average_attention <= 1.0

    def test_report_is_read_only(self):
        """Test repeated reports do not change the totals."""
        session = TrackingSession()
        session.start_tracking()
        for _ in range(12):
            session.analyze(make_face(attention=0.1), make_pose(slouching=True))

        first = session.generate_report()
        second = session.generate_report()

        assert session.frame_count == 12
        assert first.total_frames == second.total_frames == 12
        assert first.emotion_breakdown == second.emotion_breakdown
        assert first.suspicious_activity_count == second.suspicious_activity_count == 2

    def test_to_dict_is_json_ready(self):
        """Test the report serializes to JSON."""
        session = TrackingSession()
        session.start_tracking()
        session.analyze(make_face(), make_pose())

        payload = json.loads(json.dumps(session.generate_report().to_dict()))

        assert payload["total_frames"] == 1
        assert payload["dominant_emotion"] == "happy"
        datetime.fromisoformat(payload["start_time"])


class TestConcurrency:
    """Test serialized ticks from several threads."""

    def test_concurrent_analyze(self):
        """Test every tick is counted exactly once under contention."""
        session = TrackingSession()
        session.start_tracking()

        def worker():
            for _ in range(250):
                session.analyze(make_face(), make_pose())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        report = session.generate_report()
        assert report.total_frames == 1000
        assert len(session.analyzer.attention_history) == 30
        assert sum(report.emotion_breakdown.values()) == pytest.approx(1.0)


class TestSessionRegistry:
    """Test sessions keyed by ID."""

    def test_sessions_are_isolated(self):
        """Test ticks in one session leave another untouched."""
        registry = SessionRegistry()
        first = registry.create("interview-1")
        second = registry.create("interview-2")

        for _ in range(5):
            first.analyze(make_face(attention=0.2), None)

        assert first.frame_count == 5
        assert second.frame_count == 0
        assert second.analyze(None, None).attention == 0.5

    def test_create_starts_tracking(self):
        """Test new sessions start tracking by default."""
        registry = SessionRegistry()

        assert registry.create().state is SessionState.TRACKING
        assert registry.create(start=False).state is SessionState.IDLE

    def test_duplicate_id_rejected(self):
        """Test IDs are unique within a registry."""
        registry = SessionRegistry()
        registry.create("dup")

        with pytest.raises(KeyError):
            registry.create("dup")

    def test_close_returns_report(self):
        """Test closing reports and removes the session."""
        registry = SessionRegistry()
        session = registry.create("interview-3")
        session.analyze(make_face(), make_pose())

        report = registry.close("interview-3")

        assert report.total_frames == 1
        assert "interview-3" not in registry
        assert len(registry) == 0
        with pytest.raises(KeyError):
            registry.get("interview-3")

    def test_get(self):
        """Test lookup by ID."""
        registry = SessionRegistry()
        session = registry.create()

        assert registry.get(session.session_id) is session
        assert registry.session_ids() == [session.session_id]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
