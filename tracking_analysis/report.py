"""
Session report generation.

Turns the running session totals into an immutable summary:
- Average attention over all analyzed frames
- Fraction of frames per reported emotion and posture
- Dominant emotion, suspicious-frame count, timing

Every division is guarded, so a session with zero frames yields zeros
rather than an error.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .aggregator import SessionAggregator
from .observations import POSTURE_LABELS, UNKNOWN_LABEL

logger = logging.getLogger(__name__)

DEFAULT_DOMINANT_EMOTION = "neutral"

# Categories always present in the posture breakdown
POSTURE_CATEGORIES = POSTURE_LABELS + (UNKNOWN_LABEL,)


@dataclass(frozen=True)
class SessionReport:
    """
    Summary of one tracking session.

    Attributes:
        average_attention: Mean reported attention (0 when no frames)
        emotion_breakdown: Emotion label -> fraction of frames (read-only)
        dominant_emotion: Most frequently reported emotion
        posture_breakdown: Posture category -> fraction of frames (read-only)
        suspicious_activity_count: Frames with suspicious activity reported
        total_frames: Number of analyzed frames
        start_time: When tracking started
        end_time: When the report was generated
        duration_seconds: end_time - start_time, never negative
    """
    average_attention: float
    emotion_breakdown: Mapping[str, float]
    dominant_emotion: str
    posture_breakdown: Mapping[str, float]
    suspicious_activity_count: int
    total_frames: int
    start_time: datetime
    end_time: datetime
    duration_seconds: float

    def __post_init__(self):
        # Breakdowns are read-only views over private copies
        object.__setattr__(
            self, 'emotion_breakdown', MappingProxyType(dict(self.emotion_breakdown))
        )
        object.__setattr__(
            self, 'posture_breakdown', MappingProxyType(dict(self.posture_breakdown))
        )

    @property
    def suspicious_ratio(self) -> float:
        return self.suspicious_activity_count / max(1, self.total_frames)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation with ISO-8601 timestamps."""
        return {
            'average_attention': self.average_attention,
            'emotion_breakdown': dict(self.emotion_breakdown),
            'dominant_emotion': self.dominant_emotion,
            'posture_breakdown': dict(self.posture_breakdown),
            'suspicious_activity_count': self.suspicious_activity_count,
            'total_frames': self.total_frames,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'duration_seconds': self.duration_seconds,
        }


class ReportGenerator:
    """
    Read-only view over a SessionAggregator that renders SessionReports.

    Generating a report never mutates the aggregator, so it can be called
    any number of times, including before any frame was analyzed.
    """

    def __init__(
        self,
        aggregator: SessionAggregator,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.aggregator = aggregator
        self.clock = clock

    def generate(self, end_time: Optional[datetime] = None) -> SessionReport:
        """
        Build a report from the current totals.

        Args:
            end_time: Report time (defaults to the clock)

        Returns:
            SessionReport
        """
        end_time = end_time or self.clock()
        totals = self.aggregator.copy()
        frames = totals.frame_count
        denominator = max(1, frames)

        average_attention = totals.attention_sum / denominator

        emotion_breakdown = {
            label: count / denominator
            for label, count in totals.emotion_counts.items()
        }
        dominant_emotion = _dominant_emotion(totals.emotion_counts)

        posture_breakdown = {
            category: totals.posture_counts.get(category, 0) / denominator
            for category in POSTURE_CATEGORIES
        }

        if totals.start_time is None:
            start_time = end_time
            duration = 0.0
        else:
            start_time = totals.start_time
            duration = max(0.0, (end_time - start_time).total_seconds())

        report = SessionReport(
            average_attention=float(average_attention),
            emotion_breakdown=emotion_breakdown,
            dominant_emotion=dominant_emotion,
            posture_breakdown=posture_breakdown,
            suspicious_activity_count=totals.suspicious_count,
            total_frames=frames,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=duration,
        )

        logger.info(
            f"Session report: {frames} frames, attention={report.average_attention:.2f}, "
            f"dominant={dominant_emotion}, suspicious={totals.suspicious_count}"
        )

        return report


def _dominant_emotion(counts: Dict[str, int]) -> str:
    """Most frequent reported emotion; ties keep the label counted first."""
    if not counts:
        return DEFAULT_DOMINANT_EMOTION

    best_label, best_count = DEFAULT_DOMINANT_EMOTION, 0
    for label, count in counts.items():
        if count > best_count:
            best_label, best_count = label, count
    return best_label
