"""Running per-session totals behind the session report."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class SessionAggregator:
    """
    Streaming counters for one tracking session.

    Emotion and posture counts tally the *reported* (stabilized) labels,
    one entry per analyzed frame, so each breakdown sums to frame_count.

    Attributes:
        frame_count: Number of analyze() calls since the last reset
        attention_sum: Sum of reported attention over all frames
        emotion_counts: Reported emotion label -> frame count
        posture_counts: Reported posture label -> frame count
        suspicious_count: Frames on which suspicious activity was reported
        start_time: When tracking started (None before the first start)
    """
    frame_count: int = 0
    attention_sum: float = 0.0
    emotion_counts: Dict[str, int] = field(default_factory=dict)
    posture_counts: Dict[str, int] = field(default_factory=dict)
    suspicious_count: int = 0
    start_time: Optional[datetime] = None

    def reset(self, start_time: Optional[datetime] = None):
        self.frame_count = 0
        self.attention_sum = 0.0
        self.emotion_counts = {}
        self.posture_counts = {}
        self.suspicious_count = 0
        self.start_time = start_time

    def record(self, result):
        """Fold one AnalysisResult into the totals."""
        self.frame_count += 1
        self.attention_sum += result.attention
        self.emotion_counts[result.emotion_state] = self.emotion_counts.get(result.emotion_state, 0) + 1
        self.posture_counts[result.posture] = self.posture_counts.get(result.posture, 0) + 1
        if result.suspicious_activity:
            self.suspicious_count += 1

    def copy(self) -> 'SessionAggregator':
        """Independent snapshot, safe to read while the session keeps running."""
        return SessionAggregator(
            frame_count=self.frame_count,
            attention_sum=self.attention_sum,
            emotion_counts=dict(self.emotion_counts),
            posture_counts=dict(self.posture_counts),
            suspicious_count=self.suspicious_count,
            start_time=self.start_time,
        )
