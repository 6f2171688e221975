"""
Frame analyzer: fuses face and pose observations into one result per tick.

Per tick:
1. Attention: push the raw score, report the recency-weighted window mean
2. Emotion: push the dominant label, report it only once it reaches quorum
3. Posture: same quorum logic over the collapsed posture category
4. Movement: head stability when a face is present, else body stability
5. Suspicion: raw rule pushed into a window, surfaced once it persists

Absent observations carry the previous tick's state forward; the very
first tick falls back to neutral defaults.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .aggregator import SessionAggregator
from .config import TrackingConfig
from .history import HistoryBuffer, stabilize_label, weighted_recent_average
from .observations import (
    UNKNOWN_LABEL,
    FaceInput,
    PoseInput,
    clamp_unit,
    parse_face_observation,
    parse_pose_observation,
)
from .suspicious_activity import SuspiciousActivityDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """
    Fused assessment for a single frame.

    Attributes:
        attention: Smoothed attention (0-1)
        emotion_state: Stabilized emotion label or "unknown"
        posture: "good", "slouching", "too_close", "too_far" or "unknown"
        suspicious_activity: Debounced suspicious-activity flag
        movement_score: Latest stability score (0-1, 1 = still)
    """
    attention: float
    emotion_state: str
    posture: str
    suspicious_activity: bool
    movement_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _unit_or(value: Any, name: str, fallback: float) -> float:
    """Clamp a score to [0, 1]; unusable values keep the fallback."""
    try:
        return clamp_unit(value, name)
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning(f"Unusable {name} ignored: {e}")
        return fallback


class FrameAnalyzer:
    """
    Stateful per-session analyzer.

    Owns the four history buffers and updates the session aggregator once
    per call. Not thread-safe on its own; TrackingSession serializes calls.

    Usage:
        analyzer = FrameAnalyzer()
        result = analyzer.analyze(face_observation, pose_observation)
    """

    def __init__(
        self,
        config: Optional[TrackingConfig] = None,
        aggregator: Optional[SessionAggregator] = None
    ):
        self.config = config or TrackingConfig()
        self.aggregator = aggregator if aggregator is not None else SessionAggregator()

        window = self.config.history_length
        self.attention_history: HistoryBuffer[float] = HistoryBuffer(window)
        self.emotion_history: HistoryBuffer[str] = HistoryBuffer(window)
        self.posture_history: HistoryBuffer[str] = HistoryBuffer(window)
        self.suspicious_detector = SuspiciousActivityDetector(self.config)

        self._last_result = self.initial_result()

        logger.info(
            f"Frame analyzer initialized: window={window}, "
            f"emotion_quorum={self.config.emotion_quorum}, "
            f"posture_quorum={self.config.posture_quorum}"
        )

    @property
    def suspicious_history(self) -> HistoryBuffer:
        return self.suspicious_detector.history

    @property
    def last_result(self) -> AnalysisResult:
        return self._last_result

    def initial_result(self) -> AnalysisResult:
        """Result reported before any observation has been seen."""
        return AnalysisResult(
            attention=self.config.default_attention,
            emotion_state=UNKNOWN_LABEL,
            posture=UNKNOWN_LABEL,
            suspicious_activity=False,
            movement_score=self.config.default_movement_score,
        )

    def reset(self):
        """Drop all history; the aggregator is reset by its owner."""
        self.attention_history.clear()
        self.emotion_history.clear()
        self.posture_history.clear()
        self.suspicious_detector.reset()
        self._last_result = self.initial_result()

    def analyze(self, face: FaceInput = None, pose: PoseInput = None) -> AnalysisResult:
        """
        Analyze one tick.

        Args:
            face: FaceObservation, wire mapping, or None when absent
            pose: PoseObservation, wire mapping, or None when absent

        Returns:
            New AnalysisResult for this tick
        """
        face_obs = parse_face_observation(face)
        pose_obs = parse_pose_observation(pose)
        previous = self._last_result

        attention = previous.attention
        emotion_state = previous.emotion_state
        posture = previous.posture
        movement_score = previous.movement_score

        if face_obs is not None:
            # Records are mutable; re-clamp what was set after construction
            raw_attention = _unit_or(face_obs.attention, "attention", previous.attention)
            self.attention_history.push(raw_attention)
            attention = weighted_recent_average(self.attention_history.values())

            self.emotion_history.push(face_obs.dominant_emotion)
            emotion_state = stabilize_label(
                self.emotion_history, previous.emotion_state, self.config.emotion_quorum
            )

            movement_score = _unit_or(
                face_obs.head_movement.stability, "head_movement.stability", movement_score
            )

        if pose_obs is not None:
            self.posture_history.push(pose_obs.posture_label)
            posture = stabilize_label(
                self.posture_history, previous.posture, self.config.posture_quorum
            )

            if face_obs is None:
                movement_score = _unit_or(
                    pose_obs.movement.stability_score, "movement.stability_score", movement_score
                )

        suspicious = self.suspicious_detector.update(attention, emotion_state, face_obs)

        result = AnalysisResult(
            attention=attention,
            emotion_state=emotion_state,
            posture=posture,
            suspicious_activity=suspicious,
            movement_score=movement_score,
        )

        self.aggregator.record(result)
        self._last_result = result

        return result
