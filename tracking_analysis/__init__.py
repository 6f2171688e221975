"""
Tracking analysis engine for interview behavioral monitoring.

This package fuses per-frame face and pose observations into a stable
live assessment and a session summary:
1. Observations (face and pose records, tolerant wire parsing)
2. History buffers (bounded windows, weighted smoothing, quorum voting)
3. Frame analysis (attention, emotion, posture, movement per tick)
4. Suspicious-activity detection (raw rule + window debounce)
5. Session aggregation and reporting

Design rationale:
- Individual frames are noisy; decisions are taken over recent windows
- Labels change only when a quorum agrees, avoiding on-screen flicker
- Suspicion is surfaced only when sustained, avoiding false alarms
- All state lives in a session object; no module-level state
"""

from .config import TrackingConfig
from .observations import (
    EMOTION_LABELS,
    POSTURE_LABELS,
    UNKNOWN_LABEL,
    BodyMovement,
    FaceObservation,
    FramePosition,
    HeadMovement,
    PoseObservation,
    PostureFlags,
    parse_face_observation,
    parse_pose_observation,
)
from .history import HistoryBuffer, stabilize_label, weighted_recent_average
from .suspicious_activity import SuspiciousActivityDetector
from .aggregator import SessionAggregator
from .frame_analyzer import AnalysisResult, FrameAnalyzer
from .report import ReportGenerator, SessionReport
from .session import SessionRegistry, SessionState, TrackingSession
from .feedback import AttentionLevel, LiveFeedback, describe

__all__ = [
    'TrackingConfig',
    'EMOTION_LABELS',
    'POSTURE_LABELS',
    'UNKNOWN_LABEL',
    'BodyMovement',
    'FaceObservation',
    'FramePosition',
    'HeadMovement',
    'PoseObservation',
    'PostureFlags',
    'parse_face_observation',
    'parse_pose_observation',
    'HistoryBuffer',
    'stabilize_label',
    'weighted_recent_average',
    'SuspiciousActivityDetector',
    'SessionAggregator',
    'AnalysisResult',
    'FrameAnalyzer',
    'ReportGenerator',
    'SessionReport',
    'SessionRegistry',
    'SessionState',
    'TrackingSession',
    'AttentionLevel',
    'LiveFeedback',
    'describe',
]
