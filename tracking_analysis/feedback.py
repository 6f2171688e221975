"""Live feedback labels for displaying an AnalysisResult to the participant."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import TrackingConfig
from .frame_analyzer import AnalysisResult
from .observations import (
    POSTURE_GOOD,
    POSTURE_SLOUCHING,
    POSTURE_TOO_CLOSE,
    POSTURE_TOO_FAR,
    UNKNOWN_LABEL,
)


class AttentionLevel(Enum):
    """Attention bands on the rounded percentage."""
    EXCELLENT = "excellent"  # >= 80%
    GOOD = "good"  # >= 60%
    AVERAGE = "average"  # >= 40%
    LOW = "low"


POSTURE_GUIDANCE = {
    POSTURE_GOOD: "Your posture is excellent. Keep it up!",
    POSTURE_SLOUCHING: "Try sitting up straighter to improve your posture.",
    POSTURE_TOO_CLOSE: "You are sitting too close to the camera. Try moving back a bit.",
    POSTURE_TOO_FAR: "You are sitting too far from the camera. Try moving closer.",
}

UNKNOWN_POSTURE_GUIDANCE = "Unable to analyze your posture. Make sure you are visible in the frame."


@dataclass(frozen=True)
class LiveFeedback:
    attention_percent: int
    attention_level: AttentionLevel
    emotion_name: str
    posture_guidance: str
    needs_focus: bool
    suspicious_activity: bool


def attention_level(attention: float) -> AttentionLevel:
    percent = round(attention * 100)
    if percent >= 80:
        return AttentionLevel.EXCELLENT
    if percent >= 60:
        return AttentionLevel.GOOD
    if percent >= 40:
        return AttentionLevel.AVERAGE
    return AttentionLevel.LOW


def posture_guidance(posture: str) -> str:
    return POSTURE_GUIDANCE.get(posture, UNKNOWN_POSTURE_GUIDANCE)


def emotion_display_name(emotion_state: str) -> str:
    if emotion_state == UNKNOWN_LABEL:
        return "Analyzing..."
    return emotion_state.capitalize()


def describe(result: AnalysisResult, config: Optional[TrackingConfig] = None) -> LiveFeedback:
    """Bundle the display labels for one tick."""
    config = config or TrackingConfig()
    return LiveFeedback(
        attention_percent=round(result.attention * 100),
        attention_level=attention_level(result.attention),
        emotion_name=emotion_display_name(result.emotion_state),
        posture_guidance=posture_guidance(result.posture),
        needs_focus=result.attention < config.good_attention_threshold,
        suspicious_activity=result.suspicious_activity,
    )
