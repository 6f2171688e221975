"""
Per-frame observation records fed into the tracking analysis engine.

Two independent perception sources produce one observation per tick:
1. Face source: gaze direction, emotion mixture, attention, head movement
2. Pose source: posture flags, body movement, framing

The engine does not care how observations are produced (model inference,
synthetic generation, replay). Browser clients send camelCase keys
(``lookingAway``, ``emotionScores``); Python callers may use snake_case.
Both are accepted by the parsers below.

Degraded input policy:
- Numeric fields are clamped to [0, 1] on construction
- A mapping missing required sub-fields is treated as an absent observation
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)


EMOTION_LABELS = (
    "happy",
    "sad",
    "angry",
    "fearful",
    "disgusted",
    "surprised",
    "neutral",
)

UNKNOWN_LABEL = "unknown"

POSTURE_GOOD = "good"
POSTURE_SLOUCHING = "slouching"
POSTURE_TOO_CLOSE = "too_close"
POSTURE_TOO_FAR = "too_far"

POSTURE_LABELS = (
    POSTURE_GOOD,
    POSTURE_SLOUCHING,
    POSTURE_TOO_CLOSE,
    POSTURE_TOO_FAR,
)


def clamp_unit(value: float, name: str = "value") -> float:
    """Clamp a score to [0, 1], logging when the input was out of range."""
    value = float(value)
    if value != value:  # NaN
        logger.warning(f"{name} is NaN, clamping to 0.0")
        return 0.0
    if value < 0.0 or value > 1.0:
        clamped = max(0.0, min(1.0, value))
        logger.warning(f"{name}={value:.3f} outside [0, 1], clamped to {clamped:.3f}")
        return clamped
    return value


@dataclass
class HeadMovement:
    """Head stability from the face source (1.0 = perfectly still)."""
    stability: float
    excessive_movement: bool = False

    def __post_init__(self):
        self.stability = clamp_unit(self.stability, "head_movement.stability")
        self.excessive_movement = bool(self.excessive_movement)


@dataclass
class FaceObservation:
    """
    One frame of face-derived measurements.

    Attributes:
        looking_away: Gaze is directed away from the screen
        abnormal_position: Face is poorly placed in the frame
        emotion_scores: Probability per emotion label (approximately sums to 1)
        dominant_emotion: Highest-scoring emotion label
        attention: Instantaneous attention estimate (0-1)
        head_movement: Head stability and excessive-movement flag
    """
    looking_away: bool
    abnormal_position: bool
    emotion_scores: Dict[str, float]
    dominant_emotion: str
    attention: float
    head_movement: HeadMovement

    def __post_init__(self):
        self.looking_away = bool(self.looking_away)
        self.abnormal_position = bool(self.abnormal_position)
        self.attention = clamp_unit(self.attention, "attention")
        self.emotion_scores = {
            label: clamp_unit(score, f"emotion_scores.{label}")
            for label, score in self.emotion_scores.items()
            if label in EMOTION_LABELS
        }
        if self.dominant_emotion not in EMOTION_LABELS:
            raise ValueError(f"Unknown dominant emotion: {self.dominant_emotion!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FaceObservation':
        """
        Strictly build a FaceObservation from a wire mapping.

        Accepts the browser layout, where the looking-away flags may be
        nested under ``position`` and emotions under ``emotions``
        (``{"dominant": ..., <label>: score}``), as well as the flat layout.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Face observation must be a mapping, got {type(data).__name__}")

        position = data.get('position') if isinstance(data.get('position'), Mapping) else {}

        looking_away = _pick(data, 'looking_away', 'lookingAway', fallback=position)
        abnormal_position = _pick(
            data, 'abnormal_position', 'abnormalPosition', fallback=position, default=False
        )

        emotions = data.get('emotions') if isinstance(data.get('emotions'), Mapping) else {}
        scores = _pick(data, 'emotion_scores', 'emotionScores', default=None)
        if scores is None:
            scores = {k: v for k, v in emotions.items() if k in EMOTION_LABELS}
        if not isinstance(scores, Mapping):
            raise ValueError("emotion_scores must be a mapping")
        scores = {str(k): float(v) for k, v in scores.items()}

        dominant = _pick(data, 'dominant_emotion', 'dominantEmotion', default=None)
        if dominant is None:
            dominant = emotions.get('dominant')
        if dominant is not None and dominant not in EMOTION_LABELS:
            logger.warning(f"Unknown dominant emotion {dominant!r}, deriving from scores")
            dominant = None
        if dominant is None:
            dominant = dominant_from_scores(scores)
        if dominant is None:
            raise ValueError("dominant_emotion missing and emotion_scores empty")

        head = _pick(data, 'head_movement', 'headMovement')
        if not isinstance(head, Mapping):
            raise ValueError("head_movement must be a mapping")
        head_movement = HeadMovement(
            stability=float(_pick(head, 'stability')),
            excessive_movement=bool(
                _pick(head, 'excessive_movement', 'excessiveMovement', default=False)
            ),
        )

        return cls(
            looking_away=bool(looking_away),
            abnormal_position=bool(abnormal_position),
            emotion_scores=scores,
            dominant_emotion=str(dominant),
            attention=float(_pick(data, 'attention')),
            head_movement=head_movement,
        )


@dataclass
class PostureFlags:
    """Posture flags; at most one category is reported, slouching first."""
    slouching: bool = False
    too_close: bool = False
    too_far: bool = False

    def category(self) -> str:
        """Collapse the flags into a single posture label."""
        if self.slouching:
            return POSTURE_SLOUCHING
        if self.too_close:
            return POSTURE_TOO_CLOSE
        if self.too_far:
            return POSTURE_TOO_FAR
        return POSTURE_GOOD


@dataclass
class BodyMovement:
    """Upper-body stability from the pose source (1.0 = perfectly still)."""
    stability_score: float
    excessive_movement: bool = False

    def __post_init__(self):
        self.stability_score = clamp_unit(self.stability_score, "movement.stability_score")
        self.excessive_movement = bool(self.excessive_movement)


@dataclass
class FramePosition:
    """Framing of the participant in the camera view."""
    centered: bool = True
    visible_shoulders: bool = True


@dataclass
class PoseObservation:
    """
    One frame of pose-derived measurements.

    Attributes:
        posture: Slouching / distance flags
        movement: Body stability and excessive-movement flag
        position: Framing flags
    """
    posture: PostureFlags
    movement: BodyMovement
    position: FramePosition = field(default_factory=FramePosition)

    @property
    def posture_label(self) -> str:
        return self.posture.category()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PoseObservation':
        """
        Strictly build a PoseObservation from a wire mapping.

        ``posture`` and ``movement`` are required; ``position`` is optional.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Pose observation must be a mapping, got {type(data).__name__}")

        posture = data.get('posture')
        movement = data.get('movement')
        if not isinstance(posture, Mapping):
            raise ValueError("posture must be a mapping")
        if not isinstance(movement, Mapping):
            raise ValueError("movement must be a mapping")

        position = data.get('position')
        if position is None:
            position = {}
        if not isinstance(position, Mapping):
            raise ValueError("position must be a mapping")

        return cls(
            posture=PostureFlags(
                slouching=bool(posture.get('slouching', False)),
                too_close=bool(_pick(posture, 'too_close', 'tooClose', default=False)),
                too_far=bool(_pick(posture, 'too_far', 'tooFar', default=False)),
            ),
            movement=BodyMovement(
                stability_score=float(_pick(movement, 'stability_score', 'stabilityScore')),
                excessive_movement=bool(
                    _pick(movement, 'excessive_movement', 'excessiveMovement', default=False)
                ),
            ),
            position=FramePosition(
                centered=bool(position.get('centered', True)),
                visible_shoulders=bool(
                    _pick(position, 'visible_shoulders', 'visibleShoulders', default=True)
                ),
            ),
        )


FaceInput = Union[FaceObservation, Mapping[str, Any], None]
PoseInput = Union[PoseObservation, Mapping[str, Any], None]


def parse_face_observation(data: FaceInput) -> Optional[FaceObservation]:
    """
    Coerce a face input into an observation, or None when absent/malformed.

    Never raises: a malformed mapping is logged and treated as absent so the
    monitoring loop keeps running.
    """
    if data is None or isinstance(data, FaceObservation):
        return data
    try:
        return FaceObservation.from_dict(data)
    except (ValueError, TypeError, KeyError, OverflowError) as e:
        logger.warning(f"Malformed face observation treated as absent: {e}")
        return None


def parse_pose_observation(data: PoseInput) -> Optional[PoseObservation]:
    """Pose counterpart of parse_face_observation."""
    if data is None or isinstance(data, PoseObservation):
        return data
    try:
        return PoseObservation.from_dict(data)
    except (ValueError, TypeError, KeyError, OverflowError) as e:
        logger.warning(f"Malformed pose observation treated as absent: {e}")
        return None


def dominant_from_scores(scores: Mapping[str, float]) -> Optional[str]:
    """Highest-scoring known emotion; ties go to the earlier canonical label."""
    best_label = None
    best_score = None
    for label in EMOTION_LABELS:
        if label not in scores:
            continue
        score = float(scores[label])
        if best_score is None or score > best_score:
            best_label = label
            best_score = score
    return best_label


_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, fallback: Mapping[str, Any] = None,
          default: Any = _MISSING) -> Any:
    """Return the first present key from data (then fallback), else default."""
    for source in (data, fallback or {}):
        for key in keys:
            if key in source and source[key] is not None:
                return source[key]
    if default is _MISSING:
        raise KeyError(f"missing field {keys[0]!r}")
    return default
