"""
Tunables for the tracking analysis engine.

Defaults reproduce the reference behaviour of the interview monitor:
a 30-frame history window, a 3-frame quorum before the reported
emotion/posture may change, and a suspicious-activity flag that is only
surfaced once more than a third of the window shows suspicion.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from utils.config_loader import get_nested_config

from .observations import EMOTION_LABELS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackingConfig:
    """
    Engine configuration.

    Attributes:
        history_length: Capacity W of every history buffer
        emotion_quorum: Minimum count K before a new emotion is reported
        posture_quorum: Minimum count K before a new posture is reported
        suspicious_attention_threshold: Smoothed attention below this is suspicious
        suspicious_emotions: Emotions that are suspicious while looking away
        suspicious_window_fraction: Share of the window that must be suspicious
        good_attention_threshold: Attention at or above this counts as good
        default_attention: Attention reported before any face observation
        default_movement_score: Movement score reported before any observation
    """
    history_length: int = 30
    emotion_quorum: int = 3
    posture_quorum: int = 3
    suspicious_attention_threshold: float = 0.45
    suspicious_emotions: Tuple[str, ...] = ("surprised", "fearful")
    suspicious_window_fraction: float = 1.0 / 3.0
    good_attention_threshold: float = 0.6
    default_attention: float = 0.5
    default_movement_score: float = 0.5

    def __post_init__(self):
        if self.history_length < 1:
            raise ValueError(f"history_length must be >= 1, got {self.history_length}")
        if self.emotion_quorum < 1 or self.posture_quorum < 1:
            raise ValueError(
                f"quorums must be >= 1, got emotion={self.emotion_quorum}, "
                f"posture={self.posture_quorum}"
            )
        for name in (
            'suspicious_attention_threshold',
            'good_attention_threshold',
            'default_attention',
            'default_movement_score',
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")
        if not 0.0 < self.suspicious_window_fraction <= 1.0:
            raise ValueError(
                f"suspicious_window_fraction must lie in (0, 1], "
                f"got {self.suspicious_window_fraction}"
            )
        unknown = [e for e in self.suspicious_emotions if e not in EMOTION_LABELS]
        if unknown:
            raise ValueError(f"Unknown suspicious emotions: {unknown}")

    @property
    def suspicious_frame_limit(self) -> float:
        """Number of suspicious frames the window must exceed to be reported."""
        # Rounded so W * (1/3) compares as exactly W / 3
        return round(self.history_length * self.suspicious_window_fraction, 9)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'TrackingConfig':
        """
        Build a TrackingConfig from a loaded YAML dictionary.

        Reads the ``tracking`` section; missing keys keep their defaults.
        """
        defaults = cls()
        emotions = get_nested_config(
            config, 'tracking.suspicious.emotions', default=defaults.suspicious_emotions
        )

        tracking_config = cls(
            history_length=int(get_nested_config(
                config, 'tracking.history_length', defaults.history_length)),
            emotion_quorum=int(get_nested_config(
                config, 'tracking.emotion_quorum', defaults.emotion_quorum)),
            posture_quorum=int(get_nested_config(
                config, 'tracking.posture_quorum', defaults.posture_quorum)),
            suspicious_attention_threshold=float(get_nested_config(
                config, 'tracking.suspicious.attention_threshold',
                defaults.suspicious_attention_threshold)),
            suspicious_emotions=tuple(emotions),
            suspicious_window_fraction=float(get_nested_config(
                config, 'tracking.suspicious.window_fraction',
                defaults.suspicious_window_fraction)),
            good_attention_threshold=float(get_nested_config(
                config, 'tracking.good_attention_threshold',
                defaults.good_attention_threshold)),
            default_attention=float(get_nested_config(
                config, 'tracking.defaults.attention', defaults.default_attention)),
            default_movement_score=float(get_nested_config(
                config, 'tracking.defaults.movement_score',
                defaults.default_movement_score)),
        )

        logger.debug(f"Tracking config resolved: {tracking_config}")
        return tracking_config
