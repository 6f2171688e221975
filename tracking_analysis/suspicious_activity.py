"""
Suspicious-activity detection.

Flags sustained, not momentary, signs that the participant is disengaged
or consulting outside help. A frame is raw-suspicious when any of:
1. Smoothed attention is below the suspicious threshold
2. The participant looks away while the reported emotion is one of the
   caught-off-guard emotions (surprised, fearful by default)
3. The face source reports excessive head movement

The raw flag is pushed into a bounded window and only surfaced once more
than ``window_fraction`` of the window is suspicious.
"""

import logging
from typing import Optional

from .config import TrackingConfig
from .history import HistoryBuffer
from .observations import FaceObservation

logger = logging.getLogger(__name__)


class SuspiciousActivityDetector:
    """
    Raw per-frame suspicion plus window debounce.

    Usage:
        detector = SuspiciousActivityDetector(TrackingConfig())
        reported = detector.update(attention, emotion_state, face)
    """

    def __init__(self, config: TrackingConfig):
        self.config = config
        self.history: HistoryBuffer[bool] = HistoryBuffer(config.history_length)
        self._reported = False

    def reset(self):
        self.history.clear()
        self._reported = False

    def is_raw_suspicious(
        self,
        attention: float,
        emotion_state: str,
        face: Optional[FaceObservation]
    ) -> bool:
        """Evaluate the per-frame rule before debouncing."""
        if attention < self.config.suspicious_attention_threshold:
            return True

        if face is None:
            return False

        if face.looking_away and emotion_state in self.config.suspicious_emotions:
            return True

        return face.head_movement.excessive_movement

    def update(
        self,
        attention: float,
        emotion_state: str,
        face: Optional[FaceObservation]
    ) -> bool:
        """
        Record this frame's raw suspicion and return the debounced flag.

        Returns:
            True once more than ``config.suspicious_frame_limit`` of the
            buffered frames are suspicious
        """
        self.history.push(self.is_raw_suspicious(attention, emotion_state, face))

        suspicious_frames = self.history.count(True)
        reported = suspicious_frames > self.config.suspicious_frame_limit

        if reported != self._reported:
            logger.debug(
                f"Suspicious activity {'raised' if reported else 'cleared'} "
                f"({suspicious_frames}/{len(self.history)} frames)"
            )
        self._reported = reported

        return reported
