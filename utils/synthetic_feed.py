"""
Synthetic observation feed.

Generates plausible face and pose observations tick by tick, for demos and
load tests where no perception model is running. Behaviour mimics a seated
interview participant:
- Head drifts gently around the ideal position (slow sinusoids + jitter)
- Attention follows position, head stability and a ~60s engagement cycle
- Emotion mixture drifts gradually between neutral and happy
- Occasional look-aways, fidget bursts and face dropouts
- Pose alternates between good posture and short slouch/distance episodes

All randomness comes from a seeded numpy Generator, so a given seed
reproduces the same feed.
"""

import logging
from collections import deque
from typing import Deque, Dict, Iterator, List, Optional, Tuple

import numpy as np

from tracking_analysis.observations import (
    EMOTION_LABELS,
    POSTURE_SLOUCHING,
    POSTURE_TOO_CLOSE,
    POSTURE_TOO_FAR,
    BodyMovement,
    FaceObservation,
    FramePosition,
    HeadMovement,
    PoseObservation,
    PostureFlags,
    dominant_from_scores,
)

logger = logging.getLogger(__name__)

FRAME_WIDTH = 640
FRAME_HEIGHT = 480

HEAD_MOVEMENT_SCALE = 15.0  # px of mean head displacement per frame -> zero stability
BODY_MOVEMENT_SCALE = 12.0  # px of mean shoulder displacement per frame -> zero stability
HEAD_EXCESSIVE_BELOW = 0.4
BODY_EXCESSIVE_BELOW = 0.65


class SyntheticObservationFeed:
    """
    Infinite iterator of (face, pose) observation pairs.

    Usage:
        feed = SyntheticObservationFeed(fps=10.0, seed=7)
        for face, pose in feed.take(300):
            session.analyze(face, pose)
    """

    def __init__(
        self,
        fps: float = 10.0,
        seed: Optional[int] = None,
        absence_probability: float = 0.05,
        fidget_probability: float = 0.01,
        posture_episode_probability: float = 0.01
    ):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.fps = fps
        self.absence_probability = absence_probability
        self.fidget_probability = fidget_probability
        self.posture_episode_probability = posture_episode_probability
        self.rng = np.random.default_rng(seed)

        self._tick = 0
        self._emotions: Optional[Dict[str, float]] = None
        self._head_positions: Deque[Tuple[float, float]] = deque(maxlen=30)
        self._shoulder_positions: Deque[Tuple[float, float]] = deque(maxlen=5)
        self._fidget_remaining = 0
        self._posture_episode: Optional[str] = None
        self._posture_remaining = 0

        logger.info(f"Synthetic feed initialized: fps={fps}, seed={seed}")

    def __iter__(self) -> Iterator[Tuple[Optional[FaceObservation], PoseObservation]]:
        while True:
            yield self.next_tick()

    def take(self, n_ticks: int) -> List[Tuple[Optional[FaceObservation], PoseObservation]]:
        return [self.next_tick() for _ in range(n_ticks)]

    def next_tick(self) -> Tuple[Optional[FaceObservation], PoseObservation]:
        t = self._tick / self.fps
        self._tick += 1

        face = None
        if self.rng.random() >= self.absence_probability:
            face = self._face_observation(t)

        return face, self._pose_observation()

    # ------------------------------------------------------------------
    # Face
    # ------------------------------------------------------------------

    def _face_observation(self, t: float) -> FaceObservation:
        if self._fidget_remaining == 0 and self.rng.random() < self.fidget_probability:
            self._fidget_remaining = int(self.rng.integers(10, 25))
        jitter = 12.0 if self._fidget_remaining > 0 else 1.5
        self._fidget_remaining = max(0, self._fidget_remaining - 1)

        x_offset = np.sin(t * 0.5) * 30 + self.rng.normal(0.0, jitter)
        y_offset = np.cos(t * 0.3) * 15 + self.rng.normal(0.0, jitter)
        center = (FRAME_WIDTH / 2 + x_offset, FRAME_HEIGHT / 3 + y_offset)
        self._head_positions.append(center)

        stability = _path_stability(self._head_positions, HEAD_MOVEMENT_SCALE)
        emotions = self._next_emotions(t)
        box_top = center[1] - FRAME_HEIGHT / 8

        return FaceObservation(
            looking_away=self._looking_away(t, x_offset),
            abnormal_position=box_top < 0 or box_top > FRAME_HEIGHT * 0.8,
            emotion_scores=emotions,
            dominant_emotion=dominant_from_scores(emotions),
            attention=self._attention(t, x_offset, y_offset, stability),
            head_movement=HeadMovement(
                stability=stability,
                excessive_movement=stability < HEAD_EXCESSIVE_BELOW,
            ),
        )

    def _attention(self, t: float, x_offset: float, y_offset: float, stability: float) -> float:
        engagement_cycle = (np.sin(t * 0.1) + 1) / 2
        max_distance = np.hypot(FRAME_WIDTH / 2, FRAME_HEIGHT / 2)
        position_score = 1 - (np.hypot(x_offset, y_offset) / max_distance) * 1.2

        score = 0.5 * position_score + 0.3 * stability + 0.2 * engagement_cycle
        score += self.rng.uniform(-0.025, 0.025)
        return float(np.clip(score, 0.1, 1.0))

    def _looking_away(self, t: float, x_offset: float) -> bool:
        if np.sin(t * 0.3) > 0.8 and self.rng.random() < 0.1:
            return True
        return abs(x_offset) > FRAME_WIDTH * 0.2

    def _next_emotions(self, t: float) -> Dict[str, float]:
        if self._emotions is None:
            neutral = 0.5 + self.rng.random() * 0.3
            happy = self.rng.random() * 0.3
            rest = max(0.0, 1 - neutral - happy)
            sad = rest * self.rng.random() * 0.4
            surprised = rest * self.rng.random() * 0.3
            fearful = rest * self.rng.random() * 0.1
            angry = rest * self.rng.random() * 0.1
            emotions = {
                'happy': happy,
                'sad': sad,
                'angry': angry,
                'fearful': fearful,
                'disgusted': max(0.0, rest - sad - surprised - fearful - angry),
                'surprised': surprised,
                'neutral': neutral,
            }
        else:
            cycle = (np.sin(t * 0.2) + 1) / 2
            emotions = dict(self._emotions)
            emotions['neutral'] = 0.4 + 0.3 * cycle
            emotions['happy'] = 0.5 - 0.2 * cycle
            for label in ('sad', 'angry', 'fearful', 'disgusted', 'surprised'):
                emotions[label] += self.rng.uniform(-0.03, 0.03)

        values = np.clip(np.array([emotions[label] for label in EMOTION_LABELS]), 0.0, 1.0)
        values = values / values.sum()
        self._emotions = {label: float(v) for label, v in zip(EMOTION_LABELS, values)}
        return dict(self._emotions)

    # ------------------------------------------------------------------
    # Pose
    # ------------------------------------------------------------------

    def _pose_observation(self) -> PoseObservation:
        if self._posture_remaining == 0:
            self._posture_episode = None
            if self.rng.random() < self.posture_episode_probability:
                self._posture_episode = str(self.rng.choice(
                    [POSTURE_SLOUCHING, POSTURE_TOO_CLOSE, POSTURE_TOO_FAR]
                ))
                self._posture_remaining = int(self.rng.integers(20, 60))
        else:
            self._posture_remaining -= 1

        sway = np.sin(self._tick / 30) * 5
        offset_x = self.rng.uniform(-5, 5)
        self._shoulder_positions.append((FRAME_WIDTH / 2 + offset_x, FRAME_HEIGHT * 0.4 + sway))
        stability = _path_stability(self._shoulder_positions, BODY_MOVEMENT_SCALE)

        return PoseObservation(
            posture=PostureFlags(
                slouching=self._posture_episode == POSTURE_SLOUCHING,
                too_close=self._posture_episode == POSTURE_TOO_CLOSE,
                too_far=self._posture_episode == POSTURE_TOO_FAR,
            ),
            movement=BodyMovement(
                stability_score=stability,
                excessive_movement=stability < BODY_EXCESSIVE_BELOW,
            ),
            position=FramePosition(
                centered=abs(offset_x) < FRAME_WIDTH / 5,
                visible_shoulders=bool(self.rng.random() >= 0.02),
            ),
        )


def _path_stability(positions, scale: float) -> float:
    """1 - mean per-frame displacement / scale, clipped to [0, 1]."""
    if len(positions) < 2:
        return 1.0
    points = np.asarray(positions, dtype=float)
    steps = np.hypot(*np.diff(points, axis=0).T)
    return float(np.clip(1 - steps.mean() / scale, 0.0, 1.0))
