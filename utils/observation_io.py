"""
Replay of recorded observation feeds.

A replay file is JSON lines, one tick per line:

    {"face": {...} | null, "pose": {...} | null}

Unreadable lines are logged and yielded as an empty tick so the frame
count of the replay matches the recording.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple

from tracking_analysis.observations import (
    FaceObservation,
    PoseObservation,
    parse_face_observation,
    parse_pose_observation,
)

logger = logging.getLogger(__name__)

ObservationPair = Tuple[Optional[FaceObservation], Optional[PoseObservation]]


def iter_observation_records(replay_path) -> Iterator[ObservationPair]:
    """
    Yield (face, pose) observations from a JSON-lines replay file.

    Args:
        replay_path: Path to the replay file (str or Path)

    Yields:
        Tuple of parsed observations; either may be None

    Raises:
        FileNotFoundError: If the replay file doesn't exist
    """
    replay_path = Path(replay_path)
    if not replay_path.exists():
        raise FileNotFoundError(f"Replay file not found: {replay_path}")

    logger.info(f"Replaying observations from {replay_path}")

    skipped = 0
    with open(replay_path, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{replay_path.name}:{line_number}: unreadable record ({e})")
                skipped += 1
                yield None, None
                continue

            if not isinstance(record, dict):
                logger.warning(f"{replay_path.name}:{line_number}: record is not an object")
                skipped += 1
                yield None, None
                continue

            yield (
                parse_face_observation(record.get('face')),
                parse_pose_observation(record.get('pose')),
            )

    if skipped:
        logger.warning(f"Replay finished with {skipped} unreadable records")
