"""
Unit tests for observation sources.

Tests cover:
- Synthetic feed determinism and value ranges
- JSON-lines replay, including unreadable records
"""

import json

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracking_analysis.observations import EMOTION_LABELS, FaceObservation, PoseObservation
from utils.observation_io import iter_observation_records
from utils.synthetic_feed import SyntheticObservationFeed


class TestSyntheticFeed:
    """Test synthetic observation generation."""

    def test_same_seed_same_feed(self):
        """Test a seed reproduces the feed."""
        first = SyntheticObservationFeed(seed=7).take(50)
        second = SyntheticObservationFeed(seed=7).take(50)

        assert first == second

    def test_value_ranges(self):
        """Test generated observations are well-formed."""
        for face, pose in SyntheticObservationFeed(seed=1).take(300):
            assert isinstance(pose, PoseObservation)
            assert 0.0 <= pose.movement.stability_score <= 1.0
            if face is None:
                continue
            assert isinstance(face, FaceObservation)
            assert 0.1 <= face.attention <= 1.0
            assert 0.0 <= face.head_movement.stability <= 1.0
            assert face.dominant_emotion in EMOTION_LABELS
            assert sum(face.emotion_scores.values()) == pytest.approx(1.0)
            assert face.head_movement.excessive_movement == (face.head_movement.stability < 0.4)

    def test_absence_probability(self):
        """Test face dropouts follow the configured probability."""
        always_absent = SyntheticObservationFeed(seed=2, absence_probability=1.0).take(20)
        never_absent = SyntheticObservationFeed(seed=2, absence_probability=0.0).take(20)

        assert all(face is None for face, _ in always_absent)
        assert all(face is not None for face, _ in never_absent)

    def test_iterates(self):
        """Test the feed is an infinite iterator."""
        feed = iter(SyntheticObservationFeed(seed=3))
        pairs = [next(feed) for _ in range(5)]

        assert len(pairs) == 5

    def test_invalid_fps(self):
        """Test a non-positive frame rate is rejected."""
        with pytest.raises(ValueError):
            SyntheticObservationFeed(fps=0)


class TestObservationReplay:
    """Test JSON-lines replay."""

    def test_replay(self, tmp_path):
        """Test valid, empty and unreadable records."""
        face = {
            'position': {'lookingAway': True, 'abnormalPosition': False},
            'emotions': {'fearful': 0.6, 'neutral': 0.4, 'dominant': 'fearful'},
            'attention': 0.35,
            'headMovement': {'stability': 0.5, 'excessiveMovement': False},
        }
        pose = {
            'posture': {'slouching': True, 'tooClose': False, 'tooFar': False},
            'movement': {'excessiveMovement': False, 'stabilityScore': 0.7},
        }
        lines = [
            json.dumps({'face': face, 'pose': pose}),
            json.dumps({'face': None, 'pose': pose}),
            "",
            "{not json",
            json.dumps([1, 2, 3]),
            json.dumps({'face': {'attention': 0.9}, 'pose': None}),
        ]
        path = tmp_path / "session.jsonl"
        path.write_text("\n".join(lines) + "\n")

        records = list(iter_observation_records(path))

        assert len(records) == 5
        assert records[0][0].dominant_emotion == 'fearful'
        assert records[0][1].posture_label == 'slouching'
        assert records[1][0] is None
        assert records[2] == (None, None)
        assert records[3] == (None, None)
        assert records[4] == (None, None)

    def test_missing_file(self, tmp_path):
        """Test a missing replay file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            list(iter_observation_records(tmp_path / "missing.jsonl"))


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
