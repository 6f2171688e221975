#!/usr/bin/env python3
"""
Command-line driver for the interview tracking engine.

Runs one tracking session end to end:
1. Load configuration (engine tunables, simulation settings)
2. Open a session in the session registry
3. Feed observations tick by tick (synthetic feed or JSON-lines replay)
4. Generate the session report and print it

Usage:
    python main.py --frames 600 --seed 7
    python main.py --replay recordings/session.jsonl --json

The engine itself has no I/O; this script is a reference integration
showing the calling convention: start_tracking(), analyze() per tick,
generate_report() at teardown.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from reporting import format_report_summary
from tracking_analysis import SessionRegistry, SessionReport, TrackingConfig
from utils.config_loader import get_nested_config, load_config
from utils.observation_io import iter_observation_records
from utils.synthetic_feed import SyntheticObservationFeed

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = 'INFO', log_file: Optional[str] = None):
    """Configure root logging for command-line runs."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def build_feed(config: Dict, replay_path: Optional[str], frames: int,
               fps: float, seed: Optional[int]) -> Iterable[Tuple]:
    """Select the observation source for this run."""
    if replay_path:
        return iter_observation_records(replay_path)

    feed = SyntheticObservationFeed(
        fps=fps,
        seed=seed,
        absence_probability=get_nested_config(config, 'simulation.absence_probability', 0.05),
        fidget_probability=get_nested_config(config, 'simulation.fidget_probability', 0.01),
        posture_episode_probability=get_nested_config(
            config, 'simulation.posture_episode_probability', 0.01
        ),
    )
    return feed.take(frames)


def run_session(config: Dict, feed: Iterable[Tuple], session_id: Optional[str] = None,
                log_every: int = 50) -> SessionReport:
    """
    Drive one session over a feed and return its report.

    Args:
        config: Configuration dictionary
        feed: Iterable of (face, pose) observation pairs
        session_id: Optional session identifier
        log_every: Log a tick summary every N ticks (0 disables)

    Returns:
        SessionReport for the session
    """
    tracking_config = TrackingConfig.from_config(config)
    registry = SessionRegistry(tracking_config)
    session = registry.create(session_id)

    logger.info("=" * 60)
    logger.info(f"Session {session.session_id}: tracking")
    logger.info("=" * 60)

    for tick, (face, pose) in enumerate(feed, start=1):
        result = session.analyze(face, pose)

        if log_every and tick % log_every == 0:
            logger.info(
                f"Tick {tick}: attention={result.attention:.2f}, "
                f"emotion={result.emotion_state}, posture={result.posture}, "
                f"suspicious={result.suspicious_activity}"
            )

    return registry.close(session.session_id)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Interview tracking engine - session analysis driver',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Simulated session with default settings
  python main.py

  # Reproducible 60-second simulated session at 10 FPS
  python main.py --frames 600 --fps 10 --seed 7

  # Replay a recorded observation feed and print JSON
  python main.py --replay session.jsonl --json
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default='configs/tracking.yaml',
        help='Path to configuration YAML file (default: configs/tracking.yaml)'
    )

    parser.add_argument(
        '--replay',
        type=str,
        default=None,
        help='JSON-lines observation file to replay instead of the synthetic feed'
    )

    parser.add_argument(
        '--frames',
        type=int,
        default=None,
        help='Number of synthetic ticks to run (default: simulation.frames or 300)'
    )

    parser.add_argument(
        '--fps',
        type=float,
        default=None,
        help='Synthetic feed frame rate (default: simulation.fps or 10)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for the synthetic feed'
    )

    parser.add_argument(
        '--session-id',
        type=str,
        default=None,
        help='Session identifier (default: random)'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the report as JSON instead of text'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default='INFO',
        help='Logging level (default: INFO)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write logs to this file'
    )

    args = parser.parse_args()
    configure_logging(args.log_level, args.log_file)

    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(str(config_path))
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")
        config = {}

    if args.replay and not Path(args.replay).exists():
        logger.error(f"Replay file not found: {args.replay}")
        sys.exit(1)

    frames = args.frames if args.frames is not None else int(
        get_nested_config(config, 'simulation.frames', 300))
    fps = args.fps if args.fps is not None else float(
        get_nested_config(config, 'simulation.fps', 10.0))

    try:
        feed = build_feed(config, args.replay, frames, fps, args.seed)
        report = run_session(config, feed, session_id=args.session_id)

        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            print(format_report_summary(report))

        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Session interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Session failed: {type(e).__name__}: {e}")
        logger.exception("Full traceback:")
        sys.exit(1)


if __name__ == '__main__':
    main()
