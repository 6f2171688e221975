"""
Tracking session lifecycle.

One TrackingSession per interview owns its analyzer, history and totals,
so concurrent interviews never share state. Lifecycle:

    IDLE --start_tracking()--> TRACKING --generate_report()--> REPORTED
    REPORTED --start_tracking()--> TRACKING (all state reset)

Calling conventions outside TRACKING:
- analyze() while IDLE starts tracking implicitly
- analyze() while REPORTED resumes tracking without resetting totals
- generate_report() is read-only and may be called in any state

All public methods are serialized by a per-session lock, so ticks arriving
from several callback threads cannot interleave and a report is always a
consistent snapshot.
"""

import logging
import threading
import uuid
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from .aggregator import SessionAggregator
from .config import TrackingConfig
from .frame_analyzer import AnalysisResult, FrameAnalyzer
from .observations import FaceInput, PoseInput
from .report import ReportGenerator, SessionReport

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle states of a tracking session."""
    IDLE = "idle"
    TRACKING = "tracking"
    REPORTED = "reported"


class TrackingSession:
    """
    Single interview session.

    Usage:
        session = TrackingSession()
        session.start_tracking()
        for face, pose in feed:
            result = session.analyze(face, pose)
        report = session.generate_report()
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        config: Optional[TrackingConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.config = config or TrackingConfig()
        self.clock = clock

        self.aggregator = SessionAggregator()
        self.analyzer = FrameAnalyzer(self.config, self.aggregator)
        self.report_generator = ReportGenerator(self.aggregator, clock=clock)

        self._state = SessionState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def frame_count(self) -> int:
        return self.aggregator.frame_count

    def start_tracking(self):
        """Reset all history and totals and begin a new tracking period."""
        with self._lock:
            self._start_locked()

    def analyze(self, face: FaceInput = None, pose: PoseInput = None) -> AnalysisResult:
        """
        Analyze one tick. Never raises for malformed or absent observations.

        Args:
            face: Face observation (object or wire mapping) or None
            pose: Pose observation (object or wire mapping) or None

        Returns:
            AnalysisResult for this tick
        """
        with self._lock:
            if self._state is SessionState.IDLE:
                logger.warning(
                    f"[{self.session_id}] analyze() before start_tracking(); starting implicitly"
                )
                self._start_locked()
            elif self._state is SessionState.REPORTED:
                logger.info(f"[{self.session_id}] Resuming tracking after report")
                self._state = SessionState.TRACKING

            return self.analyzer.analyze(face, pose)

    def generate_report(self) -> SessionReport:
        """Summarize the session so far. Read-only with respect to totals."""
        with self._lock:
            report = self.report_generator.generate()
            if self._state is SessionState.TRACKING:
                self._state = SessionState.REPORTED
            return report

    def _start_locked(self):
        self.analyzer.reset()
        self.aggregator.reset(start_time=self.clock())
        self._state = SessionState.TRACKING
        logger.info(f"[{self.session_id}] Tracking started at {self.aggregator.start_time}")

    def __repr__(self) -> str:
        return (
            f"TrackingSession(id={self.session_id!r}, state={self._state.value}, "
            f"frames={self.aggregator.frame_count})"
        )


class SessionRegistry:
    """
    Sessions keyed by ID, for hosts running several interviews at once.

    Usage:
        registry = SessionRegistry(config)
        session = registry.create()
        registry.get(session.session_id).analyze(face, pose)
        report = registry.close(session.session_id)
    """

    def __init__(
        self,
        config: Optional[TrackingConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or TrackingConfig()
        self.clock = clock
        self._sessions: Dict[str, TrackingSession] = {}
        self._lock = threading.Lock()

    def create(self, session_id: Optional[str] = None, start: bool = True) -> TrackingSession:
        """
        Register a new session.

        Raises:
            KeyError: If a session with this ID already exists
        """
        session = TrackingSession(session_id, config=self.config, clock=self.clock)
        with self._lock:
            if session.session_id in self._sessions:
                raise KeyError(f"Session already exists: {session.session_id}")
            self._sessions[session.session_id] = session
        if start:
            session.start_tracking()
        logger.info(f"Registered session {session.session_id} ({len(self)} active)")
        return session

    def get(self, session_id: str) -> TrackingSession:
        """
        Raises:
            KeyError: If no such session is registered
        """
        with self._lock:
            return self._sessions[session_id]

    def close(self, session_id: str) -> SessionReport:
        """Generate the final report and drop the session."""
        with self._lock:
            session = self._sessions.pop(session_id)
        report = session.generate_report()
        logger.info(f"Closed session {session_id}")
        return report

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
