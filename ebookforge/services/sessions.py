# ebookforge/services/sessions.py
"""
In-memory studio sessions: one current e-book per page load.
Idle sessions are swept and the store is capped at MAX_SESSIONS; nothing
survives a restart.
"""
import logging, threading, time
from collections import OrderedDict
from typing import Callable, Optional

from ebookforge import config
from ebookforge.errors import ExportBusyError, RunInProgressError
from ebookforge.models import Phase, RunState
from ebookforge.services.ai_client import EbookAI, OpenAIEbookClient
from ebookforge.services.orchestrator import MSG_PLANNING, GenerationRun

logger = logging.getLogger(__name__)

AIFactory = Callable[[Optional[str]], EbookAI]


class StudioSession:
    def __init__(self, session_id: str):
        self.id = session_id
        self.state = RunState()
        self.run: Optional[GenerationRun] = None
        self.last_seen = 0.0
        self._export_lock = threading.Lock()
        self._exporting = False

    def _on_update(self, state: RunState) -> None:
        self.state = state

    def prepare_run(self, ai: EbookAI) -> GenerationRun:
        if self.state.is_running:
            raise RunInProgressError()
        # previous e-book is dropped before the new run starts
        self.state = RunState(phase=Phase.PLANNING_STRUCTURE, message=MSG_PLANNING)
        self.run = GenerationRun(ai, on_update=self._on_update)
        return self.run

    def discard(self) -> None:
        if self.run is not None:
            self.run.cancel()
        self.run = None
        self.state = RunState()

    # ---------- export busy flag ----------
    @property
    def exporting(self) -> bool:
        return self._exporting

    def begin_export(self) -> None:
        with self._export_lock:
            if self._exporting:
                raise ExportBusyError()
            self._exporting = True

    def end_export(self) -> None:
        with self._export_lock:
            self._exporting = False


class SessionStore:
    def __init__(
        self,
        ai_factory: AIFactory = OpenAIEbookClient,
        max_sessions: Optional[int] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ai_factory = ai_factory
        self.max_sessions = max(1, max_sessions or config.MAX_SESSIONS)
        self.idle_seconds = config.SESSION_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self._clock = clock
        self._sessions: "OrderedDict[str, StudioSession]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    # ---------- eviction ----------
    def _drop(self, session_id: str, reason: str) -> None:
        session = self._sessions.pop(session_id)
        session.discard()
        logger.info("🧹 Dropped session %s (%s)", session_id, reason)

    def _sweep(self, room: int = 0) -> None:
        now = self._clock()
        for sid, session in list(self._sessions.items()):
            if not session.state.is_running and now - session.last_seen > self.idle_seconds:
                self._drop(sid, "idle")

        overflow = len(self._sessions) + room - self.max_sessions
        if overflow <= 0:
            return
        # least recently used first, running sessions only when nothing else is left
        idle = [sid for sid, s in self._sessions.items() if not s.state.is_running]
        running = [sid for sid, s in self._sessions.items() if s.state.is_running]
        for sid in (idle + running)[:overflow]:
            self._drop(sid, "capacity")

    def _touch(self, session: StudioSession) -> StudioSession:
        session.last_seen = self._clock()
        self._sessions.move_to_end(session.id)
        return session

    # ---------- access ----------
    def peek(self, session_id: str) -> Optional[StudioSession]:
        with self._lock:
            self._sweep()
            session = self._sessions.get(session_id)
            return self._touch(session) if session else None

    def get(self, session_id: str) -> StudioSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                self._sweep(room=1)
                session = self._sessions[session_id] = StudioSession(session_id)
                logger.info("🆕 Studio session %s", session_id)
            return self._touch(session)

    def discard(self, session_id: str) -> bool:
        with self._lock:
            if session_id not in self._sessions:
                return False
            self._drop(session_id, "discarded")
            return True

    def start(self, session_id: str, api_key: Optional[str] = None) -> GenerationRun:
        session = self.get(session_id)
        return session.prepare_run(self.ai_factory(api_key))
