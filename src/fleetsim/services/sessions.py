"""Registry of running simulations and their cancellation flags."""

from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True)
class SimulationSession:
    session_id: str
    project_name: str
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, SimulationSession] = {}
        self._lock = threading.Lock()

    def create(self, project_name: str) -> SimulationSession:
        session_id = f"sim_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        session = SimulationSession(session_id=session_id, project_name=project_name)
        with self._lock:
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[SimulationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def cancel(self, session_id: str) -> bool:
        session = self.get(session_id)
        if session is None:
            return False
        session.cancel()
        return True

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def active(self) -> list[SimulationSession]:
        with self._lock:
            return list(self._sessions.values())


registry = SessionRegistry()
