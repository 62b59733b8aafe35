"""
In-memory session directory: which agent serves each conversation thread.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager

from ..domain.models import RunHandle, Session, utcnow
from ..ports import SessionDirectoryPort
from .locks import KeyedLocks


class InMemorySessionDirectory(SessionDirectoryPort):
    def __init__(self, *, max_runs: int = 50) -> None:
        self._sessions: dict[str, Session] = {}
        # Only the latest run handles are kept per thread.
        self.max_runs = max_runs
        self._locks = KeyedLocks()

    def get(self, thread_id: str) -> Session | None:
        return self._sessions.get(thread_id)

    def select(self, thread_id: str, agent_id: str) -> Session:
        session = self._sessions.get(thread_id)
        if session is None:
            session = Session(thread_id=thread_id, selected_agent_id=agent_id)
            self._sessions[thread_id] = session
        elif session.selected_agent_id != agent_id:
            session.selected_agent_id = agent_id
            session.updated_at = utcnow()
        return session

    def record_run(self, handle: RunHandle) -> None:
        session = self._sessions.get(handle.thread_id)
        if session is None:
            session = self.select(handle.thread_id, handle.agent_id)
        session.runs.append(handle)
        del session.runs[: -self.max_runs]
        session.updated_at = utcnow()

    def remove(self, thread_id: str) -> Session | None:
        return self._sessions.pop(thread_id, None)

    def hold(self, thread_id: str) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(thread_id)

    def __len__(self) -> int:
        return len(self._sessions)
