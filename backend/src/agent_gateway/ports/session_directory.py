"""
Port definition for the thread to agent session directory.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from ..domain.models import RunHandle, Session


class SessionDirectoryPort(Protocol):
    def get(self, thread_id: str) -> Session | None: ...

    def select(self, thread_id: str, agent_id: str) -> Session: ...

    def record_run(self, handle: RunHandle) -> None: ...

    def remove(self, thread_id: str) -> Session | None: ...

    def hold(self, thread_id: str) -> AbstractAsyncContextManager[None]: ...


__all__ = ["Session", "SessionDirectoryPort"]
