"""
Port definition for agent runtimes (root agents and delegated sub-agents).
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Protocol


@dataclass
class AgentRun:
    """One execution segment: a run id and its lazy, single-pass raw event stream."""

    run_id: str
    events: AsyncIterator[object]


class AgentPort(Protocol):
    @property
    def agent_id(self) -> str: ...

    @property
    def sub_agents(self) -> Mapping[str, AgentPort]: ...

    def stream(self, message: str, *, thread_id: str) -> AgentRun: ...

    def holds_approval(self, run_id: str, tool_call_id: str) -> bool: ...

    def resume(
        self, *, run_id: str, tool_call_id: str, approved: bool, thread_id: str
    ) -> AgentRun: ...

    def release(self, run_id: str, tool_call_id: str) -> bool:
        """Forget a parked call without resuming it. False if it was not held."""
        ...

    async def close_thread(self, thread_id: str) -> None:
        """Drop everything held for a torn-down thread."""
        ...


__all__ = ["AgentPort", "AgentRun"]
