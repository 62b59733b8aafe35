"""Domain models for sessions, runs and parked approvals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PendingApproval:
    run_id: str
    thread_id: str
    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    # Agent ids from the root to the agent that issued the call.
    owner_path: tuple[str, ...]
    created_at: datetime = field(default_factory=utcnow)

    @property
    def owner_id(self) -> str:
        return self.owner_path[-1]

    def is_expired(self, ttl_seconds: float | None, now: datetime | None = None) -> bool:
        if ttl_seconds is None:
            return False
        age = (now or utcnow()) - self.created_at
        return age.total_seconds() > ttl_seconds


@dataclass
class Decision:
    pending: PendingApproval
    approved: bool
    decided_at: datetime = field(default_factory=utcnow)

    @property
    def state(self) -> str:
        return "approved" if self.approved else "declined"


@dataclass(frozen=True)
class RunHandle:
    run_id: str
    thread_id: str
    agent_id: str


@dataclass
class Session:
    thread_id: str
    selected_agent_id: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    runs: list[RunHandle] = field(default_factory=list)


@dataclass
class RunState:
    run_id: str
    thread_id: str
    pending_approvals: dict[str, PendingApproval] = field(default_factory=dict)
    decisions: dict[str, Decision] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.pending_approvals or self.decisions)
