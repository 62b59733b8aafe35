"""
Port definition for parked approval storage.
"""

from __future__ import annotations

from typing import Protocol

from ..domain.models import Decision, PendingApproval, RunState


class ApprovalStorePort(Protocol):
    def get_or_create(self, run_id: str, thread_id: str) -> RunState: ...

    def get(self, run_id: str) -> RunState | None: ...

    def add_pending_approval(self, pending: PendingApproval) -> None: ...

    def get_pending_approval(
        self, run_id: str, tool_call_id: str
    ) -> PendingApproval | None: ...

    def pop_pending_approval(
        self, run_id: str, tool_call_id: str
    ) -> PendingApproval | None: ...

    def record_decision(self, decision: Decision) -> None: ...

    def get_decision(self, run_id: str, tool_call_id: str) -> Decision | None: ...

    def pop_decision(self, run_id: str, tool_call_id: str) -> Decision | None: ...

    def has_pending(self, run_id: str) -> bool: ...

    def runs_for_thread(self, thread_id: str) -> list[RunState]: ...

    def drop_run(self, run_id: str) -> RunState | None: ...


__all__ = ["ApprovalStorePort", "Decision", "PendingApproval", "RunState"]
