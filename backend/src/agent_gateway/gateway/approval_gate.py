"""
Approval gate: the pause/resume state machine for approval-gated tool calls.

A gated call is ``awaiting`` from the moment it is parked until a decision
arrives; the decision moves it to ``approved`` or ``declined`` and removes the
pending entry. The decision itself is kept until the resumed segment that
consumes it has finished, so a resumed stream can tell a decided call from a
newly proposed one.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from ..domain.events import ToolCall
from ..domain.models import Decision, PendingApproval
from ..errors import StaleApprovalError
from ..logging import get_logger
from ..ports import ApprovalStorePort
from ..store.locks import KeyedLocks

if TYPE_CHECKING:
    from .normalizer import Origin

logger = get_logger(__name__)


class ApprovalGate:
    def __init__(self, store: ApprovalStorePort, *, ttl_seconds: float | None = None) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._locks = KeyedLocks()
        self._expiry_listeners: list[Callable[[PendingApproval], None]] = []

    def on_expire(self, listener: Callable[[PendingApproval], None]) -> None:
        self._expiry_listeners.append(listener)

    def park(self, origin: Origin, call: ToolCall) -> PendingApproval:
        existing = self.store.get_pending_approval(origin.run_id, call.tool_call_id)
        if existing is not None:
            return existing
        pending = PendingApproval(
            run_id=origin.run_id,
            thread_id=origin.thread_id,
            tool_call_id=call.tool_call_id,
            tool_name=call.tool_name,
            args=dict(call.args) if isinstance(call.args, dict) else {},
            owner_path=origin.path,
        )
        self.store.add_pending_approval(pending)
        logger.info(
            "approval_parked",
            run_id=pending.run_id,
            tool_call_id=pending.tool_call_id,
            tool_name=pending.tool_name,
            owner_path="/".join(pending.owner_path),
        )
        return pending

    def peek(self, run_id: str, tool_call_id: str) -> PendingApproval | None:
        pending = self.store.get_pending_approval(run_id, tool_call_id)
        if pending is None:
            return None
        if pending.is_expired(self.ttl_seconds):
            self.store.pop_pending_approval(run_id, tool_call_id)
            logger.info("approval_expired", run_id=run_id, tool_call_id=tool_call_id)
            for listener in self._expiry_listeners:
                listener(pending)
            return None
        return pending

    def decide(self, run_id: str, tool_call_id: str, approved: bool) -> Decision:
        pending = self.peek(run_id, tool_call_id)
        if pending is None:
            raise StaleApprovalError(run_id, tool_call_id)
        self.store.pop_pending_approval(run_id, tool_call_id)
        decision = Decision(pending=pending, approved=approved)
        self.store.record_decision(decision)
        logger.info(
            "approval_decided",
            run_id=run_id,
            tool_call_id=tool_call_id,
            tool_name=pending.tool_name,
            state=decision.state,
        )
        return decision

    def decision(self, run_id: str, tool_call_id: str) -> Decision | None:
        return self.store.get_decision(run_id, tool_call_id)

    def settle(self, run_id: str, tool_call_id: str) -> None:
        self.store.pop_decision(run_id, tool_call_id)

    def discard(self, run_id: str, tool_call_id: str) -> PendingApproval | None:
        return self.store.pop_pending_approval(run_id, tool_call_id)

    def pending_for_thread(self, thread_id: str) -> list[PendingApproval]:
        pending: list[PendingApproval] = []
        for state in self.store.runs_for_thread(thread_id):
            for entry in list(state.pending_approvals.values()):
                if self.peek(entry.run_id, entry.tool_call_id) is not None:
                    pending.append(entry)
        return pending

    def discard_thread(self, thread_id: str) -> int:
        removed = 0
        for state in self.store.runs_for_thread(thread_id):
            removed += len(state.pending_approvals)
            self.store.drop_run(state.run_id)
        if removed:
            logger.info("approvals_discarded", thread_id=thread_id, count=removed)
        return removed

    def hold(self, run_id: str, tool_call_id: str) -> AbstractAsyncContextManager[None]:
        return self._locks.hold((run_id, tool_call_id))
