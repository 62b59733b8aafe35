"""
Approval store backends and factory.
"""

from __future__ import annotations

from ..domain.models import Decision, PendingApproval, RunState
from ..ports import ApprovalStorePort
from ..settings import Settings


class InMemoryApprovalStore(ApprovalStorePort):
    def __init__(self) -> None:
        self._runs: dict[str, RunState] = {}

    def get_or_create(self, run_id: str, thread_id: str) -> RunState:
        state = self._runs.get(run_id)
        if state is None:
            state = RunState(run_id=run_id, thread_id=thread_id)
            self._runs[run_id] = state
        return state

    def get(self, run_id: str) -> RunState | None:
        return self._runs.get(run_id)

    def add_pending_approval(self, pending: PendingApproval) -> None:
        state = self.get_or_create(pending.run_id, pending.thread_id)
        state.pending_approvals[pending.tool_call_id] = pending

    def get_pending_approval(
        self, run_id: str, tool_call_id: str
    ) -> PendingApproval | None:
        state = self.get(run_id)
        if state is None:
            return None
        return state.pending_approvals.get(tool_call_id)

    def pop_pending_approval(
        self, run_id: str, tool_call_id: str
    ) -> PendingApproval | None:
        state = self.get(run_id)
        if state is None:
            return None
        pending = state.pending_approvals.pop(tool_call_id, None)
        self._prune(state)
        return pending

    def record_decision(self, decision: Decision) -> None:
        pending = decision.pending
        state = self.get_or_create(pending.run_id, pending.thread_id)
        state.decisions[pending.tool_call_id] = decision

    def get_decision(self, run_id: str, tool_call_id: str) -> Decision | None:
        state = self.get(run_id)
        if state is None:
            return None
        return state.decisions.get(tool_call_id)

    def pop_decision(self, run_id: str, tool_call_id: str) -> Decision | None:
        state = self.get(run_id)
        if state is None:
            return None
        decision = state.decisions.pop(tool_call_id, None)
        self._prune(state)
        return decision

    def has_pending(self, run_id: str) -> bool:
        state = self.get(run_id)
        if state is None:
            return False
        return bool(state.pending_approvals)

    def runs_for_thread(self, thread_id: str) -> list[RunState]:
        return [state for state in self._runs.values() if state.thread_id == thread_id]

    def drop_run(self, run_id: str) -> RunState | None:
        return self._runs.pop(run_id, None)

    def _prune(self, state: RunState) -> None:
        if state.is_empty():
            self._runs.pop(state.run_id, None)


def build_approval_store(settings: Settings) -> ApprovalStorePort:
    """Create the configured approval store."""
    backend = settings.approval_store_backend
    if backend == "memory":
        return InMemoryApprovalStore()

    raise RuntimeError(
        f"Unsupported approval store backend: {backend}. Only 'memory' is supported."
    )
