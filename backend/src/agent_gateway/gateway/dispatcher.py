"""
Route a late approval decision to the agent instance that holds the parked call.

The client only knows the conversation's root agent, but the call may have
been issued by a sub-agent the root delegated to. Candidates are checked in a
fixed order (the root, then its direct sub-agents) and the first one that
holds the call is resumed.

Stale and unresolvable approvals are rejected before the response starts. The
decision itself is only applied once the resumed segment is consumed, so a
client that goes away before reading the body leaves the call awaiting.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from ..adapters.sse_stream import ErrorEvent, FinishEvent, WireEvent
from ..agents.registry import AgentRegistry
from ..domain.models import PendingApproval, RunHandle
from ..errors import StaleApprovalError, UnresolvableApprovalError
from ..logging import get_logger
from ..ports import AgentPort, AgentRun, SessionDirectoryPort
from ..store.locks import KeyedLocks
from .approval_gate import ApprovalGate
from .flattener import Segment, stream_segment
from .normalizer import Origin

logger = get_logger(__name__)


class ResumeDispatcher:
    def __init__(
        self,
        *,
        registry: AgentRegistry,
        sessions: SessionDirectoryPort,
        gate: ApprovalGate,
        run_locks: KeyedLocks | None = None,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.gate = gate
        self.run_locks = run_locks or KeyedLocks()
        gate.on_expire(self.release)

    async def resume(
        self,
        *,
        run_id: str,
        tool_call_id: str,
        approved: bool,
        thread_id: str,
        agent_id: str | None = None,
    ) -> Segment:
        root = await self.resolve_root(thread_id, agent_id)

        async with self.gate.hold(run_id, tool_call_id):
            if self.gate.peek(run_id, tool_call_id) is None:
                logger.warning("approval_stale", run_id=run_id, tool_call_id=tool_call_id)
                raise StaleApprovalError(run_id, tool_call_id)

            owner, path = self.locate(root, run_id, tool_call_id)
            if owner is None:
                self.gate.discard(run_id, tool_call_id)
                searched = [root.agent_id, *root.sub_agents]
                logger.error(
                    "approval_unresolvable",
                    run_id=run_id,
                    tool_call_id=tool_call_id,
                    searched=searched,
                )
                raise UnresolvableApprovalError(run_id, tool_call_id, searched)

        handle = RunHandle(run_id=run_id, thread_id=thread_id, agent_id=owner.agent_id)
        self.sessions.record_run(handle)
        origin = Origin(thread_id=thread_id, run_id=run_id, path=path)
        events = self._decide_and_stream(owner, origin, tool_call_id, approved)
        return Segment(handle=handle, events=events)

    async def resolve_root(self, thread_id: str, agent_id: str | None) -> AgentPort:
        async with self.sessions.hold(thread_id):
            session = self.sessions.get(thread_id)
            if session is not None:
                return self.registry.get(session.selected_agent_id)
            return self.registry.get(self.registry.resolve_id(agent_id))

    def locate(
        self, root: AgentPort, run_id: str, tool_call_id: str
    ) -> tuple[AgentPort | None, tuple[str, ...]]:
        candidates: list[tuple[AgentPort, tuple[str, ...]]] = [(root, (root.agent_id,))]
        candidates.extend(
            (sub_agent, (root.agent_id, sub_agent.agent_id))
            for sub_agent in root.sub_agents.values()
        )
        for candidate, path in candidates:
            if candidate.holds_approval(run_id, tool_call_id):
                return candidate, path
        return None, ()

    def owner_at(self, path: tuple[str, ...]) -> AgentPort | None:
        if not path or path[0] not in self.registry:
            return None
        agent: AgentPort | None = self.registry.get(path[0])
        for agent_id in path[1:]:
            if agent is None:
                break
            agent = agent.sub_agents.get(agent_id)
        return agent

    def release(self, pending: PendingApproval) -> None:
        """Make the owning agent forget a call that will never be decided."""
        owner = self.owner_at(pending.owner_path)
        if owner is not None and owner.release(pending.run_id, pending.tool_call_id):
            logger.info(
                "parked_call_released",
                run_id=pending.run_id,
                tool_call_id=pending.tool_call_id,
                owner_path="/".join(pending.owner_path),
            )

    async def _decide_and_stream(
        self, owner: AgentPort, origin: Origin, tool_call_id: str, approved: bool
    ) -> AsyncIterator[WireEvent]:
        run_id = origin.run_id
        try:
            async with self.gate.hold(run_id, tool_call_id):
                run = self._decide(owner, origin, tool_call_id, approved)
        except Exception as exc:
            logger.exception("resume_failed", run_id=run_id, tool_call_id=tool_call_id)
            yield ErrorEvent(error=str(exc) or type(exc).__name__)
            yield FinishEvent(finishReason="error")
            return
        if run is None:
            yield ErrorEvent(error=StaleApprovalError(run_id, tool_call_id).message)
            yield FinishEvent(finishReason="error")
            return

        logger.info(
            "segment_resumed",
            run_id=run_id,
            tool_call_id=tool_call_id,
            owner_path="/".join(origin.path),
            approved=approved,
        )
        events = stream_segment(run, origin=origin, gate=self.gate, run_locks=self.run_locks)
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()
            self.gate.settle(run_id, tool_call_id)

    def _decide(
        self, owner: AgentPort, origin: Origin, tool_call_id: str, approved: bool
    ) -> AgentRun | None:
        run_id = origin.run_id
        # Another request may have decided the call since this one was accepted.
        if self.gate.peek(run_id, tool_call_id) is None or not owner.holds_approval(
            run_id, tool_call_id
        ):
            logger.warning("approval_stale", run_id=run_id, tool_call_id=tool_call_id)
            return None

        self.gate.decide(run_id, tool_call_id, approved)
        try:
            return owner.resume(
                run_id=run_id,
                tool_call_id=tool_call_id,
                approved=approved,
                thread_id=origin.thread_id,
            )
        except Exception:
            self.gate.settle(run_id, tool_call_id)
            raise
