"""
Chat gateway: session routing, segment start-up and approval resumption.
"""

from __future__ import annotations

from ..agents.registry import AgentRegistry
from ..domain.models import PendingApproval, RunHandle
from ..errors import InvalidRequestError
from ..logging import get_logger
from ..ports import SessionDirectoryPort
from ..store.locks import KeyedLocks
from .approval_gate import ApprovalGate
from .dispatcher import ResumeDispatcher
from .flattener import Segment, stream_segment
from .normalizer import Origin

logger = get_logger(__name__)


class ChatGateway:
    def __init__(
        self,
        *,
        registry: AgentRegistry,
        sessions: SessionDirectoryPort,
        gate: ApprovalGate,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.gate = gate
        self.run_locks = KeyedLocks()
        self.dispatcher = ResumeDispatcher(
            registry=registry,
            sessions=sessions,
            gate=gate,
            run_locks=self.run_locks,
        )

    async def open_chat(
        self, *, message: str, thread_id: str, agent_id: str | None = None
    ) -> Segment:
        if not message.strip() or not thread_id:
            raise InvalidRequestError("message and chatId are required")

        async with self.sessions.hold(thread_id):
            current = self.sessions.get(thread_id)
            selected = self.registry.resolve_id(
                agent_id,
                fallback=current.selected_agent_id if current else None,
            )
            self.sessions.select(thread_id, selected)

        agent = self.registry.get(selected)
        run = agent.stream(message, thread_id=thread_id)
        handle = RunHandle(run_id=run.run_id, thread_id=thread_id, agent_id=agent.agent_id)
        self.sessions.record_run(handle)
        logger.info("segment_started", run_id=run.run_id, agent_id=agent.agent_id)

        origin = Origin.root(thread_id=thread_id, run_id=run.run_id, agent_id=agent.agent_id)
        events = stream_segment(run, origin=origin, gate=self.gate, run_locks=self.run_locks)
        return Segment(handle=handle, events=events)

    async def approve(
        self,
        *,
        run_id: str,
        tool_call_id: str,
        approved: bool,
        thread_id: str,
        agent_id: str | None = None,
    ) -> Segment:
        if not run_id or not tool_call_id or not thread_id:
            raise InvalidRequestError("runId, toolCallId and chatId are required")
        return await self.dispatcher.resume(
            run_id=run_id,
            tool_call_id=tool_call_id,
            approved=approved,
            thread_id=thread_id,
            agent_id=agent_id,
        )

    async def close_chat(self, thread_id: str) -> int:
        async with self.sessions.hold(thread_id):
            self.sessions.remove(thread_id)
            removed = self.gate.discard_thread(thread_id)
            for agent in self.registry.walk():
                await agent.close_thread(thread_id)
        logger.info("chat_closed", thread_id=thread_id, removed_approvals=removed)
        return removed

    def pending_approvals(self, thread_id: str) -> list[PendingApproval]:
        return self.gate.pending_for_thread(thread_id)
