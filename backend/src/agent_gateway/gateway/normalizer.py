"""
Map one raw execution event to at most one wire event.

Delegated wrappers are transparent: the inner event is normalized in place and
only the origin (which agent, which run) changes. The origin path is used for
parking approvals and never reaches the wire.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..adapters.sse_stream import (
    ApprovalRequestEvent,
    ErrorEvent,
    ReasoningEvent,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
    WireEvent,
)
from ..domain.events import (
    Delegated,
    ExecutionFailed,
    ReasoningDelta,
    TextDelta,
    ToolCall,
    ToolResult,
)
from ..logging import get_logger

if TYPE_CHECKING:
    from .approval_gate import ApprovalGate

logger = get_logger(__name__)


@dataclass(frozen=True)
class Origin:
    thread_id: str
    run_id: str
    path: tuple[str, ...]

    @classmethod
    def root(cls, *, thread_id: str, run_id: str, agent_id: str) -> Origin:
        return cls(thread_id=thread_id, run_id=run_id, path=(agent_id,))

    def descend(self, agent_id: str, run_id: str) -> Origin:
        return Origin(thread_id=self.thread_id, run_id=run_id, path=(*self.path, agent_id))

    @property
    def agent_id(self) -> str:
        return self.path[-1]


def unwrap(event: Any, origin: Origin) -> tuple[Any, Origin]:
    """Return the innermost event of a delegation chain and the origin it came from."""
    while isinstance(event, Delegated):
        if not event.agent_id or not event.run_id:
            return None, origin
        origin = origin.descend(event.agent_id, event.run_id)
        event = event.event
    return event, origin


def normalize(event: Any, origin: Origin, gate: ApprovalGate) -> WireEvent | None:
    if isinstance(event, Delegated):
        inner, inner_origin = unwrap(event, origin)
        if inner is None:
            return None
        return normalize(inner, inner_origin, gate)

    if isinstance(event, TextDelta):
        if not isinstance(event.text, str) or not event.text:
            return None
        return TextEvent(text=event.text)

    if isinstance(event, ReasoningDelta):
        if not isinstance(event.text, str) or not event.text:
            return None
        return ReasoningEvent(text=event.text)

    if isinstance(event, ToolCall):
        return _normalize_tool_call(event, origin, gate)

    if isinstance(event, ToolResult):
        if not event.tool_call_id or not event.tool_name:
            return _drop(event, origin, "tool result without id or name")
        return ToolResultEvent(
            toolCallId=event.tool_call_id,
            toolName=event.tool_name,
            result=event.result,
        )

    if isinstance(event, ExecutionFailed):
        return ErrorEvent(error=event.message or "Agent execution failed")

    return _drop(event, origin, "unsupported event")


def _normalize_tool_call(
    event: ToolCall, origin: Origin, gate: ApprovalGate
) -> WireEvent | None:
    if not event.tool_call_id or not event.tool_name:
        return _drop(event, origin, "tool call without id or name")
    args = event.args if isinstance(event.args, dict) else {}

    if event.requires_approval:
        decision = gate.decision(origin.run_id, event.tool_call_id)
        if decision is None:
            pending = gate.park(origin, event)
            return ApprovalRequestEvent(
                toolCallId=pending.tool_call_id,
                toolName=pending.tool_name,
                args=pending.args,
                runId=pending.run_id,
            )
        if not decision.approved:
            return _drop(event, origin, "declined tool call")

    return ToolCallEvent(
        toolCallId=event.tool_call_id,
        toolName=event.tool_name,
        args=args,
    )


def _drop(event: Any, origin: Origin, reason: str) -> None:
    logger.debug(
        "raw_event_dropped",
        reason=reason,
        event_type=type(event).__name__,
        agent_path="/".join(origin.path),
    )
    return None
