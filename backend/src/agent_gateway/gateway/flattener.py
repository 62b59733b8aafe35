"""
Flatten one segment's raw event stream into the linear wire event stream.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from ..adapters.sse_stream import (
    ApprovalRequestEvent,
    ErrorEvent,
    FinishEvent,
    FinishReason,
    ToolCallEvent,
    ToolResultEvent,
    WireEvent,
)
from ..domain.models import Decision, RunHandle
from ..logging import get_logger
from ..ports import AgentRun
from ..store.locks import KeyedLocks
from .approval_gate import ApprovalGate
from .normalizer import Origin, normalize, unwrap

logger = get_logger(__name__)


@dataclass
class Segment:
    """A started execution segment and the wire events it will produce."""

    handle: RunHandle
    events: AsyncIterator[WireEvent]


async def flatten(
    events: AsyncIterator[object], *, origin: Origin, gate: ApprovalGate
) -> AsyncIterator[WireEvent]:
    """Yield wire events in arrival order, then exactly one ``finish``."""
    announced: set[str] = set()
    parked = 0
    emitted = 0
    failed = False

    try:
        async for raw in events:
            wire = normalize(raw, origin, gate)
            if wire is None:
                continue

            if isinstance(wire, ToolResultEvent):
                _, inner_origin = unwrap(raw, origin)
                decision = gate.decision(inner_origin.run_id, wire.toolCallId)
                if decision is not None and not decision.approved:
                    _log_dropped_result(wire, "declined")
                    continue
                if wire.toolCallId not in announced:
                    if decision is None:
                        _log_dropped_result(wire, "unannounced")
                        continue
                    announced.add(wire.toolCallId)
                    emitted += 1
                    yield _announce_decided_call(decision)

            if isinstance(wire, (ToolCallEvent, ApprovalRequestEvent)):
                announced.add(wire.toolCallId)
            if isinstance(wire, ApprovalRequestEvent):
                parked += 1
            if isinstance(wire, ErrorEvent):
                failed = True
            emitted += 1
            yield wire
    except Exception as exc:
        logger.exception("segment_failed", run_id=origin.run_id, agent_id=origin.agent_id)
        failed = True
        emitted += 1
        yield ErrorEvent(error=str(exc) or type(exc).__name__)
    finally:
        await _close(events)

    reason: FinishReason = "error" if failed else "approval" if parked else "stop"
    logger.info(
        "segment_finished",
        run_id=origin.run_id,
        agent_id=origin.agent_id,
        events=emitted,
        parked=parked,
        finish_reason=reason,
    )
    yield FinishEvent(finishReason=reason)


def _announce_decided_call(decision: Decision) -> ToolCallEvent:
    """The ``tool-call`` for an approved call whose request went out in an earlier segment."""
    pending = decision.pending
    return ToolCallEvent(
        toolCallId=pending.tool_call_id,
        toolName=pending.tool_name,
        args=pending.args,
    )


def _log_dropped_result(result: ToolResultEvent, reason: str) -> None:
    logger.debug("tool_result_dropped", tool_call_id=result.toolCallId, reason=reason)


async def stream_segment(
    run: AgentRun, *, origin: Origin, gate: ApprovalGate, run_locks: KeyedLocks
) -> AsyncIterator[WireEvent]:
    """Flatten ``run`` while holding its run lock, so segments of one run never interleave."""
    async with run_locks.hold(run.run_id):
        segment = flatten(run.events, origin=origin, gate=gate)
        try:
            async for event in segment:
                yield event
        finally:
            await segment.aclose()


async def _close(events: AsyncIterator[object]) -> None:
    aclose = getattr(events, "aclose", None)
    if aclose is not None:
        await aclose()
