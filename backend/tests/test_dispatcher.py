"""Resume dispatcher tests: routing a late decision to the agent holding the call.

Tests cover:
    - The root or a direct sub-agent owns the parked call
    - The resumed segment carries the owner path for new approvals
    - Stale, expired and unresolvable approvals
    - The decision is applied when the resumed segment is read and settled after it
"""

from datetime import timedelta

import pytest

from agent_gateway.domain.events import TextDelta, ToolCall, ToolResult
from agent_gateway.domain.models import utcnow
from agent_gateway.errors import StaleApprovalError, UnresolvableApprovalError
from agent_gateway.gateway import ResumeDispatcher
from agent_gateway.gateway.normalizer import Origin

from .fakes import collect


@pytest.fixture
def dispatcher(registry, sessions, gate):
    return ResumeDispatcher(registry=registry, sessions=sessions, gate=gate)


def _park(gate, agent, run_id, tool_call_id, path):
    origin = Origin(thread_id="chat-1", run_id=run_id, path=path)
    gate.park(origin, ToolCall(tool_call_id, "create_vm", {"name": "vm"}, requires_approval=True))
    agent.hold(run_id, tool_call_id)


async def test_root_agent_owns_the_call(dispatcher, gate, triage):
    _park(gate, triage, "run-t", "c1", ("triage-agent",))
    triage.on_resume("c1", approved=[TextDelta("done")])

    segment = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    events = await collect(segment.events)

    assert segment.handle.agent_id == "triage-agent"
    assert [event.type for event in events] == ["text", "finish"]
    assert triage.resumed == [("run-t", "c1", True)]


async def test_sub_agent_owns_the_call(dispatcher, gate, triage, azure):
    _park(gate, azure, "run-a", "c1", ("triage-agent", "azure-agent"))
    azure.on_resume("c1", approved=[ToolResult("c1", "create_vm", {"status": "success"})])

    segment = await dispatcher.resume(
        run_id="run-a", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    events = await collect(segment.events)

    assert segment.handle.agent_id == "azure-agent"
    assert [event.type for event in events] == ["tool-call", "tool-result", "finish"]
    assert triage.resumed == []
    assert azure.resumed == [("run-a", "c1", True)]


async def test_new_approval_in_resumed_segment_keeps_owner_path(dispatcher, gate, azure):
    _park(gate, azure, "run-a", "c1", ("triage-agent", "azure-agent"))
    azure.on_resume("c1", approved=[ToolCall("c2", "delete_vm", {}, requires_approval=True)])

    segment = await dispatcher.resume(
        run_id="run-a", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    events = await collect(segment.events)

    assert events[-1].finishReason == "approval"
    assert gate.peek("run-a", "c2").owner_path == ("triage-agent", "azure-agent")


async def test_decision_is_applied_as_the_segment_is_read(dispatcher, gate, triage):
    _park(gate, triage, "run-t", "c1", ("triage-agent",))

    segment = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=False, thread_id="chat-1"
    )
    assert gate.peek("run-t", "c1") is not None
    assert triage.resumed == []

    await collect(segment.events)

    assert triage.resumed == [("run-t", "c1", False)]
    assert gate.peek("run-t", "c1") is None
    assert gate.decision("run-t", "c1") is None


async def test_unread_segment_leaves_the_call_awaiting(dispatcher, gate, triage):
    _park(gate, triage, "run-t", "c1", ("triage-agent",))
    triage.on_resume("c1", approved=[TextDelta("done")])

    abandoned = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    await abandoned.events.aclose()

    assert gate.peek("run-t", "c1") is not None
    assert triage.holds_approval("run-t", "c1")

    segment = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    events = await collect(segment.events)

    assert [event.type for event in events] == ["text", "finish"]
    assert triage.resumed == [("run-t", "c1", True)]


async def test_losing_concurrent_decision_reports_error_in_stream(dispatcher, gate, triage):
    _park(gate, triage, "run-t", "c1", ("triage-agent",))

    first = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=True, thread_id="chat-1"
    )
    second = await dispatcher.resume(
        run_id="run-t", tool_call_id="c1", approved=False, thread_id="chat-1"
    )
    await collect(first.events)
    events = await collect(second.events)

    assert [event.type for event in events] == ["error", "finish"]
    assert events[-1].finishReason == "error"
    assert triage.resumed == [("run-t", "c1", True)]


async def test_missing_entry_is_stale(dispatcher, triage):
    with pytest.raises(StaleApprovalError):
        await dispatcher.resume(
            run_id="run-t", tool_call_id="c1", approved=True, thread_id="chat-1"
        )
    assert triage.resumed == []


async def test_nobody_holding_the_call_is_unresolvable(dispatcher, gate, azure):
    _park(gate, azure, "run-a", "c1", ("triage-agent", "azure-agent"))
    azure.forget("run-a", "c1")

    with pytest.raises(UnresolvableApprovalError) as excinfo:
        await dispatcher.resume(
            run_id="run-a", tool_call_id="c1", approved=True, thread_id="chat-1"
        )

    assert excinfo.value.context["searched"] == ["triage-agent", "azure-agent", "web-agent"]
    assert gate.peek("run-a", "c1") is None


async def test_expired_approval_releases_the_owner(dispatcher, gate, azure):
    _park(gate, azure, "run-a", "c1", ("triage-agent", "azure-agent"))
    gate.peek("run-a", "c1").created_at = utcnow() - timedelta(hours=2)

    with pytest.raises(StaleApprovalError):
        await dispatcher.resume(
            run_id="run-a", tool_call_id="c1", approved=True, thread_id="chat-1"
        )

    assert not azure.holds_approval("run-a", "c1")
    assert azure.resumed == []


def test_owner_at_follows_the_owner_path(dispatcher, triage, azure):
    assert dispatcher.owner_at(("triage-agent",)) is triage
    assert dispatcher.owner_at(("triage-agent", "azure-agent")) is azure
    assert dispatcher.owner_at(("triage-agent", "missing-agent")) is None
    assert dispatcher.owner_at(("unknown-agent",)) is None


async def test_root_comes_from_the_thread_session(dispatcher, gate, sessions, essay):
    sessions.select("chat-1", "essay-agent")
    _park(gate, essay, "run-e", "c1", ("essay-agent",))

    segment = await dispatcher.resume(
        run_id="run-e", tool_call_id="c1", approved=True, thread_id="chat-1", agent_id="triage-agent"
    )
    await collect(segment.events)

    assert essay.resumed == [("run-e", "c1", True)]


def test_locate_checks_root_before_sub_agents(dispatcher, triage, azure):
    triage.hold("run-x", "c1")
    azure.hold("run-x", "c1")

    owner, path = dispatcher.locate(triage, "run-x", "c1")

    assert owner is triage
    assert path == ("triage-agent",)
