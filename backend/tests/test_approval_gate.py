"""Approval gate tests: park, decide, settle, expire, discard.

Tests cover:
    - Parking is idempotent per (run, tool call)
    - A decision consumes the pending entry exactly once
    - Expired entries count as stale; no TTL means no expiry
    - Thread teardown removes every parked approval of the thread
"""

import asyncio
from datetime import timedelta

import pytest

from agent_gateway.domain.events import ToolCall
from agent_gateway.domain.models import utcnow
from agent_gateway.errors import StaleApprovalError
from agent_gateway.gateway import ApprovalGate
from agent_gateway.gateway.normalizer import Origin
from agent_gateway.store import InMemoryApprovalStore

ORIGIN = Origin(thread_id="chat-1", run_id="run-1", path=("triage-agent", "azure-agent"))
CALL = ToolCall("c1", "create_vm", {"name": "vm"}, requires_approval=True)


def test_park_creates_pending_entry(gate):
    pending = gate.park(ORIGIN, CALL)

    assert pending.run_id == "run-1"
    assert pending.owner_id == "azure-agent"
    assert gate.peek("run-1", "c1") is pending


def test_park_twice_keeps_first_entry(gate):
    first = gate.park(ORIGIN, CALL)
    second = gate.park(ORIGIN, ToolCall("c1", "create_vm", {"name": "other"}, requires_approval=True))

    assert second is first
    assert second.args == {"name": "vm"}


def test_decide_moves_entry_to_decision(gate):
    gate.park(ORIGIN, CALL)

    decision = gate.decide("run-1", "c1", approved=True)

    assert decision.state == "approved"
    assert gate.peek("run-1", "c1") is None
    assert gate.decision("run-1", "c1") is decision


def test_second_decision_is_stale(gate):
    gate.park(ORIGIN, CALL)
    gate.decide("run-1", "c1", approved=False)

    with pytest.raises(StaleApprovalError):
        gate.decide("run-1", "c1", approved=True)


def test_settle_forgets_the_decision(gate, store):
    gate.park(ORIGIN, CALL)
    gate.decide("run-1", "c1", approved=True)

    gate.settle("run-1", "c1")

    assert gate.decision("run-1", "c1") is None
    assert store.get("run-1") is None


def test_expired_entry_is_stale(gate):
    pending = gate.park(ORIGIN, CALL)
    pending.created_at = utcnow() - timedelta(hours=2)

    assert gate.peek("run-1", "c1") is None
    with pytest.raises(StaleApprovalError):
        gate.decide("run-1", "c1", approved=True)


def test_expiry_notifies_listeners(gate):
    expired = []
    gate.on_expire(expired.append)
    pending = gate.park(ORIGIN, CALL)
    pending.created_at = utcnow() - timedelta(hours=2)

    assert gate.pending_for_thread("chat-1") == []
    assert expired == [pending]


def test_without_ttl_entries_never_expire():
    gate = ApprovalGate(InMemoryApprovalStore(), ttl_seconds=None)
    pending = gate.park(ORIGIN, CALL)
    pending.created_at = utcnow() - timedelta(days=30)

    assert gate.peek("run-1", "c1") is pending


def test_discard_thread_removes_all_parked_calls(gate):
    gate.park(ORIGIN, CALL)
    gate.park(ORIGIN, ToolCall("c2", "delete_vm", {}, requires_approval=True))
    other = Origin(thread_id="chat-2", run_id="run-2", path=("triage-agent",))
    gate.park(other, ToolCall("c3", "delete_vm", {}, requires_approval=True))

    assert len(gate.pending_for_thread("chat-1")) == 2
    assert gate.discard_thread("chat-1") == 2
    assert gate.pending_for_thread("chat-1") == []
    assert gate.peek("run-2", "c3") is not None


async def test_hold_serializes_decisions_on_one_call(gate):
    order = []

    async def worker(name):
        async with gate.hold("run-1", "c1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-in", "a-out", "b-in", "b-out"]
