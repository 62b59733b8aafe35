"""HTTP API tests: chat, approval and teardown routes over SSE.

Tests cover:
    - Approval flow across a delegation: request, approve, decline
    - Stream framing: finish before [DONE], X-Run-Id header
    - Request validation (400), stale approvals (409)
    - Conversation teardown, agent listing, health
"""

from agent_gateway.adapters.sse_stream import decode_frames
from agent_gateway.domain.events import ExecutionFailed, TextDelta, ToolCall, ToolResult

from .fakes import DelegateTo

VM_ARGS = {"name": "web-server", "image": "Ubuntu", "size": "Standard_DS1_v2"}


def _events(response) -> list[dict]:
    frames = decode_frames(response.text)
    assert frames[-1] == "[DONE]"
    return frames[:-1]


def _types(events: list[dict]) -> list[str]:
    return [event["type"] for event in events]


def _script_vm_request(triage, azure):
    azure.script(
        ToolCall("call-1", "create_vm", VM_ARGS, requires_approval=True),
    ).on_resume(
        "call-1",
        approved=[
            ToolResult("call-1", "create_vm", {"status": "success", "vmId": "vm-1"}),
            TextDelta("VM web-server is ready."),
        ],
        declined=[TextDelta("Okay, I did not create it.")],
    )
    triage.script(DelegateTo(azure), TextDelta("Waiting for your approval."))


async def _open(client, message="create a vm", chat_id="chat-1", **extra):
    return await client.post("/api/chat", json={"message": message, "chatId": chat_id, **extra})


async def _approve(client, approval: dict, approved: bool, chat_id="chat-1"):
    return await client.post(
        "/api/chat/approve",
        json={
            "runId": approval["runId"],
            "toolCallId": approval["toolCallId"],
            "approved": approved,
            "chatId": chat_id,
        },
    )


# -- chat --------------------------------------------------------------------

async def test_chat_streams_text_and_finishes(client, triage):
    triage.script(TextDelta("Hello"), TextDelta(" there"))

    response = await _open(client, message="hi")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["x-run-id"] == "triage-agent-run-1"
    events = _events(response)
    assert events == [
        {"type": "text", "text": "Hello"},
        {"type": "text", "text": " there"},
        {"type": "finish", "finishReason": "stop"},
    ]


async def test_gated_call_in_sub_agent_requests_approval(client, triage, azure):
    _script_vm_request(triage, azure)

    events = _events(await _open(client))

    assert _types(events) == ["tool-approval", "text", "finish"]
    approval = events[0]
    assert approval["toolCallId"] == "call-1"
    assert approval["toolName"] == "create_vm"
    assert approval["args"] == VM_ARGS
    assert approval["runId"] == "azure-agent-run-1"
    assert events[-1]["finishReason"] == "approval"


async def test_approve_resumes_the_sub_agent(client, triage, azure):
    _script_vm_request(triage, azure)
    approval = _events(await _open(client))[0]

    response = await _approve(client, approval, approved=True)

    assert response.status_code == 200
    events = _events(response)
    assert _types(events) == ["tool-call", "tool-result", "text", "finish"]
    assert events[0] == {
        "type": "tool-call",
        "toolCallId": "call-1",
        "toolName": "create_vm",
        "args": VM_ARGS,
    }
    assert events[1]["result"] == {"status": "success", "vmId": "vm-1"}
    assert events[-1]["finishReason"] == "stop"
    assert azure.resumed == [("azure-agent-run-1", "call-1", True)]


async def test_decline_never_shows_the_tool_result(client, triage, azure):
    _script_vm_request(triage, azure)
    approval = _events(await _open(client))[0]

    events = _events(await _approve(client, approval, approved=False))

    assert _types(events) == ["text", "finish"]
    assert azure.resumed == [("azure-agent-run-1", "call-1", False)]


async def test_second_decision_is_stale(client, triage, azure):
    _script_vm_request(triage, azure)
    approval = _events(await _open(client))[0]
    await _approve(client, approval, approved=True)

    response = await _approve(client, approval, approved=True)

    assert response.status_code == 409
    assert response.json()["code"] == "stale_or_unknown_approval"
    assert len(azure.resumed) == 1


async def test_unknown_approval_is_409(client):
    response = await client.post(
        "/api/chat/approve",
        json={"runId": "nope", "toolCallId": "nope", "approved": True, "chatId": "chat-1"},
    )
    assert response.status_code == 409


async def test_failure_mid_stream_reports_error_then_finish(client, triage):
    triage.script(TextDelta("Working"), RuntimeError("model unavailable"))

    events = _events(await _open(client))

    assert _types(events) == ["text", "error", "finish"]
    assert events[1]["error"] == "model unavailable"
    assert events[2]["finishReason"] == "error"


async def test_execution_failed_event_is_an_error(client, triage):
    triage.script(ExecutionFailed("quota exceeded"))

    events = _events(await _open(client))

    assert events == [
        {"type": "error", "error": "quota exceeded"},
        {"type": "finish", "finishReason": "error"},
    ]


# -- routing -----------------------------------------------------------------

async def test_agent_id_selects_agent_for_the_thread(client, triage, essay):
    essay.script(TextDelta("An essay")).script(TextDelta("More essay"))

    await _open(client, message="write", agentId="essay-agent")
    events = _events(await _open(client, message="continue"))

    assert events[0]["text"] == "More essay"
    assert essay.messages == ["write", "continue"]
    assert triage.messages == []


async def test_unknown_agent_id_falls_back_to_default(client, triage):
    triage.script(TextDelta("Hi"))

    events = _events(await _open(client, agentId="no-such-agent"))

    assert events[0]["text"] == "Hi"


# -- validation --------------------------------------------------------------

async def test_missing_message_is_400(client, triage):
    response = await client.post("/api/chat", json={"chatId": "chat-1"})

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"
    assert triage.messages == []


async def test_blank_message_is_400(client, triage):
    response = await _open(client, message="   ")

    assert response.status_code == 400
    assert triage.messages == []


async def test_non_json_body_is_400(client):
    response = await client.post(
        "/api/chat", content=b"not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


async def test_approval_requires_boolean(client):
    response = await client.post(
        "/api/chat/approve",
        json={"runId": "r", "toolCallId": "t", "approved": "yes", "chatId": "chat-1"},
    )
    assert response.status_code == 400


async def test_approval_requires_ids(client):
    response = await client.post(
        "/api/chat/approve", json={"runId": "", "toolCallId": "t", "approved": True, "chatId": "c"}
    )
    assert response.status_code == 400


# -- teardown and metadata ---------------------------------------------------

async def test_delete_chat_discards_parked_approvals(client, triage, azure):
    _script_vm_request(triage, azure)
    approval = _events(await _open(client))[0]

    listed = await client.get("/api/chat/chat-1/approvals")
    assert [item["toolCallId"] for item in listed.json()["approvals"]] == ["call-1"]

    response = await client.delete("/api/chat/chat-1")
    assert response.status_code == 200
    assert response.json() == {"removedApprovals": 1}

    stale = await _approve(client, approval, approved=True)
    assert stale.status_code == 409
    listed = await client.get("/api/chat/chat-1/approvals")
    assert listed.json() == {"approvals": []}


async def test_list_agents(client):
    response = await client.get("/api/agents")
    assert response.json() == {
        "agents": ["triage-agent", "azure-agent", "web-agent", "essay-agent"],
        "default": "triage-agent",
    }


async def test_health(client, settings):
    response = await client.get("/health")
    assert response.json() == {"status": "ok", "model": settings.llm_model}
