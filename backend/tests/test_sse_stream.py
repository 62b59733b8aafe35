"""SSE framing tests."""

from agent_gateway.adapters.sse_stream import (
    ApprovalRequestEvent,
    FinishEvent,
    TextEvent,
    decode_frames,
    encode_done,
    encode_event,
)


def test_encode_event_is_one_data_frame():
    frame = encode_event(TextEvent(text="hello"))
    assert frame == 'data: {"type": "text", "text": "hello"}\n\n'


def test_encode_keeps_non_ascii_text():
    assert "こんにちは" in encode_event(TextEvent(text="こんにちは"))


def test_done_sentinel():
    assert encode_done() == "data: [DONE]\n\n"


def test_decode_frames_reads_a_full_body():
    body = (
        encode_event(
            ApprovalRequestEvent(toolCallId="c1", toolName="delete_vm", args={"name": "x"}, runId="r1")
        )
        + encode_event(FinishEvent(finishReason="approval"))
        + encode_done()
    )

    frames = decode_frames(body)

    assert frames == [
        {"type": "tool-approval", "toolCallId": "c1", "toolName": "delete_vm", "args": {"name": "x"}, "runId": "r1"},
        {"type": "finish", "finishReason": "approval"},
        "[DONE]",
    ]
