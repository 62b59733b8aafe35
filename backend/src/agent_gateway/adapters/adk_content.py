"""Build ADK message content for new user turns and confirmation replies."""

from __future__ import annotations

from google.adk.flows.llm_flows.functions import REQUEST_CONFIRMATION_FUNCTION_CALL_NAME
from google.genai import types


def build_user_content(text: str) -> types.Content:
    return types.Content(role="user", parts=[types.Part(text=text)])


def build_confirmation_response(
    confirmation_call_id: str, approved: bool
) -> types.FunctionResponse:
    return types.FunctionResponse(
        id=confirmation_call_id,
        name=REQUEST_CONFIRMATION_FUNCTION_CALL_NAME,
        response={"confirmed": approved},
    )


def build_function_response_content(
    responses: list[types.FunctionResponse],
) -> types.Content:
    parts = [types.Part(function_response=response) for response in responses]
    return types.Content(role="user", parts=parts)
