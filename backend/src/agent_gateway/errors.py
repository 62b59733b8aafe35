"""
Gateway error hierarchy.

Every error carries a machine-readable code and the HTTP status used when it is
raised before a response stream starts. Once streaming has begun, failures are
reported in-band as an ``error`` wire event instead.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    code = "gateway_error"
    http_status = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class InvalidRequestError(GatewayError):
    code = "invalid_request"
    http_status = 400


class StaleApprovalError(GatewayError):
    """A decision referenced a tool call that is not parked (anymore)."""

    code = "stale_or_unknown_approval"
    http_status = 409

    def __init__(self, run_id: str, tool_call_id: str) -> None:
        super().__init__(
            f"No pending approval for tool call {tool_call_id} in run {run_id}",
            run_id=run_id,
            tool_call_id=tool_call_id,
        )


class UnresolvableApprovalError(GatewayError):
    """No agent in the delegation tree holds the parked tool call."""

    code = "unresolvable_approval_target"
    http_status = 500

    def __init__(self, run_id: str, tool_call_id: str, searched: list[str]) -> None:
        super().__init__(
            f"No agent holds tool call {tool_call_id} in run {run_id}",
            run_id=run_id,
            tool_call_id=tool_call_id,
            searched=searched,
        )


class UnknownAgentError(GatewayError):
    code = "unknown_agent"
    http_status = 500

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id!r} is not registered", agent_id=agent_id)
