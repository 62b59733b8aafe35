from .agent import AgentPort, AgentRun
from .approval_store import ApprovalStorePort, Decision, PendingApproval, RunState
from .session_directory import Session, SessionDirectoryPort

__all__ = [
    "AgentPort",
    "AgentRun",
    "ApprovalStorePort",
    "Decision",
    "PendingApproval",
    "RunState",
    "Session",
    "SessionDirectoryPort",
]
