from .approval_store import InMemoryApprovalStore, build_approval_store
from .locks import KeyedLocks
from .session_directory import InMemorySessionDirectory

__all__ = [
    "InMemoryApprovalStore",
    "InMemorySessionDirectory",
    "KeyedLocks",
    "build_approval_store",
]
