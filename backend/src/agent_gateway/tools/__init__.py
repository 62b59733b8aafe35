from __future__ import annotations

from .artifact import build_artifact_tool, generate_artifact
from .vm import build_vm_tools, create_vm, delete_vm, update_vm
from .web_search import build_search_tool, make_search_web

APPROVAL_REQUIRED_TOOLS = frozenset({"create_vm", "update_vm", "delete_vm", "search_web"})

__all__ = [
    "APPROVAL_REQUIRED_TOOLS",
    "build_artifact_tool",
    "build_search_tool",
    "build_vm_tools",
    "create_vm",
    "delete_vm",
    "generate_artifact",
    "make_search_web",
    "update_vm",
]
