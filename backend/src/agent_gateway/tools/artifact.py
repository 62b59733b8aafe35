from __future__ import annotations

from typing import Any

from google.adk.tools import FunctionTool


async def generate_artifact(
    title: str, description: str, content: str, language: str | None = None
) -> dict[str, Any]:
    """
    Display code, documents, or long-form content (like essays or reports) in a
    dedicated UI container next to the chat.

    Args:
        title: The title of the artifact.
        description: A short summary of the content.
        content: The main body of the artifact (text or code).
        language: The language for highlighting (e.g. "markdown", "python", "text").
    """
    artifact: dict[str, Any] = {
        "title": title,
        "description": description,
        "content": content,
    }
    if language is not None:
        artifact["language"] = language
    return artifact


def build_artifact_tool() -> FunctionTool:
    return FunctionTool(generate_artifact)
