"""
Web search tool backed by the Parallel search API.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from google.adk.tools import FunctionTool

from ..logging import get_logger
from ..settings import Settings

logger = get_logger(__name__)

SEARCH_BETA_HEADER = "search-extract-2025-10-10"
MAX_CHARS_PER_RESULT = 10_000


def make_search_web(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> Callable[[str], Awaitable[dict[str, Any]]]:
    async def search_web(query: str) -> dict[str, Any]:
        """
        Search the web and provide information.

        Args:
            query: The search query.
        """
        if not settings.search_api_key:
            return {"status": "error", "message": "SEARCH_API_KEY is not configured."}

        payload = {
            "objective": query,
            "search_queries": [query],
            "max_results": settings.search_max_results,
            "excerpts": {"max_chars_per_result": MAX_CHARS_PER_RESULT},
        }
        headers = {
            "x-api-key": settings.search_api_key,
            "parallel-beta": SEARCH_BETA_HEADER,
        }
        logger.info("web_search", query=query)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(30.0), transport=transport
            ) as client:
                response = await client.post(
                    settings.search_api_url, json=payload, headers=headers
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            message = (
                f"Search API error ({exc.response.status_code}): {exc.response.text[:200]}"
            )
            logger.warning("web_search_failed", query=query, error=message)
            return {"status": "error", "message": message}
        except httpx.HTTPError as exc:
            logger.warning("web_search_failed", query=query, error=str(exc))
            return {"status": "error", "message": f"Search request failed: {exc}"}

        results = data.get("results", data) if isinstance(data, dict) else data
        return {"status": "success", "results": results}

    return search_web


def build_search_tool(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> FunctionTool:
    return FunctionTool(make_search_web(settings, transport=transport), require_confirmation=True)
