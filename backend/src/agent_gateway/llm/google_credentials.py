"""
Google credential setup for the Gemini API or Vertex AI.

ADK and google-genai read their backend from the environment, so this module
only translates settings and service account values into those variables.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import MutableMapping
from typing import Any, Literal

from ..logging import get_logger
from ..settings import Settings

logger = get_logger(__name__)

GenAIBackend = Literal["gemini", "vertex"]

# Keeps a temp credentials file alive for the process lifetime
_temp_credentials_file: Any = None


def configure_genai_credentials(
    settings: Settings, environ: MutableMapping[str, str] | None = None
) -> GenAIBackend | None:
    """Select the google-genai backend.

    A configured Gemini API key wins. Otherwise GOOGLE_APPLICATION_CREDENTIALS
    (a file path or an inline JSON string) selects Vertex AI. Returns ``None``
    when neither is available; model calls then fail at request time.
    """
    env = os.environ if environ is None else environ

    if settings.gemini_api_key:
        env.setdefault("GOOGLE_API_KEY", settings.gemini_api_key)
        env.setdefault("GOOGLE_GENAI_USE_VERTEXAI", "FALSE")
        logger.info("genai_backend_selected", backend="gemini")
        return "gemini"

    if not env.get("GOOGLE_APPLICATION_CREDENTIALS"):
        logger.warning("genai_credentials_missing")
        return None

    info = _load_service_account(env)
    project = info.get("project_id")
    if not project:
        raise ValueError("project_id not found in service account info.")

    env.setdefault("GOOGLE_CLOUD_PROJECT", project)
    region = env.get("GCP_REGION") or env.get("GOOGLE_CLOUD_LOCATION")
    if region:
        env.setdefault("GOOGLE_CLOUD_LOCATION", region)
    env.setdefault("GOOGLE_GENAI_USE_VERTEXAI", "TRUE")
    logger.info("genai_backend_selected", backend="vertex", project=project)
    return "vertex"


def _load_service_account(env: MutableMapping[str, str]) -> dict[str, Any]:
    global _temp_credentials_file

    value = env["GOOGLE_APPLICATION_CREDENTIALS"]
    if os.path.exists(value):
        with open(value) as handle:
            return json.load(handle)

    if value.strip().startswith("{"):
        try:
            info = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(
                "GOOGLE_APPLICATION_CREDENTIALS is not a valid JSON string."
            ) from exc
        # Google auth libraries expect a file path.
        _temp_credentials_file = tempfile.NamedTemporaryFile(
            mode="w", suffix=".json", delete=False
        )
        json.dump(info, _temp_credentials_file, ensure_ascii=False)
        _temp_credentials_file.flush()
        env["GOOGLE_APPLICATION_CREDENTIALS"] = _temp_credentials_file.name
        return info

    if value.endswith(".json"):
        raise FileNotFoundError(f"GOOGLE_APPLICATION_CREDENTIALS file not found: {value}")
    raise ValueError("GOOGLE_APPLICATION_CREDENTIALS must be a file path or JSON string.")
