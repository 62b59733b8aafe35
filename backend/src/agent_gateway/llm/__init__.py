from .google_credentials import configure_genai_credentials

__all__ = ["configure_genai_credentials"]
