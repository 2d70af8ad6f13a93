"""Gemini API client wrapper using google-genai SDK.

This module provides API-key scoped clients for Google Generative AI.
A fresh key selected mid-session gets its own client, so adapters built
after a reconnect never reuse the rejected credential.

Usage:
    from veovision.services.genai_client import get_genai_client

    client = get_genai_client(api_key)
"""

from pathlib import Path

from dotenv import load_dotenv
from google import genai

# Load .env for GEMINI_API_KEY / GOOGLE_API_KEY
load_dotenv(Path(__file__).resolve().parent.parent.parent.parent / ".env")

# Per-key client cache
_clients: dict[str, genai.Client] = {}


def get_genai_client(api_key: str) -> genai.Client:
    """Get or create a Gemini API client for the given key.

    Clients are cached per key so repeated calls are cheap.

    Args:
        api_key: Gemini API key selected by the user.

    Returns:
        genai.Client: Configured client instance for the Gemini Developer API
    """
    if not api_key:
        raise ValueError("An API key is required to create a Gemini client")

    if api_key not in _clients:
        _clients[api_key] = genai.Client(api_key=api_key)

    return _clients[api_key]
