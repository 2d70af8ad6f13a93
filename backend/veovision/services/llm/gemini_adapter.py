"""Gemini adapter for the prompt-enhancement interface.

Wraps the google-genai client with plain-text output. Errors propagate;
stage 1 of the pipeline treats them as "skip enhancement".
"""

import logging
from typing import Optional

from google.genai import types as genai_types

from veovision.config import settings
from veovision.services.genai_client import get_genai_client
from veovision.services.llm.base import TextEnhancer

logger = logging.getLogger(__name__)


class GeminiTextEnhancer(TextEnhancer):
    """Text adapter backed by the Gemini Developer API (google-genai SDK)."""

    def __init__(
        self,
        api_key: str,
        model_id: Optional[str] = None,
        temperature: Optional[float] = None,
        client=None,
    ) -> None:
        """Initialize adapter for the given Gemini model.

        Args:
            api_key: Key used for this adapter's client.
            model_id: Gemini model identifier (defaults to settings.models.prompt_llm).
            temperature: Optional sampling temperature; model default when None.
            client: Pre-built genai client; a cached one is used when None.
        """
        self._api_key = api_key
        self._model_id = model_id or settings.models.prompt_llm
        self._temperature = temperature
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_genai_client(self._api_key)
        return self._client

    async def generate_text(self, prompt: str) -> str:
        config = None
        if self._temperature is not None:
            config = genai_types.GenerateContentConfig(temperature=self._temperature)

        logger.debug(f"Requesting prompt enhancement from {self._model_id}")
        response = await self.client.aio.models.generate_content(
            model=self._model_id,
            contents=prompt,
            config=config,
        )
        return response.text or ""
