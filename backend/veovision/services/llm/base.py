"""Abstract base class for prompt-enhancement text providers.

Defines the async interface the pipeline uses to rewrite a working prompt.
Implementations return raw text; the caller decides what an empty or failed
response means.
"""

from abc import ABC, abstractmethod


class TextEnhancer(ABC):
    """Abstract base class for text-generation adapters.

    All adapters must implement generate_text() with a consistent async
    signature returning the model's free-text answer (possibly empty).
    """

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """Generate free text from a prompt.

        Args:
            prompt: Full instruction, including the text to rewrite.

        Returns:
            The model's text response, or an empty string if it had none.
        """
        ...
