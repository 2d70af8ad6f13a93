"""Prompt-enhancement provider abstraction.

Usage:
    from veovision.services.llm import GeminiTextEnhancer, TextEnhancer

    enhancer = GeminiTextEnhancer(api_key)
    text = await enhancer.generate_text(instruction)
"""

from veovision.services.llm.base import TextEnhancer
from veovision.services.llm.gemini_adapter import GeminiTextEnhancer

__all__ = ["GeminiTextEnhancer", "TextEnhancer"]
