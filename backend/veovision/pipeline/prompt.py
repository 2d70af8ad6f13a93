"""Stage 1: working-prompt assembly and optional cinematic enhancement.

Enhancement is best-effort. Any failure or empty answer from the text
model falls back to the working prompt, and the run carries on to Veo.

Usage:
    from veovision.pipeline.prompt import prepare_prompt

    original, enhanced = await prepare_prompt(config, enhancer)
"""

import logging
from typing import Optional

from veovision.schemas.video import VideoConfig
from veovision.services.llm.base import TextEnhancer

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "Untitled"
DEFAULT_STYLE = "Cinematic"

# ---------------------------------------------------------------------------
# Instruction template
# ---------------------------------------------------------------------------

ENHANCER_INSTRUCTION = """You are an expert video prompt engineer for Google Veo.
Rewrite the following user request into a highly detailed, visual, and cinematic video generation prompt.
Focus on lighting, camera movement, texture, and mood.
Keep it under 300 words.
Output ONLY the raw prompt text, no markdown, no quotes.

User Request: "{working_prompt}"
"""


def build_working_prompt(config: VideoConfig) -> str:
    """Derive the working prompt from a request.

    Structured mode always yields
    ``Topic: <topic|Untitled>. Style: <style|Cinematic>. <prompt>``;
    prompt mode returns the prompt verbatim.
    """
    if config.mode == "structured":
        topic = config.topic or DEFAULT_TOPIC
        style = config.style or DEFAULT_STYLE
        return f"Topic: {topic}. Style: {style}. {config.prompt}"
    return config.prompt


async def enhance_prompt(working_prompt: str, enhancer: TextEnhancer) -> str:
    """Rewrite the working prompt into a cinematic description.

    Never raises: returns the working prompt unchanged if the call fails or
    the model answers with nothing but whitespace.
    """
    instruction = ENHANCER_INSTRUCTION.format(working_prompt=working_prompt)
    try:
        text: Optional[str] = await enhancer.generate_text(instruction)
    except Exception as e:
        logger.warning(f"Prompt optimization failed, using original prompt: {e}")
        return working_prompt

    enhanced = (text or "").strip()
    if not enhanced:
        logger.warning("Prompt optimization returned no text, using original prompt")
        return working_prompt

    logger.info(f"Prompt enhanced ({len(working_prompt)} -> {len(enhanced)} chars)")
    return enhanced


async def prepare_prompt(config: VideoConfig, enhancer: TextEnhancer) -> tuple[str, str]:
    """Run stage 1.

    Returns:
        (original_prompt, enhanced_prompt); both are the working prompt when
        enhancement is disabled or did not produce text.
    """
    working_prompt = build_working_prompt(config)
    if not config.enhance_prompt:
        return working_prompt, working_prompt
    return working_prompt, await enhance_prompt(working_prompt, enhancer)
