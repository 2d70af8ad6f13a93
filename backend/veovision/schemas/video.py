"""Pydantic schemas for video requests, results and session snapshots.

VideoConfig is what the form (or a launch URL) submits; GenerationResult is
what a successful pipeline run hands back to the session.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

InputMode = Literal["prompt", "structured"]


class AspectRatio(str, Enum):
    """Output framing. Values match the launch URL and the Veo wire format."""

    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


class VideoConfig(BaseModel):
    """A single video request, immutable once built."""

    model_config = ConfigDict(frozen=True)

    mode: InputMode = "prompt"
    prompt: str = Field(
        default="",
        description="Free-form description; extra details in structured mode",
    )
    topic: Optional[str] = Field(
        default=None,
        description="Subject of the video, required in structured mode",
    )
    style: Optional[str] = None
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    duration: Optional[int] = Field(
        default=None,
        description="Target length in seconds (advisory, not sent to Veo)",
    )
    enhance_prompt: bool = True

    @model_validator(mode="after")
    def check_required_text(self) -> "VideoConfig":
        if self.mode == "structured":
            if not (self.topic or "").strip():
                raise ValueError("topic is required in structured mode")
        elif not self.prompt.strip():
            raise ValueError("prompt is required in prompt mode")
        return self


class PartialVideoConfig(BaseModel):
    """Whatever a launch URL supplied. Every field is optional."""

    model_config = ConfigDict(frozen=True)

    mode: Optional[InputMode] = None
    prompt: Optional[str] = None
    topic: Optional[str] = None
    style: Optional[str] = None
    aspect_ratio: Optional[AspectRatio] = None

    @property
    def is_runnable(self) -> bool:
        """True when there is enough text to start a run unattended."""
        return bool((self.prompt or "").strip()) or bool((self.topic or "").strip())


class GenerationResult(BaseModel):
    """Outcome of one successful pipeline run."""

    model_config = ConfigDict(frozen=True)

    original_prompt: str = Field(
        description="Working prompt, including the structured-mode preamble"
    )
    enhanced_prompt: str = Field(description="Text actually sent to the video model")
    video_url: str = Field(
        description="file:// URI of the downloaded video, valid for this session only"
    )


class SessionSnapshot(BaseModel):
    """Read-only view of the session handed to subscribers."""

    model_config = ConfigDict(frozen=True)

    step: str
    error: Optional[str] = None
    result: Optional[GenerationResult] = None
    is_authenticated: bool = False
    auto_run_attempted: bool = False
    initial_config: PartialVideoConfig = PartialVideoConfig()
    progress_message: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.step in ("optimizing", "generating")
