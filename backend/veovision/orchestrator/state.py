"""State machine constants and transition logic for the generation session.

Defines the session states, the allowed transitions between them, and the
pure auto-run decision used when a launch URL pre-fills the request.
"""

from typing import Dict, Optional, Set

from veovision.config import DefaultsConfig, settings
from veovision.schemas.video import PartialVideoConfig, VideoConfig

IDLE = "idle"
OPTIMIZING = "optimizing"
GENERATING = "generating"
COMPLETE = "complete"
ERROR = "error"

# Session states in execution order
SESSION_STATES = {
    IDLE: "Waiting for a request",
    OPTIMIZING: "Assembling and enhancing the prompt",
    GENERATING: "Veo job submitted, polling and downloading",
    COMPLETE: "Video ready",
    ERROR: "Last run failed",
}

# Allowed transitions; resets go back to idle, new runs start at optimizing
STEP_TRANSITIONS: Dict[str, Set[str]] = {
    IDLE: {OPTIMIZING},
    OPTIMIZING: {GENERATING, COMPLETE, ERROR},
    GENERATING: {COMPLETE, ERROR},
    COMPLETE: {IDLE, OPTIMIZING},
    ERROR: {IDLE, OPTIMIZING},
}

# States in which a run is in flight
RUNNING_STATES = {OPTIMIZING, GENERATING}


def can_transition(current: str, target: str) -> bool:
    """Check if the session may move from current to target.

    Args:
        current: Current session step
        target: Requested next step

    Returns:
        True if the transition is allowed, False otherwise
    """
    return target in STEP_TRANSITIONS.get(current, set())


def is_running(step: str) -> bool:
    """Return True while a pipeline run is outstanding."""
    return step in RUNNING_STATES


def should_auto_run(
    initial_config: PartialVideoConfig,
    is_authenticated: bool,
    auto_run_attempted: bool,
    step: str,
) -> bool:
    """Decide whether the launch request should start on its own.

    True only when a key is selected, the session is idle, the one-shot
    latch is still unset and the launch URL supplied a prompt or topic.

    Examples:
        >>> should_auto_run(PartialVideoConfig(topic="cars"), True, False, "idle")
        True
        >>> should_auto_run(PartialVideoConfig(topic="cars"), True, True, "idle")
        False
    """
    return (
        is_authenticated
        and not auto_run_attempted
        and step == IDLE
        and initial_config.is_runnable
    )


def build_auto_run_config(
    initial_config: PartialVideoConfig,
    defaults: Optional[DefaultsConfig] = None,
) -> VideoConfig:
    """Complete a launch request with the fixed auto-run defaults.

    Unset fields become: style "cinematic, modern", landscape, 6 seconds,
    enhancement on (all from settings.defaults unless overridden).
    """
    defaults = defaults or settings.defaults
    mode = initial_config.mode or ("structured" if initial_config.topic else "prompt")

    return VideoConfig(
        mode=mode,
        prompt=initial_config.prompt or "",
        topic=initial_config.topic,
        style=initial_config.style or defaults.style,
        aspect_ratio=initial_config.aspect_ratio or defaults.aspect_ratio,
        duration=defaults.duration,
        enhance_prompt=defaults.enhance_prompt,
    )
