"""Launch URL handling: resolve query parameters into a partial request.

A launch URL such as ``veovision://new?topic=A+vintage+car+chase`` pre-fills
the request and, once a key is available, triggers one automatic run.
Unknown keys are ignored and malformed values never raise.
"""

import logging
from typing import Mapping, Optional, Union
from urllib.parse import parse_qs, urlsplit, urlunsplit

from veovision.schemas.video import AspectRatio, PartialVideoConfig

logger = logging.getLogger(__name__)

# Query keys copied into the request (URL name -> field name)
RECOGNIZED_PARAMS = {
    "prompt": "prompt",
    "topic": "topic",
    "style": "style",
    "aspectRatio": "aspect_ratio",
}

_VALID_ASPECT_RATIOS = {ratio.value: ratio for ratio in AspectRatio}


def _parse_query(query: Union[str, Mapping[str, object], None]) -> dict[str, str]:
    """Flatten a query string, URL or mapping into first-value-wins strings."""
    if query is None:
        return {}

    if isinstance(query, Mapping):
        params = {}
        for key, value in query.items():
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value is not None:
                params[str(key)] = str(value)
        return params

    text = query.strip()
    if "?" in text:
        text = text.split("?", 1)[1]
    text = text.split("#", 1)[0]
    return {key: values[0] for key, values in parse_qs(text).items() if values}


def resolve_launch_params(query: Union[str, Mapping[str, object], None]) -> PartialVideoConfig:
    """Build a PartialVideoConfig from launch parameters.

    Rules:
    - Only prompt, topic, style and aspectRatio are copied; empty or
      whitespace-only values are absent.
    - aspectRatio is kept only when it is exactly "16:9" or "9:16".
    - A topic forces structured mode, whatever ``mode`` says.

    Args:
        query: Raw query string, full URL, or mapping of parameter values.

    Returns:
        Partial configuration; empty when nothing usable was supplied.
    """
    params = _parse_query(query)
    values: dict[str, object] = {}

    for param, field in RECOGNIZED_PARAMS.items():
        raw = params.get(param)
        if not raw or not raw.strip():
            continue
        if field == "aspect_ratio":
            ratio = _VALID_ASPECT_RATIOS.get(raw)
            if ratio is None:
                logger.debug(f"Ignoring unsupported aspectRatio {raw!r}")
                continue
            values[field] = ratio
        else:
            values[field] = raw

    if values.get("topic"):
        values["mode"] = "structured"

    config = PartialVideoConfig(**values)
    if config.is_runnable:
        logger.info(f"Resolved launch parameters: {sorted(values)}")
    return config


class LaunchLocation:
    """The URL the session was launched with.

    clear_run_params() strips the query so that reopening the location does
    not re-trigger the same automatic run.
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or ""

    @property
    def query_params(self) -> PartialVideoConfig:
        return resolve_launch_params(self.url)

    def clear_run_params(self) -> None:
        if not self.url:
            return
        parts = urlsplit(self.url)
        if not parts.query and not parts.fragment:
            return
        self.url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
        logger.debug(f"Cleared launch parameters, location is now {self.url!r}")
