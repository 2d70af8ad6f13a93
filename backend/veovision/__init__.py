"""Veo Vision - prompt enhancement and Veo video generation from the terminal.

The package wires a Gemini prompt rewriter and the Veo video model into a
single request/poll pipeline, driven by an observable session state machine.
"""

import logging

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging once for CLI use.

    Library code only ever calls logging.getLogger(__name__); handlers are
    installed here so that embedding applications stay in control.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # google-genai and httpx are chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)
    logger.debug(f"Logging configured (verbose={verbose})")
