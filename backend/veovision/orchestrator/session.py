"""Observable session state machine driving pipeline runs.

The Session owns the only mutable state of a user session: current step,
last error, last result, whether a credential is selected, and the one-shot
auto-run latch. Presentation code subscribes to SessionSnapshot updates
and never changes state directly.

Usage:
    session = Session(auth, runner, media_store=store, location=LaunchLocation(url))
    session.subscribe(render)
    await session.start()                 # may auto-run the launch request
    await session.submit(config)          # manual run
    session.reset()
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from pydantic import ValidationError

from veovision.errors import CredentialRejectedError, SessionBusyError
from veovision.launch import LaunchLocation
from veovision.orchestrator.pipeline import GENERATING_MESSAGE
from veovision.orchestrator.state import (
    COMPLETE,
    ERROR,
    GENERATING,
    IDLE,
    OPTIMIZING,
    build_auto_run_config,
    can_transition,
    is_running,
    should_auto_run,
)
from veovision.schemas.video import (
    GenerationResult,
    PartialVideoConfig,
    SessionSnapshot,
    VideoConfig,
)
from veovision.services.auth import AuthProvider
from veovision.services.media_store import MediaStore

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."
KEY_SELECTION_FAILED_MESSAGE = "Failed to select API key."
INVALID_LAUNCH_MESSAGE = "Launch parameters do not describe a runnable request."
INTERRUPTED_MESSAGE = "Generation was interrupted."

# Provider text for a key/project without access to the video model
CREDENTIAL_FAILURE_MARKER = "entity was not found"

Runner = Callable[[VideoConfig, Callable[[str], None]], Awaitable[GenerationResult]]
Listener = Callable[[SessionSnapshot], None]


def is_credential_failure(exc: BaseException) -> bool:
    """Return True if a run failure means the selected credential must change.

    Typed CredentialRejectedError is the contract; the message check covers
    errors raised outside the capability adapters.
    """
    if isinstance(exc, CredentialRejectedError):
        return True
    return CREDENTIAL_FAILURE_MARKER in str(exc)


class Session:
    """One user session: step tracking, auth gating, auto-run and reset."""

    def __init__(
        self,
        auth: AuthProvider,
        runner: Runner,
        media_store: Optional[MediaStore] = None,
        location: Optional[LaunchLocation] = None,
        initial_config: Optional[PartialVideoConfig] = None,
    ) -> None:
        self._auth = auth
        self._runner = runner
        self._media_store = media_store
        self._location = location
        self._listeners: List[Listener] = []

        if initial_config is None:
            initial_config = location.query_params if location else PartialVideoConfig()
        self.initial_config = initial_config

        self.step = IDLE
        self.error: Optional[str] = None
        self.result: Optional[GenerationResult] = None
        self.is_authenticated = False
        self.auto_run_attempted = False
        self.progress_message: Optional[str] = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            step=self.step,
            error=self.error,
            result=self.result,
            is_authenticated=self.is_authenticated,
            auto_run_attempted=self.auto_run_attempted,
            initial_config=self.initial_config,
            progress_message=self.progress_message,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every change.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _set_step(self, target: str) -> None:
        if not can_transition(self.step, target):
            raise ValueError(f"Invalid session transition {self.step} -> {target}")
        logger.debug(f"Session step {self.step} -> {target}")
        self.step = target

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Pick up an already selected credential and try the auto-run."""
        try:
            self.is_authenticated = self._auth.is_authorized()
        except Exception as e:
            logger.error(f"Error checking API key status: {e}")
            self.is_authenticated = False
        self._notify()
        await self.maybe_auto_run()

    async def connect(self) -> bool:
        """Ask the auth provider for a credential, then try the auto-run.

        Connecting does not re-arm the auto-run latch; only reset() does.
        """
        if not await self._authorize():
            return False
        self.error = None
        self._notify()
        await self.maybe_auto_run()
        return True

    async def _authorize(self) -> bool:
        # Providers may block on user input (terminal prompt)
        try:
            granted = await asyncio.to_thread(self._auth.request_authorization)
        except Exception as e:
            logger.error(f"Failed to select key: {e}")
            granted = False

        if not granted:
            self.error = KEY_SELECTION_FAILED_MESSAGE
            self._notify()
            return False

        self.is_authenticated = True
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    async def maybe_auto_run(self) -> Optional[GenerationResult]:
        """Submit the launch request once, if the auto-run rule allows it."""
        if not should_auto_run(
            self.initial_config,
            self.is_authenticated,
            self.auto_run_attempted,
            self.step,
        ):
            return None

        self.auto_run_attempted = True
        try:
            config = build_auto_run_config(self.initial_config)
        except ValidationError as e:
            logger.warning(f"Launch parameters do not form a valid request: {e.errors()[0]['msg']}")
            self.error = INVALID_LAUNCH_MESSAGE
            self._notify()
            return None

        logger.info("Auto-running pipeline from launch parameters...")
        self._notify()
        return await self.submit(config, automatic=True)

    async def submit(self, config: VideoConfig, automatic: bool = False) -> Optional[GenerationResult]:
        """Run the pipeline for config.

        Without a credential, a manual submission asks for one first and is
        dropped if none is selected; an automatic one waits silently.

        Returns:
            The result on success; None if the run failed or did not start.

        Raises:
            SessionBusyError: If a run is already in flight.
            BaseException: Cancellation or interrupt, re-raised after the
                session moves to the error step.
        """
        if is_running(self.step):
            raise SessionBusyError("A generation run is already in progress")

        if not self.is_authenticated:
            if automatic:
                logger.info("Auto-run is waiting for an API key")
                return None
            if not await self._authorize():
                return None

        self._discard_result()
        self.error = None
        self.progress_message = None
        self._set_step(OPTIMIZING)
        self._notify()

        try:
            result = await self._runner(config, self._on_progress)
        except Exception as exc:
            message = str(exc) or UNEXPECTED_ERROR_MESSAGE
            logger.error(f"Generation failed: {message}")
            self.error = message
            self.progress_message = None
            self._set_step(ERROR)
            if is_credential_failure(exc):
                logger.warning("Selected API key cannot access the video model; re-authentication required")
                self.is_authenticated = False
            self._notify()
            return None
        except BaseException:
            # Cancellation and Ctrl-C also end in a terminal step
            logger.warning("Generation run interrupted")
            self.error = INTERRUPTED_MESSAGE
            self.progress_message = None
            self._set_step(ERROR)
            self._notify()
            raise

        self.result = result
        self.progress_message = None
        self._set_step(COMPLETE)
        self._notify()
        return result

    def _on_progress(self, message: str) -> None:
        self.progress_message = message
        if message == GENERATING_MESSAGE and self.step == OPTIMIZING:
            self._set_step(GENERATING)
        self._notify()

    def reset(self) -> None:
        """Return to idle, drop result/error, re-arm the auto-run latch.

        Also strips the launch parameters from the location so reopening it
        does not repeat the same run.

        Raises:
            SessionBusyError: If a run is in flight.
        """
        if is_running(self.step):
            raise SessionBusyError("Cannot reset while a generation run is in progress")

        self._discard_result()
        self.error = None
        self.progress_message = None
        if self.step != IDLE:
            self._set_step(IDLE)
        self.auto_run_attempted = False
        if self._location is not None:
            self._location.clear_run_params()
        self._notify()

    def _discard_result(self) -> None:
        if self.result is None:
            return
        if self._media_store is not None:
            self._media_store.release(self.result.video_url)
        self.result = None
