"""Main pipeline orchestrator: prompt enhancement, then Veo generation.

Coordinates one run end to end with:
- Stage 1: working-prompt assembly and best-effort enhancement
- Stage 2: job submission, bounded polling, download into the MediaStore
- Per-stage timing and logging
- Progress callback interface for CLI/session integration

All stage-2 failures propagate unchanged as a single raised exception;
the session is the only place they are handled.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from veovision.config import PipelineConfig, settings
from veovision.errors import PipelineBusyError
from veovision.pipeline.prompt import prepare_prompt
from veovision.pipeline.video_gen import Sleep, generate_video
from veovision.schemas.video import GenerationResult, VideoConfig
from veovision.services.auth import AuthProvider
from veovision.services.llm.base import TextEnhancer
from veovision.services.media_store import MediaStore
from veovision.services.video.base import VideoGenerator

logger = logging.getLogger(__name__)

# Progress messages, also used by the session to detect the stage boundary
OPTIMIZING_MESSAGE = "Optimizing prompt..."
GENERATING_MESSAGE = "Generating video..."


class PipelineOrchestrator:
    """Runs the two-stage pipeline against injected capabilities.

    One instance handles one run at a time; calling run() again before the
    previous call settles raises PipelineBusyError.
    """

    def __init__(
        self,
        enhancer: TextEnhancer,
        generator: VideoGenerator,
        media_store: MediaStore,
        pipeline_config: Optional[PipelineConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.enhancer = enhancer
        self.generator = generator
        self.media_store = media_store
        self.pipeline_config = pipeline_config or settings.pipeline
        self._sleep = sleep
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(
        self,
        config: VideoConfig,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> GenerationResult:
        """Execute one generation run.

        Args:
            config: Validated request
            progress_callback: Optional callback for status updates

        Returns:
            GenerationResult with both prompts and the local video handle

        Raises:
            PipelineBusyError: If a run is already in flight
            PipelineError: Any stage-2 failure (see veovision.errors)
            CredentialRejectedError: If the key cannot access the video model
        """
        if self._running:
            raise PipelineBusyError("A generation run is already in progress")

        self._running = True
        try:
            return await self._run(config, progress_callback)
        finally:
            self._running = False

    async def _run(
        self,
        config: VideoConfig,
        progress_callback: Optional[Callable[[str], None]],
    ) -> GenerationResult:
        pipeline_start = time.monotonic()
        logger.info(
            f"Starting pipeline (mode={config.mode}, aspect_ratio={config.aspect_ratio.value}, "
            f"enhance={config.enhance_prompt})"
        )

        # Stage 1: prompt
        step_start = time.monotonic()
        if progress_callback:
            progress_callback(OPTIMIZING_MESSAGE)
        original_prompt, enhanced_prompt = await prepare_prompt(config, self.enhancer)
        logger.info(f"Prompt stage completed in {time.monotonic() - step_start:.2f}s")

        # Stage 2: video
        step_start = time.monotonic()
        if progress_callback:
            progress_callback(GENERATING_MESSAGE)
        video_url = await generate_video(
            enhanced_prompt,
            config.aspect_ratio,
            self.generator,
            self.media_store,
            resolution=self.pipeline_config.video_resolution,
            number_of_videos=self.pipeline_config.number_of_videos,
            poll_interval=self.pipeline_config.video_poll_interval,
            max_polls=self.pipeline_config.video_poll_max,
            sleep=self._sleep,
            progress_callback=progress_callback,
        )
        logger.info(f"Video stage completed in {time.monotonic() - step_start:.2f}s")

        logger.info(f"Pipeline finished in {time.monotonic() - pipeline_start:.2f}s")
        return GenerationResult(
            original_prompt=original_prompt,
            enhanced_prompt=enhanced_prompt,
            video_url=video_url,
        )


def build_runner(auth: AuthProvider, media_store: MediaStore, sleep: Sleep = asyncio.sleep):
    """Create a session runner that builds fresh adapters for every run.

    Adapters are created per run so a key selected after a credential
    rejection is picked up by the next submission.

    Args:
        auth: AuthProvider holding the currently selected key
        media_store: Session media store shared by all runs
        sleep: Poll sleep, injectable for tests

    Returns:
        Async callable (config, progress_callback) -> GenerationResult
    """
    from veovision.services.llm.gemini_adapter import GeminiTextEnhancer
    from veovision.services.video.veo_adapter import VeoVideoGenerator

    async def run(config: VideoConfig, progress_callback: Callable[[str], None]) -> GenerationResult:
        api_key = auth.api_key
        orchestrator = PipelineOrchestrator(
            enhancer=GeminiTextEnhancer(api_key),
            generator=VeoVideoGenerator(api_key),
            media_store=media_store,
            sleep=sleep,
        )
        return await orchestrator.run(config, progress_callback)

    return run
