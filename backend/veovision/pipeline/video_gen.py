"""Stage 2: Veo job submission, polling and video download.

- Submit one Veo job with the (possibly enhanced) prompt
- Poll the long-running operation at a fixed interval until done
- Give up with VideoGenerationTimeout after the configured number of polls
- Map provider error / missing media / failed download to distinct errors
- Store the bytes in the session MediaStore and return its local handle

Usage:
    from veovision.pipeline.video_gen import generate_video

    video_url = await generate_video(prompt, AspectRatio.PORTRAIT, generator, store)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from veovision.config import settings
from veovision.errors import NoVideoReturnedError, VideoGenerationError, VideoGenerationTimeout
from veovision.schemas.video import AspectRatio
from veovision.services.media_store import MediaStore
from veovision.services.video.base import VideoGenerator, VideoOperation

logger = logging.getLogger(__name__)

# Veo only accepts these two framings
ASPECT_RATIO_WIRE = {
    AspectRatio.LANDSCAPE: "16:9",
    AspectRatio.PORTRAIT: "9:16",
}

Sleep = Callable[[float], Awaitable[None]]


async def wait_for_operation(
    generator: VideoGenerator,
    operation: VideoOperation,
    *,
    poll_interval: float,
    max_polls: int,
    sleep: Sleep = asyncio.sleep,
) -> VideoOperation:
    """Poll an operation until it reports done.

    Each cycle sleeps poll_interval seconds and then re-fetches the status.

    Raises:
        VideoGenerationTimeout: If still running after max_polls status checks.
    """
    for poll_attempt in range(max_polls):
        if operation.done:
            return operation

        await sleep(poll_interval)
        operation = await generator.poll(operation)
        logger.debug(f"Poll {poll_attempt + 1}/{max_polls} for {operation.name}: done={operation.done}")

    if operation.done:
        return operation

    raise VideoGenerationTimeout(
        f"Operation did not complete after {max_polls * poll_interval:g} seconds"
    )


async def generate_video(
    prompt: str,
    aspect_ratio: AspectRatio,
    generator: VideoGenerator,
    media_store: MediaStore,
    *,
    resolution: Optional[str] = None,
    number_of_videos: Optional[int] = None,
    poll_interval: Optional[float] = None,
    max_polls: Optional[int] = None,
    sleep: Sleep = asyncio.sleep,
    progress_callback: Optional[Callable[[str], None]] = None,
) -> str:
    """Run stage 2 and return the local handle of the downloaded video.

    Raises:
        VideoGenerationError: The finished operation carried a provider error.
        NoVideoReturnedError: The operation succeeded without a usable video.
        VideoDownloadError: Fetching the video bytes failed (from the generator).
        VideoGenerationTimeout: Polling gave up.
    """
    resolution = resolution or settings.pipeline.video_resolution
    number_of_videos = number_of_videos or settings.pipeline.number_of_videos
    poll_interval = settings.pipeline.video_poll_interval if poll_interval is None else poll_interval
    max_polls = max_polls or settings.pipeline.video_poll_max

    operation = await generator.submit(
        prompt,
        aspect_ratio=ASPECT_RATIO_WIRE[aspect_ratio],
        resolution=resolution,
        number_of_videos=number_of_videos,
    )

    operation = await wait_for_operation(
        generator,
        operation,
        poll_interval=poll_interval,
        max_polls=max_polls,
        sleep=sleep,
    )

    if operation.failed:
        message = operation.error_message or f"error code {operation.error_code}"
        logger.error(f"Veo operation {operation.name} failed: {message}")
        raise VideoGenerationError(message, code=operation.error_code)

    video = operation.videos[0] if operation.videos else None
    if video is None or not video.is_usable:
        raise NoVideoReturnedError()

    if video.video_bytes:
        data = video.video_bytes
    else:
        if progress_callback:
            progress_callback("Downloading video...")
        data = await generator.fetch_bytes(video.uri)

    return media_store.materialize(data, video.mime_type)
