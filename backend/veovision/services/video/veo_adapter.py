"""Veo adapter for the video-generation interface.

Submits jobs with client.aio.models.generate_videos, polls with
client.aio.operations.get and downloads the finished video over httpx with
the API key appended as the ``key`` query parameter.

Provider errors that mean "this key/project cannot use the model" are
re-raised as CredentialRejectedError so callers never match on message text.
"""

import logging
from typing import Optional

import httpx
from google.genai import types
from google.genai.errors import ClientError

from veovision.config import settings
from veovision.errors import CredentialRejectedError, VideoDownloadError
from veovision.services.genai_client import get_genai_client
from veovision.services.video.base import GeneratedVideoRef, VideoGenerator, VideoOperation

logger = logging.getLogger(__name__)

_CREDENTIAL_HTTP_CODES = {401, 403, 404}
_CREDENTIAL_STATUSES = {"NOT_FOUND", "PERMISSION_DENIED", "UNAUTHENTICATED"}
_CREDENTIAL_MESSAGES = ("entity was not found", "api key not valid")


# ---------------------------------------------------------------------------
# Error classification helpers
# ---------------------------------------------------------------------------
def _is_credential_exception(exc: BaseException) -> bool:
    """Return True if a ClientError means the key cannot access the model."""
    if not isinstance(exc, ClientError):
        return False
    if getattr(exc, "code", None) in _CREDENTIAL_HTTP_CODES:
        return True
    if getattr(exc, "status", None) in _CREDENTIAL_STATUSES:
        return True
    msg = str(exc).lower()
    return any(kw in msg for kw in _CREDENTIAL_MESSAGES)


def _to_operation(operation) -> VideoOperation:
    """Convert a google-genai GenerateVideosOperation into a VideoOperation."""
    error = getattr(operation, "error", None)
    error_message = None
    error_code = None
    if error:
        if isinstance(error, dict):
            error_message = error.get("message") or str(error)
            error_code = error.get("code")
        else:
            error_message = getattr(error, "message", None) or str(error)
            error_code = getattr(error, "code", None)

    videos: list[GeneratedVideoRef] = []
    response = getattr(operation, "response", None) or getattr(operation, "result", None)
    if response is not None:
        for gen_video in getattr(response, "generated_videos", None) or []:
            video = getattr(gen_video, "video", None)
            if video is None:
                videos.append(GeneratedVideoRef())
                continue
            videos.append(GeneratedVideoRef(
                uri=getattr(video, "uri", None),
                video_bytes=getattr(video, "video_bytes", None),
                mime_type=getattr(video, "mime_type", None),
            ))

    return VideoOperation(
        name=getattr(operation, "name", None),
        done=bool(getattr(operation, "done", False)),
        error_message=error_message,
        error_code=error_code,
        videos=videos,
        handle=operation,
    )


class VeoVideoGenerator(VideoGenerator):
    """Video adapter backed by Veo through the Gemini Developer API."""

    def __init__(
        self,
        api_key: str,
        model_id: Optional[str] = None,
        client=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        download_timeout: Optional[float] = None,
    ) -> None:
        """Initialize adapter for the given Veo model.

        Args:
            api_key: Key used for job calls and appended to downloads.
            model_id: Veo model identifier (defaults to settings.models.video_gen).
            client: Pre-built genai client; a cached one is used when None.
            transport: Optional httpx transport for the byte download.
            download_timeout: Seconds allowed for the byte download.
        """
        self._api_key = api_key
        self._model_id = model_id or settings.models.video_gen
        self._client = client
        self._transport = transport
        self._download_timeout = download_timeout or settings.pipeline.download_timeout

    @property
    def client(self):
        if self._client is None:
            self._client = get_genai_client(self._api_key)
        return self._client

    async def submit(
        self,
        prompt: str,
        *,
        aspect_ratio: str,
        resolution: str,
        number_of_videos: int = 1,
    ) -> VideoOperation:
        video_config = types.GenerateVideosConfig(
            number_of_videos=number_of_videos,
            resolution=resolution,
            aspect_ratio=aspect_ratio,
        )
        try:
            operation = await self.client.aio.models.generate_videos(
                model=self._model_id,
                prompt=prompt,
                config=video_config,
            )
        except ClientError as e:
            if _is_credential_exception(e):
                raise CredentialRejectedError(str(e)) from e
            raise

        result = _to_operation(operation)
        logger.info(f"Submitted Veo job {result.name} ({self._model_id}, {aspect_ratio}, {resolution})")
        return result

    async def poll(self, operation: VideoOperation) -> VideoOperation:
        handle = operation.handle
        if handle is None:
            handle = types.GenerateVideosOperation(name=operation.name)
        try:
            refreshed = await self.client.aio.operations.get(operation=handle)
        except ClientError as e:
            if _is_credential_exception(e):
                raise CredentialRejectedError(str(e)) from e
            raise
        return _to_operation(refreshed)

    async def fetch_bytes(self, uri: str) -> bytes:
        # The reference already carries its own query (alt=media); add the key to it
        url = httpx.URL(uri).copy_add_param("key", self._api_key)
        async with httpx.AsyncClient(
            timeout=self._download_timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as http:
            response = await http.get(url)

        if not response.is_success:
            logger.error(f"Video download failed with HTTP {response.status_code}")
            raise VideoDownloadError(status_code=response.status_code)

        logger.debug(f"Downloaded {len(response.content)} bytes of video")
        return response.content
