"""Abstract video-generation capability and its provider-neutral operation model.

The pipeline only talks to VideoGenerator; adapters translate provider
objects into VideoOperation so polling and result checks can be tested
with scripted fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class GeneratedVideoRef(BaseModel):
    """One generated video as reported by the provider.

    Either uri (needs an authenticated download) or video_bytes (inline
    payload) is set for a usable reference.
    """

    uri: Optional[str] = None
    video_bytes: Optional[bytes] = None
    mime_type: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return bool(self.uri) or bool(self.video_bytes)


class VideoOperation(BaseModel):
    """Snapshot of a long-running video job."""

    name: Optional[str] = None
    done: bool = False
    error_message: Optional[str] = None
    error_code: Optional[int] = None
    videos: list[GeneratedVideoRef] = Field(default_factory=list)
    handle: Any = Field(default=None, exclude=True, repr=False)

    @property
    def failed(self) -> bool:
        return self.done and (self.error_message is not None or self.error_code is not None)


class VideoGenerator(ABC):
    """Abstract base class for video-generation adapters."""

    @abstractmethod
    async def submit(
        self,
        prompt: str,
        *,
        aspect_ratio: str,
        resolution: str,
        number_of_videos: int = 1,
    ) -> VideoOperation:
        """Start a generation job.

        Args:
            prompt: Text sent to the video model.
            aspect_ratio: Wire value, "16:9" or "9:16".
            resolution: Target resolution, e.g. "1080p".
            number_of_videos: How many videos to request.

        Returns:
            The initial (usually not yet done) operation.
        """
        ...

    @abstractmethod
    async def poll(self, operation: VideoOperation) -> VideoOperation:
        """Re-fetch the status of an operation returned by submit() or poll()."""
        ...

    @abstractmethod
    async def fetch_bytes(self, uri: str) -> bytes:
        """Download a generated video.

        Raises:
            VideoDownloadError: If the download returned a non-success status.
        """
        ...
