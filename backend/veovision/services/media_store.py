"""
Session-scoped media storage for veovision.

Turns downloaded video bytes into a local, playable file:// handle and
releases it again when the session moves on. Everything lives under one
temporary directory that is removed when the session closes.
"""
import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from veovision.config import settings

logger = logging.getLogger(__name__)


class MediaStore:
    """
    Manage generated video files for one session.

    Layout:
    - {session_dir}/video_{uuid}.mp4 - One file per successful run

    Handles are file:// URIs. Releasing a handle this store did not issue
    is a no-op, so foreign files are never deleted.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize MediaStore with a fresh session directory.

        Args:
            base_dir: Parent directory for the session directory.
                     If None, uses settings.storage.tmp_dir (or the system temp dir)
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        if base_dir is not None:
            Path(base_dir).mkdir(parents=True, exist_ok=True)

        self.session_dir = Path(
            tempfile.mkdtemp(prefix="veovision-", dir=base_dir)
        ).resolve()
        self._handles: dict[str, Path] = {}
        logger.debug(f"Media session directory: {self.session_dir}")

    def materialize(self, data: bytes, mime_type: Optional[str] = None) -> str:
        """
        Write video bytes to the session directory.

        Args:
            data: Video payload
            mime_type: Provider MIME type; only used to choose the extension

        Returns:
            file:// URI of the written file
        """
        if self.session_dir is None:
            raise RuntimeError("MediaStore is closed")

        suffix = ".webm" if mime_type == "video/webm" else ".mp4"
        filepath = self.session_dir / f"video_{uuid.uuid4().hex}{suffix}"
        filepath.write_bytes(data)

        handle = filepath.as_uri()
        self._handles[handle] = filepath
        logger.info(f"Stored {len(data)} bytes at {filepath}")
        return handle

    def path_for(self, handle: str) -> Path:
        """
        Resolve a handle issued by this store to its file path.

        Raises:
            KeyError: If the handle was not issued here or was already released
        """
        return self._handles[handle]

    def release(self, handle: Optional[str]) -> None:
        """Delete the file behind a handle. Unknown or None handles are ignored."""
        if not handle:
            return
        filepath = self._handles.pop(handle, None)
        if filepath is None:
            logger.debug(f"Ignoring release of unknown handle {handle}")
            return
        filepath.unlink(missing_ok=True)
        logger.debug(f"Released {filepath}")

    def export(self, handle: str, destination: str | Path) -> Path:
        """
        Copy a stored video out of the session directory.

        Args:
            handle: Handle returned by materialize()
            destination: Target file, or an existing directory to copy into

        Returns:
            Path of the copy
        """
        source = self.path_for(handle)
        destination = Path(destination)
        if destination.is_dir():
            destination = destination / source.name
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
        return destination

    def close(self) -> None:
        """Remove the session directory and every file still in it."""
        if self.session_dir is None:
            return
        shutil.rmtree(self.session_dir, ignore_errors=True)
        logger.debug(f"Removed media session directory {self.session_dir}")
        self._handles.clear()
        self.session_dir = None

    def __enter__(self) -> "MediaStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
