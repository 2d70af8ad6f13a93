"""Shared fakes for pipeline and session tests.

The fakes script the remote capabilities so sequencing can be checked
without network access:
- ScriptedTextEnhancer: fixed answer or raised error
- ScriptedVideoGenerator: done after N polls, with a configurable final operation
- SleepRecorder: records poll waits instead of sleeping
- FakeAuthProvider: toggles authorization and counts prompts
"""

from typing import Optional
import threading

import pytest

from veovision.services.auth import AuthProvider
from veovision.services.llm.base import TextEnhancer
from veovision.services.media_store import MediaStore
from veovision.services.video.base import GeneratedVideoRef, VideoGenerator, VideoOperation

OPERATION_NAME = "operations/test-job"
VIDEO_URI = "https://generativelanguage.example/v1beta/files/abc:download?alt=media"


class ScriptedTextEnhancer(TextEnhancer):
    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: list[str] = []

    async def generate_text(self, prompt: str) -> str:
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def finished_operation(**overrides) -> VideoOperation:
    values = {
        "name": OPERATION_NAME,
        "done": True,
        "videos": [GeneratedVideoRef(uri=VIDEO_URI, mime_type="video/mp4")],
    }
    values.update(overrides)
    return VideoOperation(**values)


class ScriptedVideoGenerator(VideoGenerator):
    """Reports the final operation on the polls_until_done-th poll.

    events keeps the call order: "submit", "poll", ("fetch", uri).
    """

    def __init__(
        self,
        polls_until_done: int = 2,
        final: Optional[VideoOperation] = None,
        download: bytes = b"\x00\x00\x00\x18ftypmp42",
        download_error: Optional[Exception] = None,
        submit_error: Optional[Exception] = None,
    ):
        self.polls_until_done = polls_until_done
        self.final = final or finished_operation()
        self.download = download
        self.download_error = download_error
        self.submit_error = submit_error
        self.events: list = []
        self.submissions: list[dict] = []
        self.poll_count = 0

    async def submit(self, prompt, *, aspect_ratio, resolution, number_of_videos=1):
        self.events.append("submit")
        self.submissions.append({
            "prompt": prompt,
            "aspect_ratio": aspect_ratio,
            "resolution": resolution,
            "number_of_videos": number_of_videos,
        })
        if self.submit_error is not None:
            raise self.submit_error
        if self.polls_until_done == 0:
            return self.final
        return VideoOperation(name=OPERATION_NAME, done=False)

    async def poll(self, operation):
        self.events.append("poll")
        self.poll_count += 1
        if self.poll_count >= self.polls_until_done:
            return self.final
        return VideoOperation(name=operation.name, done=False)

    async def fetch_bytes(self, uri):
        self.events.append(("fetch", uri))
        if self.download_error is not None:
            raise self.download_error
        return self.download


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeAuthProvider(AuthProvider):
    def __init__(self, authorized: bool = True, grant: bool = True):
        self.authorized = authorized
        self.grant = grant
        self.requests = 0
        self.request_threads: list[int] = []

    def is_authorized(self) -> bool:
        return self.authorized

    def request_authorization(self) -> bool:
        self.requests += 1
        self.request_threads.append(threading.get_ident())
        if self.grant:
            self.authorized = True
        return self.grant

    @property
    def api_key(self):
        return "test-key" if self.authorized else None


@pytest.fixture
def media_store(tmp_path):
    store = MediaStore(base_dir=tmp_path)
    yield store
    store.close()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
