"""Stage 2: submission, polling, error mapping and download."""

import pytest

from conftest import VIDEO_URI, ScriptedVideoGenerator, finished_operation
from veovision.errors import (
    NoVideoReturnedError,
    PipelineError,
    VideoDownloadError,
    VideoGenerationError,
    VideoGenerationTimeout,
)
from veovision.pipeline.video_gen import generate_video
from veovision.schemas.video import AspectRatio
from veovision.services.video.base import GeneratedVideoRef


async def _run(generator, media_store, sleep, aspect_ratio=AspectRatio.LANDSCAPE, **kwargs):
    kwargs.setdefault("poll_interval", 5)
    kwargs.setdefault("max_polls", 10)
    return await generate_video(
        "A lighthouse in a storm",
        aspect_ratio,
        generator,
        media_store,
        resolution="1080p",
        number_of_videos=1,
        sleep=sleep,
        **kwargs,
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "aspect_ratio,wire",
    [(AspectRatio.LANDSCAPE, "16:9"), (AspectRatio.PORTRAIT, "9:16")],
)
async def test_aspect_ratio_wire_format(aspect_ratio, wire, media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=1)

    await _run(generator, media_store, sleep_recorder, aspect_ratio=aspect_ratio)

    submission = generator.submissions[0]
    assert submission["aspect_ratio"] == wire
    assert submission["resolution"] == "1080p"
    assert submission["number_of_videos"] == 1
    assert submission["prompt"] == "A lighthouse in a storm"


@pytest.mark.asyncio
async def test_polls_at_fixed_interval_and_fetches_only_after_done(media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=3)

    handle = await _run(generator, media_store, sleep_recorder)

    assert sleep_recorder.calls == [5, 5, 5]
    assert generator.events == ["submit", "poll", "poll", "poll", ("fetch", VIDEO_URI)]
    assert media_store.path_for(handle).read_bytes() == generator.download


@pytest.mark.asyncio
async def test_already_done_on_submit_skips_polling(media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=0)

    await _run(generator, media_store, sleep_recorder)

    assert sleep_recorder.calls == []
    assert "poll" not in generator.events


@pytest.mark.asyncio
async def test_polling_gives_up_after_max_polls(media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=100)

    with pytest.raises(VideoGenerationTimeout) as exc_info:
        await _run(generator, media_store, sleep_recorder, max_polls=4)

    assert generator.poll_count == 4
    assert "20 seconds" in str(exc_info.value)
    assert not any(isinstance(e, tuple) for e in generator.events)


@pytest.mark.asyncio
async def test_operation_error_carries_provider_message(media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(
        polls_until_done=1,
        final=finished_operation(videos=[], error_message="Prompt blocked by safety filters", error_code=3),
    )

    with pytest.raises(VideoGenerationError) as exc_info:
        await _run(generator, media_store, sleep_recorder)

    assert str(exc_info.value) == "Video generation failed: Prompt blocked by safety filters"
    assert exc_info.value.code == 3
    assert not any(isinstance(e, tuple) for e in generator.events)


@pytest.mark.asyncio
@pytest.mark.parametrize("videos", [[], [GeneratedVideoRef()]])
async def test_missing_video_reference(videos, media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=1, final=finished_operation(videos=videos))

    with pytest.raises(NoVideoReturnedError):
        await _run(generator, media_store, sleep_recorder)


@pytest.mark.asyncio
async def test_download_failure_propagates(media_store, sleep_recorder):
    generator = ScriptedVideoGenerator(polls_until_done=1, download_error=VideoDownloadError(status_code=403))

    with pytest.raises(VideoDownloadError):
        await _run(generator, media_store, sleep_recorder)

    assert list(media_store.session_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_terminal_errors_are_distinguishable(media_store, sleep_recorder):
    scenarios = [
        ScriptedVideoGenerator(polls_until_done=1, final=finished_operation(videos=[], error_message="boom")),
        ScriptedVideoGenerator(polls_until_done=1, final=finished_operation(videos=[])),
        ScriptedVideoGenerator(polls_until_done=1, download_error=VideoDownloadError()),
    ]

    raised = []
    for generator in scenarios:
        with pytest.raises(PipelineError) as exc_info:
            await _run(generator, media_store, sleep_recorder)
        raised.append(exc_info.value)

    assert [type(e) for e in raised] == [VideoGenerationError, NoVideoReturnedError, VideoDownloadError]
    assert len({str(e) for e in raised}) == 3


@pytest.mark.asyncio
async def test_inline_bytes_skip_download(media_store, sleep_recorder):
    inline = GeneratedVideoRef(video_bytes=b"inline-video", mime_type="video/mp4")
    generator = ScriptedVideoGenerator(polls_until_done=1, final=finished_operation(videos=[inline]))
    progress = []

    handle = await _run(generator, media_store, sleep_recorder, progress_callback=progress.append)

    assert media_store.path_for(handle).read_bytes() == b"inline-video"
    assert "Downloading video..." not in progress
    assert not any(isinstance(e, tuple) for e in generator.events)
