"""CLI commands with the remote pipeline replaced by a fake runner."""

import pytest
from typer.testing import CliRunner

from veovision.cli import commands
from veovision.cli.commands import app
from veovision.errors import CredentialRejectedError, VideoGenerationError
from veovision.schemas.video import AspectRatio, GenerationResult

runner = CliRunner()


class FakeRunnerFactory:
    """Stands in for build_runner; records configs and the key used."""

    def __init__(self, error=None):
        self.error = error
        self.configs = []
        self.keys = []

    def __call__(self, auth, media_store, sleep=None):
        async def run(config, progress_callback):
            self.configs.append(config)
            self.keys.append(auth.api_key)
            progress_callback("Optimizing prompt...")
            if self.error is not None:
                raise self.error
            progress_callback("Generating video...")
            return GenerationResult(
                original_prompt=config.prompt or config.topic,
                enhanced_prompt="An enhanced description",
                video_url=media_store.materialize(b"video-bytes"),
            )

        return run


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    return "env-key"


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)


def _install(monkeypatch, factory):
    monkeypatch.setattr(commands, "build_runner", factory)
    return factory


def test_generate_writes_video(monkeypatch, api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())
    output = tmp_path / "clip.mp4"

    result = runner.invoke(app, ["generate", "-p", "A fox in the snow", "-a", "9:16", "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert "Video generation complete" in result.output
    assert output.read_bytes() == b"video-bytes"
    config = _single_config(factory)
    assert config.mode == "prompt"
    assert config.aspect_ratio is AspectRatio.PORTRAIT
    assert factory.keys == ["env-key"]


def test_generate_topic_selects_structured_mode(monkeypatch, api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["generate", "-t", "Space race", "--no-enhance", "-o", str(tmp_path)])

    assert result.exit_code == 0, result.output
    config = _single_config(factory)
    assert config.mode == "structured"
    assert config.topic == "Space race"
    assert config.enhance_prompt is False
    assert len(list(tmp_path.glob("video_*.mp4"))) == 1


def test_generate_credential_failure_shows_hint(monkeypatch, api_key, tmp_path):
    error = CredentialRejectedError("404 NOT_FOUND. Requested entity was not found.")
    _install(monkeypatch, FakeRunnerFactory(error=error))

    result = runner.invoke(app, ["generate", "-p", "x", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "Generation failed" in result.output
    assert "different API key" in result.output


def test_generate_other_failure_has_no_hint(monkeypatch, api_key, tmp_path):
    _install(monkeypatch, FakeRunnerFactory(error=VideoGenerationError("internal error")))

    result = runner.invoke(app, ["generate", "-p", "x", "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert "Video generation failed: internal error" in result.output
    assert "different API key" not in result.output


def test_generate_prompts_for_key_when_none_configured(monkeypatch, no_api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["generate", "-p", "x", "-o", str(tmp_path)], input="typed-key\n")

    assert result.exit_code == 0, result.output
    assert factory.keys == ["typed-key"]


def test_generate_declined_key_selection(monkeypatch, no_api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["generate", "-p", "x", "-o", str(tmp_path)], input="\n")

    assert result.exit_code == 1
    assert "Failed to select API key." in result.output
    assert factory.configs == []


@pytest.mark.parametrize(
    "args,message",
    [
        (["generate", "-p", "x", "-a", "4:3"], "Invalid aspect ratio"),
        (["generate", "-p", "x", "-m", "storyboard"], "Invalid mode"),
        (["generate", "-m", "prompt"], "prompt is required"),
    ],
)
def test_generate_rejects_bad_input(monkeypatch, api_key, args, message):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert message in result.output
    assert factory.configs == []


def test_launch_without_prompt_or_topic(monkeypatch, api_key):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["launch", "https://veo.example/?style=noir"])

    assert result.exit_code == 1
    assert "nothing to run" in result.output
    assert factory.configs == []


def test_launch_topic_auto_runs_with_defaults(monkeypatch, api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(
        app,
        ["launch", "https://veo.example/?topic=A+vintage+car+chase&aspectRatio=9:16", "-o", str(tmp_path)],
    )

    assert result.exit_code == 0, result.output
    config = _single_config(factory)
    assert config.mode == "structured"
    assert config.topic == "A vintage car chase"
    assert config.style == "cinematic, modern"
    assert config.aspect_ratio is AspectRatio.PORTRAIT
    assert config.enhance_prompt is True


def test_launch_waits_for_key_then_runs_once(monkeypatch, no_api_key, tmp_path):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["launch", "?prompt=Neon+rain", "-o", str(tmp_path)], input="typed-key\n")

    assert result.exit_code == 0, result.output
    assert len(factory.configs) == 1
    assert factory.keys == ["typed-key"]


def _single_config(factory):
    assert len(factory.configs) == 1
    return factory.configs[0]


@pytest.mark.parametrize("url", ["?topic=%20", "?prompt=%20%20"])
def test_launch_with_blank_text_exits_cleanly(monkeypatch, api_key, url):
    factory = _install(monkeypatch, FakeRunnerFactory())

    result = runner.invoke(app, ["launch", url])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "nothing to run" in result.output
    assert factory.configs == []
