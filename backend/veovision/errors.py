"""Exception hierarchy shared by the capability adapters, pipeline and session."""


class VeoVisionError(Exception):
    """Base class for all errors raised by veovision."""


class PipelineError(VeoVisionError):
    """A pipeline run ended without a playable video."""


class VideoGenerationError(PipelineError):
    """The completed Veo operation reported an error."""

    def __init__(self, provider_message: str, code=None):
        self.provider_message = provider_message
        self.code = code
        super().__init__(f"Video generation failed: {provider_message}")


class NoVideoReturnedError(PipelineError):
    """The operation finished successfully but carried no video reference."""

    def __init__(self, message: str = "No video URI returned from the API."):
        super().__init__(message)


class VideoDownloadError(PipelineError):
    """Fetching the generated video bytes returned a non-success status."""

    def __init__(
        self,
        message: str = "Failed to download generated video content.",
        status_code=None,
    ):
        self.status_code = status_code
        super().__init__(message)


class VideoGenerationTimeout(PipelineError):
    """The operation was still running after the maximum number of polls."""


class CredentialRejectedError(VeoVisionError):
    """The selected API key or project cannot access the requested model."""


class PipelineBusyError(VeoVisionError):
    """run() was called while another run on the same orchestrator is in flight."""


class SessionBusyError(VeoVisionError):
    """A submit or reset was attempted while a run is in flight."""
