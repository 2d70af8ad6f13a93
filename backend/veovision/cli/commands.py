"""CLI commands for veovision using Typer and Rich.

Implements 2 CLI commands:
- generate: Build a request from options and run it once
- launch: Resolve a launch URL and let the session auto-run it
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from veovision import configure_logging
from veovision.config import settings
from veovision.launch import LaunchLocation
from veovision.orchestrator.pipeline import build_runner
from veovision.orchestrator.session import Session
from veovision.orchestrator.state import COMPLETE, ERROR, SESSION_STATES
from veovision.schemas.video import AspectRatio, SessionSnapshot, VideoConfig
from veovision.services.auth import ApiKeyAuthProvider
from veovision.services.media_store import MediaStore

BILLING_DOCS_URL = "https://ai.google.dev/gemini-api/docs/billing"
CREDENTIAL_HINT = (
    "This usually means the selected Google Cloud Project does not have access "
    "to the Veo model or is not a paid project."
)

app = typer.Typer(name="veovision", help="Prompt enhancement and Veo video generation")
console = Console()


class SnapshotRenderer:
    """Session listener showing a Rich spinner while a run is in flight."""

    def __init__(self, console: Console):
        self.console = console
        self._status = None

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if not snapshot.is_running:
            self.stop()
            return

        text = f"[bold green]{snapshot.progress_message or SESSION_STATES[snapshot.step]}"
        if self._status is None:
            self._status = self.console.status(text)
            self._status.start()
        else:
            self._status.update(text)

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


def _select_api_key() -> Optional[str]:
    """Prompt for a Gemini API key with hidden input."""
    console.print("[yellow]Authentication required.[/yellow] Select a Gemini API key from a "
                  "Google Cloud Project with billing enabled.")
    console.print(f"Billing documentation: {BILLING_DOCS_URL}")
    return typer.prompt("Gemini API key", default="", show_default=False, hide_input=True)


def _build_session(store: MediaStore, location: Optional[LaunchLocation] = None) -> Session:
    auth = ApiKeyAuthProvider(selector=_select_api_key)
    session = Session(
        auth,
        build_runner(auth, store),
        media_store=store,
        location=location,
    )
    session.subscribe(SnapshotRenderer(console))
    return session


def _finish(session: Session, store: MediaStore, output: Path) -> None:
    """Print the outcome, export the video and exit non-zero on failure."""
    if session.step == COMPLETE and session.result is not None:
        result = session.result
        exported = store.export(result.video_url, output)
        console.print(Panel(result.original_prompt, title="Original prompt", border_style="dim"))
        console.print(Panel(result.enhanced_prompt, title="Enhanced prompt", border_style="green"))
        console.print(f"[green]✓[/green] Video generation complete!")
        console.print(f"[green]Output:[/green] {exported}")
        session.reset()
        return

    if session.step == ERROR:
        console.print(f"[red]✗ Generation failed:[/red] {session.error}")
        if not session.is_authenticated:
            console.print(f"[yellow]{CREDENTIAL_HINT}[/yellow]")
            console.print("Run the command again to select a different API key.")
        raise typer.Exit(code=1)

    console.print(f"[red]Error:[/red] {session.error or 'No API key selected; nothing was generated.'}")
    raise typer.Exit(code=1)


@app.command()
def generate(
    prompt: str = typer.Option("", "--prompt", "-p", help="Video description (extra details in structured mode)"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Topic / subject (selects structured mode)"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="Visual style for structured mode"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="prompt or structured"),
    aspect_ratio: str = typer.Option(AspectRatio.LANDSCAPE.value, "--aspect-ratio", "-a", help="16:9 or 9:16"),
    duration: int = typer.Option(settings.defaults.duration, "--duration", "-d", help="Target duration in seconds (advisory)"),
    enhance: bool = typer.Option(True, "--enhance/--no-enhance", help="Rewrite the prompt with Gemini first"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="File or directory to save the video to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Generate a video from a prompt or a topic.

    Optionally rewrites the prompt into a cinematic description, submits it
    to Veo, waits for the job and saves the video.
    """
    configure_logging(verbose)

    valid_ratios = [ratio.value for ratio in AspectRatio]
    if aspect_ratio not in valid_ratios:
        console.print(f"[red]Error:[/red] Invalid aspect ratio: {aspect_ratio}")
        console.print(f"Allowed: {', '.join(valid_ratios)}")
        raise typer.Exit(code=1)

    if mode is None:
        mode = "structured" if topic else "prompt"
    if mode not in ("prompt", "structured"):
        console.print(f"[red]Error:[/red] Invalid mode: {mode}")
        console.print("Allowed: prompt, structured")
        raise typer.Exit(code=1)

    try:
        config = VideoConfig(
            mode=mode,
            prompt=prompt,
            topic=topic,
            style=style,
            aspect_ratio=AspectRatio(aspect_ratio),
            duration=duration,
            enhance_prompt=enhance,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(code=1)

    try:
        asyncio.run(_generate_async(config, output))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Generation interrupted.[/yellow]")
        raise typer.Exit(code=130)


async def _generate_async(config: VideoConfig, output: Path):
    """Async implementation of generate command."""
    with MediaStore() as store:
        session = _build_session(store)
        await session.start()
        await session.submit(config)
        _finish(session, store, output)


@app.command()
def launch(
    url: str = typer.Argument(..., help="Launch URL or query string, e.g. '?topic=A+vintage+car+chase'"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="File or directory to save the video to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Run the request encoded in a launch URL.

    Recognized parameters: prompt, topic, style, aspectRatio. The run starts
    automatically as soon as an API key is available.
    """
    configure_logging(verbose)

    location = LaunchLocation(url)
    initial = location.query_params
    if not initial.is_runnable:
        console.print("[yellow]Launch URL has no prompt or topic; nothing to run.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title="Launch request")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in initial.model_dump(mode="json", exclude_none=True).items():
        table.add_row(field, str(value))
    console.print(table)

    try:
        asyncio.run(_launch_async(location, output))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Generation interrupted.[/yellow]")
        raise typer.Exit(code=130)


async def _launch_async(location: LaunchLocation, output: Path):
    """Async implementation of launch command."""
    with MediaStore() as store:
        session = _build_session(store, location)
        await session.start()
        if not session.is_authenticated:
            # Auto-run waits for a key; connecting triggers it
            await session.connect()
        _finish(session, store, output)
