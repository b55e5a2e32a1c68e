"""Render command - Turn a tutorial manifest into a narrated video"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich import box

from core.config import Settings
from core.errors import FFmpegNotFoundError
from core.ffmpeg import require_ffmpeg
from core.models.render import RenderConfig, RenderResult
from core.models.tutorial import Tutorial
from core.provider_config import PROVIDER_NAMES, ProviderFactory
from core.renderer import TutorialVideoRenderer

console = Console()


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


def build_config(
    settings: Settings,
    fps: Optional[int],
    width: Optional[int],
    height: Optional[int],
    buffer: Optional[float],
    fallback: Optional[float],
) -> RenderConfig:
    """Settings from env/.env, overridden by any flags given on the command line."""
    overrides = {
        "fps": fps,
        "width": width,
        "height": height,
        "buffer_seconds": buffer,
        "fallback_duration": fallback,
    }
    merged = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    return RenderConfig.from_settings(merged)


def print_timeline(result: RenderResult) -> None:
    table = Table(title="Step Timing", box=box.ROUNDED)
    table.add_column("Step", style="cyan", justify="right")
    table.add_column("Frames", justify="right")
    table.add_column("On screen", justify="right")
    table.add_column("Narration")

    for step in result.steps:
        table.add_row(
            str(step.index + 1),
            str(step.frame_count),
            f"{step.aligned_duration:.3f}s",
            "[yellow]fallback[/yellow]" if step.used_fallback else "[green]ok[/green]",
        )

    console.print(table)


@click.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Output file path (default: temp dir)")
@click.option("--provider", "-p", type=click.Choice(PROVIDER_NAMES), help="Speech engine")
@click.option("--voice", "-v", help="Voice ID for the speech engine")
@click.option("--fps", type=int, help="Frame rate (default: 30)")
@click.option("--width", type=int, help="Output width (default: 1920)")
@click.option("--height", type=int, help="Output height (default: 1080)")
@click.option("--buffer", type=float, help="Seconds held after each narration (default: 1.0)")
@click.option("--fallback", type=float, help="Seconds shown for steps without narration (default: 4.0)")
@click.option("--verbose", is_flag=True, help="Show debug logging")
def render_cmd(
    manifest: str,
    output: Optional[str],
    provider: Optional[str],
    voice: Optional[str],
    fps: Optional[int],
    width: Optional[int],
    height: Optional[int],
    buffer: Optional[float],
    fallback: Optional[float],
    verbose: bool,
):
    """
    Render a recorded tutorial into a narrated MP4.

    MANIFEST is a tutorial JSON file listing steps with screenshots and
    instructions (and optionally a narration "script").

    Examples:

        # Offline preview with silent placeholder narration
        trace-video render tutorial.json --provider mock

        # Real narration, 24 fps, 1.5s hold after each step
        trace-video render tutorial.json -p edge --fps 24 --buffer 1.5 -o out.mp4
    """
    setup_logging(verbose)
    settings = Settings()

    try:
        config = build_config(settings, fps, width, height, buffer, fallback)
    except ValueError as e:
        raise click.BadParameter(str(e))

    tutorial = Tutorial.load(Path(manifest))
    steps = tutorial.to_render_steps()
    console.print(f"\n[bold]{tutorial.title}[/bold] - {len(steps)} steps")

    try:
        ffmpeg_path = asyncio.run(require_ffmpeg())
    except FFmpegNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    speech = ProviderFactory.create(provider, settings)
    renderer = TutorialVideoRenderer(
        provider=speech,
        config=config,
        output_dir=settings.output_dir,
        voice_id=voice or settings.voice_id,
        ffmpeg_path=ffmpeg_path,
    )

    console.print("\n[bold]Rendering...[/bold]")
    result = asyncio.run(renderer.render(steps))

    if not result.success:
        console.print(f"\n[red]Render failed: {result.error_message}[/red]")
        raise SystemExit(1)

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        shutil.move(result.output_path, output)
        result.output_path = output

    print_timeline(result)
    console.print(f"\n[green]Render complete![/green]")
    console.print(f"  Output: {result.output_path}")
    console.print(f"  Duration: {result.duration:.3f}s")
    if result.file_size:
        size_mb = result.file_size / (1024 * 1024)
        console.print(f"  Size: {size_mb:.1f} MB")
    console.print(f"  Render time: {result.render_time:.1f}s")
    if result.error_message:
        console.print(f"[yellow]  Narration could not be added, video is silent: {result.error_message}[/yellow]")
    elif not result.audio_muxed:
        console.print("  No narration audio, video is silent")
