"""ffmpeg and settings check command"""

import asyncio
import os

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from core.config import Settings
from core.ffmpeg import check_ffmpeg_installed


console = Console()


def get_status_dict() -> dict:
    settings = Settings()
    ffmpeg = asyncio.run(check_ffmpeg_installed())
    return {
        "ffmpeg": ffmpeg,
        "settings": {
            "fps": settings.fps,
            "resolution": f"{settings.width}x{settings.height}",
            "buffer_seconds": settings.buffer_seconds,
            "fallback_duration": settings.fallback_duration,
            "provider": settings.provider,
        },
        "openai_api_key_set": bool(settings.openai_api_key or os.getenv("OPENAI_API_KEY")),
    }


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check_cmd(as_json: bool):
    """Check ffmpeg and show the active render settings"""

    status = get_status_dict()

    if as_json:
        import json
        click.echo(json.dumps(status, indent=2))
        return

    console.print(Panel.fit(
        "[bold blue]Trace Video Producer[/bold blue]\n"
        "Narrated tutorial video rendering",
        border_style="blue"
    ))

    ffmpeg = status["ffmpeg"]
    tools = Table(title="Tools", box=box.ROUNDED)
    tools.add_column("Tool", style="cyan")
    tools.add_column("Status")
    tools.add_column("Details", style="dim")
    if ffmpeg["installed"]:
        tools.add_row("ffmpeg", "[green]✓ Found[/green]", ffmpeg["version"])
        tools.add_row(
            "ffprobe",
            "[green]✓ Found[/green]" if ffmpeg["ffprobe"] else "[yellow]Missing[/yellow]",
            ffmpeg["ffprobe"] or "durations fall back to mutagen only",
        )
    else:
        tools.add_row("ffmpeg", "[red]✗ Missing[/red]", ffmpeg["error"])
    console.print(tools)

    settings_table = Table(title="Render Settings", box=box.ROUNDED)
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value")
    for key, value in status["settings"].items():
        settings_table.add_row(key, str(value))
    console.print(settings_table)
