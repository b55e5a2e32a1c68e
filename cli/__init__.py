"""Trace Video Producer CLI"""

import click
from dotenv import load_dotenv
from .check import check_cmd
from .render import render_cmd

# Load .env file at CLI startup
load_dotenv()


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Trace Video Producer - Narrated tutorial videos from recorded steps

    \b
    Quick Start:
      trace-video render tutorial.json --provider mock
      trace-video render tutorial.json --provider edge -o tutorial.mp4

    \b
    Commands:
      render   Render a tutorial manifest into a narrated MP4
      check    Check ffmpeg and show render settings
    """
    pass


main.add_command(render_cmd, name="render")
main.add_command(check_cmd, name="check")


if __name__ == "__main__":
    main()
