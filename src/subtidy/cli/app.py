"""SubTidy CLI entry point."""

from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from subtidy import __version__
from subtidy.cli.fingerprint import fingerprint
from subtidy.cli.languages import languages
from subtidy.cli.normalize import normalize
from subtidy.cli.run import run
from subtidy.cli.tracks import tracks

app = typer.Typer(
    name="subtidy",
    help="SubTidy: fetch missing subtitles and tidy embedded subtitle tracks.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"subtidy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """SubTidy: fetch missing subtitles and tidy embedded subtitle tracks."""
    # Load .env file for OpenSubtitles credentials (SUBTIDY_OPENSUBTITLES__*)
    # Does not override existing env vars; shell exports take precedence
    load_dotenv(override=False)


app.command("run")(run)
app.command("hash")(fingerprint)
app.command("tracks")(tracks)
app.command("normalize")(normalize)
app.command("languages")(languages)
