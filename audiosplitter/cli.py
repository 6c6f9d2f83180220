"""
audiosplitter.cli - Typer CLI entry point.

`split` is the post-processing hook a downloader calls once per file,
e.g. yt-dlp's `--exec "audiosplitter split --in {} --br 160 --seg 180"`.
It always exits 0 so a single bad file never stops the download queue.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.table import Table

from audiosplitter import __version__
from audiosplitter.config import (
    CONFIG_FILENAME,
    SplitterConfig,
    create_default_config,
    find_config_file,
    load_config,
    write_config,
)
from audiosplitter.exceptions import ConfigError
from audiosplitter.logging import configure_logging
from audiosplitter.utils import format_duration

app = typer.Typer(
    name="audiosplitter",
    help="Split downloaded audio into chapter files or fixed-length parts.\n\n"
    "Uses embedded chapter markers when present, otherwise cuts equal-length "
    "segments. Audio is stream-copied, never re-encoded.",
    add_completion=False,
)
console = Console()
logger = logging.getLogger("audiosplitter.cli")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"audiosplitter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Audiosplitter - chapter-aware audio splitting."""
    pass


def resolve_config(
    config_file: str | None,
    start: Path | None,
    overrides: dict | None = None,
) -> SplitterConfig:
    """Load config from an explicit file, or the nearest audiosplitter.yaml above start.

    Raises:
        ConfigError: If the config file is invalid
    """
    path = Path(config_file).expanduser() if config_file else None
    if path is None and start is not None:
        path = find_config_file(start)
    return load_config(path, overrides)


@app.command(
    "split",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def split_cmd(
    input_path: str | None = typer.Option(None, "--in", "-i", help="Downloaded media file"),
    bitrate: str | None = typer.Option(
        None, "--br", "--bitrate", help="Target bitrate in kbit/s (informational)"
    ),
    segment_seconds: str | None = typer.Option(
        None, "--seg", "--segment-seconds", help="Part length if there are no chapters"
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help=f"Config file (default: nearest {CONFIG_FILENAME})"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log tool commands"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
) -> None:
    """Split one downloaded file by chapters, or into fixed-length parts.

    Removes the source after a successful split. Always exits 0.
    """
    configure_logging(verbose=verbose, quiet=quiet)

    if not input_path or not input_path.strip():
        return

    from audiosplitter.split.segmenter import run_split
    from audiosplitter.validation import parse_positive_int

    source = Path(input_path)
    try:
        try:
            config = resolve_config(config_file, source.parent)
        except ConfigError as e:
            logger.warning("%s - using defaults", e)
            config = SplitterConfig()

        interval, warning = parse_positive_int(segment_seconds, config.segment_seconds)
        if warning:
            logger.warning(warning)
        kbps, warning = parse_positive_int(bitrate, config.bitrate_kbps, "bitrate")
        if warning:
            logger.debug(warning)
        config = config.model_copy(update={"segment_seconds": interval, "bitrate_kbps": kbps})
        logger.debug("Bitrate %d kbit/s, segment length %ds", config.bitrate_kbps, interval)
    except Exception as e:
        logger.error("Cannot prepare split of %s: %s", source, e)
        return

    run_split(source, config)


@app.command("probe")
def probe_cmd(
    media: str = typer.Argument(..., help="Media file to inspect"),
    segment_seconds: int | None = typer.Option(
        None, "--seg", "--segment-seconds", min=1, help="Part length if there are no chapters"
    ),
    decoder_name: str | None = typer.Option(
        None, "--decoder", "-d", help="Chapter decoder: auto, json or csv"
    ),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the usable chapters of a file and how it would be split."""
    from audiosplitter.chapters.extractor import extract_chapters, select_decoder
    from audiosplitter.models import ChapterPlan, choose_plan
    from audiosplitter.split.segmenter import chapter_output_path, part_output_pattern

    media_path = Path(media).expanduser()
    if not media_path.is_file():
        console.print(f"[red]Error: File not found: {media_path}[/red]")
        raise typer.Exit(1)

    try:
        config = resolve_config(
            config_file,
            media_path.parent,
            {"segment_seconds": segment_seconds, "chapter_decoder": decoder_name},
        )
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    decoder = select_decoder(config.chapter_decoder, config.ffprobe_path)
    chapters = extract_chapters(media_path, decoder, config.ffprobe_path)
    plan = choose_plan(chapters, config.segment_seconds)

    console.print(f"[dim]Decoder: {decoder.name}[/dim]")

    if isinstance(plan, ChapterPlan):
        table = Table(title=f"Chapters in {media_path.name}")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Start", style="green")
        table.add_column("End", style="green")
        table.add_column("Output", style="yellow")
        for index, chapter in enumerate(plan.chapters, start=1):
            table.add_row(
                f"{index:03d}",
                format_duration(chapter.start),
                format_duration(chapter.end),
                chapter_output_path(media_path, index, chapter.title).name,
            )
        console.print(table)
        console.print(f"\n[green]✓[/green] Would split into {len(plan.chapters)} chapter file(s)")
    else:
        console.print("[yellow]No usable chapters found[/yellow]")
        console.print(
            f"[green]✓[/green] Would split into {plan.interval_seconds}s parts: "
            f"{part_output_pattern(media_path).name}"
        )


@app.command("doctor")
def run_doctor(
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Check ffmpeg/ffprobe and the available chapter decoder."""
    console.print("[cyan]Running preflight checks...[/cyan]\n")

    from audiosplitter.chapters.extractor import select_decoder
    from audiosplitter.exceptions import DependencyError
    from audiosplitter.validation import check_ffmpeg

    try:
        config = resolve_config(config_file, Path.cwd())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    all_passed = True

    try:
        versions = check_ffmpeg(config.ffmpeg_path, config.ffprobe_path)
        table.add_row("FFmpeg", "✓ Installed", versions.get("ffmpeg_version", "unknown"))
        table.add_row("FFprobe", "✓ Installed", versions.get("ffprobe_version", "unknown"))
        decoder = select_decoder(config.chapter_decoder, config.ffprobe_path)
        table.add_row("Chapter decoder", decoder.name, f"setting: {config.chapter_decoder}")
    except DependencyError as e:
        table.add_row(e.dependency, "✗ Missing", e.install_hint or "")
        all_passed = False

    if config.config_path:
        table.add_row("Config", "✓ Loaded", str(config.config_path))
    else:
        table.add_row("Config", "—", "Defaults (no config file)")

    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config into"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a default audiosplitter.yaml."""
    config_path = Path(path) / CONFIG_FILENAME
    if config_path.exists() and not force:
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")


def entrypoint(argv: list[str] | None = None) -> int:
    """Console-script entry point.

    Runs the Typer app without its own exit handling so that usage errors
    on `split` (e.g. a bare trailing `--seg`) are logged and still exit 0.
    Other commands keep Click's usual exit codes.

    Args:
        argv: Command-line arguments without the program name

    Returns:
        Process exit status
    """
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        rv = app(args=args, prog_name="audiosplitter", standalone_mode=False)
    except click.exceptions.ClickException as e:
        if args and args[0] == "split":
            configure_logging()
            logger.error("Ignoring split invocation: %s", e.format_message())
            return 0
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        return 1
    return rv if isinstance(rv, int) else 0


if __name__ == "__main__":
    sys.exit(entrypoint())
