"""Command-line entry point: classify a photo or serve the API."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from moodlens.config import get_settings
from moodlens.ml.classifier import MoodClassifier
from moodlens.ml.errors import ClassificationError
from moodlens.presenter import format_percent, format_result

logger = logging.getLogger(__name__)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """MoodLens: guess a mood from a photo."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@main.command()
@click.argument("image", type=click.Path(path_type=Path, dir_okay=False))
@click.option("--top-k", type=click.IntRange(min=1), default=None, help="Number of ranked labels (default: settings).")
@click.option("--rank", type=click.IntRange(min=0), default=None, help="Rank to display (default: settings).")
@click.option("--all", "show_all", is_flag=True, help="Print every ranked label instead of the mood sentence.")
def classify(image: Path, top_k: int | None, rank: int | None, show_all: bool) -> None:
    """Classify IMAGE and print its mood."""
    settings = get_settings()
    display_rank = settings.display_rank if rank is None else rank
    try:
        classifier = MoodClassifier.from_settings(settings)
        ranked = classifier.classify_path(image, top_k=top_k)
    except ClassificationError as exc:
        raise click.ClickException(str(exc)) from exc

    if show_all:
        for position, result in enumerate(ranked):
            click.echo(f"{position}\t{result.label}\t{format_percent(result.confidence)}%")
        return

    try:
        click.echo(format_result(ranked, display_rank))
    except IndexError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
@click.option("--host", default=None, help="Bind address (default: settings).")
@click.option("--port", type=int, default=None, help="Port (default: settings).")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "moodlens.main:app",
        host=host or settings.host,
        port=port or settings.port,
    )
