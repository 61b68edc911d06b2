"""CLI interface for funcmap.

Prints the function inventory of TypeScript/JavaScript files as JSON.
"""

import json
import sys

import click
from dotenv import load_dotenv

# Load .env before importing other funcmap modules
# This ensures env vars are set before module-level code reads them
load_dotenv()

from funcmap import __version__  # noqa: E402


@click.group()
@click.version_option(version=__version__, prog_name="funcmap")
def cli() -> None:
    """funcmap - function inventories for TypeScript and JavaScript sources."""
    pass


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--language",
    type=click.Choice(["auto", "typescript", "tsx", "javascript"]),
    default="auto",
    help="Grammar to parse with (default: auto-detect from extension)",
)
@click.option(
    "--resolve",
    "resolve_calls",
    is_flag=True,
    help="Keep only calls to functions defined in the analyzed files",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    envvar="FUNCMAP_WORKERS",
    help="Parallel workers for large batches (default: cpu count)",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    default=None,
    envvar="FUNCMAP_CACHE_DIR",
    help="Directory for the analysis cache (default: no cache)",
)
@click.option("--compact", is_flag=True, help="Print JSON without indentation")
def analyze(
    paths: tuple[str, ...],
    language: str,
    resolve_calls: bool,
    workers: int | None,
    cache_dir: str | None,
    compact: bool,
) -> None:
    """Extract the functions defined in source files.

    PATHS: Files or directories to analyze.
    """
    from funcmap.analyzers import analyze_batch, load_units, merge_results, resolve_batch
    from funcmap.logging import log_operation
    from funcmap.models.function import SourceUnit
    from funcmap.utils.cache import AnalysisCache

    try:
        loaded = load_units(paths)
        units = [entry for entry in loaded if isinstance(entry, SourceUnit)]
        cache = AnalysisCache(cache_dir).load() if cache_dir else None

        with log_operation("analyze", {"units": len(units)}):
            results = analyze_batch(
                units,
                workers=workers,
                cache=cache,
                language=None if language == "auto" else language,
            )

        if cache is not None:
            cache.save()
        if resolve_calls:
            results = resolve_batch(results)
        results = merge_results(loaded, results)
    except Exception as e:
        click.echo(f"Analysis failed: {e}", err=True)
        sys.exit(1)

    payload = [result.model_dump(mode="json", by_alias=True) for result in results]
    click.echo(json.dumps(payload, indent=None if compact else 2))


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
