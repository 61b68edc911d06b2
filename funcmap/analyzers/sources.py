"""Load source units from files and directories.

Directories are walked for TypeScript/JavaScript files, skipping dependency,
build and tooling directories.
"""

from collections.abc import Iterable
from pathlib import Path

from funcmap.analyzers.code_parser.base import EXTENSION_TO_LANGUAGE
from funcmap.logging import logger
from funcmap.models.function import FileFunctions, SourceUnit

# Universal ignore patterns - always excluded when walking directories
DEFAULT_IGNORES: frozenset[str] = frozenset({
    # Version control
    ".git",
    ".svn",
    ".hg",
    # Dependencies
    "node_modules",
    "vendor",
    "bower_components",
    # Build outputs
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".svelte-kit",
    ".turbo",
    # IDE
    ".idea",
    ".vscode",
    # Test coverage
    "coverage",
    ".nyc_output",
    # Our own cache directory
    ".funcmap",
})


def _iter_source_files(directory: Path, skip_patterns: frozenset[str]) -> list[Path]:
    files = []
    for filepath in directory.rglob("*"):
        if not filepath.is_file():
            continue
        if filepath.suffix.lower() not in EXTENSION_TO_LANGUAGE:
            continue
        if any(part in skip_patterns for part in filepath.relative_to(directory).parts):
            continue
        files.append(filepath)
    return sorted(files)


def load_units(
    paths: Iterable[Path | str],
    exclude: Iterable[str] | None = None,
) -> list[SourceUnit | FileFunctions]:
    """Read source units from files and directories.

    Files named explicitly are always read; directories contribute every
    file with a supported extension.

    Args:
        paths: Files and/or directories.
        exclude: Directory names to skip. If None, uses DEFAULT_IGNORES.

    Returns:
        One entry per file, in the order of paths. Readable files are
        SourceUnits; unreadable ones are FileFunctions carrying the read error.
    """
    skip_patterns = frozenset(exclude) if exclude is not None else DEFAULT_IGNORES

    files: list[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            found = _iter_source_files(path, skip_patterns)
            logger.info("  load_units: found %d files under %s", len(found), path)
            files.extend(found)
        else:
            files.append(path)

    loaded: list[SourceUnit | FileFunctions] = []
    for filepath in files:
        try:
            content = filepath.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("  Failed to read %s: %s", filepath, e)
            loaded.append(FileFunctions(path=str(filepath), errors=[str(e)]))
            continue
        loaded.append(SourceUnit(path=str(filepath), content=content))

    return loaded


def merge_results(
    loaded: list[SourceUnit | FileFunctions],
    results: list[FileFunctions],
) -> list[FileFunctions]:
    """Put read failures back among analysis results, in load order.

    Args:
        loaded: Output of load_units.
        results: One result per SourceUnit in loaded, in the same order.

    Returns:
        One FileFunctions per loaded entry.

    Raises:
        ValueError: If results does not match the units in loaded.
    """
    analyzed = iter(results)
    merged = []
    for entry in loaded:
        if isinstance(entry, FileFunctions):
            merged.append(entry)
            continue
        result = next(analyzed, None)
        if result is None or result.path != entry.path:
            raise ValueError(f"No analysis result for {entry.path}")
        merged.append(result)
    if next(analyzed, None) is not None:
        raise ValueError("More analysis results than loaded units")
    return merged
