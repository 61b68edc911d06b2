"""Function inventory extraction using tree-sitter.

Parses TypeScript, TSX and JavaScript source units and returns the
functions each one defines, nested by containment.
"""

import multiprocessing
from collections.abc import Iterable, Mapping
from concurrent.futures import ProcessPoolExecutor, as_completed

from funcmap.analyzers.code_parser.base import (
    DEFAULT_LANGUAGE,
    EXTENSION_TO_LANGUAGE,
    JAVASCRIPT_CONFIG,
    LANGUAGE_CONFIGS,
    TYPESCRIPT_CONFIG,
    LanguageConfig,
    SourceTree,
    language_for_path,
    parse_source,
)
from funcmap.analyzers.code_parser.typescript import extract_functions, scan_calls
from funcmap.logging import ProgressBar, logger, progress_bar
from funcmap.models.function import FileFunctions, FunctionRecord, SourceUnit
from funcmap.utils.cache import AnalysisCache

# Use 'spawn' context to avoid deadlocks when forking from threads.
_MP_CONTEXT = multiprocessing.get_context("spawn")

# Minimum units to trigger parallel analysis (sequential is faster for small sets)
PARALLEL_THRESHOLD = 50


def analyze(source_text: str, language: str = DEFAULT_LANGUAGE) -> list[FunctionRecord]:
    """Analyze one source unit.

    Args:
        source_text: The file's text.
        language: Grammar name (typescript, tsx or javascript).

    Returns:
        Top-level function records, in document order. Empty when the
        input cannot be parsed at all.
    """
    tree = parse_source(source_text, language)
    if tree is None:
        return []
    return extract_functions(tree)


def _analyze_unit(unit: SourceUnit, language: str) -> FileFunctions:
    """Analyze a unit and wrap the result (also the worker-process entry point)."""
    return FileFunctions(path=unit.path, functions=analyze(unit.content, language))


def analyze_batch(
    units: Iterable[SourceUnit | Mapping[str, str]],
    workers: int | None = None,
    cache: AnalysisCache | None = None,
    language: str | None = None,
) -> list[FileFunctions]:
    """Analyze a collection of source units independently.

    Results keep the input order. For large batches (>= PARALLEL_THRESHOLD
    units needing analysis) work is spread over a process pool.

    Args:
        units: SourceUnit objects or mappings with `path` and `content`.
        workers: Number of parallel workers. None = auto (cpu_count).
                 Set to 1 to disable parallel analysis.
        cache: Optional result cache keyed by source text.
        language: Grammar override; None picks one per unit from its path.

    Returns:
        One FileFunctions per unit, in input order.
    """
    batch = [SourceUnit.model_validate(unit) for unit in units]
    languages = [language or language_for_path(unit.path) for unit in batch]
    results: list[FileFunctions | None] = [None] * len(batch)

    pending: list[int] = []
    for index, unit in enumerate(batch):
        cached = cache.get(unit.content, languages[index]) if cache is not None else None
        if cached is not None:
            results[index] = FileFunctions(path=unit.path, functions=cached)
        else:
            pending.append(index)

    if cache is not None:
        logger.info("  analyze_batch: %d cached, %d to analyze", len(batch) - len(pending), len(pending))

    effective_workers = workers if workers is not None else multiprocessing.cpu_count()
    use_parallel = effective_workers > 1 and len(pending) >= PARALLEL_THRESHOLD

    if use_parallel:
        logger.info("  Analyzing %d units in parallel (%d workers)", len(pending), effective_workers)
        with ProcessPoolExecutor(max_workers=effective_workers, mp_context=_MP_CONTEXT) as executor:
            future_to_index = {
                executor.submit(_analyze_unit, batch[index], languages[index]): index
                for index in pending
            }
            with ProgressBar(total=len(pending), desc="Analyzing", unit="files") as pbar:
                for future in as_completed(future_to_index):
                    pbar.update()
                    index = future_to_index[future]
                    try:
                        results[index] = future.result()
                    except Exception as e:
                        logger.warning("  Failed to analyze %s: %s", batch[index].path, e)
                        results[index] = FileFunctions(path=batch[index].path, errors=[str(e)])
    else:
        for index in progress_bar(pending, desc="Analyzing", unit="files"):
            results[index] = _analyze_unit(batch[index], languages[index])

    if cache is not None:
        for index in pending:
            result = results[index]
            if result is not None and not result.errors:
                cache.put(batch[index].content, languages[index], result.functions)

    return [result for result in results if result is not None]


__all__ = [
    # Main functions
    "analyze",
    "analyze_batch",
    "parse_source",
    "extract_functions",
    "scan_calls",
    "PARALLEL_THRESHOLD",
    # Core types
    "SourceTree",
    "LanguageConfig",
    # Language configs
    "TYPESCRIPT_CONFIG",
    "JAVASCRIPT_CONFIG",
    "LANGUAGE_CONFIGS",
    # Mappings
    "DEFAULT_LANGUAGE",
    "EXTENSION_TO_LANGUAGE",
    "language_for_path",
]
