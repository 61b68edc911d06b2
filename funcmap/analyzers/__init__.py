"""Analyzers for function inventories."""

from funcmap.analyzers.code_parser import (
    PARALLEL_THRESHOLD,
    analyze,
    analyze_batch,
    extract_functions,
    language_for_path,
    parse_source,
    scan_calls,
)
from funcmap.analyzers.resolve import (
    build_function_index,
    resolve_batch,
    resolve_called_functions,
)
from funcmap.analyzers.sources import DEFAULT_IGNORES, load_units, merge_results

__all__ = [
    # Extraction
    "analyze",
    "analyze_batch",
    "extract_functions",
    "parse_source",
    "scan_calls",
    "language_for_path",
    "PARALLEL_THRESHOLD",
    # Resolution
    "build_function_index",
    "resolve_batch",
    "resolve_called_functions",
    # Loading
    "DEFAULT_IGNORES",
    "load_units",
    "merge_results",
]
