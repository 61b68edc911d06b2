"""Restrict called-function sets to names defined in an analyzed batch.

Calls to imported or global functions cannot be followed within the batch;
this pass drops them. It is never applied by extraction itself.
"""

from collections.abc import Container, Iterable

from funcmap.models.function import ANONYMOUS, FileFunctions, FunctionRecord


def build_function_index(
    results: Iterable[FileFunctions | list[FunctionRecord]],
) -> dict[str, list[FunctionRecord]]:
    """Map each declared function name to the records that declare it.

    Nested functions are indexed too; anonymous functions are not.

    Args:
        results: Batch results, or plain lists of top-level records.

    Returns:
        Dict of function name -> records with that name, in discovery order.
    """
    index: dict[str, list[FunctionRecord]] = {}
    for result in results:
        functions = result.functions if isinstance(result, FileFunctions) else result
        for top_level in functions:
            for record in top_level.walk():
                if record.name != ANONYMOUS:
                    index.setdefault(record.name, []).append(record)
    return index


def resolve_called_functions(
    functions: list[FunctionRecord],
    known_names: Container[str],
) -> list[FunctionRecord]:
    """Drop calls to names outside `known_names`, at every nesting depth.

    The input records are left untouched; filtered copies are returned.
    Applying the filter again with the same names changes nothing.

    Args:
        functions: Records to filter.
        known_names: Names that resolve within the batch (e.g. an index
            from build_function_index).

    Returns:
        New records with filtered called_functions.
    """
    return [_resolve_record(record, known_names) for record in functions]


def _resolve_record(record: FunctionRecord, known_names: Container[str]) -> FunctionRecord:
    return record.model_copy(
        update={
            "called_functions": frozenset(
                name for name in record.called_functions if name in known_names
            ),
            "inner_functions": resolve_called_functions(record.inner_functions, known_names),
        }
    )


def resolve_batch(results: list[FileFunctions]) -> list[FileFunctions]:
    """Resolve every unit of a batch against the functions the batch defines."""
    index = build_function_index(results)
    return [
        result.model_copy(update={"functions": resolve_called_functions(result.functions, index)})
        for result in results
    ]
