"""Tests for resolving called functions against a batch."""

from funcmap.analyzers import (
    analyze,
    analyze_batch,
    build_function_index,
    resolve_batch,
    resolve_called_functions,
)
from funcmap.models.function import ANONYMOUS


class TestBuildFunctionIndex:
    """Tests for build_function_index."""

    def test_indexes_named_functions(self, orders_service_source: str) -> None:
        """Named functions at every depth are indexed; anonymous ones are not."""
        source = "function outer() {\n  function helper() {}\n  run(() => helper());\n}\n"
        index = build_function_index([analyze(source), analyze(orders_service_source)])

        assert set(index) == {"outer", "helper", "findOrder", "toObjectId"}
        assert ANONYMOUS not in index
        assert index["helper"][0].line_range.start == 2

    def test_accepts_batch_results(self, payment_handler_source: str) -> None:
        """FileFunctions results can be indexed directly."""
        results = analyze_batch([{"path": "api/payments.ts", "content": payment_handler_source}])
        assert list(build_function_index(results)) == ["handler"]

    def test_same_name_in_two_files(self) -> None:
        """Duplicate names keep every declaring record."""
        index = build_function_index([analyze("function init() {}"), analyze("function init() {}")])
        assert len(index["init"]) == 2


class TestResolveCalledFunctions:
    """Tests for resolve_called_functions."""

    SOURCE = (
        "function main() {\n"
        "  setup();\n"
        "  console.log(format());\n"
        "  run(() => {\n"
        "    setup();\n"
        "    external();\n"
        "  });\n"
        "}\n"
        "\n"
        "function setup() {}\n"
    )

    def test_filters_unknown_names(self) -> None:
        """Calls to functions outside the known set are dropped."""
        records = analyze(self.SOURCE)
        resolved = resolve_called_functions(records, build_function_index([records]))

        main = resolved[0]
        assert main.called_functions == {"setup"}
        assert main.inner_functions[0].called_functions == {"setup"}

    def test_inputs_untouched(self) -> None:
        """Resolution returns new records."""
        records = analyze(self.SOURCE)
        resolve_called_functions(records, {"setup"})

        assert records[0].called_functions == {"setup", "format", "run", "external"}
        assert records[0].inner_functions[0].called_functions == {"setup", "external"}

    def test_idempotent(self) -> None:
        """Applying the filter twice equals applying it once."""
        records = analyze(self.SOURCE)
        known = build_function_index([records])

        once = resolve_called_functions(records, known)
        twice = resolve_called_functions(once, known)
        assert twice == once

    def test_preserves_everything_else(self) -> None:
        """Only called_functions changes."""
        records = analyze(self.SOURCE)
        resolved = resolve_called_functions(records, set())

        for before, after in zip(records, resolved, strict=True):
            assert after.called_functions == frozenset()
            assert after.name == before.name
            assert after.source_text == before.source_text
            assert after.line_range == before.line_range
            assert len(after.inner_functions) == len(before.inner_functions)


class TestResolveBatch:
    """Tests for resolve_batch."""

    def test_resolves_across_units(self, payment_handler_source: str, orders_service_source: str) -> None:
        """Calls resolve against functions declared in any unit."""
        results = analyze_batch([
            {"path": "api/payments.ts", "content": payment_handler_source},
            {"path": "services/orders.ts", "content": orders_service_source},
        ])
        resolved = resolve_batch(results)

        handler = resolved[0].functions[0]
        assert handler.called_functions == {"findOrder"}
        assert handler.inner_functions[0].called_functions == {"findOrder"}

        update_order_status = resolved[1].functions[2]
        assert update_order_status.called_functions == {"toObjectId"}
        assert [r.path for r in resolved] == ["api/payments.ts", "services/orders.ts"]
