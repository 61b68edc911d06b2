"""Tests for the funcmap CLI."""

import json
from pathlib import Path

from click.testing import CliRunner

from funcmap import __version__
from funcmap.cli import cli
from funcmap.utils.cache import CACHE_FILENAME


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


class TestAnalyzeCommand:
    """Tests for `funcmap analyze`."""

    def test_outputs_inventory_json(self, sample_project: Path) -> None:
        """The inventory is printed with camelCase keys."""
        result = _invoke("analyze", str(sample_project), "--workers", "1")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert len(payload) == 2

        payments = next(entry for entry in payload if entry["path"].endswith("payments.ts"))
        handler = payments["functions"][0]
        assert handler["name"] == "handler"
        assert handler["returnType"] == "void"
        assert handler["lineRange"]["start"] >= 1
        assert handler["sourceText"].startswith("export default async function handler")
        assert handler["innerFunctions"][0]["name"] == "anonymous"
        assert handler["calledFunctions"] == sorted(handler["calledFunctions"])
        assert "authenticateToken" in handler["calledFunctions"]
        assert payments["errors"] == []

    def test_resolve_flag(self, sample_project: Path) -> None:
        """--resolve keeps only calls to functions in the analyzed files."""
        result = _invoke("analyze", str(sample_project), "--resolve", "--compact")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        payments = next(entry for entry in payload if entry["path"].endswith("payments.ts"))
        assert payments["functions"][0]["calledFunctions"] == ["findOrder"]

    def test_language_option(self, temp_dir: Path) -> None:
        """--language overrides extension detection."""
        view = temp_dir / "view.txt"
        view.write_text("const v = () => <a onClick={() => go()} />;\n", encoding="utf-8")

        result = _invoke("analyze", str(view), "--language", "tsx")

        assert result.exit_code == 0, result.output
        functions = json.loads(result.stdout)[0]["functions"]
        assert functions[0]["innerFunctions"][0]["calledFunctions"] == ["go"]

    def test_cache_dir(self, sample_project: Path, temp_dir: Path) -> None:
        """--cache-dir writes a cache that later runs reuse."""
        cache_dir = temp_dir / ".funcmap"

        first = _invoke("analyze", str(sample_project / "api"), "--cache-dir", str(cache_dir))
        second = _invoke("analyze", str(sample_project / "api"), "--cache-dir", str(cache_dir))

        assert first.exit_code == 0, first.output
        assert (cache_dir / CACHE_FILENAME).exists()
        assert json.loads(second.stdout) == json.loads(first.stdout)

    def test_output_follows_path_order(self, sample_project: Path, monkeypatch) -> None:
        """A file that cannot be read keeps its place in the output."""
        orders = sample_project / "services" / "orders.ts"
        payments = sample_project / "api" / "payments.ts"
        read_text = Path.read_text

        def failing_read(self: Path, *args, **kwargs) -> str:
            if self == orders:
                raise PermissionError(f"Permission denied: '{self}'")
            return read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", failing_read)
        result = _invoke("analyze", str(orders), str(payments), "--compact")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert [entry["path"] for entry in payload] == [str(orders), str(payments)]
        assert payload[0]["errors"] and payload[0]["functions"] == []
        assert payload[1]["functions"][0]["name"] == "handler"

    def test_missing_path(self) -> None:
        """Nonexistent paths are rejected by argument validation."""
        result = _invoke("analyze", "/definitely/not/here.ts")
        assert result.exit_code == 2

    def test_version(self) -> None:
        """--version prints the package version."""
        result = _invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output
