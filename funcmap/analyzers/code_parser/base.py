"""Syntax tree building and tree-sitter helpers.

Wraps tree-sitter parsing of TypeScript/JavaScript source text into a
SourceTree that knows how to slice text and map byte offsets to lines.
"""

from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import PurePath

from tree_sitter import Language, Node, Parser, Tree

from funcmap.logging import logger

# Lone surrogates survive the str -> bytes -> str round trip
_ENCODING = "utf-8"
_ENCODING_ERRORS = "surrogatepass"

# Lazy imports for tree-sitter language bindings
_LANGUAGES: dict[str, Language] = {}


def _get_language(name: str) -> Language | None:
    """Lazily load tree-sitter language bindings."""
    if name in _LANGUAGES:
        return _LANGUAGES[name]

    try:
        if name == "typescript":
            import tree_sitter_typescript as ts_typescript

            _LANGUAGES[name] = Language(ts_typescript.language_typescript())
        elif name == "tsx":
            import tree_sitter_typescript as ts_typescript

            _LANGUAGES[name] = Language(ts_typescript.language_tsx())
        elif name == "javascript":
            import tree_sitter_javascript as ts_javascript

            _LANGUAGES[name] = Language(ts_javascript.language())
        else:
            return None
    except ImportError as e:
        logger.warning("  tree-sitter binding not available for %s: %s", name, e)
        return None

    return _LANGUAGES.get(name)


# File extension to language mapping
EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

DEFAULT_LANGUAGE = "typescript"


def language_for_path(path: str | PurePath) -> str:
    """Pick the grammar for a file path, defaulting to TypeScript."""
    return EXTENSION_TO_LANGUAGE.get(PurePath(path).suffix.lower(), DEFAULT_LANGUAGE)


@dataclass(frozen=True)
class LanguageConfig:
    """Node kinds that drive function extraction for one grammar."""

    name: str

    # Every function-like construct
    function_types: frozenset[str]
    # The subset that carries an explicit name
    declaration_types: frozenset[str]

    call_type: str = "call_expression"
    callee_field: str = "function"
    identifier_type: str = "identifier"

    # Wrappers whose keywords belong to the wrapped declaration
    modifier_wrappers: frozenset[str] = field(default_factory=lambda: frozenset({"export_statement"}))


TYPESCRIPT_CONFIG = LanguageConfig(
    name="typescript",
    function_types=frozenset({
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "function_expression",
        "function",  # function_expression before tree-sitter-typescript 0.23
        "generator_function",
        "arrow_function",
    }),
    declaration_types=frozenset({
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
    }),
    modifier_wrappers=frozenset({"export_statement", "ambient_declaration"}),
)

JAVASCRIPT_CONFIG = LanguageConfig(
    name="javascript",
    function_types=frozenset({
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
    }),
    declaration_types=frozenset({
        "function_declaration",
        "generator_function_declaration",
    }),
)

LANGUAGE_CONFIGS: dict[str, LanguageConfig] = {
    "typescript": TYPESCRIPT_CONFIG,
    "tsx": TYPESCRIPT_CONFIG,  # TSX uses same config as TS
    "javascript": JAVASCRIPT_CONFIG,
}


@dataclass
class SourceTree:
    """A parsed source unit.

    Byte offsets come from tree-sitter; text slices are decoded back to
    exactly the characters of the original input.
    """

    tree: Tree
    source: bytes
    language: str
    _line_starts: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        starts = [0]
        pos = self.source.find(b"\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = self.source.find(b"\n", pos + 1)
        self._line_starts = starts

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def config(self) -> LanguageConfig:
        return LANGUAGE_CONFIGS[self.language]

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error

    def slice(self, start: int, end: int) -> str:
        """Return the source text between two byte offsets."""
        return self.source[start:end].decode(_ENCODING, errors=_ENCODING_ERRORS)

    def text(self, node: Node) -> str:
        """Return the source text covered by a node."""
        return self.slice(node.start_byte, node.end_byte)

    def line_of(self, offset: int) -> int:
        """Map a byte offset to its 1-based line number."""
        return bisect_right(self._line_starts, offset)


def parse_source(source: str, language: str = DEFAULT_LANGUAGE) -> SourceTree | None:
    """Parse source text into a SourceTree.

    tree-sitter recovers from local syntax errors, so a file with a broken
    region still yields a tree; the damaged region shows up as ERROR nodes.

    Args:
        source: The source text of one file.
        language: Grammar name (typescript, tsx or javascript).

    Returns:
        The parsed tree, or None when nothing can be parsed (empty input,
        unavailable grammar, or a parser failure).

    Raises:
        ValueError: If the language name is not supported.
    """
    if language not in LANGUAGE_CONFIGS:
        raise ValueError(f"Unsupported language: {language}")

    if not source.strip():
        logger.debug("  Empty source, nothing to parse")
        return None

    ts_language = _get_language(language)
    if ts_language is None:
        return None

    encoded = source.encode(_ENCODING, errors=_ENCODING_ERRORS)
    try:
        tree = Parser(ts_language).parse(encoded)
    except (ValueError, RuntimeError) as e:
        logger.warning("  Failed to parse %s source: %s", language, e)
        return None

    if tree.root_node.has_error:
        logger.debug("  %s source has syntax errors, continuing with partial tree", language)

    return SourceTree(tree=tree, source=encoded, language=language)


# =============================================================================
# Tree-sitter Helper Functions
# =============================================================================


def _iter_nodes(node: Node) -> Iterator[Node]:
    """Yield a node and its named descendants in pre-order (tokens are leaves)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def _find_nodes(node: Node, types: set[str] | frozenset[str]) -> list[Node]:
    """Find all nodes of given types, in document order."""
    return [n for n in _iter_nodes(node) if n.type in types]


def _get_child_by_field(node: Node, field_name: str) -> Node | None:
    """Get child by field name."""
    return node.child_by_field_name(field_name)


def _get_child_by_type(node: Node, type_name: str) -> Node | None:
    """Get first child of a specific type."""
    for child in node.children:
        if child.type == type_name:
            return child
    return None
