"""TypeScript/JavaScript function extraction.

Walks a parsed source tree, builds a FunctionRecord for every function-like
construct (declarations, function expressions, arrow functions) and nests
each record under its closest enclosing function.
"""

from tree_sitter import Node

from funcmap.analyzers.code_parser.base import (
    TYPESCRIPT_CONFIG,
    LanguageConfig,
    SourceTree,
    _find_nodes,
    _get_child_by_field,
    _get_child_by_type,
)
from funcmap.models.function import (
    ANONYMOUS,
    ANY_TYPE,
    VOID_TYPE,
    FunctionRecord,
    LineRange,
    Parameter,
)

# Parameter wrappers used by tree-sitter-typescript
_TS_PARAMETER_TYPES = frozenset({"required_parameter", "optional_parameter"})

# Anonymous function forms that `export default` turns into declarations
_DEFAULT_EXPORTABLE_TYPES = frozenset({"function_expression", "function", "generator_function"})


def extract_functions(tree: SourceTree) -> list[FunctionRecord]:
    """Extract the function inventory of a parsed source unit.

    Traverses depth-first in document order. Each stack entry carries the
    list its function records belong to: the top-level result for nodes with
    no enclosing function, otherwise the enclosing record's inner_functions.

    Args:
        tree: The parsed source unit.

    Returns:
        Top-level function records; nested ones hang off inner_functions.
    """
    config = tree.config
    roots: list[FunctionRecord] = []

    stack: list[tuple[Node, list[FunctionRecord]]] = [(tree.root, roots)]
    while stack:
        node, container = stack.pop()
        if node.is_named and node.type in config.function_types:
            record = _build_record(node, tree, config)
            container.append(record)
            container = record.inner_functions
        stack.extend((child, container) for child in reversed(node.named_children))

    return roots


def scan_calls(node: Node, config: LanguageConfig = TYPESCRIPT_CONFIG) -> frozenset[str]:
    """Collect the bare identifiers called anywhere under a node.

    Only `foo()`-style calls count. Method calls (`obj.foo()`), calls on
    computed callees, tagged templates, `super()` and dynamic `import()`
    are skipped.

    Args:
        node: Root of the subtree to scan (usually a function node).
        config: Language configuration naming the call node kinds.

    Returns:
        Distinct callee names.
    """
    calls: set[str] = set()
    for call_node in _find_nodes(node, {config.call_type}):
        # tree-sitter parses tagged templates (tag`...`) as calls
        arguments = _get_child_by_field(call_node, "arguments")
        if arguments is not None and arguments.type == "template_string":
            continue
        callee = _get_child_by_field(call_node, config.callee_field)
        if callee is not None and callee.type == config.identifier_type:
            calls.add(callee.text.decode())
    return frozenset(calls)


def _build_record(node: Node, tree: SourceTree, config: LanguageConfig) -> FunctionRecord:
    start, end = _function_extent(node, config)
    start_line = tree.line_of(start)
    end_line = tree.line_of(end - 1) if end > start else start_line

    return FunctionRecord(
        name=_function_name(node, tree, config),
        parameters=_extract_parameters(node, tree),
        return_type=_return_type(node, tree),
        line_range=LineRange(start=start_line, end=max(end_line, start_line)),
        source_text=tree.slice(start, end),
        inner_functions=[],
        called_functions=scan_calls(node, config),
    )


def _function_extent(node: Node, config: LanguageConfig) -> tuple[int, int]:
    """Byte span of a function, widened over `export`/`declare` keywords."""
    start = node.start_byte
    if node.type in config.declaration_types or _is_default_export(node):
        parent = node.parent
        while parent is not None and parent.type in config.modifier_wrappers:
            start = parent.start_byte
            parent = parent.parent
    return start, node.end_byte


def _is_default_export(node: Node) -> bool:
    """`export default function name() {}` parsed as an expression.

    `export = function name() {}` stays an expression: only the `default`
    form declares.
    """
    parent = node.parent
    return (
        node.type in _DEFAULT_EXPORTABLE_TYPES
        and parent is not None
        and parent.type == "export_statement"
        and _get_child_by_type(parent, "default") is not None
    )


def _function_name(node: Node, tree: SourceTree, config: LanguageConfig) -> str:
    if node.type not in config.declaration_types and not _is_default_export(node):
        return ANONYMOUS
    name_node = _get_child_by_field(node, "name")
    if name_node is None:
        return ANONYMOUS
    return tree.text(name_node)


def _extract_parameters(node: Node, tree: SourceTree) -> list[Parameter]:
    params_node = _get_child_by_field(node, "parameters")
    if params_node is None:
        # Parenthesis-less arrow function: `x => x * 2`
        single = _get_child_by_field(node, "parameter")
        if single is None:
            return []
        return [Parameter(name=tree.text(single), type=ANY_TYPE)]

    parameters = []
    for child in params_node.named_children:
        if child.type == "comment":
            continue
        parameters.append(_parameter_from_node(child, tree))
    return parameters


def _parameter_from_node(node: Node, tree: SourceTree) -> Parameter:
    if node.type not in _TS_PARAMETER_TYPES:
        # JavaScript grammar: the pattern itself is the parameter
        return Parameter(name=_pattern_name(node, tree), type=ANY_TYPE)

    pattern = _get_child_by_field(node, "pattern")
    name = _pattern_name(pattern, tree) if pattern is not None else tree.text(node)

    annotation = _get_child_by_field(node, "type")
    if annotation is None:
        annotation = _get_child_by_type(node, "type_annotation")
    type_text = _annotation_text(annotation, tree) if annotation is not None else ""
    return Parameter(name=name, type=type_text or ANY_TYPE)


def _pattern_name(node: Node, tree: SourceTree) -> str:
    """Name of a parameter pattern; destructuring patterns keep their text."""
    if node.type == "rest_pattern":
        inner = [c for c in node.named_children if c.type != "comment"]
        if inner:
            return tree.text(inner[0])
        return tree.text(node).lstrip(".").strip()
    if node.type == "assignment_pattern":
        left = _get_child_by_field(node, "left")
        if left is not None:
            return _pattern_name(left, tree)
    return tree.text(node)


def _return_type(node: Node, tree: SourceTree) -> str:
    annotation = _get_child_by_field(node, "return_type")
    if annotation is None:
        return VOID_TYPE
    return _annotation_text(annotation, tree) or VOID_TYPE


def _annotation_text(annotation: Node, tree: SourceTree) -> str:
    """Text of a `: T` annotation without its colon."""
    named = [c for c in annotation.named_children if c.type != "comment"]
    if not named:
        return tree.text(annotation).lstrip(":").strip()
    return tree.slice(named[0].start_byte, named[-1].end_byte)
