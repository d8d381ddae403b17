"""Tree-sitter parsing helpers shared by the classifier and its rules."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from tree_sitter import Node, Parser, Tree
from tree_sitter_language_pack import get_parser

from ..models import Dialect

GRAMMAR_BY_DIALECT: Dict[Dialect, str] = {
    Dialect.PLAIN: "javascript",
    Dialect.MARKUP_PLAIN: "javascript",
    Dialect.TYPED: "typescript",
    Dialect.MARKUP_TYPED: "tsx",
}

FUNCTION_VALUE_TYPES = frozenset({"arrow_function", "function_expression", "function", "generator_function"})
JSX_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})


class ParseError(RuntimeError):
    """Raised when a source file cannot be turned into a clean syntax tree."""


class SourceParser:
    """Lazily creates and caches one tree-sitter parser per grammar."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def parse(self, source_bytes: bytes, dialect: Dialect) -> Tree:
        grammar = GRAMMAR_BY_DIALECT[dialect]
        try:
            tree = self._get_parser(grammar).parse(source_bytes)
        except (LookupError, ValueError, RuntimeError) as exc:
            raise ParseError(f"{grammar} parser failed: {exc}") from exc
        if tree.root_node.has_error:
            raise ParseError(f"syntax error near line {_first_error_line(tree.root_node)}")
        return tree

    def _get_parser(self, grammar: str) -> Parser:
        parser = self._parsers.get(grammar)
        if parser is None:
            parser = get_parser(grammar)
            self._parsers[grammar] = parser
        return parser


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return line_of(node)
        if node.has_error:
            stack.extend(reversed(node.children))
    return line_of(root)


def node_text(node: Optional[Node], source_bytes: bytes) -> str:
    if node is None:
        return ""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def line_of(node: Node) -> int:
    """Return the 1-based line a node starts on."""
    return node.start_point[0] + 1


def string_value(node: Optional[Node], source_bytes: bytes) -> Optional[str]:
    """Return the literal value of a quoted string node, else ``None``."""
    if node is None or node.type != "string":
        return None
    text = node_text(node, source_bytes)
    return text[1:-1] if len(text) >= 2 else ""


def unwrap_parentheses(node: Optional[Node]) -> Optional[Node]:
    while node is not None and node.type == "parenthesized_expression":
        inner = [child for child in node.named_children if child.type != "comment"]
        node = inner[0] if inner else None
    return node


def arguments_of(call: Node) -> List[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def name_of(node: Node, source_bytes: bytes) -> str:
    return node_text(node.child_by_field_name("name"), source_bytes)


def decorators_of(node: Node) -> List[Node]:
    """Return decorators attached to a class or method node.

    Depending on the grammar, decorators are either children of the node
    itself, preceding siblings inside a class body, or children of an
    enclosing export statement.
    """
    decorators = [child for child in node.children if child.type == "decorator"]
    parent = node.parent
    if parent is not None and parent.type == "class_body":
        leading: List[Node] = []
        sibling = node.prev_named_sibling
        while sibling is not None and sibling.type == "decorator":
            leading.append(sibling)
            sibling = sibling.prev_named_sibling
        decorators = list(reversed(leading)) + decorators
    elif parent is not None and parent.type == "export_statement":
        decorators = [child for child in parent.children if child.type == "decorator"] + decorators
    return decorators


def decorator_call(decorator: Node, source_bytes: bytes) -> tuple[str, Optional[Node]]:
    """Return ``(name, call_node)`` for ``@Name(...)``; ``call_node`` is None for ``@Name``."""
    for child in decorator.named_children:
        if child.type == "call_expression":
            return node_text(child.child_by_field_name("function"), source_bytes), child
        if child.type in {"identifier", "member_expression"}:
            return node_text(child, source_bytes), None
    return "", None


def parameter_names(function: Node, source_bytes: bytes) -> tuple[int, List[str]]:
    """Return the parameter count and the plain identifier names among them."""
    single = function.child_by_field_name("parameter")
    if single is not None:
        return 1, [node_text(single, source_bytes)]
    parameters = function.child_by_field_name("parameters")
    if parameters is None:
        return 0, []
    count = 0
    names: List[str] = []
    for child in parameters.named_children:
        if child.type == "comment":
            continue
        count += 1
        target = child
        if child.type in {"required_parameter", "optional_parameter"}:
            target = child.child_by_field_name("pattern")
        if target is not None and target.type == "identifier":
            names.append(node_text(target, source_bytes))
    return count, names


def class_methods(class_node: Node) -> Iterator[Node]:
    body = class_node.child_by_field_name("body")
    if body is None:
        return
    for member in body.named_children:
        if member.type == "method_definition":
            yield member


def is_top_level(node: Node) -> bool:
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        parent = parent.parent
    return parent is not None and parent.type == "program"


__all__ = [
    "FUNCTION_VALUE_TYPES",
    "GRAMMAR_BY_DIALECT",
    "JSX_TYPES",
    "ParseError",
    "SourceParser",
    "arguments_of",
    "class_methods",
    "decorator_call",
    "decorators_of",
    "is_top_level",
    "line_of",
    "name_of",
    "node_text",
    "parameter_names",
    "string_value",
    "unwrap_parentheses",
]
