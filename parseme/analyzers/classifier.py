"""Single-pass syntax classification of JavaScript and TypeScript sources."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from tree_sitter import Node

from ..logging import get_logger
from ..models import (
    ClassifiedElement,
    Component,
    ConfigObject,
    Diagnostic,
    Endpoint,
    FileAnalysisRecord,
    FileCategory,
    Middleware,
    Model,
    Service,
    SourceFile,
)
from .rules import (
    CLASS_DECLARATIONS,
    DEFAULT_RULES,
    FUNCTION_DECLARATIONS,
    ClassificationRule,
    RuleContext,
)
from .tree_sitter import ParseError, SourceParser, arguments_of, is_top_level, name_of, string_value

_CATEGORY_PRIORITY: Tuple[Tuple[str, FileCategory], ...] = (
    (Endpoint.kind, FileCategory.ROUTE),
    (Middleware.kind, FileCategory.MIDDLEWARE),
    (Model.kind, FileCategory.MODEL),
    (Service.kind, FileCategory.SERVICE),
    (Component.kind, FileCategory.COMPONENT),
    (ConfigObject.kind, FileCategory.CONFIG),
)

_NAMED_DECLARATIONS = FUNCTION_DECLARATIONS | CLASS_DECLARATIONS | {
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
}

Handler = Callable[[Node, RuleContext, FileAnalysisRecord], None]


def _collect_import(node: Node, ctx: RuleContext, record: FileAnalysisRecord) -> None:
    specifier = string_value(node.child_by_field_name("source"), ctx.source_bytes)
    if specifier is not None:
        record.imports.append(specifier)


def _collect_call_import(node: Node, ctx: RuleContext, record: FileAnalysisRecord) -> None:
    callee = node.child_by_field_name("function")
    if callee is None:
        return
    if callee.type == "import" or (callee.type == "identifier" and ctx.text(callee) == "require"):
        arguments = arguments_of(node)
        specifier = string_value(arguments[0], ctx.source_bytes) if arguments else None
        if specifier is not None:
            record.imports.append(specifier)


def _collect_exports(node: Node, ctx: RuleContext, record: FileAnalysisRecord) -> None:
    if any(child.type == "default" for child in node.children):
        record.exports.append("default")
        return
    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        if declaration.type in _NAMED_DECLARATIONS:
            name = name_of(declaration, ctx.source_bytes)
            if name:
                record.exports.append(name)
        elif declaration.type in {"lexical_declaration", "variable_declaration"}:
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    record.exports.append(ctx.text(name_node))
        return
    for clause in node.named_children:
        if clause.type != "export_clause":
            continue
        for specifier in clause.named_children:
            if specifier.type != "export_specifier":
                continue
            exported = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
            if exported is not None:
                record.exports.append(ctx.text(exported))


def _collect_function(node: Node, ctx: RuleContext, record: FileAnalysisRecord) -> None:
    name = name_of(node, ctx.source_bytes)
    if name and is_top_level(node):
        record.functions.append(name)


def _collect_class(node: Node, ctx: RuleContext, record: FileAnalysisRecord) -> None:
    name = name_of(node, ctx.source_bytes)
    if name and is_top_level(node):
        record.classes.append(name)


DEFAULT_HANDLERS: Dict[str, Handler] = {
    "import_statement": _collect_import,
    "call_expression": _collect_call_import,
    "export_statement": _collect_exports,
    "function_declaration": _collect_function,
    "generator_function_declaration": _collect_function,
    "class_declaration": _collect_class,
    "abstract_class_declaration": _collect_class,
}


def resolve_category(path: str, elements: Iterable[ClassifiedElement]) -> FileCategory:
    """Pick the single file category from its elements, falling back to path hints."""
    kinds = {element.kind for element in elements}
    for kind, category in _CATEGORY_PRIORITY:
        if kind in kinds:
            return category
    if "test" in path or "spec" in path:
        return FileCategory.TEST
    return FileCategory.UTILITY


class SyntaxClassifier:
    """Parses one file and extracts declarations plus classified elements."""

    def __init__(
        self,
        rules: Sequence[ClassificationRule] = DEFAULT_RULES,
        handlers: Dict[str, Handler] | None = None,
        parser: SourceParser | None = None,
    ) -> None:
        self.rules = tuple(rules)
        self.handlers = dict(DEFAULT_HANDLERS if handlers is None else handlers)
        self.parser = parser or SourceParser()
        self.logger = get_logger("classifier")
        self._rules_by_type: Dict[str, List[ClassificationRule]] = {}
        for rule in self.rules:
            for node_type in rule.node_types:
                self._rules_by_type.setdefault(node_type, []).append(rule)

    def classify(self, content: str | bytes, source: SourceFile) -> FileAnalysisRecord:
        """Classify ``content`` as the file ``source``; raises ParseError on bad input."""
        if isinstance(content, bytes):
            try:
                content.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"{source.path} is not valid UTF-8: {exc}") from exc
            source_bytes = content
        else:
            source_bytes = content.encode("utf-8")

        tree = self.parser.parse(source_bytes, source.dialect)
        ctx = RuleContext(path=source.path, source_bytes=source_bytes)
        record = FileAnalysisRecord(path=source.path)

        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            handler = self.handlers.get(node.type)
            if handler is not None:
                handler(node, ctx, record)
            for rule in self._rules_by_type.get(node.type, ()):
                element = rule.extract(node, ctx)
                if element is not None:
                    record.elements.append(element)
                    break
            stack.extend(reversed(node.named_children))

        record.category = resolve_category(source.path, record.elements)
        return record

    def classify_file(self, root: Path, source: SourceFile) -> FileAnalysisRecord:
        content = (root / source.path).read_bytes()
        return self.classify(content, source)

    def classify_files(
        self, root: Path, sources: Iterable[SourceFile]
    ) -> Tuple[List[FileAnalysisRecord], List[Diagnostic]]:
        """Classify every source, turning per-file failures into diagnostics."""
        records: List[FileAnalysisRecord] = []
        diagnostics: List[Diagnostic] = []
        for source in sources:
            try:
                records.append(self.classify_file(root, source))
            except (ParseError, OSError) as exc:
                self.logger.debug("Skipping %s: %s", source.path, exc)
                diagnostics.append(
                    Diagnostic(
                        code="parse_error",
                        message=f"Failed to analyze {source.path}: {exc}",
                        path=source.path,
                    )
                )
        return records, diagnostics


__all__ = ["DEFAULT_HANDLERS", "SyntaxClassifier", "resolve_category"]
