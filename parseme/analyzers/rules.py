"""Ordered classification rules mapping syntax nodes to code elements.

Each :class:`ClassificationRule` pairs the node types it inspects with an
extractor. The classifier evaluates the rules that accept a node in table
order and keeps the first element produced, so earlier rules take priority.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Sequence

from tree_sitter import Node

from ..models import (
    ClassifiedElement,
    Component,
    ConfigObject,
    Endpoint,
    Middleware,
    Model,
    Service,
    Utility,
)
from .tree_sitter import (
    FUNCTION_VALUE_TYPES,
    JSX_TYPES,
    arguments_of,
    class_methods,
    decorator_call,
    decorators_of,
    line_of,
    name_of,
    node_text,
    parameter_names,
    string_value,
    unwrap_parentheses,
)

DECORATOR_VERBS = frozenset({"Get", "Post", "Put", "Delete", "Patch", "Options", "Head"})
CALL_VERBS = frozenset({"get", "post", "put", "delete", "patch", "options", "head"})
EXPORT_VERBS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"})
ROUTE_OBJECTS = frozenset({"app", "router", "server", "fastify", "express", "route", "api"})
EVENT_HANDLER_FUNCTIONS = frozenset({"defineEventHandler", "eventHandler"})
MIDDLEWARE_PARAMS = frozenset({"req", "request", "res", "response", "next", "ctx", "context"})
SERVICE_SUFFIXES = ("Service", "Repository", "Manager")

_ROUTE_OBJECT_FRAMEWORKS = {"fastify": "fastify", "app": "express", "router": "express", "express": "express"}

_NEXT_APP_ROUTE = re.compile(r"(?:^|/)app/api/(.+)/route\.[jt]sx?$")
_NEXT_PAGES_ROUTE = re.compile(r"(?:^|/)pages/api/(.+)\.[jt]sx?$")
_NUXT_API_ROUTE = re.compile(r"(?:^|/)server/api/(.+)\.[jt]s$")
_NUXT_SERVER_ROUTE = re.compile(r"(?:^|/)server/routes/(.+)\.[jt]s$")
_API_DIRECTORY = re.compile(r"(?:^|/)api/")
_HOOK_NAME = re.compile(r"^use[A-Z]")
_CONFIG_NAME = re.compile(r"^config|config$", re.IGNORECASE)

FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
FUNCTION_NODES = FUNCTION_DECLARATIONS | {"variable_declarator"}


@dataclass(frozen=True)
class RuleContext:
    """Per-file state handed to every extractor."""

    path: str
    source_bytes: bytes

    def text(self, node: Optional[Node]) -> str:
        return node_text(node, self.source_bytes)


Extractor = Callable[[Node, RuleContext], Optional[ClassifiedElement]]


@dataclass(frozen=True)
class ClassificationRule:
    category: str
    node_types: FrozenSet[str]
    extract: Extractor


def nextjs_route_path(path: str) -> str:
    """Derive the public route of a Next.js API handler from its file path."""
    match = _NEXT_APP_ROUTE.search(path) or _NEXT_PAGES_ROUTE.search(path)
    if match:
        return f"/api/{match.group(1)}"
    return "/api/unknown"


def nuxt_route_path(path: str) -> str:
    """Derive the public route of a Nuxt server handler from its file path."""
    match = _NUXT_API_ROUTE.search(path)
    if match:
        return f"/api/{match.group(1)}"
    match = _NUXT_SERVER_ROUTE.search(path)
    if match:
        return f"/{match.group(1)}"
    return "/api/unknown"


def _function_parts(node: Node, ctx: RuleContext) -> tuple[str, Optional[Node]]:
    """Return ``(name, function_node)`` for declarations and function-valued declarators."""
    if node.type in FUNCTION_DECLARATIONS:
        return name_of(node, ctx.source_bytes), node
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name_node is None or name_node.type != "identifier":
        return "", None
    if value is None or value.type not in FUNCTION_VALUE_TYPES:
        return "", None
    return ctx.text(name_node), value


# Endpoint extractors ---------------------------------------------------------


def _decorated_method_endpoint(node: Node, ctx: RuleContext) -> Optional[Endpoint]:
    for decorator in decorators_of(node):
        name, call = decorator_call(decorator, ctx.source_bytes)
        if call is None or name not in DECORATOR_VERBS:
            continue
        arguments = arguments_of(call)
        path = string_value(arguments[0], ctx.source_bytes) if arguments else None
        return Endpoint(
            name=name_of(node, ctx.source_bytes) or "anonymous",
            file=ctx.path,
            line=line_of(node),
            method=name.upper(),
            path=path if path is not None else "/",
            framework="nestjs",
        )
    return None


def _route_call_endpoint(node: Node, ctx: RuleContext) -> Optional[Endpoint]:
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return None
    target = callee.child_by_field_name("object")
    verb = ctx.text(callee.child_by_field_name("property"))
    if target is None or target.type != "identifier" or verb not in CALL_VERBS:
        return None
    owner = ctx.text(target).lower()
    if owner not in ROUTE_OBJECTS:
        return None
    arguments = arguments_of(node)
    if len(arguments) < 2:
        return None
    path = string_value(arguments[0], ctx.source_bytes)
    if path is None:
        return None
    handler_node = arguments[-1]
    handler = "anonymous"
    if handler_node.type in {"identifier", "member_expression"}:
        handler = ctx.text(handler_node)
    return Endpoint(
        name=handler,
        file=ctx.path,
        line=line_of(node),
        method=verb.upper(),
        path=path,
        framework=_ROUTE_OBJECT_FRAMEWORKS.get(owner),
    )


def _event_handler_endpoint(node: Node, ctx: RuleContext) -> Optional[Endpoint]:
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "identifier":
        return None
    name = ctx.text(callee)
    if name not in EVENT_HANDLER_FUNCTIONS:
        return None
    return Endpoint(
        name=name,
        file=ctx.path,
        line=line_of(node),
        method="GET/POST",
        path=nuxt_route_path(ctx.path),
        framework="nuxt.js",
    )


def _exported_verb_endpoint(node: Node, ctx: RuleContext) -> Optional[Endpoint]:
    if not _API_DIRECTORY.search(ctx.path):
        return None
    declaration = node.child_by_field_name("declaration")
    if declaration is None:
        return None
    candidates: list[tuple[str, Node]] = []
    if declaration.type in FUNCTION_DECLARATIONS:
        candidates.append((name_of(declaration, ctx.source_bytes), declaration))
    elif declaration.type in {"lexical_declaration", "variable_declaration"}:
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                candidates.append((name_of(declarator, ctx.source_bytes), declarator))
    for name, owner in candidates:
        if name in EXPORT_VERBS:
            return Endpoint(
                name=name,
                file=ctx.path,
                line=line_of(owner),
                method=name,
                path=nextjs_route_path(ctx.path),
                framework="next.js",
            )
    return None


def extract_endpoint(node: Node, ctx: RuleContext) -> Optional[Endpoint]:
    if node.type == "method_definition":
        return _decorated_method_endpoint(node, ctx)
    if node.type == "call_expression":
        return _route_call_endpoint(node, ctx) or _event_handler_endpoint(node, ctx)
    if node.type == "export_statement":
        return _exported_verb_endpoint(node, ctx)
    return None


# Other categories -------------------------------------------------------------


def extract_middleware(node: Node, ctx: RuleContext) -> Optional[Middleware]:
    name, function = _function_parts(node, ctx)
    if not name or function is None:
        return None
    count, names = parameter_names(function, ctx.source_bytes)
    if count < 3 or not {item.lower() for item in names} & MIDDLEWARE_PARAMS:
        return None
    return Middleware(name=name, file=ctx.path, line=line_of(node))


def extract_model(node: Node, ctx: RuleContext) -> Optional[Model]:
    name = name_of(node, ctx.source_bytes)
    if not name:
        return None
    if node.type == "type_alias_declaration":
        return Model(name=name, file=ctx.path, line=line_of(node), model_type="type")
    fields: list[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            key = member.child_by_field_name("name")
            if key is not None and key.type == "property_identifier":
                fields.append(ctx.text(key))
    return Model(name=name, file=ctx.path, line=line_of(node), fields=tuple(fields))


def extract_service(node: Node, ctx: RuleContext) -> Optional[Service]:
    name = name_of(node, ctx.source_bytes)
    if not name:
        return None
    injectable = any(
        call is not None and callee == "Injectable"
        for callee, call in (decorator_call(item, ctx.source_bytes) for item in decorators_of(node))
    )
    if not (name.endswith(SERVICE_SUFFIXES) or injectable):
        return None
    methods = []
    for method in class_methods(node):
        key = method.child_by_field_name("name")
        if key is not None and key.type == "property_identifier":
            methods.append(ctx.text(key))
    return Service(name=name, file=ctx.path, line=line_of(node), methods=tuple(methods))


def _returns_markup(body: Optional[Node]) -> bool:
    if body is None:
        return False
    if body.type != "statement_block":
        inner = unwrap_parentheses(body)
        return inner is not None and inner.type in JSX_TYPES
    for statement in body.named_children:
        if statement.type != "return_statement":
            continue
        values = [child for child in statement.named_children if child.type != "comment"]
        inner = unwrap_parentheses(values[0]) if values else None
        if inner is not None and inner.type in JSX_TYPES:
            return True
    return False


def extract_component(node: Node, ctx: RuleContext) -> Optional[Component]:
    if node.type in CLASS_DECLARATIONS:
        name = name_of(node, ctx.source_bytes)
        has_render = any(
            ctx.text(method.child_by_field_name("name")) == "render" for method in class_methods(node)
        )
        if name and has_render:
            return Component(name=name, file=ctx.path, line=line_of(node))
        return None
    name, function = _function_parts(node, ctx)
    if not name or function is None:
        return None
    if _returns_markup(function.child_by_field_name("body")):
        return Component(name=name, file=ctx.path, line=line_of(node))
    return None


def extract_utility(node: Node, ctx: RuleContext) -> Optional[Utility]:
    name, function = _function_parts(node, ctx)
    if function is None or not _HOOK_NAME.match(name):
        return None
    return Utility(name=name, file=ctx.path, line=line_of(node))


def extract_config(node: Node, ctx: RuleContext) -> Optional[ConfigObject]:
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name_node is None or name_node.type != "identifier":
        return None
    if value is None or value.type != "object":
        return None
    name = ctx.text(name_node)
    if not _CONFIG_NAME.search(name):
        return None
    keys: list[str] = []
    for member in value.named_children:
        if member.type == "shorthand_property_identifier":
            keys.append(ctx.text(member))
        elif member.type in {"pair", "method_definition"}:
            key = member.child_by_field_name("key") or member.child_by_field_name("name")
            if key is None:
                continue
            literal = string_value(key, ctx.source_bytes)
            keys.append(literal if literal is not None else ctx.text(key))
    return ConfigObject(name=name, file=ctx.path, line=line_of(node), keys=tuple(keys))


DEFAULT_RULES: Sequence[ClassificationRule] = (
    ClassificationRule(
        Endpoint.kind,
        frozenset({"method_definition", "call_expression", "export_statement"}),
        extract_endpoint,
    ),
    ClassificationRule(Middleware.kind, FUNCTION_NODES, extract_middleware),
    ClassificationRule(
        Model.kind, frozenset({"interface_declaration", "type_alias_declaration"}), extract_model
    ),
    ClassificationRule(Service.kind, CLASS_DECLARATIONS, extract_service),
    ClassificationRule(Component.kind, FUNCTION_NODES | CLASS_DECLARATIONS, extract_component),
    ClassificationRule(Utility.kind, FUNCTION_NODES, extract_utility),
    ClassificationRule(ConfigObject.kind, frozenset({"variable_declarator"}), extract_config),
)


__all__ = [
    "ClassificationRule",
    "DEFAULT_RULES",
    "RuleContext",
    "nextjs_route_path",
    "nuxt_route_path",
]
