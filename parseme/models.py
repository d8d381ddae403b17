"""Core data models shared across parseme components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple


class Dialect(str, Enum):
    """Source dialects distinguished by file extension."""

    PLAIN = "plain"
    TYPED = "typed"
    MARKUP_PLAIN = "markup-plain"
    MARKUP_TYPED = "markup-typed"


DIALECT_BY_EXTENSION: Dict[str, Dialect] = {
    "js": Dialect.PLAIN,
    "ts": Dialect.TYPED,
    "jsx": Dialect.MARKUP_PLAIN,
    "tsx": Dialect.MARKUP_TYPED,
}


@dataclass(frozen=True)
class SourceFile:
    """A discovered file path (relative to the root) and its dialect."""

    path: str
    dialect: Dialect

    @classmethod
    def from_path(cls, path: str) -> Optional["SourceFile"]:
        suffix = path.rsplit(".", 1)[-1].lower() if "." in path else ""
        dialect = DIALECT_BY_EXTENSION.get(suffix)
        if dialect is None:
            return None
        return cls(path=path, dialect=dialect)


@dataclass(frozen=True)
class ClassifiedElement:
    """Base for every element category found by the classifier."""

    kind: ClassVar[str] = "element"

    name: str
    file: str
    line: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "file": self.file, "line": self.line}


@dataclass(frozen=True)
class Endpoint(ClassifiedElement):
    """HTTP endpoint; ``name`` holds the handler name."""

    kind: ClassVar[str] = "endpoint"

    method: str = "GET"
    path: str = "/"
    framework: Optional[str] = None

    @property
    def handler(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "handler": self.handler,
            "file": self.file,
            "line": self.line,
        }


@dataclass(frozen=True)
class Component(ClassifiedElement):
    kind: ClassVar[str] = "component"


@dataclass(frozen=True)
class Service(ClassifiedElement):
    kind: ClassVar[str] = "service"

    methods: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["methods"] = list(self.methods)
        return payload


@dataclass(frozen=True)
class Model(ClassifiedElement):
    kind: ClassVar[str] = "model"

    fields: Tuple[str, ...] = ()
    model_type: str = "interface"

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["fields"] = list(self.fields)
        payload["type"] = self.model_type
        return payload


@dataclass(frozen=True)
class ConfigObject(ClassifiedElement):
    kind: ClassVar[str] = "config"

    keys: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["keys"] = list(self.keys)
        return payload


@dataclass(frozen=True)
class Middleware(ClassifiedElement):
    kind: ClassVar[str] = "middleware"


@dataclass(frozen=True)
class Utility(ClassifiedElement):
    kind: ClassVar[str] = "utility"

    utility_type: str = "hook"

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["type"] = self.utility_type
        return payload


class FileCategory(str, Enum):
    """Single resolved category used to group a file in summaries."""

    ROUTE = "route"
    MIDDLEWARE = "middleware"
    MODEL = "model"
    SERVICE = "service"
    COMPONENT = "component"
    CONFIG = "config"
    TEST = "test"
    UTILITY = "utility"


@dataclass
class FileAnalysisRecord:
    """Classification result for one source file."""

    path: str
    category: FileCategory = FileCategory.UTILITY
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    elements: List[ClassifiedElement] = field(default_factory=list)

    def of_kind(self, kind: str) -> List[ClassifiedElement]:
        return [element for element in self.elements if element.kind == kind]

    @property
    def endpoints(self) -> List[Endpoint]:
        return [element for element in self.elements if isinstance(element, Endpoint)]

    @property
    def services(self) -> List[Service]:
        return [element for element in self.elements if isinstance(element, Service)]

    @property
    def models(self) -> List[Model]:
        return [element for element in self.elements if isinstance(element, Model)]


@dataclass
class ProjectManifestInfo:
    """Project metadata read from the dependency manifest."""

    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    project_type: str = "javascript"
    category: str = "unknown"
    package_manager: str = "unknown"
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)
    entry_points: List[str] = field(default_factory=list)
    output_targets: List[str] = field(default_factory=list)

    def all_dependencies(self) -> Dict[str, str]:
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged


@dataclass(frozen=True)
class FrameworkSignal:
    """A framework inferred for the project."""

    name: str
    version: Optional[str] = None
    features: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VersionControlMetadata:
    """Repository state captured at generation time."""

    branch: str
    last_commit: str
    status: str
    changed_files: Tuple[str, ...] = ()
    origin: Optional[str] = None
    diff_stat: Optional[str] = None

    @property
    def dirty(self) -> bool:
        return self.status == "dirty"


@dataclass(frozen=True)
class Diagnostic:
    """Recoverable condition reported alongside a pipeline result."""

    code: str
    message: str
    level: str = "warning"
    path: Optional[str] = None
    details: Mapping[str, Any] = field(default_factory=dict)


class DocumentKind(str, Enum):
    TEXT = "text"
    STRUCTURED = "structured"

    @property
    def extension(self) -> str:
        return ".md" if self is DocumentKind.TEXT else ".json"


@dataclass(frozen=True)
class DocumentReference:
    """Pointer from one document to the rows of another."""

    target_document: str
    filter_key: str
    count: int
    filter_field: str = "file"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "$ref": f"./{self.target_document}{DocumentKind.STRUCTURED.extension}",
            "filter": {self.filter_field: self.filter_key},
            "count": self.count,
        }


@dataclass(frozen=True)
class ContextDocument:
    """One named output document, or one part of a split document."""

    name: str
    kind: DocumentKind
    content: str
    base_name: str = ""
    part: int = 1
    total_parts: int = 1

    @property
    def filename(self) -> str:
        return f"{self.name}{self.kind.extension}"


@dataclass(frozen=True)
class ContextBundle:
    """Primary overview plus the secondary documents it links to."""

    primary: Tuple[ContextDocument, ...]
    secondary: Tuple[Tuple[str, Tuple[ContextDocument, ...]], ...] = ()

    def document(self, name: str) -> Optional[Tuple[ContextDocument, ...]]:
        for key, parts in self.secondary:
            if key == name:
                return parts
        return None

    def names(self) -> List[str]:
        return [key for key, _ in self.secondary]

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self.secondary)

    def iter_documents(self) -> Iterator[ContextDocument]:
        yield from self.primary
        for _, parts in self.secondary:
            yield from parts


__all__ = [
    "ClassifiedElement",
    "Component",
    "ConfigObject",
    "ContextBundle",
    "ContextDocument",
    "DIALECT_BY_EXTENSION",
    "Diagnostic",
    "Dialect",
    "DocumentKind",
    "DocumentReference",
    "Endpoint",
    "FileAnalysisRecord",
    "FileCategory",
    "FrameworkSignal",
    "Middleware",
    "Model",
    "ProjectManifestInfo",
    "Service",
    "SourceFile",
    "Utility",
    "VersionControlMetadata",
]
