"""Source classification, project metadata and framework inference."""

from __future__ import annotations

from .classifier import SyntaxClassifier, resolve_category
from .frameworks import FrameworkInferer
from .project import ProjectAnalyzer
from .rules import DEFAULT_RULES, ClassificationRule
from .tree_sitter import ParseError

__all__ = [
    "ClassificationRule",
    "DEFAULT_RULES",
    "FrameworkInferer",
    "ParseError",
    "ProjectAnalyzer",
    "SyntaxClassifier",
    "resolve_category",
]
