"""Context bundle assembly."""

from __future__ import annotations

from .builder import PRIMARY_DOCUMENT, SECONDARY_DOCUMENTS, ContextBuilder
from .limits import ContentLimiter

__all__ = ["ContentLimiter", "ContextBuilder", "PRIMARY_DOCUMENT", "SECONDARY_DOCUMENTS"]
