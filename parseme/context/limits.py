"""Size bounding for context documents: truncation or splitting into parts."""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..config import LimitsConfig
from ..models import ContextDocument, Diagnostic, DocumentKind

TRUNCATION_MARKER = "\n\n[... truncated for AI compatibility ...]"
PART_MARKER = "\n\n[... part {index} of {total} ...]"

# Lines held back from each split part for the part marker.
LINE_RESERVE = 3
MIN_BREAK_RATIO = 0.8


def part_name(name: str, index: int) -> str:
    return name if index == 1 else f"{name}_part{index}"


class ContentLimiter:
    """Applies the configured truncate or split strategy to one document."""

    def __init__(self, limits: LimitsConfig) -> None:
        self.limits = limits

    def bound(
        self, name: str, kind: DocumentKind, content: str
    ) -> Tuple[Tuple[ContextDocument, ...], Optional[Diagnostic]]:
        """Return the document parts for ``content`` and a diagnostic when bounded."""
        if not self._exceeds(content):
            return (ContextDocument(name=name, kind=kind, content=content, base_name=name),), None

        if self.limits.truncate_strategy == "split":
            pieces = self._split(content)
            total = len(pieces)
            parts = tuple(
                ContextDocument(
                    name=part_name(name, index),
                    kind=kind,
                    content=piece + PART_MARKER.format(index=index, total=total),
                    base_name=name,
                    part=index,
                    total_parts=total,
                )
                for index, piece in enumerate(pieces, start=1)
            )
            message = f"{name} exceeded the size limit and was split into {total} parts"
        else:
            truncated = self._truncate(content)
            parts = (ContextDocument(name=name, kind=kind, content=truncated, base_name=name),)
            total = 1
            message = f"{name} exceeded the size limit and was truncated"

        diagnostic = Diagnostic(
            code="size_limit",
            message=message,
            level="info",
            path=name,
            details={
                "document": name,
                "strategy": self.limits.truncate_strategy,
                "original_length": len(content),
                "parts": total,
            },
        )
        return parts, diagnostic

    def _exceeds(self, content: str) -> bool:
        max_lines = self.limits.max_lines_per_document
        max_chars = self.limits.max_chars_per_document
        if max_lines is not None and content.count("\n") + 1 > max_lines:
            return True
        return max_chars is not None and len(content) > max_chars

    def _truncate(self, content: str) -> str:
        max_lines = self.limits.max_lines_per_document
        max_chars = self.limits.max_chars_per_document
        truncated = False
        if max_lines is not None:
            lines = content.split("\n")
            if len(lines) > max_lines:
                content = "\n".join(lines[:max_lines])
                truncated = True
        if max_chars is not None:
            reserved = len(TRUNCATION_MARKER) if truncated else 0
            if len(content) + reserved > max_chars:
                content = content[: max(0, max_chars - len(TRUNCATION_MARKER))]
                truncated = True
        return content + TRUNCATION_MARKER if truncated else content

    def _split(self, content: str) -> List[str]:
        pieces = [content]
        max_lines = self.limits.max_lines_per_document
        if max_lines is not None:
            pieces = _split_lines(content, max(1, max_lines - LINE_RESERVE))
        max_chars = self.limits.max_chars_per_document
        if max_chars is None:
            return pieces
        # The marker grows with the digit count of the total; re-chunk until it fits.
        reserve = _marker_length(len(pieces))
        while True:
            chunked: List[str] = []
            for piece in pieces:
                chunked.extend(_split_chars(piece, max(1, max_chars - reserve)))
            needed = _marker_length(len(chunked))
            if needed <= reserve:
                return chunked
            reserve = needed


def _marker_length(total: int) -> int:
    return len(PART_MARKER.format(index=total, total=total))


def _split_lines(content: str, step: int) -> List[str]:
    lines = content.split("\n")
    pieces: List[str] = []
    for start in range(0, len(lines), step):
        chunk = "\n".join(lines[start : start + step])
        if start + step < len(lines):
            chunk += "\n"
        pieces.append(chunk)
    return pieces


def _split_chars(content: str, size: int) -> List[str]:
    if len(content) <= size:
        return [content]
    pieces: List[str] = []
    start = 0
    while start < len(content):
        end = min(start + size, len(content))
        if end < len(content):
            window = content[start:end]
            newline = window.rfind("\n")
            cut = (newline if newline >= 0 else window.rfind(" ")) + 1
            # Break after the separator only when most of the window is kept.
            if cut >= size * MIN_BREAK_RATIO:
                end = start + cut
        pieces.append(content[start:end])
        start = end
    return pieces


__all__ = ["ContentLimiter", "PART_MARKER", "TRUNCATION_MARKER", "part_name"]
