"""
Custom exception classes for the docx_engine package.

Every error carries the operation that failed, the field it was working
on and the offending value, so a caller can tell exactly which call to
fix without reading a stack trace.
"""

from typing import Any


class DocxEngineError(Exception):
    """Base exception for all docx_engine errors.

    Attributes:
        message: Human readable description of the problem
        op: Name of the operation that failed (e.g., "add_style", "open")
        field: The field, part or element the operation was working on
        value: The offending value, if any
    """

    def __init__(
        self,
        message: str,
        op: str | None = None,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.message = message
        self.op = op
        self.field = field
        self.value = value
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the message with operation, field and value context."""
        msg = f"{self.op}: {self.message}" if self.op else self.message
        details = []
        if self.field is not None:
            details.append(f"field={self.field}")
        if self.value is not None:
            details.append(f"value={self.value!r}")
        if details:
            msg += f" ({', '.join(details)})"
        return msg


class ValidationError(DocxEngineError):
    """Raised when a value is out of its allowed range or shape.

    This covers bad setter input (font size, twips, colors), duplicate or
    cyclic styles, unsupported media formats and pre-save checks of the
    document graph.
    """


class StructureError(DocxEngineError):
    """Raised when a required package part or element is missing."""


class ParseError(DocxEngineError):
    """Raised when XML in a package part is malformed."""


class PackageError(ParseError):
    """Raised when the byte source is not a readable ZIP archive."""


class RelationshipError(DocxEngineError):
    """Raised for dangling, empty or unknown relationship references."""


class NotFoundError(DocxEngineError):
    """Raised when a style, relationship, media asset or part lookup misses."""
