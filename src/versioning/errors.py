"""Error taxonomy for extraction, registry resolution and rewriting."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Coordinate


class DepbumpError(Exception):
    """Base class for all errors raised by depbump."""


class ParseError(DepbumpError):
    """The build definition is not syntactically valid."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class RegistryErrorKind(Enum):
    """Why a coordinate could not be resolved."""
    NOT_FOUND = "not_found"
    NETWORK = "network"
    MALFORMED = "malformed"


class RegistryError(DepbumpError):
    """Resolution failure for a single coordinate."""

    def __init__(self, kind: RegistryErrorKind, coordinate: "Coordinate", detail: str = ""):
        self.kind = kind
        self.coordinate = coordinate
        self.detail = detail
        text = f"{coordinate}: {kind.value}"
        if detail:
            text = f"{text} ({detail})"
        super().__init__(text)


class RewriteErrorKind(Enum):
    """Why an edit plan was rejected."""
    SPAN_CONFLICT = "span_conflict"
    OUT_OF_RANGE = "out_of_range"
    STALE_SPAN = "stale_span"


class RewriteError(DepbumpError):
    """The selected edits cannot be applied safely; nothing was written."""

    def __init__(self, kind: RewriteErrorKind, detail: str):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}")


class SessionClosedError(DepbumpError):
    """A selection session was used after submit() or cancel()."""
