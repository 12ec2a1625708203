"""Data models for dependency declarations, registry results and upgrades."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .errors import RegistryError


class CrossVersion(Enum):
    """How a declared artifact id maps to the published artifact id."""
    NONE = "%"
    BINARY = "%%"  # Scala binary version suffix, e.g. _2.13
    PLATFORM = "%%%"  # Scala.js suffix, e.g. _sjs1_2.13
    SBT_PLUGIN = "addSbtPlugin"  # _2.12_1.0

    @classmethod
    def from_operator(cls, operator: str) -> "CrossVersion":
        """Map the %, %% or %%% operator to its cross-version scheme."""
        return {"%": cls.NONE, "%%": cls.BINARY, "%%%": cls.PLATFORM}[operator]


class UpdateRank(Enum):
    """Semantic weight of an upgrade."""
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Coordinate:
    """Identity of a dependency; equality is exact on every field."""
    group: str
    artifact: str
    cross: CrossVersion = CrossVersion.NONE
    scope: Optional[str] = None

    @property
    def key(self) -> str:
        """group:artifact form used on the command line."""
        return f"{self.group}:{self.artifact}"

    def __str__(self) -> str:
        if self.cross == CrossVersion.SBT_PLUGIN:
            text = f"{self.group} % {self.artifact} (plugin)"
        else:
            text = f"{self.group} {self.cross.value} {self.artifact}"
        if self.scope:
            text = f"{text} % {self.scope}"
        return text


@dataclass(frozen=True)
class Span:
    """Half-open byte range [start, end) into the UTF-8 encoded source."""
    start: int
    end: int

    def overlaps(self, other: "Span") -> bool:
        """True when the two ranges share at least one byte (or are the same empty point)."""
        if self == other:
            return True
        return self.start < other.end and other.start < self.end

    def within(self, length: int) -> bool:
        """True when the span addresses a valid slice of a buffer of `length` bytes."""
        return 0 <= self.start <= self.end <= length


@dataclass(frozen=True)
class Declaration:
    """One occurrence of a coordinate in the build definition.

    `span` covers the version literal contents (quotes excluded). When the
    version comes from a `val`, it covers that definition's literal and
    `variable` holds the name; `origin` is always the offset of the
    dependency expression itself.
    """
    coordinate: Coordinate
    version: str
    span: Span
    origin: int
    variable: Optional[str] = None


@dataclass(frozen=True)
class VersionSet:
    """Versions the registry reports as published for a coordinate."""
    coordinate: Coordinate
    versions: Tuple[str, ...]
    artifact_id: str


@dataclass(frozen=True)
class UpdateCandidate:
    """Proposed upgrade for one coordinate."""
    coordinate: Coordinate
    current: str
    proposed: str
    rank: UpdateRank


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one coordinate: a VersionSet or the error."""
    coordinate: Coordinate
    version_set: Optional[VersionSet] = None
    error: Optional[RegistryError] = None

    @property
    def ok(self) -> bool:
        """True when versions were obtained."""
        return self.version_set is not None


@dataclass(frozen=True)
class Edit:
    """Replace the bytes of `span` with `text`."""
    span: Span
    text: str


# Type alias for the user's choice handed to the rewrite engine.
SelectionSet = Tuple[UpdateCandidate, ...]
