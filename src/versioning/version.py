"""Version parsing and ordering.

Versions are split into runs of digits and runs of letters, so separators
are dropped and ``RC10`` becomes ``RC``, ``10``. Numeric segments compare
numerically (``RC9 < RC10``), the rest compare case-insensitively as text. Where one version has a number and the other a
word at the same position, the number is greater (``1.0.1 > 1.0.beta``).
Missing trailing segments count as ``0``, so ``1.0 == 1.0.0``. Together these
rules form a total order, which keeps candidate selection deterministic.
"""

import functools
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

Segment = Union[int, str]

_SEGMENT_RE = re.compile(r"[0-9]+|[A-Za-z]+")
_PRERELEASE_RE = re.compile(
    r"^(?:rc|cr|alpha|a|beta|b|m|milestone|snapshot|pre|preview|dev|ea)$",
    re.IGNORECASE,
)
_ZERO_KEY = (1, 0, "")


def _split(raw: str) -> Tuple[Segment, ...]:
    parts = _SEGMENT_RE.findall(raw)
    return tuple(int(p) if p.isdigit() else p for p in parts)


def _segment_key(segment: Segment) -> Tuple[int, int, str]:
    if isinstance(segment, int):
        return (1, segment, "")
    return (0, 0, segment.lower())


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """Parsed version string; immutable and hashable."""

    raw: str
    segments: Tuple[Segment, ...] = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "segments", _split(self.raw))

    @classmethod
    def parse(cls, raw: str) -> "Version":
        """Parse a version string. Never raises for odd inputs."""
        return cls(raw)

    def _keys(self, length: int) -> List[Tuple[int, int, str]]:
        keys = [_segment_key(s) for s in self.segments]
        keys.extend([_ZERO_KEY] * (length - len(keys)))
        return keys

    def _cmp_keys(self, other: "Version") -> Tuple[List, List]:
        length = max(len(self.segments), len(other.segments))
        return self._keys(length), other._keys(length)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        mine, theirs = self._cmp_keys(other)
        return mine == theirs

    def __lt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        mine, theirs = self._cmp_keys(other)
        return mine < theirs

    def __hash__(self) -> int:
        keys = [_segment_key(s) for s in self.segments]
        while keys and keys[-1] == _ZERO_KEY:
            keys.pop()
        return hash(tuple(keys))

    def __repr__(self) -> str:
        return f"Version({self.raw!r})"

    def __str__(self) -> str:
        return self.raw

    @property
    def is_prerelease(self) -> bool:
        """True when a segment after the first is a pre-release marker (RC1, M2, SNAPSHOT...)."""
        return any(
            isinstance(s, str) and _PRERELEASE_RE.match(s) for s in self.segments[1:]
        )

    @property
    def qualifiers(self) -> Tuple[str, ...]:
        """Non-numeric segments that are not recognized pre-release markers (GA, Final...)."""
        return tuple(
            s for s in self.segments
            if isinstance(s, str) and not _PRERELEASE_RE.match(s)
        )

    def first_difference(self, other: "Version") -> Optional[int]:
        """Index of the first segment where the two versions differ, or None."""
        mine, theirs = self._cmp_keys(other)
        for index, (a, b) in enumerate(zip(mine, theirs)):
            if a != b:
                return index
        return None

    def segment(self, index: int) -> Segment:
        """Segment at `index`, with zero padding past the end."""
        if index < len(self.segments):
            return self.segments[index]
        return 0


def highest(versions: Iterable[Version]) -> Optional[Version]:
    """Return the greatest version, or None for an empty input."""
    best = None
    for version in versions:
        if best is None or version > best:
            best = version
    return best
