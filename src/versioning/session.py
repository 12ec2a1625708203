"""In-memory selection state for choosing which upgrades to apply."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set

from .errors import SessionClosedError
from .models import Coordinate, Declaration, SelectionSet, Span, UpdateCandidate

logger = logging.getLogger(__name__)


def linked_coordinates(declarations: Sequence[Declaration]) -> Dict[Coordinate, FrozenSet[Coordinate]]:
    """Group coordinates whose versions come from the same literal.

    One version ``val`` feeding several dependencies yields declarations that
    share a span; rewriting that span upgrades all of them, so they must be
    selected together.

    Returns:
        Mapping of each linked coordinate to its whole group (itself included).
        Coordinates with no shared span are absent.
    """
    by_span: Dict[Span, List[Coordinate]] = defaultdict(list)
    for decl in declarations:
        if decl.coordinate not in by_span[decl.span]:
            by_span[decl.span].append(decl.coordinate)

    # Union groups that share any coordinate.
    groups: Dict[Coordinate, Set[Coordinate]] = {}
    for coords in by_span.values():
        if len(coords) < 2:
            continue
        merged: Set[Coordinate] = set(coords)
        for coord in coords:
            merged |= groups.get(coord, set())
        for coord in merged:
            groups[coord] = merged
    return {coord: frozenset(group) for coord, group in groups.items()}


class SelectionSession:
    """Ordered candidates with a cursor and a set of selected indices.

    Nothing is selected initially. Once submit() or cancel() is called the
    session is closed and every further operation raises SessionClosedError.
    """

    def __init__(
        self,
        candidates: Sequence[UpdateCandidate],
        links: Optional[Mapping[Coordinate, FrozenSet[Coordinate]]] = None,
    ) -> None:
        self.candidates: List[UpdateCandidate] = list(candidates)
        self.cursor = 0
        self.cancelled = False
        self._selected: Set[int] = set()
        self._closed = False
        self._index_of = {c.coordinate: i for i, c in enumerate(self.candidates)}
        self._links = dict(links or {})

    def __len__(self) -> int:
        return len(self.candidates)

    @property
    def closed(self) -> bool:
        """True after submit() or cancel()."""
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("selection session is closed")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.candidates):
            raise IndexError(f"candidate index {index} out of range")

    def _group(self, index: int) -> List[int]:
        coordinate = self.candidates[index].coordinate
        linked = self._links.get(coordinate)
        if not linked:
            return [index]
        return sorted(self._index_of[c] for c in linked if c in self._index_of)

    @property
    def current(self) -> Optional[UpdateCandidate]:
        """Candidate under the cursor, or None when there are no candidates."""
        self._ensure_open()
        if not self.candidates:
            return None
        return self.candidates[self.cursor]

    @property
    def selected_count(self) -> int:
        self._ensure_open()
        return len(self._selected)

    def move(self, delta: int) -> int:
        """Move the cursor by `delta`, clamped to the candidate range."""
        return self.move_to(self.cursor + delta)

    def move_to(self, index: int) -> int:
        """Place the cursor at `index`, clamped to the candidate range."""
        self._ensure_open()
        if not self.candidates:
            self.cursor = 0
        else:
            self.cursor = max(0, min(index, len(self.candidates) - 1))
        return self.cursor

    def is_selected(self, index: int) -> bool:
        self._ensure_open()
        self._check_index(index)
        return index in self._selected

    def select(self, index: int) -> None:
        """Select a candidate together with its linked candidates."""
        self._ensure_open()
        self._check_index(index)
        self._selected.update(self._group(index))

    def deselect(self, index: int) -> None:
        """Deselect a candidate together with its linked candidates."""
        self._ensure_open()
        self._check_index(index)
        self._selected.difference_update(self._group(index))

    def toggle(self, index: Optional[int] = None) -> bool:
        """Flip the candidate at `index` (default: the cursor).

        Returns:
            The new selection state of that candidate.
        """
        self._ensure_open()
        if index is None:
            index = self.cursor
        self._check_index(index)
        if index in self._selected:
            self.deselect(index)
            return False
        self.select(index)
        return True

    def toggle_all(self) -> None:
        """Select every candidate, or clear the selection if all are selected."""
        self._ensure_open()
        if self.candidates and len(self._selected) == len(self.candidates):
            self._selected.clear()
        else:
            self._selected = set(range(len(self.candidates)))

    def submit(self) -> SelectionSet:
        """Close the session and return the selection in candidate order."""
        self._ensure_open()
        self._closed = True
        selection = tuple(c for i, c in enumerate(self.candidates) if i in self._selected)
        logger.debug("Selection submitted: %d of %d", len(selection), len(self.candidates))
        return selection

    def cancel(self) -> None:
        """Close the session without a selection."""
        self._ensure_open()
        self._closed = True
        self.cancelled = True
        logger.debug("Selection cancelled")
