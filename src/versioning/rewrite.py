"""Span-based rewriting of version literals.

Edits are planned from the extracted declarations and the user's selection,
validated as a whole, then spliced into the UTF-8 encoded text in a single
left-to-right pass. Bytes outside edited spans are copied verbatim, so
formatting and comments survive untouched.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from .errors import RewriteError, RewriteErrorKind
from .models import Coordinate, Declaration, Edit, SelectionSet
from .version import Version

logger = logging.getLogger(__name__)


def _planned(declarations: Sequence[Declaration], selection: SelectionSet) -> Iterator[Tuple[Declaration, Edit]]:
    proposed: Dict[Coordinate, str] = {c.coordinate: c.proposed for c in selection}
    for decl in declarations:
        target = proposed.get(decl.coordinate)
        if target is None:
            continue
        if Version.parse(decl.version) >= Version.parse(target):
            continue
        yield decl, Edit(decl.span, target)


def plan_edits(declarations: Sequence[Declaration], selection: SelectionSet) -> List[Edit]:
    """Build the edit plan, ordered by span start.

    Every declaration of a selected coordinate whose version is lower than
    the proposed one gets an edit. Identical edits collapse into one.

    Raises:
        RewriteError: SPAN_CONFLICT when two edits overlap, including the
            same span with different replacement text.
    """
    edits = sorted({edit for _, edit in _planned(declarations, selection)}, key=lambda e: (e.span.start, e.span.end, e.text))
    for previous, following in zip(edits, edits[1:]):
        if previous.span.overlaps(following.span):
            raise RewriteError(
                RewriteErrorKind.SPAN_CONFLICT,
                f"bytes {previous.span.start}-{previous.span.end} -> {previous.text!r} "
                f"conflicts with bytes {following.span.start}-{following.span.end} -> {following.text!r}",
            )
    return edits


def apply_edits(source: bytes, edits: Sequence[Edit]) -> bytes:
    """Splice sorted, non-overlapping edits into `source`."""
    parts: List[bytes] = []
    cursor = 0
    for edit in edits:
        parts.append(source[cursor:edit.span.start])
        parts.append(edit.text.encode("utf-8"))
        cursor = edit.span.end
    parts.append(source[cursor:])
    return b"".join(parts)


def rewrite(original_text: str, declarations: Sequence[Declaration], selection: SelectionSet) -> str:
    """Return `original_text` with the selected upgrades applied.

    Nothing is returned unless every edit validates; an empty selection
    returns the text unchanged.

    Raises:
        RewriteError: OUT_OF_RANGE for a span outside the text, STALE_SPAN
            when a span no longer holds the declared version, SPAN_CONFLICT
            for overlapping edits.
    """
    if not selection:
        return original_text

    source = original_text.encode("utf-8")
    for decl, _ in _planned(declarations, selection):
        if not decl.span.within(len(source)):
            raise RewriteError(
                RewriteErrorKind.OUT_OF_RANGE,
                f"{decl.coordinate}: bytes {decl.span.start}-{decl.span.end} outside a {len(source)}-byte file",
            )
        found = source[decl.span.start:decl.span.end]
        if found != decl.version.encode("utf-8"):
            raise RewriteError(
                RewriteErrorKind.STALE_SPAN,
                f"{decl.coordinate}: expected {decl.version!r}, found {found.decode('utf-8', 'replace')!r}",
            )

    edits = plan_edits(declarations, selection)
    result = apply_edits(source, edits).decode("utf-8")
    if is_debug_enabled(logger):
        logger.debug(
            "Applied edits",
            extra=extra_context(
                event="function_exit", component="rewrite", action="rewrite",
                outcome="success", count=len(edits),
            ),
        )
    return result
