"""Upgrade detection and ranking."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled
from .models import Coordinate, Declaration, ResolutionOutcome, UpdateCandidate, UpdateRank, VersionSet
from .version import Version, highest

logger = logging.getLogger(__name__)

_RANK_BY_POSITION = {0: UpdateRank.MAJOR, 1: UpdateRank.MINOR, 2: UpdateRank.PATCH}


def rank_update(current: Version, proposed: Version) -> UpdateRank:
    """Rank an upgrade by the first segment that changed.

    Falls back to UNKNOWN rather than guessing when either side carries a
    qualifier we cannot order (``.GA``, ``-Final``) or the differing segment
    is not numeric.
    """
    if current.qualifiers or proposed.qualifiers:
        return UpdateRank.UNKNOWN
    position = current.first_difference(proposed)
    if position is None:
        return UpdateRank.UNKNOWN
    if not (isinstance(current.segment(position), int) and isinstance(proposed.segment(position), int)):
        return UpdateRank.UNKNOWN
    return _RANK_BY_POSITION.get(position, UpdateRank.UNKNOWN)


def classify(
    current_version: str,
    version_set: VersionSet,
    include_prerelease: bool = False,
) -> Optional[UpdateCandidate]:
    """Pick the highest eligible upgrade from a version set.

    Args:
        current_version: Version currently declared in the build.
        version_set: Versions published for the coordinate.
        include_prerelease: Also consider RC/milestone/snapshot versions.

    Returns:
        The candidate, or None when nothing newer qualifies.
    """
    current = Version.parse(current_version)
    eligible = [
        v for v in (Version.parse(raw) for raw in version_set.versions)
        if v > current and (include_prerelease or not v.is_prerelease)
    ]
    proposed = highest(eligible)
    if proposed is None:
        return None
    return UpdateCandidate(
        coordinate=version_set.coordinate,
        current=current_version,
        proposed=proposed.raw,
        rank=rank_update(current, proposed),
    )


def current_versions(declarations: Sequence[Declaration]) -> Dict[Coordinate, str]:
    """Highest declared version per coordinate, keyed in first-seen order."""
    result: Dict[Coordinate, str] = {}
    for decl in declarations:
        existing = result.get(decl.coordinate)
        if existing is None or Version.parse(decl.version) > Version.parse(existing):
            result[decl.coordinate] = decl.version
    return result


def build_candidates(
    declarations: Sequence[Declaration],
    outcomes: Mapping[Coordinate, ResolutionOutcome],
    include_prerelease: bool = False,
) -> List[UpdateCandidate]:
    """Join resolution outcomes back onto extraction order.

    At most one candidate is produced per coordinate; failed or missing
    outcomes simply yield no candidate.
    """
    candidates: List[UpdateCandidate] = []
    for coordinate, current in current_versions(declarations).items():
        outcome = outcomes.get(coordinate)
        if outcome is None or not outcome.ok:
            continue
        candidate = classify(current, outcome.version_set, include_prerelease)
        if is_debug_enabled(logger):
            logger.debug(
                "Classified coordinate",
                extra=extra_context(
                    event="decision",
                    component="classifier",
                    action="classify",
                    target=str(coordinate),
                    outcome="candidate" if candidate else "up_to_date",
                    count=len(outcome.version_set.versions),
                ),
            )
        if candidate is not None:
            candidates.append(candidate)
    return candidates
