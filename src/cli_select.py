"""Line-oriented prompt for choosing which upgrades to apply."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from versioning.models import SelectionSet, UpdateCandidate
from versioning.session import SelectionSession

logger = logging.getLogger(__name__)

NO_UPDATES_MESSAGE = "All dependencies are up to date."
CANCELLED_MESSAGE = "Cancelled, no changes written."
HELP_MESSAGE = "Numbers toggle entries, 'a' toggles all, Enter applies, 'q' quits."


def format_candidate(candidate: UpdateCandidate) -> str:
    """One-line description of an upgrade."""
    return f"{candidate.coordinate}: {candidate.current} -> {candidate.proposed} ({candidate.rank.value})"


def format_candidates(candidates: Sequence[UpdateCandidate], session: Optional[SelectionSession] = None) -> List[str]:
    """Numbered listing; checkboxes are shown when a session is given."""
    lines = []
    for index, candidate in enumerate(candidates):
        if session is None:
            prefix = f"{index + 1:>3}."
        else:
            mark = "x" if session.is_selected(index) else " "
            prefix = f"{index + 1:>3}. [{mark}]"
        lines.append(f"{prefix} {format_candidate(candidate)}")
    return lines


def format_summary(selection: SelectionSet) -> str:
    """Message printed after a successful update."""
    if len(selection) == 1:
        return f"Updated 1 dependency: {selection[0].coordinate.key} to {selection[0].proposed}"
    return f"Updated {len(selection)} dependencies."


def _parse_numbers(line: str, count: int) -> Optional[List[int]]:
    indices = []
    for token in line.replace(",", " ").split():
        if not token.isdigit():
            return None
        number = int(token)
        if not 1 <= number <= count:
            return None
        indices.append(number - 1)
    return indices


def prompt_selection(
    session: SelectionSession,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> Optional[SelectionSet]:
    """Drive a SelectionSession from line input.

    Returns:
        The submitted selection, or None when the user quit.
    """
    output_fn(HELP_MESSAGE)
    while True:
        for line in format_candidates(session.candidates, session):
            output_fn(line)
        try:
            answer = input_fn(f"{session.selected_count} selected> ").strip().lower()
        except EOFError:
            answer = "q"

        if answer == "":
            return session.submit()
        if answer in ("q", "quit"):
            session.cancel()
            output_fn(CANCELLED_MESSAGE)
            return None
        if answer in ("a", "all"):
            session.toggle_all()
            continue

        indices = _parse_numbers(answer, len(session))
        if indices is None:
            output_fn(f"Unrecognized input: {answer!r}. {HELP_MESSAGE}")
            continue
        for index in indices:
            session.toggle(index)
