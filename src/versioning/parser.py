"""Dependency extraction from sbt build definitions.

The tree-sitter Scala grammar validates the file and locates string-valued
``val`` definitions, comments and string literals. Dependency triples are
then matched on the raw bytes so every span is an exact byte range of the
original text, ready for splicing by the rewrite engine. Matches starting
inside a comment or a string literal are ignored.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_right
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from tree_sitter_language_pack import get_parser

from common.logging_utils import extra_context, is_debug_enabled
from .errors import ParseError
from .models import Coordinate, CrossVersion, Declaration, Span
from .version import Version

logger = logging.getLogger(__name__)

_IDENT = rb"[A-Za-z_][A-Za-z0-9_]*"

# "group" %|%%|%%% "artifact" % ("version" | versionVal) [% Scope | % "scope"]
_DEPENDENCY_RE = re.compile(
    rb'"(?P<group>[^"\s]+)"\s*(?P<op>%{1,3})\s*"(?P<artifact>[^"\s]+)"\s*%\s*'
    rb'(?:"(?P<version>[^"\\\r\n]*)"|(?P<ref>' + _IDENT + rb')(?![A-Za-z0-9_.(]))'
    rb'(?:\s*%\s*(?:"(?P<scope_lit>[^"\s]+)"|(?P<scope_ref>' + _IDENT + rb')(?![A-Za-z0-9_.(])))?'
)
_SCALA_VERSION_RE = re.compile(
    rb'\bscalaVersion\s*:=\s*(?:"(?P<version>[^"\\\r\n]+)"|(?P<ref>' + _IDENT + rb')(?![A-Za-z0-9_.(]))'
)
_PLUGIN_PREFIX_RE = re.compile(rb"addSbtPlugin\s*\(\s*$")

_COMMENT_TYPES = {"comment", "block_comment"}
_STRING_TYPES = {"string", "interpolated_string"}
_DEFINITION_TYPES = {"val_definition", "var_definition"}

SCALA_GROUP = "org.scala-lang"

_parser = None


def _get_parser():
    global _parser  # pylint: disable=global-statement
    if _parser is None:
        _parser = get_parser("scala")
    return _parser


def _walk(node) -> Iterator:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _first_error(root):
    for node in _walk(root):
        if node.is_error or node.is_missing:
            return node
    return root


def _literal_span(node, source: bytes) -> Optional[Span]:
    """Span of a plain string literal's contents, without the quotes."""
    raw = source[node.start_byte:node.end_byte]
    if raw.startswith(b'"""') and raw.endswith(b'"""') and len(raw) >= 6:
        return Span(node.start_byte + 3, node.end_byte - 3)
    if raw.startswith(b'"') and raw.endswith(b'"') and len(raw) >= 2:
        return Span(node.start_byte + 1, node.end_byte - 1)
    return None


class _SourceIndex:
    """Parsed view of one build file: val definitions, comment and string ranges."""

    def __init__(self, source: bytes, root):
        self.source = source
        self.vals: Dict[str, Span] = {}
        self._comment_starts: List[int] = []
        self._comment_ends: List[int] = []
        self._strings: List[Tuple[int, int]] = []
        ambiguous = set()

        for node in _walk(root):
            if node.type in _COMMENT_TYPES:
                self._comment_starts.append(node.start_byte)
                self._comment_ends.append(node.end_byte)
            elif node.type in _STRING_TYPES:
                self._strings.append((node.start_byte, node.end_byte))
            elif node.type in _DEFINITION_TYPES:
                binding = self._string_binding(node)
                if binding is None:
                    continue
                name, span = binding
                if name in self.vals or name in ambiguous:
                    ambiguous.add(name)
                    self.vals.pop(name, None)
                    continue
                self.vals[name] = span

        if ambiguous and is_debug_enabled(logger):
            logger.debug(
                "Ignoring vals defined more than once",
                extra=extra_context(
                    event="decision", component="parser", action="index_vals",
                    outcome="ambiguous", count=len(ambiguous),
                ),
            )

    def _string_binding(self, node) -> Optional[Tuple[str, Span]]:
        pattern = node.child_by_field_name("pattern")
        value = node.child_by_field_name("value")
        if pattern is None or value is None:
            return None
        if pattern.type != "identifier" or value.type != "string":
            return None
        span = _literal_span(value, self.source)
        if span is None:
            return None
        name = self.source[pattern.start_byte:pattern.end_byte].decode("utf-8")
        return name, span

    def in_comment(self, offset: int) -> bool:
        """True when `offset` falls inside a comment."""
        index = bisect_right(self._comment_starts, offset) - 1
        if index < 0:
            return False
        # Comments never nest in the tree, so the closest start is enough.
        return offset < self._comment_ends[index]

    def in_string(self, offset: int) -> bool:
        """True when `offset` lies strictly inside a string literal.

        A match that starts on a literal's opening quote is not inside it.
        """
        return any(start < offset < end for start, end in self._strings)

    def text(self, span: Span) -> str:
        """Decoded bytes of a span."""
        return self.source[span.start:span.end].decode("utf-8")

    def version_source(self, match: "re.Match", start_group: str = "version") -> Optional[Tuple[str, Span, Optional[str]]]:
        """Resolve a matched literal or val reference to (version, span, variable)."""
        if match.group(start_group) is not None:
            span = Span(match.start(start_group), match.end(start_group))
            return self.text(span), span, None
        name = match.group("ref").decode("utf-8")
        span = self.vals.get(name)
        if span is None:
            return None
        return self.text(span), span, name


def _parse(source: bytes):
    tree = _get_parser().parse(source)
    root = tree.root_node
    if root.has_error:
        bad = _first_error(root)
        row, column = bad.start_point[0], bad.start_point[1]
        kind = "missing token" if bad.is_missing else "syntax error"
        raise ParseError(f"Invalid build definition: {kind}", row + 1, column + 1)
    return root


def _scope_of(match: "re.Match") -> Optional[str]:
    if match.group("scope_lit") is not None:
        return match.group("scope_lit").decode("utf-8")
    if match.group("scope_ref") is not None:
        return match.group("scope_ref").decode("utf-8")
    return None


def _code_matches(pattern: "re.Pattern", index: _SourceIndex) -> Iterator["re.Match"]:
    """Matches that start in code, not inside a comment or string literal."""
    pos = 0
    while True:
        match = pattern.search(index.source, pos)
        if match is None:
            return
        if index.in_comment(match.start()) or index.in_string(match.start()):
            # Retry just past the start so a real declaration is not swallowed.
            pos = match.start() + 1
            continue
        yield match
        pos = max(match.end(), match.start() + 1)


def _dependencies(index: _SourceIndex) -> Iterator[Declaration]:
    for match in _code_matches(_DEPENDENCY_RE, index):
        resolved = index.version_source(match)
        if resolved is None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping dependency with unresolved version",
                    extra=extra_context(
                        event="decision", component="parser", action="extract",
                        outcome="unresolved_reference",
                        target=match.group("ref").decode("utf-8"),
                    ),
                )
            continue
        version, span, variable = resolved
        if not version.strip():
            continue

        if _PLUGIN_PREFIX_RE.search(index.source, max(0, match.start() - 256), match.start()):
            cross = CrossVersion.SBT_PLUGIN
        else:
            cross = CrossVersion.from_operator(match.group("op").decode("utf-8"))
        coordinate = Coordinate(
            group=match.group("group").decode("utf-8"),
            artifact=match.group("artifact").decode("utf-8"),
            cross=cross,
            scope=_scope_of(match),
        )
        yield Declaration(coordinate, version, span, match.start(), variable)


def _scala_library(index: _SourceIndex) -> Optional[Declaration]:
    for match in _code_matches(_SCALA_VERSION_RE, index):
        resolved = index.version_source(match)
        if resolved is None:
            return None
        version, span, variable = resolved
        major = Version.parse(version).segment(0)
        artifact = "scala3-library_3" if major == 3 else "scala-library"
        return Declaration(Coordinate(SCALA_GROUP, artifact), version, span, match.start(), variable)
    return None


def extract(text: str) -> List[Declaration]:
    """Extract dependency declarations from build definition text.

    Args:
        text: Full contents of the build file.

    Returns:
        Declarations ordered by span start (ties keep file order).

    Raises:
        ParseError: The text is not valid Scala/sbt syntax.
    """
    source = text.encode("utf-8")
    root = _parse(source)
    index = _SourceIndex(source, root)

    declarations = list(_dependencies(index))
    scala = _scala_library(index)
    if scala is not None:
        declarations.append(scala)
    declarations.sort(key=lambda d: (d.span.start, d.origin))

    if is_debug_enabled(logger):
        logger.debug(
            "Extracted declarations",
            extra=extra_context(
                event="function_exit", component="parser", action="extract",
                outcome="success", count=len(declarations), vals=len(index.vals),
            ),
        )
    return declarations


def scala_version(declarations: Sequence[Declaration]) -> Optional[str]:
    """Return the project's Scala version if a scalaVersion setting was found."""
    for decl in declarations:
        if decl.coordinate.group == SCALA_GROUP and decl.coordinate.artifact in ("scala-library", "scala3-library_3"):
            return decl.version
    return None
