"""Tests for the span-based rewrite engine."""

import pytest

from versioning.errors import RewriteError, RewriteErrorKind
from versioning.models import Coordinate, CrossVersion, Declaration, Edit, Span, UpdateCandidate, UpdateRank
from versioning.parser import extract
from versioning.rewrite import apply_edits, plan_edits, rewrite

BUILD = '''scalaVersion := "2.13.12"

val catsVersion = "2.9.0"   // keep in sync with cats-effect

libraryDependencies ++= Seq(
  "org.typelevel"  %% "cats-core"  % catsVersion,
  "org.typelevel"  %% "cats-free"  % catsVersion,
  "org.slf4j"       % "slf4j-api"  % "2.0.7",
  // "org.slf4j"    % "slf4j-api"  % "1.7.0",
  "org.scalatest"  %% "scalatest"  % "3.2.15" % Test
)
'''

SLF4J = Coordinate("org.slf4j", "slf4j-api")
CATS_CORE = Coordinate("org.typelevel", "cats-core", CrossVersion.BINARY)
CATS_FREE = Coordinate("org.typelevel", "cats-free", CrossVersion.BINARY)


def _cand(coordinate, current, proposed, rank=UpdateRank.MINOR):
    return UpdateCandidate(coordinate, current, proposed, rank)


class TestRewrite:
    """Splicing selected upgrades into the text."""

    def test_empty_selection_is_identity(self):
        declarations = extract(BUILD)
        assert rewrite(BUILD, declarations, ()) == BUILD

    def test_only_selected_literal_changes(self):
        declarations = extract(BUILD)

        result = rewrite(BUILD, declarations, (_cand(SLF4J, "2.0.7", "2.0.9", UpdateRank.PATCH),))

        assert result == BUILD.replace('"2.0.7"', '"2.0.9"')
        assert '// "org.slf4j"    % "slf4j-api"  % "1.7.0",' in result

    def test_bytes_outside_spans_are_preserved(self):
        declarations = extract(BUILD)
        slf4j = next(d for d in declarations if d.coordinate == SLF4J)

        result = rewrite(BUILD, declarations, (_cand(SLF4J, "2.0.7", "2.0.10"),)).encode()
        original = BUILD.encode()

        assert result[:slf4j.span.start] == original[:slf4j.span.start]
        assert result[slf4j.span.start + len(b"2.0.10"):] == original[slf4j.span.end:]

    def test_val_definition_site_is_rewritten_once(self):
        declarations = extract(BUILD)
        selection = (
            _cand(CATS_CORE, "2.9.0", "2.10.0"),
            _cand(CATS_FREE, "2.9.0", "2.10.0"),
        )

        result = rewrite(BUILD, declarations, selection)

        assert 'val catsVersion = "2.10.0"   // keep in sync with cats-effect' in result
        assert result.count("2.10.0") == 1
        assert "% catsVersion," in result

    def test_conflicting_proposals_for_shared_val(self):
        declarations = extract(BUILD)
        selection = (
            _cand(CATS_CORE, "2.9.0", "2.10.0"),
            _cand(CATS_FREE, "2.9.0", "2.11.0"),
        )

        with pytest.raises(RewriteError) as excinfo:
            rewrite(BUILD, declarations, selection)
        assert excinfo.value.kind == RewriteErrorKind.SPAN_CONFLICT

    def test_out_of_range_span(self):
        decl = Declaration(SLF4J, "2.0.7", Span(5000, 5005), 4990)

        with pytest.raises(RewriteError) as excinfo:
            rewrite(BUILD, [decl], (_cand(SLF4J, "2.0.7", "2.0.9"),))
        assert excinfo.value.kind == RewriteErrorKind.OUT_OF_RANGE

    def test_stale_span(self):
        declarations = extract(BUILD)
        edited = BUILD.replace('"2.0.7"', '"2.0.8"')

        with pytest.raises(RewriteError) as excinfo:
            rewrite(edited, declarations, (_cand(SLF4J, "2.0.7", "2.0.9"),))
        assert excinfo.value.kind == RewriteErrorKind.STALE_SPAN

    def test_declarations_already_at_target_are_untouched(self):
        text = (
            'libraryDependencies += "org.slf4j" % "slf4j-api" % "2.0.9"\n'
            'libraryDependencies += "org.slf4j" % "slf4j-api" % "2.0.7"\n'
        )
        declarations = extract(text)

        result = rewrite(text, declarations, (_cand(SLF4J, "2.0.9", "2.0.10"),))

        assert result.count("2.0.10") == 2

        result = rewrite(text, declarations, (_cand(SLF4J, "2.0.7", "2.0.9"),))
        assert result.count("2.0.9") == 2

    def test_crlf_and_unicode_survive(self):
        text = '// Überprüfung\r\nlibraryDependencies += "org.slf4j" % "slf4j-api" % "2.0.7"\r\n'
        declarations = extract(text)

        result = rewrite(text, declarations, (_cand(SLF4J, "2.0.7", "2.0.9"),))

        assert result == text.replace("2.0.7", "2.0.9")


class TestPlanEdits:
    """Edit planning."""

    def test_identical_edits_collapse(self):
        shared = Span(10, 15)
        declarations = [
            Declaration(CATS_CORE, "2.9.0", shared, 100, "v"),
            Declaration(CATS_FREE, "2.9.0", shared, 200, "v"),
        ]
        selection = (_cand(CATS_CORE, "2.9.0", "2.10.0"), _cand(CATS_FREE, "2.9.0", "2.10.0"))

        assert plan_edits(declarations, selection) == [Edit(shared, "2.10.0")]

    def test_overlapping_spans_conflict(self):
        declarations = [
            Declaration(CATS_CORE, "2.9.0", Span(10, 15), 100),
            Declaration(CATS_FREE, "9.0", Span(12, 15), 200),
        ]
        selection = (_cand(CATS_CORE, "2.9.0", "2.10.0"), _cand(CATS_FREE, "9.0", "9.1"))

        with pytest.raises(RewriteError) as excinfo:
            plan_edits(declarations, selection)
        assert excinfo.value.kind == RewriteErrorKind.SPAN_CONFLICT

    def test_apply_edits_in_order(self):
        assert apply_edits(b"a=1 b=2", [Edit(Span(2, 3), "10"), Edit(Span(6, 7), "20")]) == b"a=10 b=20"


class TestVariableIndirection:
    """A version val referenced elsewhere is rewritten at its definition."""

    def test_only_definition_site_changes(self):
        text = (
            'val libVersion = "1.0"\n'
            'libraryDependencies += "org.example" % "lib" % libVersion\n'
        )
        declarations = extract(text)
        lib = Coordinate("org.example", "lib")

        result = rewrite(text, declarations, (_cand(lib, "1.0", "1.1"),))

        assert result == (
            'val libVersion = "1.1"\n'
            'libraryDependencies += "org.example" % "lib" % libVersion\n'
        )
