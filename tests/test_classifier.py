"""Tests for upgrade classification and candidate building."""

from versioning.classifier import build_candidates, classify, current_versions, rank_update
from versioning.errors import RegistryError, RegistryErrorKind
from versioning.models import (
    Coordinate,
    CrossVersion,
    Declaration,
    ResolutionOutcome,
    Span,
    UpdateRank,
    VersionSet,
)
from versioning.version import Version

CATS = Coordinate("org.typelevel", "cats-core", CrossVersion.BINARY)
ZIO = Coordinate("dev.zio", "zio", CrossVersion.BINARY)


def _vs(coordinate, *versions):
    return VersionSet(coordinate, tuple(versions), coordinate.artifact + "_2.13")


def _decl(coordinate, version, start):
    return Declaration(coordinate, version, Span(start, start + len(version)), start)


class TestRankUpdate:
    """Rank is taken from the first differing segment."""

    def test_major_minor_patch(self):
        assert rank_update(Version.parse("1.2.0"), Version.parse("2.0.0")) == UpdateRank.MAJOR
        assert rank_update(Version.parse("1.2.0"), Version.parse("1.3.0")) == UpdateRank.MINOR
        assert rank_update(Version.parse("1.2.0"), Version.parse("1.2.1")) == UpdateRank.PATCH

    def test_fourth_segment_is_unknown(self):
        assert rank_update(Version.parse("1.2.3.4"), Version.parse("1.2.3.5")) == UpdateRank.UNKNOWN

    def test_unrecognized_qualifier_is_unknown(self):
        assert rank_update(Version.parse("4.1.0.GA"), Version.parse("4.2.0.GA")) == UpdateRank.UNKNOWN

    def test_prerelease_counter_difference_is_unknown(self):
        assert rank_update(Version.parse("2.0.0-RC1"), Version.parse("2.0.0-RC2")) == UpdateRank.UNKNOWN


class TestClassify:
    """Candidate selection from a version set."""

    def test_major_upgrade_skips_release_candidates(self):
        """1.2.0 with {1.2.0, 1.3.0, 2.0.0, 2.1.0-RC1} proposes 2.0.0 as MAJOR."""
        version_set = _vs(CATS, "1.2.0", "1.3.0", "2.0.0", "2.1.0-RC1")

        candidate = classify("1.2.0", version_set)

        assert candidate is not None
        assert candidate.current == "1.2.0"
        assert candidate.proposed == "2.0.0"
        assert candidate.rank == UpdateRank.MAJOR

    def test_include_prerelease(self):
        version_set = _vs(CATS, "1.2.0", "2.0.0", "2.1.0-RC1")
        candidate = classify("1.2.0", version_set, include_prerelease=True)
        assert candidate.proposed == "2.1.0-RC1"

    def test_up_to_date_returns_none(self):
        assert classify("2.0.0", _vs(CATS, "1.0.0", "2.0.0")) is None

    def test_downgrades_are_never_proposed(self):
        assert classify("3.0.0", _vs(CATS, "1.0.0", "2.0.0")) is None

    def test_empty_version_set(self):
        assert classify("1.0.0", _vs(CATS)) is None


class TestBuildCandidates:
    """Joining outcomes back onto extraction order."""

    def test_one_candidate_per_coordinate_in_extraction_order(self):
        declarations = [
            _decl(ZIO, "2.0.0", 10),
            _decl(CATS, "2.9.0", 50),
            _decl(ZIO, "2.0.5", 90),
        ]
        outcomes = {
            CATS: ResolutionOutcome(CATS, version_set=_vs(CATS, "2.9.0", "2.10.0")),
            ZIO: ResolutionOutcome(ZIO, version_set=_vs(ZIO, "2.0.0", "2.0.5", "2.1.0")),
        }

        candidates = build_candidates(declarations, outcomes)

        assert [c.coordinate for c in candidates] == [ZIO, CATS]
        assert candidates[0].current == "2.0.5"
        assert candidates[0].proposed == "2.1.0"

    def test_failed_outcomes_yield_no_candidate(self):
        declarations = [_decl(ZIO, "2.0.0", 10), _decl(CATS, "2.9.0", 50)]
        outcomes = {
            ZIO: ResolutionOutcome(ZIO, error=RegistryError(RegistryErrorKind.NETWORK, ZIO, "boom")),
            CATS: ResolutionOutcome(CATS, version_set=_vs(CATS, "2.10.0")),
        }

        candidates = build_candidates(declarations, outcomes)

        assert [c.coordinate for c in candidates] == [CATS]

    def test_current_versions_takes_highest_declared(self):
        declarations = [_decl(ZIO, "2.0.5", 10), _decl(ZIO, "2.0.0", 50)]
        assert current_versions(declarations) == {ZIO: "2.0.5"}

    def test_release_candidate_of_proposed_major_is_excluded(self):
        lib = Coordinate("org.example", "lib")
        candidate = classify("1.2.0", _vs(lib, "1.2.0", "1.3.0", "2.0.0", "2.0.0-RC1"))
        assert (candidate.proposed, candidate.rank) == ("2.0.0", UpdateRank.MAJOR)

    def test_release_candidates_order_numerically(self):
        lib = Coordinate("org.example", "lib")
        version_set = _vs(lib, "2.0.0-RC9", "2.0.0-RC10", "2.0.0-RC2")

        candidate = classify("1.0.0", version_set, include_prerelease=True)

        assert candidate.proposed == "2.0.0-RC10"
