"""Tests for ClassUniquenessAnalyzer."""

import logging
from pathlib import Path

import pytest

from classuniq.core.analyzer import ClassUniquenessAnalyzer, multimap_put
from classuniq.core.artifacts import ArtifactIdentity, ResolvedArtifact
from classuniq.core.errors import ArchiveReadError, UnknownArtifactSetError

X = ArtifactIdentity("com.example", "x", "1.0")
Y = ArtifactIdentity("com.example", "y", "2.0")
Z = ArtifactIdentity("com.example", "z", "3.0")


@pytest.fixture
def test_logger():
    """Injected logger that propagates to caplog."""
    return logging.getLogger("tests.classuniq.analyzer")


@pytest.fixture
def analyzer(test_logger):
    return ClassUniquenessAnalyzer(log=test_logger)


def test_multimap_put_creates_and_extends():
    mapping = {}
    multimap_put(mapping, "k", 1)
    multimap_put(mapping, "k", 2)
    multimap_put(mapping, "k", 1)
    assert mapping == {"k": {1, 2}}


def test_rejects_non_positive_workers():
    with pytest.raises(ValueError):
        ClassUniquenessAnalyzer(max_workers=0)


class TestScenarios:
    """End-to-end scenarios over small jars."""

    def test_identical_duplicate_is_shared_but_not_differing(self, analyzer, make_artifact, bar_bytes):
        x = make_artifact("x", "1.0", {"com/foo/Bar.class": bar_bytes, "com/foo/Unique.class": b"u"})
        y = make_artifact("y", "2.0", {"com/foo/Bar.class": bar_bytes})

        analyzer.analyze([x, y])

        assert analyzer.get_problem_jars() == [frozenset({X, Y})]
        assert analyzer.jars_to_classes() == {frozenset({X, Y}): {"com.foo.Bar"}}
        assert analyzer.get_shared_classes_in_problem_jars({X, Y}) == {"com.foo.Bar"}
        assert analyzer.get_differing_shared_classes_in_problem_jars({X, Y}) == set()
        assert analyzer.class_to_hashes() == {}

    def test_one_byte_difference_is_differing(self, analyzer, make_artifact, bar_bytes):
        changed = bar_bytes[:-1] + bytes([bar_bytes[-1] ^ 0x01])
        x = make_artifact("x", "1.0", {"com/foo/Bar.class": bar_bytes, "com/foo/Unique.class": b"u"})
        y = make_artifact("y", "2.0", {"com/foo/Bar.class": changed})

        analyzer.analyze([x, y])

        assert analyzer.get_differing_shared_classes_in_problem_jars({X, Y}) == {"com.foo.Bar"}
        assert len(analyzer.class_to_hashes()["com.foo.Bar"]) == 2

    def test_no_repeated_classes_means_no_problems(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"b/B.class": b"b"})

        analyzer.analyze([x, y])

        assert analyzer.get_problem_jars() == []
        assert analyzer.jars_to_classes() == {}
        assert analyzer.class_to_artifacts() == {}

    def test_single_owner_is_not_a_problem(self, analyzer, make_artifact, bar_bytes):
        x = make_artifact("x", "1.0", {"com/foo/Bar.class": bar_bytes})

        analyzer.analyze([x])

        assert analyzer.jars_to_classes() == {}

    def test_groups_by_exact_owner_set(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"p/Shared3.class": b"s", "p/XY.class": b"xy", "p/XZ.class": b"xz"})
        y = make_artifact("y", "2.0", {"p/Shared3.class": b"s", "p/XY.class": b"xy2"})
        z = make_artifact("z", "3.0", {"p/Shared3.class": b"s", "p/XZ.class": b"xz"})

        analyzer.analyze([x, y, z])

        assert analyzer.jars_to_classes() == {
            frozenset({X, Y, Z}): {"p.Shared3"},
            frozenset({X, Y}): {"p.XY"},
            frozenset({X, Z}): {"p.XZ"},
        }
        assert analyzer.get_differing_shared_classes_in_problem_jars({X, Y}) == {"p.XY"}
        assert analyzer.get_differing_shared_classes_in_problem_jars({X, Z}) == set()

    def test_problem_jars_repeat_per_class(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"p/A.class": b"a", "p/B.class": b"b"})
        y = make_artifact("y", "2.0", {"p/A.class": b"a", "p/B.class": b"b"})

        analyzer.analyze([x, y])

        assert analyzer.get_problem_jars() == [frozenset({X, Y}), frozenset({X, Y})]
        assert analyzer.distinct_problem_jars() == [frozenset({X, Y})]
        assert analyzer.get_shared_classes_in_problem_jars([Y, X]) == {"p.A", "p.B"}

    def test_same_artifact_twice_is_counted_once(self, analyzer, make_artifact, bar_bytes):
        x = make_artifact("x", "1.0", {"com/foo/Bar.class": bar_bytes})

        analyzer.analyze([x, x])

        assert analyzer.jars_to_classes() == {}


class TestMissingFiles:
    """Artifacts whose backing file does not exist."""

    def test_missing_file_is_skipped_with_warning(self, analyzer, make_artifact, tmp_path, caplog, bar_bytes):
        x = make_artifact("x", "1.0", {"com/foo/Bar.class": bar_bytes})
        ghost = ResolvedArtifact(Y, tmp_path / "missing" / "y-2.0.jar")

        with caplog.at_level(logging.WARNING, logger="tests.classuniq.analyzer"):
            analyzer.analyze([x, ghost])

        assert analyzer.jars_to_classes() == {}
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "com.example:y:2.0" in warnings[0].getMessage()

    def test_summary_is_logged(self, analyzer, make_artifact, caplog):
        x = make_artifact("x", "1.0", {"a/A.class": b"a", "a/B.class": b"b"})

        with caplog.at_level(logging.INFO, logger="tests.classuniq.analyzer"):
            analyzer.analyze([x])

        assert any("Checked 2 classes from 1 dependencies" in r.getMessage() for r in caplog.records)


class TestReadFailures:
    """Archive read errors abort the call without touching results."""

    def _corrupt(self, path: Path) -> None:
        path.write_bytes(b"garbage, not a jar")

    def test_read_error_propagates(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a"})
        self._corrupt(y.path)

        with pytest.raises(ArchiveReadError) as exc_info:
            analyzer.analyze([x, y])

        assert exc_info.value.artifact == Y

    def test_failed_call_merges_nothing(self, analyzer, make_artifact, tmp_path):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a2"})
        analyzer.analyze([x, y])
        before = (
            dict(analyzer.jars_to_classes()),
            {k: set(v) for k, v in analyzer.class_to_artifacts().items()},
            {k: set(v) for k, v in analyzer.class_to_hashes().items()},
        )

        # The first two would add a new shared class if merged
        x2 = make_artifact("x", "1.1", {"b/B.class": b"b"})
        y2 = make_artifact("y", "2.1", {"b/B.class": b"b"})
        broken = make_artifact("z", "3.0", {"b/B.class": b"b"})
        self._corrupt(broken.path)

        with pytest.raises(ArchiveReadError):
            analyzer.analyze([x2, y2, broken])

        after = (
            dict(analyzer.jars_to_classes()),
            {k: set(v) for k, v in analyzer.class_to_artifacts().items()},
            {k: set(v) for k, v in analyzer.class_to_hashes().items()},
        )
        assert after == before

    def test_parallel_read_error_propagates(self, test_logger, make_artifact):
        analyzer = ClassUniquenessAnalyzer(log=test_logger, max_workers=4)
        good = [make_artifact(f"lib{i}", "1.0", {"a/A.class": b"a"}) for i in range(5)]
        broken = make_artifact("broken", "1.0", {"a/A.class": b"a"})
        self._corrupt(broken.path)

        with pytest.raises(ArchiveReadError):
            analyzer.analyze(good + [broken])

        assert analyzer.jars_to_classes() == {}


class TestAccumulation:
    """State accumulates across analyze() calls."""

    def test_repeated_calls_accumulate(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a", "b/B.class": b"b1"})
        z = make_artifact("z", "3.0", {"b/B.class": b"b2"})

        analyzer.analyze([x, y])
        analyzer.analyze([y, z])

        assert analyzer.jars_to_classes() == {
            frozenset({X, Y}): {"a.A"},
            frozenset({Y, Z}): {"b.B"},
        }
        assert analyzer.get_differing_shared_classes_in_problem_jars({Y, Z}) == {"b.B"}

    def test_uniqueness_is_judged_per_call(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a"})

        analyzer.analyze([x])
        analyzer.analyze([y])

        assert analyzer.jars_to_classes() == {}

    def test_reanalysis_is_idempotent(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"b"})

        analyzer.analyze([x, y])
        first = {k: set(v) for k, v in analyzer.jars_to_classes().items()}
        analyzer.analyze([x, y])

        assert analyzer.jars_to_classes() == first
        assert len(analyzer.class_to_hashes()["a.A"]) == 2

    def test_analyze_configuration(self, analyzer, make_artifact):
        class Resolved:
            def __init__(self, artifacts):
                self.resolved_artifacts = artifacts

        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a"})

        analyzer.analyze_configuration(Resolved({x, y}))

        assert analyzer.get_shared_classes_in_problem_jars({X, Y}) == {"a.A"}


class TestParallelScan:
    """Parallel and sequential scanning agree."""

    def test_parallel_matches_sequential(self, test_logger, make_artifact):
        artifacts = []
        for i in range(8):
            entries = {f"shared/S{j}.class": bytes([j, i % 2]) for j in range(5)}
            entries[f"own/O{i}.class"] = b"own"
            artifacts.append(make_artifact(f"lib{i}", "1.0", entries))

        sequential = ClassUniquenessAnalyzer(log=test_logger, max_workers=1)
        parallel = ClassUniquenessAnalyzer(log=test_logger, max_workers=4)
        sequential.analyze(artifacts)
        parallel.analyze(artifacts)

        assert parallel.jars_to_classes() == sequential.jars_to_classes()
        assert parallel.class_to_hashes() == sequential.class_to_hashes()
        assert sorted(map(sorted, parallel.get_problem_jars())) == sorted(map(sorted, sequential.get_problem_jars()))


class TestQueries:
    """Lookup preconditions."""

    def test_unknown_set_raises(self, analyzer, make_artifact):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a"})
        analyzer.analyze([x, y])

        with pytest.raises(UnknownArtifactSetError):
            analyzer.get_shared_classes_in_problem_jars({X})
        with pytest.raises(UnknownArtifactSetError):
            analyzer.get_differing_shared_classes_in_problem_jars({X, Z})

    def test_unknown_set_is_a_key_error(self, analyzer):
        with pytest.raises(KeyError) as exc_info:
            analyzer.get_shared_classes_in_problem_jars({X, Y})
        assert "com.example:x:1.0" in str(exc_info.value)


class TestUnreadableEntries:
    """Entries zipfile refuses to open abort the call like any read failure."""

    @pytest.mark.parametrize("patch", [{"method": 9}, {"flag_bits": 0x1}])
    def test_wrapped_with_identity(self, analyzer, make_artifact, zip_patcher, patch):
        x = make_artifact("x", "1.0", {"a/A.class": b"a"})
        y = make_artifact("y", "2.0", {"a/A.class": b"a"})
        zip_patcher(y.path, **patch)

        with pytest.raises(ArchiveReadError) as exc_info:
            analyzer.analyze([x, y])

        assert exc_info.value.artifact == Y
        assert analyzer.jars_to_classes() == {}
