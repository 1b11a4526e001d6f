"""Detection of class names provided by more than one dependency artifact."""

import logging
import threading
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Collection, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, TypeVar

from .artifacts import Artifact, ArtifactIdentity
from .errors import UnknownArtifactSetError
from .scanner import DEFAULT_CHUNK_SIZE, ArchiveEntry, ContentHash, scan_archive

logger = logging.getLogger(__name__)

K = TypeVar('K')
V = TypeVar('V')

ArtifactSet = FrozenSet[ArtifactIdentity]

PartialScan = Tuple[ArtifactIdentity, List[ArchiveEntry]]


def multimap_put(mapping: Dict[K, Set[V]], key: K, value: V) -> None:
    """Add ``value`` to the set stored under ``key``, creating it if needed."""
    mapping.setdefault(key, set()).add(value)


class ClassUniquenessAnalyzer:
    """
    Finds classes that appear in more than one artifact.

    Results accumulate across ``analyze()`` calls and are never cleared.
    Two indices are kept in opposite directions: class name to owning
    artifacts, and owning artifact set to the class names it shares. A third
    records classes whose copies are not byte-identical.
    """

    def __init__(
        self,
        log: Optional[logging.Logger] = None,
        max_workers: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Initialize analyzer.

        Args:
            log: Logger receiving warnings and run summaries
            max_workers: Threads used to scan archives; 1 scans sequentially
            chunk_size: Read size used while hashing class entries
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.log = log or logger
        self.max_workers = max_workers
        self.chunk_size = chunk_size

        self._class_to_jars: Dict[str, Set[ArtifactIdentity]] = {}
        self._jars_to_classes: Dict[ArtifactSet, Set[str]] = {}
        self._class_to_hashes: Dict[str, Set[ContentHash]] = {}
        self._merge_lock = threading.Lock()

    def analyze(self, artifacts: Collection[Artifact]) -> None:
        """
        Scan ``artifacts`` and record every class owned by two or more of them.

        All archives are scanned before anything is filtered, since a class
        can only be judged unique once every owner is known. A read failure
        propagates before the merge, leaving earlier results untouched.

        Raises:
            ArchiveReadError: If any existing archive cannot be read
        """
        before = time.perf_counter()
        artifacts = list(artifacts)

        present = []
        for artifact in artifacts:
            if not artifact.exists():
                self.log.warning("Skipping non-existent jar %s", artifact)
                continue
            present.append(artifact)

        partials = self._scan_all(present)

        temp_class_to_jars: Dict[str, Set[ArtifactIdentity]] = defaultdict(set)
        temp_class_to_hashes: Dict[str, Set[ContentHash]] = defaultdict(set)
        for identity, entries in partials:
            for entry in entries:
                temp_class_to_jars[entry.class_name].add(identity)
                temp_class_to_hashes[entry.class_name].add(entry.content_hash)

        with self._merge_lock:
            for class_name, jars in temp_class_to_jars.items():
                if len(jars) < 2:
                    continue
                for jar in jars:
                    multimap_put(self._class_to_jars, class_name, jar)
                multimap_put(self._jars_to_classes, frozenset(jars), class_name)

            for class_name, hashes in temp_class_to_hashes.items():
                if len(hashes) < 2:
                    continue
                for content_hash in hashes:
                    multimap_put(self._class_to_hashes, class_name, content_hash)

        elapsed_ms = (time.perf_counter() - before) * 1000
        self.log.info(
            "Checked %d classes from %d dependencies for uniqueness (%dms)",
            len(temp_class_to_jars), len(artifacts), elapsed_ms,
        )

    def analyze_configuration(self, configuration: Any) -> None:
        """Analyze the ``resolved_artifacts`` of a resolved configuration object."""
        self.analyze(list(configuration.resolved_artifacts))

    def _scan_one(self, artifact: Artifact) -> PartialScan:
        return artifact.identity, list(scan_archive(artifact, self.chunk_size))

    def _scan_all(self, artifacts: List[Artifact]) -> List[PartialScan]:
        if self.max_workers == 1 or len(artifacts) < 2:
            return [self._scan_one(artifact) for artifact in artifacts]

        self.log.debug("Scanning %d archives with %d workers", len(artifacts), self.max_workers)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # map() re-raises the first failure when results are collected
            return list(executor.map(self._scan_one, artifacts))

    def get_problem_jars(self) -> List[ArtifactSet]:
        """Owner sets of every shared class, one entry per class (repeats allowed)."""
        return [frozenset(jars) for jars in self._class_to_jars.values()]

    def distinct_problem_jars(self) -> List[ArtifactSet]:
        """Each problem jar group once, in a stable order."""
        return sorted(self._jars_to_classes, key=lambda jars: sorted(jars))

    def jars_to_classes(self) -> Dict[ArtifactSet, Set[str]]:
        return self._jars_to_classes

    def class_to_artifacts(self) -> Dict[str, Set[ArtifactIdentity]]:
        return self._class_to_jars

    def class_to_hashes(self) -> Dict[str, Set[ContentHash]]:
        return self._class_to_hashes

    def get_shared_classes_in_problem_jars(self, problem_jars: Iterable[ArtifactIdentity]) -> Set[str]:
        """
        Classes shared by exactly ``problem_jars``.

        Raises:
            UnknownArtifactSetError: If the set was never observed by analysis
        """
        key = frozenset(problem_jars)
        try:
            return self._jars_to_classes[key]
        except KeyError:
            raise UnknownArtifactSetError(key) from None

    def get_differing_shared_classes_in_problem_jars(self, problem_jars: Iterable[ArtifactIdentity]) -> Set[str]:
        """
        Shared classes of ``problem_jars`` whose copies are not byte-identical.

        Raises:
            UnknownArtifactSetError: If the set was never observed by analysis
        """
        shared = self.get_shared_classes_in_problem_jars(problem_jars)
        return {name for name in shared if name in self._class_to_hashes}
