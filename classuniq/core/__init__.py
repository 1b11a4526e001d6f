"""Archive scanning, duplicate-class analysis and reporting."""

from .artifacts import Artifact, ArtifactIdentity, ResolvedArtifact
from .analyzer import ClassUniquenessAnalyzer
from .errors import (
    ArchiveReadError,
    ClassUniquenessError,
    ManifestError,
    UnknownArtifactSetError,
)
from .scanner import ArchiveEntry, scan_archive

__all__ = [
    'Artifact',
    'ArtifactIdentity',
    'ResolvedArtifact',
    'ClassUniquenessAnalyzer',
    'ArchiveReadError',
    'ClassUniquenessError',
    'ManifestError',
    'UnknownArtifactSetError',
    'ArchiveEntry',
    'scan_archive',
]
