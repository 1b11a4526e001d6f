"""classuniq - Detect duplicate classes across resolved dependency jars."""

__version__ = "0.1.0"

from .core.artifacts import ArtifactIdentity, ResolvedArtifact
from .core.analyzer import ClassUniquenessAnalyzer
from .core.errors import ArchiveReadError, UnknownArtifactSetError

__all__ = [
    "ArtifactIdentity",
    "ResolvedArtifact",
    "ClassUniquenessAnalyzer",
    "ArchiveReadError",
    "UnknownArtifactSetError",
    "__version__",
]
