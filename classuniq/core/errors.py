"""
Error types for class uniqueness analysis.

Only archive read failures are fatal. Missing artifact files are logged and
skipped by the analyzer rather than raised.
"""

from typing import Optional, Any, Dict


class ClassUniquenessError(Exception):
    """
    Base exception for all analysis errors.

    Carries a structured ``details`` dict for reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize analysis error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ArchiveReadError(ClassUniquenessError):
    """
    Raised when an artifact's archive cannot be opened or read.

    A partially scanned dependency set would produce misleading uniqueness
    results, so this aborts the whole ``analyze()`` call.
    """

    def __init__(self, message: str,
                 artifact: Optional[Any] = None,
                 cause: Optional[BaseException] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize archive read error.

        Args:
            message: Error message
            artifact: Identity of the artifact being scanned
            cause: Underlying I/O or zip error
            details: Additional error context
        """
        super().__init__(message, details)
        self.artifact = artifact
        self.cause = cause

        self.details.update({
            'artifact': str(artifact) if artifact is not None else None,
            'cause': repr(cause) if cause is not None else None,
        })


class UnknownArtifactSetError(ClassUniquenessError, KeyError):
    """
    Raised when a query names an artifact set that analysis never produced.

    Callers must only query sets previously returned as problem jars.
    """

    def __init__(self, artifact_set: Any):
        members = sorted(str(member) for member in artifact_set)
        super().__init__(
            f"Artifact set was never observed as a problem jar group: {members}",
            {'artifact_set': members},
        )
        self.artifact_set = artifact_set

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.message


class ManifestError(ClassUniquenessError):
    """Raised when an artifact manifest or coordinate string is malformed."""

    def __init__(self, message: str,
                 source: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.source = source
        self.details.update({'source': source})
