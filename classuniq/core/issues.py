"""Core issue tracking data structures."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Any, TypedDict, Literal, Iterator
from enum import Enum


class IssueSeverity(Enum):
    """Issue severity levels."""
    WARNING = 2
    ERROR = 3


IssueKind = Literal[
    "identical_duplicate_classes",
    "differing_duplicate_classes",
]


class IssueDict(TypedDict, total=False):
    """Type definition for issue dictionary representation."""
    kind: str
    message: str
    severity: int
    artifacts: List[str]
    evidence: Dict[str, Any]
    suggestions: List[str]


@dataclass
class Issue:
    """A group of artifacts that provide the same class names."""

    kind: IssueKind
    message: str
    severity: int
    artifacts: List[str] = field(default_factory=list)
    evidence: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> IssueDict:
        """Convert to dictionary for JSON serialization."""
        result: IssueDict = {
            "kind": self.kind,
            "message": self.message,
            "severity": self.severity,
            "artifacts": self.artifacts,
            "evidence": self.evidence,
            "suggestions": self.suggestions,
        }
        return result


@dataclass
class IssueCollection:
    """Collection of issues with convenience methods."""

    issues: List[Issue] = field(default_factory=list)

    def add(self, issue: Issue) -> None:
        """Add an issue to the collection."""
        self.issues.append(issue)

    def filter_by_kind(self, kind: IssueKind) -> List[Issue]:
        """Get all issues of a specific kind."""
        return [i for i in self.issues if i.kind == kind]

    def sort(self) -> None:
        """Sort issues most severe first, then by artifacts."""
        self.issues.sort(key=lambda i: (-i.severity, i.artifacts))

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self) -> Iterator[Issue]:
        return iter(self.issues)
