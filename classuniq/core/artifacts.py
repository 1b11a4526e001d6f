"""Artifact identities and file-backed artifact records.

The analyzer accepts anything satisfying the :class:`Artifact` protocol.
:class:`ResolvedArtifact` is the concrete record used by the command line,
built either from plain jar paths or from a manifest written by an external
dependency resolver.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import (
    Any,
    BinaryIO,
    Dict,
    Iterable,
    List,
    Protocol,
    Union,
    runtime_checkable,
)

import yaml

from .errors import ManifestError

UNKNOWN_GROUP = "unknown"

# name-1.2.3.jar, name-1.2.3-SNAPSHOT.jar, name-2021.1.jar
_VERSIONED_FILE_RE = re.compile(r"^(?P<name>.+?)-(?P<version>\d[\w.+-]*)$")


@dataclass(frozen=True, order=True)
class ArtifactIdentity:
    """Immutable group/name/version coordinates of a dependency."""

    group: str
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"


@runtime_checkable
class Artifact(Protocol):
    """Anything the analyzer can scan."""

    @property
    def identity(self) -> ArtifactIdentity: ...

    def exists(self) -> bool: ...

    def open(self) -> BinaryIO: ...


@dataclass(frozen=True)
class ResolvedArtifact:
    """A resolved dependency backed by an archive file on disk."""

    identity: ArtifactIdentity
    path: Path

    def exists(self) -> bool:
        return self.path.is_file()

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def __str__(self) -> str:
        return f"{self.identity} ({self.path})"


def parse_coordinates(text: str) -> ArtifactIdentity:
    """Parse ``group:name:version`` coordinates.

    Extra trailing segments (classifier, packaging) are ignored.
    """
    parts = [part.strip() for part in text.split(":")]
    if len(parts) < 3 or not all(parts[:3]):
        raise ManifestError(
            f"Expected 'group:name:version' coordinates, got {text!r}",
            source=text,
        )
    return ArtifactIdentity(parts[0], parts[1], parts[2])


def identity_from_path(path: Union[str, Path]) -> ArtifactIdentity:
    """Derive an identity from a ``name-version.jar`` file name."""
    stem = Path(path).stem
    match = _VERSIONED_FILE_RE.match(stem)
    if match:
        return ArtifactIdentity(UNKNOWN_GROUP, match.group("name"), match.group("version"))
    return ArtifactIdentity(UNKNOWN_GROUP, stem, UNKNOWN_GROUP)


def artifacts_from_paths(paths: Iterable[Union[str, Path]]) -> List[ResolvedArtifact]:
    """Build artifact records for plain jar paths."""
    return [ResolvedArtifact(identity_from_path(p), Path(p)) for p in paths]


def _artifact_from_entry(entry: Any, base_dir: Path, source: str) -> ResolvedArtifact:
    if not isinstance(entry, dict) or "path" not in entry:
        raise ManifestError(f"Manifest entry must be a mapping with a 'path': {entry!r}", source=source)

    if "coordinates" in entry:
        identity = parse_coordinates(str(entry["coordinates"]))
    elif "name" in entry:
        identity = ArtifactIdentity(
            str(entry.get("group", UNKNOWN_GROUP)),
            str(entry["name"]),
            str(entry.get("version", UNKNOWN_GROUP)),
        )
    else:
        identity = identity_from_path(entry["path"])

    path = Path(entry["path"])
    if not path.is_absolute():
        path = base_dir / path
    return ResolvedArtifact(identity, path)


def load_manifest(path: Union[str, Path]) -> List[ResolvedArtifact]:
    """Load resolved artifacts from a YAML or JSON manifest.

    Expected layout::

        artifacts:
          - coordinates: com.example:foo:1.0
            path: libs/foo-1.0.jar
          - group: com.example
            name: bar
            version: "2.0"
            path: /abs/path/bar-2.0.jar

    Relative paths resolve against the manifest's directory.
    """
    path = Path(path)
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}", source=str(path))

    with open(path, "r") as f:
        if path.suffix in [".yaml", ".yml"]:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        elif path.suffix == ".json":
            data = json.load(f)
        else:
            raise ManifestError(f"Unsupported manifest format: {path.suffix}", source=str(path))

    entries = data.get("artifacts") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ManifestError("Manifest must contain an 'artifacts' list", source=str(path))

    base_dir = path.parent
    return [_artifact_from_entry(entry, base_dir, str(path)) for entry in entries]
