"""Streaming reader for class entries inside jar archives."""

import hashlib
import io
import zipfile
import zlib
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from .artifacts import Artifact
from .errors import ArchiveReadError

CLASS_SUFFIX = ".class"
DEFAULT_CHUNK_SIZE = 64 * 1024

# sha256 hex digest
ContentHash = str

# zipfile raises NotImplementedError for unsupported compression methods
# and RuntimeError for encrypted entries
_READ_ERRORS = (
    OSError,
    EOFError,
    zipfile.BadZipFile,
    zlib.error,
    NotImplementedError,
    RuntimeError,
)


@dataclass(frozen=True)
class ArchiveEntry:
    """A class file found in an archive."""

    class_name: str
    content_hash: ContentHash


def is_class_entry(entry_name: str) -> bool:
    """Check if an archive entry is a class file rather than a directory or resource."""
    return not entry_name.endswith("/") and entry_name.endswith(CLASS_SUFFIX)


def normalize_class_name(entry_name: str) -> str:
    """Turn ``com/foo/Bar.class`` into ``com.foo.Bar``."""
    if entry_name.endswith(CLASS_SUFFIX):
        entry_name = entry_name[:-len(CLASS_SUFFIX)]
    return entry_name.replace("/", ".")


def hash_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ContentHash:
    """Exhaust ``stream`` through SHA-256 and return the hex digest."""
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)
    return digest.hexdigest()


def _seekable(stream: BinaryIO) -> BinaryIO:
    # zipfile needs random access to the central directory
    if stream.seekable():
        return stream
    return io.BytesIO(stream.read())


def scan_archive(artifact: Artifact, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[ArchiveEntry]:
    """
    Lazily yield every class entry of ``artifact`` with its content hash.

    Each entry is read to the end even when the caller only needs the name,
    and the archive stream is closed however the iteration ends.

    Args:
        artifact: Artifact to read; its backing file must exist
        chunk_size: Read size used while hashing entries

    Raises:
        ArchiveReadError: If the archive cannot be opened or an entry
            cannot be read
    """
    identity = artifact.identity
    try:
        with artifact.open() as raw, zipfile.ZipFile(_seekable(raw)) as archive:
            for info in archive.infolist():
                if info.is_dir() or not is_class_entry(info.filename):
                    continue
                with archive.open(info) as member:
                    content_hash = hash_stream(member, chunk_size)
                yield ArchiveEntry(normalize_class_name(info.filename), content_hash)
    except _READ_ERRORS as e:
        raise ArchiveReadError(
            f"Failed to read archive for {identity}: {e}",
            artifact=identity,
            cause=e,
        ) from e
