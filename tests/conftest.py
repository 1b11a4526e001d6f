"""
Shared fixtures for classuniq tests.

Jars are built on the fly with zipfile; class "bytecode" is arbitrary bytes
since only whole-file hashes matter.
"""

import struct
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from classuniq.core.artifacts import ArtifactIdentity, ResolvedArtifact


def write_jar(path: Path, entries: Dict[str, bytes], directories: Optional[list] = None) -> Path:
    """Write a jar containing ``entries`` (archive name -> bytes)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as jar:
        for directory in directories or []:
            jar.writestr(directory, b"")
        for name, content in entries.items():
            jar.writestr(name, content)
    return path


@pytest.fixture
def make_artifact(tmp_path):
    """Factory building a ResolvedArtifact backed by a fresh jar."""

    def _make(name: str, version: str, entries: Dict[str, bytes], group: str = "com.example",
              directories: Optional[list] = None) -> ResolvedArtifact:
        jar_path = write_jar(tmp_path / f"{name}-{version}.jar", entries, directories)
        return ResolvedArtifact(ArtifactIdentity(group, name, version), jar_path)

    return _make


@pytest.fixture
def bar_bytes():
    """Content of com/foo/Bar.class shared between fixtures."""
    return b"\xca\xfe\xba\xbe" + b"Bar" * 100


@pytest.fixture
def jar_writer():
    """The write_jar helper, for tests that need raw jar paths."""
    return write_jar


LOCAL_HEADER_SIG = b"PK\x03\x04"
CENTRAL_HEADER_SIG = b"PK\x01\x02"


def patch_zip_headers(path: Path, method: Optional[int] = None, flag_bits: int = 0) -> Path:
    """Rewrite the compression method and OR flag bits into every local and central header."""
    raw = bytearray(path.read_bytes())
    # (signature, offset of flag bits, offset of compression method)
    layouts = [(LOCAL_HEADER_SIG, 6, 8), (CENTRAL_HEADER_SIG, 8, 10)]
    for signature, flags_at, method_at in layouts:
        start = raw.find(signature)
        while start != -1:
            (flags,) = struct.unpack_from("<H", raw, start + flags_at)
            struct.pack_into("<H", raw, start + flags_at, flags | flag_bits)
            if method is not None:
                struct.pack_into("<H", raw, start + method_at, method)
            start = raw.find(signature, start + 4)
    path.write_bytes(bytes(raw))
    return path


@pytest.fixture
def zip_patcher():
    """The patch_zip_headers helper."""
    return patch_zip_headers
