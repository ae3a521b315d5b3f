# src/storage/local_writer.py — v3
"""Local filesystem output writer (default backend).

Writes are atomic: content goes to a temp file in the target directory and is
moved into place with os.replace, so readers never see a half-written file.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from transnorm.storage.base_output_writer import BaseOutputWriter


def atomic_write(path: Path, content: bytes | str) -> None:
    """Atomically replace ``path`` with ``content``.

    The temp file is removed on every failure path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class LocalWriter(BaseOutputWriter):
    """Write outputs to the local filesystem."""

    def __init__(self, base_path: str | Path | None = None) -> None:
        """Initialize with optional base path.

        Args:
            base_path: Root directory for all writes. If None, paths are used as given.
        """
        self._base = Path(base_path).expanduser() if base_path else None

    @property
    def base_path(self) -> Path | None:
        return self._base

    def _resolve(self, path: str) -> Path:
        """Resolve a path relative to base_path."""
        if self._base is not None:
            return self._base / path
        return Path(path)

    async def write(self, path: str, content: bytes | str) -> None:
        """Atomically write content to a local file path."""
        atomic_write(self._resolve(path), content)

    async def read(self, path: str) -> bytes:
        """Read content from a local file path."""
        return self._resolve(path).read_bytes()

    async def exists(self, path: str) -> bool:
        """Check if a local path exists."""
        return self._resolve(path).exists()

    async def delete(self, path: str) -> None:
        """Remove a local file if it exists."""
        p = self._resolve(path)
        if p.is_file():
            p.unlink()

    async def list_dir(self, path: str) -> list[str]:
        """List directory contents, skipping in-flight temp files."""
        p = self._resolve(path)
        if not p.is_dir():
            return []
        return [
            entry.name for entry in sorted(p.iterdir())
            if not entry.name.endswith(".tmp")
        ]
