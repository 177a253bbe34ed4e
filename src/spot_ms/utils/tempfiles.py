"""
Request-Scoped Temporary Files.

Every render gets its own temporary directory holding the voice clip and
the mixed output. The directory is removed when the ``with`` block exits,
whatever the exit path (success, provider/probe/mix failure), so disk use
does not grow under load. Concurrent requests never share a directory, so
no locking is needed.

Example:
    with request_workdir() as workdir:
        voice_path = workdir.write("voice.mp3", tts_bytes)
        ...
"""
from __future__ import annotations

import contextlib
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from spot_ms.core.logging import debug, get_logger

_LOG = get_logger("spot-ms.tempfiles")

TEMP_PREFIX = "spot_ms_"


class RequestWorkdir:
    """A temporary directory owned by one render request."""

    def __init__(self, path: Path):
        self.path = path

    def file(self, name: str) -> Path:
        """Path for a file inside the workdir (not created)."""
        return self.path / name

    def write(self, name: str, data: bytes) -> Path:
        """Write bytes to a file inside the workdir and return its path."""
        target = self.file(name)
        target.write_bytes(data)
        return target


@contextlib.contextmanager
def request_workdir(base_dir: Optional[str] = None) -> Iterator[RequestWorkdir]:
    """
    Create a per-request temporary directory and remove it on exit.

    Args:
        base_dir: Parent directory (defaults to the system temp dir).

    Yields:
        RequestWorkdir for the request.
    """
    path = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=base_dir))
    debug(_LOG, "workdir_created", path=str(path))
    try:
        yield RequestWorkdir(path)
    finally:
        shutil.rmtree(path, ignore_errors=True)
        debug(_LOG, "workdir_removed", path=str(path))
