"""
Writable scratch directories for archive overlays.

Each archive open gets its own freshly created directory. It is owned by
exactly one `Scratch` instance and removed on `cleanup()`, or at the latest
when the owner is garbage collected.
"""

import shutil
import tempfile
import weakref
from pathlib import Path

from anystore.logging import get_logger

from gitpool.exceptions import ScratchAllocationFailed
from gitpool.settings import Settings

log = get_logger(__name__)


def _remove(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
        log.debug("Removed scratch directory", path=str(path))
    except OSError as e:
        log.warning(f"Could not remove scratch directory: {e}", path=str(path))


class Scratch:
    def __init__(self, path: Path, keep: bool = False) -> None:
        self.path = path
        self.keep = keep
        if keep:
            self._finalizer = None
        else:
            self._finalizer = weakref.finalize(self, _remove, path)

    @property
    def alive(self) -> bool:
        if self._finalizer is None:
            return self.path.exists()
        return self._finalizer.alive

    def cleanup(self) -> None:
        """Remove the directory (idempotent). No-op if `keep` is set."""
        if self._finalizer is not None:
            self._finalizer()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path})>"


def allocate_scratch(settings: Settings | None = None) -> Scratch:
    """
    Create a new uniquely named scratch directory.

    Raises:
        ScratchAllocationFailed: The directory couldn't be created
    """
    settings = settings or Settings()
    parent = settings.scratch_dir or tempfile.gettempdir()
    try:
        path = tempfile.mkdtemp(prefix=settings.scratch_prefix, dir=parent)
    except OSError as e:
        raise ScratchAllocationFailed(parent, str(e)) from e
    log.debug("Allocated scratch directory", path=path)
    return Scratch(Path(path), keep=settings.keep_scratch)
