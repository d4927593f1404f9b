"""
Repository sources: where a repository lives and how to open it.

A source is a plain value tagged with its `kind`. Opening dispatches on the
kind, nothing is touched on disk before `open()` or `open_fs()` is called.
"""

from enum import StrEnum
from pathlib import Path
from typing import Callable, TypeAlias

from anystore.logging import get_logger
from anystore.store import get_store
from pydantic import BaseModel, ConfigDict

from gitpool import git
from gitpool.archive import ArchiveError, open_as_filesystem
from gitpool.exceptions import CannotOpen
from gitpool.filesystem import Filesystem
from gitpool.repository import Repository
from gitpool.scratch import allocate_scratch
from gitpool.settings import Settings

log = get_logger(__name__)


class SourceKind(StrEnum):
    plain = "plain"
    archive = "archive"


class RepositorySource(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    """Identifier within the pool, chosen by the caller"""
    path: str
    """Physical location (a directory for plain, a file for archive sources)"""
    kind: SourceKind = SourceKind.plain

    def open(self, settings: Settings | None = None) -> Repository:
        """
        Open the repository. Each call is an independent open, archive sources
        get a fresh overlay every time.

        Raises:
            CannotOpen: The location holds no valid repository (or archive)
            ScratchAllocationFailed: No overlay directory could be created
        """
        opener, _ = _OPENERS[self.kind]
        return opener(self, settings or Settings())

    def open_fs(self, settings: Settings | None = None) -> Filesystem:
        """Get a filesystem view of the repository's directory tree"""
        _, fs_opener = _OPENERS[self.kind]
        return fs_opener(self, settings or Settings())


def plain(id: str, path: str | Path) -> RepositorySource:
    return RepositorySource(id=id, path=str(path), kind=SourceKind.plain)


def archive(id: str, path: str | Path) -> RepositorySource:
    return RepositorySource(id=id, path=str(path), kind=SourceKind.archive)


def _cannot_open(source: RepositorySource, e: Exception) -> CannotOpen:
    log.warning(
        f"Cannot open repository: {e}",
        id=source.id,
        path=source.path,
        kind=source.kind,
    )
    return CannotOpen(source.id, source.path, str(e))


def _open_repository(source: RepositorySource, fs: Filesystem) -> Repository:
    try:
        repo = git.open_repository(fs.root)
    except git.OPEN_ERRORS as e:
        fs.close()
        raise _cannot_open(source, e) from e
    log.debug("Opened repository", id=source.id, path=source.path, kind=source.kind)
    return Repository(source.id, repo, fs)


def open_plain_fs(source: RepositorySource, settings: Settings) -> Filesystem:
    return Filesystem(Path(source.path))


def open_plain(source: RepositorySource, settings: Settings) -> Repository:
    return _open_repository(source, open_plain_fs(source, settings))


def open_archive_fs(source: RepositorySource, settings: Settings) -> Filesystem:
    path = Path(source.path)
    base = get_store(uri=path.parent.absolute(), serialization_mode="raw")
    scratch = allocate_scratch(settings)
    try:
        return open_as_filesystem(base, path.name, scratch)
    except ArchiveError as e:
        scratch.cleanup()
        raise _cannot_open(source, e) from e
    except Exception:
        scratch.cleanup()
        raise


def open_archive(source: RepositorySource, settings: Settings) -> Repository:
    return _open_repository(source, open_archive_fs(source, settings))


Opener: TypeAlias = Callable[[RepositorySource, Settings], Repository]
FsOpener: TypeAlias = Callable[[RepositorySource, Settings], Filesystem]

_OPENERS: dict[SourceKind, tuple[Opener, FsOpener]] = {
    SourceKind.plain: (open_plain, open_plain_fs),
    SourceKind.archive: (open_archive, open_archive_fs),
}
