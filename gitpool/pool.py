"""
The repository pool: an append-only registry of repository sources with a
stable registration order.
"""

import os
from pathlib import Path
from typing import Generator

from anystore.logging import get_logger

from gitpool import source as sources
from gitpool.archive import is_archive_file, is_repository_dir
from gitpool.exceptions import (
    AlreadyRegistered,
    Exhausted,
    ImproperlyConfigured,
    NotFound,
)
from gitpool.filesystem import Filesystem
from gitpool.iterator import RepositoryIterator
from gitpool.repository import Repository
from gitpool.settings import Settings
from gitpool.source import RepositorySource

log = get_logger(__name__)


class RepositoryPool:
    """
    Registry of git repositories that live either as plain directories or
    packed into archive files.

    Sources are registered once and opened lazily on every lookup, nothing
    is validated or opened at registration time. There is no way to remove a
    registered source.

    Registration isn't synchronized: register everything first, then look up
    or iterate from as many threads as needed.

    Example:
        ```python
        pool = RepositoryPool()
        pool.register_plain("/src/project")
        pool.register_archive_with_id("legacy", "/archives/legacy.tar.gz")

        for repo in pool:
            with repo:
                print(repo.id, sum(1 for _ in repo.commit_objects()))
        ```

    The `for` loop stops on `Exhausted`. Code calling `iterator.next()` from
    a generator has to catch `Exhausted` itself, otherwise PEP 479 turns it
    into a `RuntimeError`.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._sources: dict[str, RepositorySource] = {}
        self._order: list[str] = []

    def register(self, source: RepositorySource) -> RepositorySource:
        """
        Add a source to the pool.

        Raises:
            AlreadyRegistered: A source with the same id exists (the existing
                entry is kept)
            ImproperlyConfigured: Empty identifier
        """
        if not source.id:
            raise ImproperlyConfigured("Repository id must not be empty")
        existing = self._sources.get(source.id)
        if existing is not None:
            raise AlreadyRegistered(source.id, existing.path)
        self._order.append(source.id)
        self._sources[source.id] = source
        log.debug(
            "Registered repository", id=source.id, path=source.path, kind=source.kind
        )
        return source

    def register_plain(self, path: str | Path) -> RepositorySource:
        """Register a plain repository directory, using its path as id."""
        return self.register_plain_with_id(str(path), path)

    def register_plain_with_id(self, id: str, path: str | Path) -> RepositorySource:
        return self.register(sources.plain(id, path))

    def register_archive(self, path: str | Path) -> RepositorySource:
        """Register an archive file, using its path as id."""
        return self.register_archive_with_id(str(path), path)

    def register_archive_with_id(self, id: str, path: str | Path) -> RepositorySource:
        return self.register(sources.archive(id, path))

    def register_path(
        self, path: str | Path, id: str | None = None
    ) -> RepositorySource:
        """Register a plain directory or an archive file, depending on what
        the path looks like."""
        id = id or str(path)
        if is_archive_file(path):
            return self.register_archive_with_id(id, path)
        return self.register_plain_with_id(id, path)

    def discover(self, root: str | Path) -> list[RepositorySource]:
        """
        Walk the directory tree below `root` and register every repository
        directory and archive file found. Paths already in the pool (as id or
        as the location of any registered source) are skipped.

        Returns:
            The newly registered sources
        """
        registered: list[RepositorySource] = []
        known = {Path(s.path).resolve() for s in self.sources()}
        for path in iter_repository_paths(Path(root)):
            if str(path) in self or path.resolve() in known:
                log.debug("Repository already registered, skipping", path=str(path))
                continue
            registered.append(self.register_path(path))
        log.info(
            f"Discovered {len(registered)} repositories in `{root}`", root=str(root)
        )
        return registered

    def get_source(self, id: str) -> RepositorySource:
        try:
            return self._sources[id]
        except KeyError:
            raise NotFound(id) from None

    def id_at(self, pos: int) -> str:
        """Get the identifier registered at ordinal `pos`

        Raises:
            Exhausted: `pos` is beyond the registered repositories
        """
        if pos < 0:
            raise IndexError(f"Invalid position: {pos}")
        if pos >= len(self._order):
            raise Exhausted(pos)
        return self._order[pos]

    def lookup_by_id(self, id: str) -> Repository:
        """
        Open the repository registered as `id`.

        Raises:
            NotFound: No such id in the pool
            CannotOpen: The source doesn't hold a valid repository
            ScratchAllocationFailed: No overlay could be created (archives)
        """
        return self.get_source(id).open(self.settings)

    def lookup_by_position(self, pos: int) -> Repository:
        """
        Open the repository registered at ordinal `pos`.

        Raises:
            Exhausted: `pos` is beyond the registered repositories
            CannotOpen: The repository at `pos` failed to open
        """
        return self.lookup_by_id(self.id_at(pos))

    def filesystem(self, id: str) -> Filesystem:
        """Get the filesystem view of the repository registered as `id`"""
        return self.get_source(id).open_fs(self.settings)

    def new_iterator(self) -> RepositoryIterator:
        return RepositoryIterator(self)

    @property
    def ids(self) -> list[str]:
        return list(self._order)

    def sources(self) -> Generator[RepositorySource, None, None]:
        for id in self._order:
            yield self._sources[id]

    def __iter__(self) -> RepositoryIterator:
        return self.new_iterator()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, id: object) -> bool:
        return id in self._sources

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({len(self)} repositories)>"


def iter_repository_paths(root: Path) -> Generator[Path, None, None]:
    """
    Find repository directories and archive files below `root`. Symlinks are
    not followed and every resolved location is yielded only once.
    """
    seen: set[Path] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        if is_repository_dir(current):
            dirnames.clear()
            real = current.resolve()
            if real not in seen:
                seen.add(real)
                yield current
            continue
        dirnames.sort()
        for name in sorted(filenames):
            path = current / name
            if is_archive_file(path):
                real = path.resolve()
                if real not in seen:
                    seen.add(real)
                    yield path
