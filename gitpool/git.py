"""Thin wrapper around `dulwich` for opening repositories and walking
commits."""

from pathlib import Path
from typing import Generator

from dulwich.errors import FileFormatException, NotGitRepository
from dulwich.objects import Commit
from dulwich.repo import Repo

Commits = Generator[Commit, None, None]

__all__ = [
    "OPEN_ERRORS",
    "Commit",
    "Commits",
    "NotGitRepository",
    "Repo",
    "open_repository",
]

# everything `open_repository` raises for a location that holds no usable
# repository (malformed `.git` files and config surface as `ValueError`)
OPEN_ERRORS = (NotGitRepository, FileFormatException, OSError, ValueError)


def open_repository(path: str | Path) -> Repo:
    """
    Open a working tree or bare repository at the given local path.

    Raises:
        NotGitRepository: No repository metadata at `path`
        ValueError: Malformed repository metadata (e.g. a `.git` file without
            `gitdir:`)
    """
    path = Path(path)
    if not path.is_dir():
        raise NotGitRepository(f"No such directory: `{path}`")
    return Repo(str(path))


def iter_commit_objects(repo: Repo) -> Commits:
    """
    Iterate all commit objects in the object store (loose and packed),
    regardless of whether they are reachable from any ref. Every call starts
    a fresh enumeration.
    """
    seen: set[bytes] = set()
    store = repo.object_store
    for sha in store:
        if sha in seen:
            continue
        seen.add(sha)
        obj = store[sha]
        if isinstance(obj, Commit):
            yield obj


def iter_log(repo: Repo, ref: bytes | None = None) -> Commits:
    """Iterate commits reachable from `ref` (default: HEAD)"""
    include = [repo.refs[ref] if ref else repo.head()]
    for entry in repo.get_walker(include=include):
        yield entry.commit
