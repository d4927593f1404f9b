from gitpool import git
from gitpool.filesystem import Filesystem


class Repository:
    """
    An opened repository together with its identifier in the pool.

    Handles are created fresh on every lookup and are not cached. A handle
    opened from an archive owns its overlay filesystem: closing the handle (or
    leaving its `with` block) removes the scratch directory.

    Example:
        ```python
        with pool.lookup_by_id("my-repo") as repo:
            for commit in repo.commit_objects():
                print(commit.id)
        ```
    """

    def __init__(
        self, id: str, repo: git.Repo | None = None, fs: Filesystem | None = None
    ) -> None:
        self.id = id
        self.repo = repo
        self.fs = fs

    def _ensure_repo(self) -> git.Repo:
        if self.repo is None:
            raise RuntimeError(f"Repository `{self.id}` has no backing repository")
        return self.repo

    def commit_objects(self) -> git.Commits:
        """Iterate all commit objects of the repository"""
        return git.iter_commit_objects(self._ensure_repo())

    def log(self, ref: bytes | None = None) -> git.Commits:
        """Iterate commits reachable from `ref` (default: HEAD)"""
        return git.iter_log(self._ensure_repo(), ref)

    def head(self) -> bytes:
        return self._ensure_repo().head()

    def close(self) -> None:
        if self.repo is not None:
            self.repo.close()
        if self.fs is not None:
            self.fs.close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.id})>"
