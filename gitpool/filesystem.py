from functools import cached_property
from pathlib import Path

from anystore.store import BaseStore, get_store

from gitpool.scratch import Scratch


class Filesystem:
    """
    A directory tree view of a repository.

    For plain repositories this is the repository directory itself. For
    archive repositories it is the unpacked overlay inside a scratch directory
    which is owned (and removed on `close()`) by this instance. Writes through
    `store` never reach the archive file.
    """

    def __init__(self, root: Path, scratch: Scratch | None = None) -> None:
        self.root = root
        self.scratch = scratch

    @cached_property
    def store(self) -> BaseStore:
        return get_store(uri=self.root, serialization_mode="raw")

    @property
    def is_virtual(self) -> bool:
        return self.scratch is not None

    def close(self) -> None:
        if self.scratch is not None:
            self.scratch.cleanup()

    def __enter__(self) -> "Filesystem":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.root})>"
