"""Pool of git repositories stored as plain directories or archive files."""

from gitpool.exceptions import (
    AlreadyRegistered,
    CannotOpen,
    Exhausted,
    GitPoolException,
    NotFound,
    ScratchAllocationFailed,
)
from gitpool.iterator import RepositoryIterator
from gitpool.pool import RepositoryPool
from gitpool.repository import Repository
from gitpool.settings import Settings
from gitpool.source import RepositorySource, SourceKind

__version__ = "0.1.0"

__all__ = [
    "AlreadyRegistered",
    "CannotOpen",
    "Exhausted",
    "GitPoolException",
    "NotFound",
    "Repository",
    "RepositoryIterator",
    "RepositoryPool",
    "RepositorySource",
    "ScratchAllocationFailed",
    "Settings",
    "SourceKind",
]
