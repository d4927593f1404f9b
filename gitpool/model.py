from typing import Self

from anystore.model import BaseModel
from pydantic import ConfigDict

from gitpool.exceptions import GitPoolException
from gitpool.repository import Repository
from gitpool.source import RepositorySource, SourceKind


class PoolResult(BaseModel):
    """Outcome of opening the repository at one position of an iteration"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    position: int
    id: str
    repository: Repository | None = None
    error: GitPoolException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceInfo(BaseModel):
    id: str
    path: str
    kind: SourceKind

    @classmethod
    def from_source(cls, source: RepositorySource) -> Self:
        return cls(id=source.id, path=source.path, kind=source.kind)


class RepositoryStats(SourceInfo):
    position: int
    commits: int | None = None
    """Number of commit objects"""
    error: str | None = None
