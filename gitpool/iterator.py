import sys
import threading
from itertools import count
from typing import TYPE_CHECKING, Generator, Iterator

from anystore.logging import get_logger

from gitpool.exceptions import Exhausted, GitPoolException
from gitpool.model import PoolResult
from gitpool.repository import Repository

if TYPE_CHECKING:
    from gitpool.pool import RepositoryPool

log = get_logger(__name__)


class LockedCount:
    """`itertools.count` behind a lock, for interpreters running without the
    GIL where `count.__next__` isn't atomic"""

    def __init__(self) -> None:
        self._count = count()
        self._lock = threading.Lock()

    def __next__(self) -> int:
        with self._lock:
            return next(self._count)

    def __iter__(self) -> "LockedCount":
        return self


def make_counter(gil_enabled: bool | None = None) -> Iterator[int]:
    if gil_enabled is None:
        gil_enabled = getattr(sys, "_is_gil_enabled", lambda: True)()
    if gil_enabled:
        return count()
    return LockedCount()


class RepositoryIterator:
    """
    Cursor over a pool's registration order.

    The position counter is an `itertools.count`, whose `next()` is an atomic
    fetch-and-add under the GIL (free-threaded builds get a lock-guarded
    counter instead, see `make_counter`). Several threads calling `next()`
    on the same iterator split the registered repositories among themselves:
    every position is handed out exactly once and nothing is skipped (as long
    as nothing is registered while iterating).

    Example:
        ```python
        iterator = pool.new_iterator()
        while True:
            try:
                repo = iterator.next()
            except Exhausted:
                break
            with repo:
                process(repo)
        ```

    `Exhausted` is a `StopIteration`: `for repo in pool` ends on it, but
    calling `next()` inside your own generator without catching it turns it
    into a `RuntimeError` (PEP 479). Catch `Exhausted` explicitly there.
    """

    def __init__(self, pool: "RepositoryPool") -> None:
        self.pool = pool
        self._positions = make_counter()

    def next(self) -> Repository:
        """
        Open the repository at the next position.

        Raises:
            Exhausted: All positions have been handed out
            CannotOpen: The repository at this position failed to open (the
                position is consumed nonetheless)
        """
        return self.pool.lookup_by_position(next(self._positions))

    def __next__(self) -> Repository:
        return self.next()

    def __iter__(self) -> "RepositoryIterator":
        return self

    def results(self) -> Generator[PoolResult, None, None]:
        """
        Advance until exhausted, reporting failed opens per position instead
        of stopping the iteration.
        """
        while True:
            position = next(self._positions)
            try:
                repository = self.pool.lookup_by_position(position)
            except Exhausted:
                return
            except GitPoolException as e:
                log.warning(f"Skipping repository: {e}", position=position)
                yield PoolResult(
                    position=position, id=self.pool.id_at(position), error=e
                )
            else:
                yield PoolResult(
                    position=position, id=repository.id, repository=repository
                )

    def close(self) -> None:
        """Nothing to release."""

    def __enter__(self) -> "RepositoryIterator":
        return self

    def __exit__(self, *args) -> None:
        self.close()
