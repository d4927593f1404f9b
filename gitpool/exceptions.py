class GitPoolException(Exception):
    pass


class ImproperlyConfigured(GitPoolException):
    pass


class AlreadyRegistered(GitPoolException):
    """A repository with the same identifier is already in the pool. `path` is
    the physical path of the existing entry."""

    def __init__(self, identifier: str, path: str) -> None:
        self.identifier = identifier
        self.path = path
        super().__init__(f"The repository is already registered: `{path}`")


class NotFound(GitPoolException, LookupError):
    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Repository id `{identifier}` not found in the pool")


class CannotOpen(GitPoolException):
    """The backing storage exists (or was expected to) but doesn't hold valid
    repository or archive data."""

    def __init__(self, identifier: str, path: str, reason: str) -> None:
        self.identifier = identifier
        self.path = path
        self.reason = reason
        super().__init__(f"The repository could not be opened: `{path}` ({reason})")


class ScratchAllocationFailed(GitPoolException):
    def __init__(self, directory: str, reason: str) -> None:
        self.directory = directory
        self.reason = reason
        super().__init__(
            f"Could not create scratch directory in `{directory}` ({reason})"
        )


class Exhausted(StopIteration):
    """
    End-of-sequence signal for positional lookup and iteration.

    This is not an error: it doesn't derive from `GitPoolException`, so
    `except GitPoolException` never swallows it, and as a `StopIteration` it
    ends plain `for` loops over a pool iterator.

    Inside a generator, an uncaught `Exhausted` from `iterator.next()` is
    turned into a `RuntimeError` (PEP 479); catch it there.
    """

    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(position)
