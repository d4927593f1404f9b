"""
Archive-backed repositories.

An archive (tar family or zip) holding a git repository is opened by reading
its bytes from a base store rooted at the archive's directory and unpacking
the members into a writable scratch overlay. The archive file itself is only
ever opened for reading.
"""

import tarfile
import zipfile
from pathlib import Path
from typing import BinaryIO

from anystore.exceptions import DoesNotExist
from anystore.logging import get_logger
from anystore.store import BaseStore

from gitpool.filesystem import Filesystem
from gitpool.scratch import Scratch

log = get_logger(__name__)

TAR_EXTENSIONS = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz")
ZIP_EXTENSIONS = (".zip",)
ARCHIVE_EXTENSIONS = TAR_EXTENSIONS + ZIP_EXTENSIONS

# how deep to look for the repository root below the overlay root
MAX_ROOT_DEPTH = 3


class ArchiveError(Exception):
    """The archive can't be read or holds no repository."""


def is_archive_file(path: str | Path) -> bool:
    """
    Check if the given path looks like a supported archive, first by its
    extension and then (for existing files) by sniffing its header.
    """
    path = Path(path)
    if path.name.lower().endswith(ARCHIVE_EXTENSIONS):
        return True
    if not path.is_file():
        return False
    try:
        return zipfile.is_zipfile(path) or tarfile.is_tarfile(path)
    except OSError:
        return False


def is_repository_dir(path: Path) -> bool:
    """Working tree (`.git` inside) or bare repository layout"""
    if (path / ".git").exists():
        return True
    return (path / "HEAD").is_file() and (path / "objects").is_dir()


def find_repository_root(path: Path, depth: int = MAX_ROOT_DEPTH) -> Path | None:
    if is_repository_dir(path):
        return path
    if depth < 1:
        return None
    children = [p for p in path.iterdir() if not p.name.startswith("__MACOSX")]
    if len(children) == 1 and children[0].is_dir():
        return find_repository_root(children[0], depth - 1)
    return None


def _unpack(fh: BinaryIO, name: str, dest: Path) -> None:
    if name.lower().endswith(ZIP_EXTENSIONS) or zipfile.is_zipfile(fh):
        fh.seek(0)
        with zipfile.ZipFile(fh) as zf:
            zf.extractall(dest)
        return
    fh.seek(0)
    with tarfile.open(fileobj=fh, mode="r:*") as tar:
        tar.extractall(dest, filter="data")


def open_as_filesystem(base: BaseStore, name: str, scratch: Scratch) -> Filesystem:
    """
    Open the archive `name` from the `base` store as a writable filesystem
    backed by the `scratch` overlay.

    Args:
        base: Store rooted at the directory containing the archive
        name: Archive file name (key) in the base store
        scratch: Writable directory receiving the archive contents

    Returns:
        Filesystem rooted at the repository inside the overlay

    Raises:
        ArchiveError: The archive doesn't exist, isn't a readable file, is
            corrupt or holds no repository
    """
    if not base.exists(name):
        raise ArchiveError(f"Archive file does not exist: `{name}`")
    log.debug(f"Unpacking `{name}` ...", scratch=str(scratch.path))
    try:
        with base.open(name, mode="rb") as fh:
            _unpack(fh, name, scratch.path)
    except (tarfile.TarError, zipfile.BadZipFile, EOFError, ValueError) as e:
        raise ArchiveError(f"Invalid archive: {e}") from e
    except (OSError, DoesNotExist) as e:
        raise ArchiveError(f"Cannot read archive: {e}") from e
    try:
        root = find_repository_root(scratch.path)
    except OSError as e:
        raise ArchiveError(f"Cannot read unpacked archive: {e}") from e
    if root is None:
        raise ArchiveError("No repository found in archive")
    return Filesystem(root, scratch=scratch)
