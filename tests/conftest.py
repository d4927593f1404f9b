from pathlib import Path

import pytest

from gitpool.settings import Settings
from tests.shared import make_repository, make_tar, make_zip


@pytest.fixture(scope="session")
def basic_repo(tmp_path_factory) -> Path:
    """Working tree repository with 9 commits reachable from HEAD"""
    return make_repository(tmp_path_factory.mktemp("plain") / "basic", 9)


@pytest.fixture(scope="session")
def archives(tmp_path_factory) -> list[Path]:
    """Three archived repositories with 606, 452 and 75 commits, each packed
    differently"""
    src = tmp_path_factory.mktemp("src")
    dest = tmp_path_factory.mktemp("archives")
    first = make_repository(src / "first", 606)
    second = make_repository(src / "second.git", 452, bare=True)
    third = make_repository(src / "third", 75)
    return [
        make_tar(first, dest / "first.tar.gz"),
        make_tar(second, dest / "second.tar", mode="w", arcname="second.git"),
        make_zip(third, dest / "third.zip"),
    ]


@pytest.fixture(scope="function")
def settings(tmp_path) -> Settings:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return Settings(scratch_dir=str(scratch))


@pytest.fixture(scope="function")
def scratch_dir(settings) -> Path:
    return Path(settings.scratch_dir)
