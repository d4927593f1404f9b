from concurrent.futures import ThreadPoolExecutor

import pytest

from gitpool import source
from gitpool.exceptions import CannotOpen, Exhausted
from gitpool.iterator import LockedCount, make_counter
from gitpool.pool import RepositoryPool


def test_iterator(basic_repo):
    pool = RepositoryPool()
    pool.register(source.plain("0", basic_repo))
    pool.register(source.plain("1", basic_repo))

    iterator = pool.new_iterator()
    count = 0
    while True:
        try:
            repo = iterator.next()
        except Exhausted:
            break
        with repo:
            assert repo.id == str(count)
        count += 1
    assert count == 2

    # stays exhausted
    with pytest.raises(Exhausted):
        iterator.next()
    iterator.close()

    # iterators are independent
    with pool.new_iterator() as one, pool.new_iterator() as two:
        assert one.next().id == "0"
        assert two.next().id == "0"
        assert one.next().id == "1"

    assert [r.id for r in pool] == ["0", "1"]
    assert [r.id for r in RepositoryPool()] == []


def test_iterator_open_error(basic_repo, tmp_path):
    pool = RepositoryPool()
    pool.register_plain_with_id("good", basic_repo)
    pool.register_plain_with_id("bad", tmp_path / "not-a-repo")
    pool.register_plain_with_id("also-good", basic_repo)

    iterator = pool.new_iterator()
    assert iterator.next().id == "good"
    with pytest.raises(CannotOpen):
        iterator.next()
    # the failed position is consumed, iteration goes on
    assert iterator.next().id == "also-good"
    with pytest.raises(Exhausted):
        iterator.next()

    results = list(pool.new_iterator().results())
    assert [r.position for r in results] == [0, 1, 2]
    assert [r.id for r in results] == ["good", "bad", "also-good"]
    assert [r.ok for r in results] == [True, False, True]
    assert isinstance(results[1].error, CannotOpen)
    assert results[1].repository is None
    for result in results:
        if result.repository is not None:
            result.repository.close()


def test_iterator_concurrent(basic_repo):
    n = 50
    pool = RepositoryPool()
    for i in range(n):
        pool.register_plain_with_id(str(i), basic_repo)

    iterator = pool.new_iterator()
    exhausted = []

    def consume() -> list[str]:
        ids = []
        while True:
            try:
                repo = iterator.next()
            except Exhausted:
                exhausted.append(True)
                return ids
            with repo:
                ids.append(repo.id)

    with ThreadPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(consume) for _ in range(8)]
        seen = [id for f in futures for id in f.result()]

    assert len(seen) == n
    assert sorted(seen, key=int) == [str(i) for i in range(n)]
    assert len(exhausted) == 8


def test_iterator_concurrent_results(archives, settings):
    pool = RepositoryPool(settings)
    for path in archives:
        pool.register_archive(path)
    pool.register_archive_with_id("broken", archives[0].parent / "missing.zip")

    iterator = pool.new_iterator()

    def consume():
        out = []
        for result in iterator.results():
            if result.repository is None:
                out.append((result.position, None))
            else:
                with result.repository as repo:
                    out.append((result.position, len(list(repo.commit_objects()))))
        return out

    with ThreadPoolExecutor(max_workers=3) as executor:
        futures = [executor.submit(consume) for _ in range(3)]
        results = sorted(r for f in futures for r in f.result())

    assert results == [(0, 606), (1, 452), (2, 75), (3, None)]


def test_iterator_results_survive_broken_sources(
    basic_repo, archives, tmp_path, settings
):
    (tmp_path / "dir.tar.gz").mkdir()
    worktree = tmp_path / "malformed"
    worktree.mkdir()
    (worktree / ".git").write_text("garbage\n")

    pool = RepositoryPool(settings)
    pool.register_archive_with_id("dir", tmp_path / "dir.tar.gz")
    pool.register_archive_with_id("third", archives[2])
    pool.register_plain_with_id("malformed", worktree)
    pool.register_plain_with_id("basic", basic_repo)

    results = list(pool.new_iterator().results())
    assert [r.id for r in results] == ["dir", "third", "malformed", "basic"]
    assert [r.ok for r in results] == [False, True, False, True]
    assert isinstance(results[0].error, CannotOpen)
    assert isinstance(results[2].error, CannotOpen)
    counts = []
    for result in results:
        if result.repository is not None:
            with result.repository as repo:
                counts.append(len(list(repo.commit_objects())))
    assert counts == [75, 9]


def test_iterator_locked_counter():
    assert isinstance(make_counter(gil_enabled=False), LockedCount)
    assert not isinstance(make_counter(gil_enabled=True), LockedCount)

    counter = LockedCount()

    def take() -> list[int]:
        return [next(counter) for _ in range(1000)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(take) for _ in range(8)]
        numbers = [n for f in futures for n in f.result()]
    assert sorted(numbers) == list(range(8000))


def test_iterator_exhausted_in_generator(basic_repo):
    pool = RepositoryPool()
    pool.register_plain_with_id("0", basic_repo)

    def unguarded(iterator):
        while True:
            yield iterator.next()

    def guarded(iterator):
        while True:
            try:
                yield iterator.next()
            except Exhausted:
                return

    assert [r.id for r in guarded(pool.new_iterator())] == ["0"]
    with pytest.raises(RuntimeError):
        list(unguarded(pool.new_iterator()))
