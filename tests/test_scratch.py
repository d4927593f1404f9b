import gc

import pytest

from gitpool.exceptions import ScratchAllocationFailed
from gitpool.scratch import allocate_scratch
from gitpool.settings import Settings


def test_scratch_allocate(settings, scratch_dir):
    first = allocate_scratch(settings)
    second = allocate_scratch(settings)
    assert first.path != second.path
    assert first.path.parent == scratch_dir
    assert first.path.name.startswith("gitpool-archive-")
    assert first.alive

    (first.path / "sub").mkdir()
    (first.path / "sub" / "file").write_text("data")
    first.cleanup()
    assert not first.path.exists()
    assert not first.alive
    # idempotent
    first.cleanup()

    # removed when the owner is gone
    path = second.path
    del second
    gc.collect()
    assert not path.exists()


def test_scratch_keep(scratch_dir):
    settings = Settings(scratch_dir=str(scratch_dir), keep_scratch=True)
    scratch = allocate_scratch(settings)
    scratch.cleanup()
    assert scratch.path.exists()
    assert scratch.alive


def test_scratch_allocation_failed(tmp_path):
    settings = Settings(scratch_dir=str(tmp_path / "does" / "not" / "exist"))
    with pytest.raises(ScratchAllocationFailed) as e:
        allocate_scratch(settings)
    assert e.value.directory == settings.scratch_dir
