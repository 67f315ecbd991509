from __future__ import annotations

import operator
import os
import sys
from pathlib import Path

import pytest

from treecmp.core.common import ErrorKind, TraversalError, path_key
from treecmp.core.walk import RootNotADirectory, SortedDirWalk
from treecmp.tests.common import fail_listing, make_tree


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    # fmt: off
    return make_tree(tmp_path / 'tree', {
        'new/b'    : b'b',
        'new/c'    : b'c',
        'new/d'    : b'd',
        'new/foo/a': b'a',
        'old/c'    : b'cc',
        'old/d'    : b'd',
        'old/foo/a': b'aa',
    })
    # fmt: on


def test_order(tree: Path) -> None:
    paths = list(SortedDirWalk(tree))
    assert paths == [Path(p) for p in [
        'new',
        'old',
        'new/b',
        'new/c',
        'new/d',
        'new/foo',
        'old/c',
        'old/d',
        'old/foo',
        'new/foo/a',
        'old/foo/a',
    ]]  # fmt: skip


def test_order_is_path_key_order(tmp_path: Path) -> None:
    # '-' sorts before '/', so comparing whole paths as strings would give a different order here
    # fmt: off
    root = make_tree(tmp_path / 'tree', {
        'a/b'     : b'',
        'a-b/c'   : b'',
        'a/z/y'   : b'',
        'B'       : b'',
        'a.txt'   : b'',
        'a-b/a/x' : b'',
    })
    # fmt: on
    paths = list(SortedDirWalk(root))
    assert all(isinstance(p, Path) for p in paths)
    assert paths == sorted(paths, key=path_key)
    assert len(paths) == len(set(paths))

    # every path comes after all its ancestors
    seen: set[Path] = set()
    for p in paths:
        assert isinstance(p, Path)
        assert all(a in seen for a in p.parents if a != Path())
        seen.add(p)


def test_symlinks_are_leaves(tmp_path: Path) -> None:
    # fmt: off
    root = make_tree(tmp_path / 'tree', {
        'dir/file': b'hi',
        'link'    : 'dir',
        'loop'    : '.',
    })
    # fmt: on
    assert list(SortedDirWalk(root)) == [Path('dir'), Path('link'), Path('loop'), Path('dir/file')]


def test_empty(tmp_path: Path) -> None:
    walk = SortedDirWalk(tmp_path)
    assert operator.length_hint(walk) == 0
    assert list(walk) == []


def test_root_does_not_exist(tmp_path: Path) -> None:
    with pytest.raises(RootNotADirectory):
        SortedDirWalk(tmp_path / 'xb1suKLrl0Ltenl6T0CgzbI0shecZpXYLmEqzg')


def test_root_is_a_regular_file(tree: Path) -> None:
    with pytest.raises(RootNotADirectory):
        SortedDirWalk(tree / 'old' / 'foo' / 'a')


def test_root_listing_fails(tree: Path, monkeypatch) -> None:
    fail_listing(monkeypatch, tree, PermissionError(13, 'Permission denied'))
    walk = SortedDirWalk(tree)
    [err] = list(walk)
    assert isinstance(err, TraversalError)
    assert err.kind == ErrorKind.PERMISSION_DENIED
    assert str(err) == f'reading directory {tree}'
    with pytest.raises(StopIteration):
        next(walk)


def test_listing_fails_midway(tree: Path, monkeypatch) -> None:
    fail_listing(monkeypatch, tree / 'new', FileNotFoundError(2, 'No such file or directory'))
    items = list(SortedDirWalk(tree))
    # 'new' was yielded before its listing was attempted, everything queued after the failure is dropped
    [new, err] = items
    assert new == Path('new')
    assert isinstance(err, TraversalError)
    assert err.kind == ErrorKind.NOT_FOUND
    assert str(err) == f'reading directory {tree / "new"}'


def test_length_hint(tree: Path) -> None:
    walk = SortedDirWalk(tree)
    assert operator.length_hint(walk) == 2  # new, old
    next(walk)  # new, expanded into b, c, d, foo
    assert operator.length_hint(walk) == 5
    rest = list(walk)
    assert len(rest) == 10
    assert operator.length_hint(walk) == 0


@pytest.mark.skipif(sys.platform == 'darwin', reason='macOS filesystems only allow utf8 names')
def test_non_utf8_names(tmp_path: Path) -> None:
    root = tmp_path / 'tree'
    root.mkdir()
    names = [b'\xff\xfe', b'a', b'\x01', b'z\xc3\xa9']
    for n in names:
        (root / Path(n.decode('utf8', errors='surrogateescape'))).write_bytes(n)
    got = [os.fsencode(p) for p in SortedDirWalk(root)]
    assert got == sorted(names)
