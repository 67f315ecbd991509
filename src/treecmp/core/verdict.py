from __future__ import annotations

import os
import stat
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from .common import (
    Added,
    Deleted,
    Error,
    ErrorKind,
    Modified,
    Origin,
    Same,
    Verdict,
    error_kind,
    logger,
)

DEFAULT_CHUNK_SIZE = 512 * 1024


class Source(Protocol):
    def readinto(self, buffer: bytearray | memoryview, /) -> int | None: ...


class InterruptTolerantReader:
    """
    Reader which only returns less than requested on EOF.

    Chunked comparison relies on short reads meaning EOF, so a read interrupted half way
    would otherwise be reported as a mismatch.
    """

    def __init__(self, source: Source) -> None:
        self.source = source

    def readinto(self, buffer: bytearray | memoryview) -> int:
        view = memoryview(buffer).cast('B')
        total = len(view)
        filled = 0
        while filled < total:
            try:
                n = self.source.readinto(view[filled:])
            except InterruptedError:
                continue
            if not n:  # EOF
                break
            filled += n
        return filled


class _TreeError(Exception):
    """
    Error while comparing, along with the root of the tree it happened in
    """

    def __init__(self, kind: ErrorKind, root: Path) -> None:
        super().__init__(kind, root)
        self.kind = kind
        self.root = root


def _ftype(mode: int) -> tuple[bool, bool, bool]:
    return (stat.S_ISDIR(mode), stat.S_ISREG(mode), stat.S_ISLNK(mode))


class Verdictor:
    """
    Decides whether a path present in the merged walk differs between the two trees.
    """

    def __init__(self, lhs_root: Path, rhs_root: Path, chunk_size: int | None = None) -> None:
        if chunk_size is None:
            chunk_size = DEFAULT_CHUNK_SIZE
        if chunk_size <= 0:
            raise ValueError(f'chunk size should be positive, got {chunk_size}')
        self.lhs_root = lhs_root
        self.rhs_root = rhs_root
        self.chunk_size = chunk_size

    @contextmanager
    def _blame(self, root: Path) -> Iterator[None]:
        try:
            yield
        except OSError as e:
            raise _TreeError(error_kind(e), root) from e

    def resolve(self, origin: Origin, path: Path) -> tuple[Verdict, Path]:
        """
        For errors, the returned path is prefixed with the root of the tree where the error happened.
        Otherwise it's just the relative path
        """
        if origin is Origin.LEFT:
            return (Deleted(), path)
        if origin is Origin.RIGHT:
            return (Added(), path)
        try:
            return (self._compare(path), path)
        except _TreeError as e:
            logger.debug('error while comparing %s: %s (in %s)', path, e.kind.description, e.root)
            return (Error(e.kind), e.root / path)

    def _compare(self, path: Path) -> Verdict:
        lpath = self.lhs_root / path
        rpath = self.rhs_root / path
        with self._blame(self.lhs_root):
            lst = lpath.lstat()
        with self._blame(self.rhs_root):
            rst = rpath.lstat()

        if _ftype(lst.st_mode) != _ftype(rst.st_mode):
            return Modified()
        if stat.S_ISLNK(lst.st_mode):
            return self._compare_symlinks(lpath, rpath)
        if stat.S_ISREG(lst.st_mode):
            if lst.st_size != rst.st_size:
                return Modified()
            return self._compare_contents(lpath, rpath)
        if stat.S_ISDIR(lst.st_mode):
            # contents are compared separately, as they come out of the walk
            return Same()
        # fifos, sockets, devices...
        raise _TreeError(ErrorKind.INVALID_DATA, self.lhs_root)

    def _compare_symlinks(self, lpath: Path, rpath: Path) -> Verdict:
        with self._blame(self.lhs_root):
            ltarget = os.fsencode(os.readlink(lpath))
        with self._blame(self.rhs_root):
            rtarget = os.fsencode(os.readlink(rpath))
        return Same() if ltarget == rtarget else Modified()

    def _compare_contents(self, lpath: Path, rpath: Path) -> Verdict:
        lbuf = bytearray(self.chunk_size)
        rbuf = bytearray(self.chunk_size)
        with self._blame(self.lhs_root):
            lfo = lpath.open('rb', buffering=0)
        with lfo:
            with self._blame(self.rhs_root):
                rfo = rpath.open('rb', buffering=0)
            with rfo:
                lreader = InterruptTolerantReader(lfo)
                rreader = InterruptTolerantReader(rfo)
                while True:
                    with self._blame(self.lhs_root):
                        ln = lreader.readinto(lbuf)
                    with self._blame(self.rhs_root):
                        rn = rreader.readinto(rbuf)
                    if ln != rn:
                        return Modified()
                    if ln == 0:
                        # sizes were equal, so both got to EOF at the same time
                        return Same()
                    if memoryview(lbuf)[:ln] != memoryview(rbuf)[:rn]:
                        return Modified()
