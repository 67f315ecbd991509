from __future__ import annotations

import os
import stat
from collections import deque
from collections.abc import Iterator
from pathlib import Path
from typing import Self, override

from .common import TraversalError, error_kind, logger
from .utils import percent_encode_path


class RootNotADirectory(Exception):
    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.root = root


type WalkItem = Path | TraversalError


def _annotate(path: Path, e: OSError) -> TraversalError:
    # keep the kind, but replace the description so it's clear which directory failed
    return TraversalError(error_kind(e), f'reading directory {percent_encode_path(path)}')


class SortedDirWalk(Iterator[WalkItem]):
    """
    Lazy recursive walk over a directory tree, yielding paths relative to the root.

    Paths come out sorted by common.path_key (shallower first, then bytewise),
    which is what makes merging two walks possible without ever sorting the whole tree.
    The trick is that children are only listed when their parent is yielded, and appended to the end of the queue,
    so it's basically a breadth first traversal where each directory listing is sorted.

    Symlinks are never followed. If listing some directory fails, the walk yields the error (as a value) and stops.
    """

    def __init__(self, root: Path) -> None:
        try:
            st = root.lstat()
        except OSError as e:
            raise RootNotADirectory(root) from e
        if not stat.S_ISDIR(st.st_mode):
            raise RootNotADirectory(root)

        self.root = root
        self._queue: deque[Path] = deque()
        self._error: TraversalError | None = None
        self._expand(Path())

    def _expand(self, rel: Path) -> None:
        full = self.root / rel
        try:
            if not stat.S_ISDIR(full.lstat().st_mode):
                return
            with os.scandir(full) as it:
                names = [entry.name for entry in it]
        except OSError as e:
            self._error = _annotate(full, e)
            logger.debug('error while listing %s: %s', full, e)
            return
        names.sort(key=os.fsencode)
        self._queue.extend(rel / name for name in names)

    @override
    def __iter__(self) -> Self:
        return self

    @override
    def __next__(self) -> WalkItem:
        if self._error is not None:
            # anything still queued is dropped, the error is the last item
            self._queue.clear()
            error = self._error
            self._error = None
            return error
        if len(self._queue) == 0:
            raise StopIteration
        path = self._queue.popleft()
        self._expand(path)
        return path

    def __length_hint__(self) -> int:
        if self._error is not None:
            return 0
        return len(self._queue)
