from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .ext.logging import LazyLogger

# warning by default: stderr carries the diagnostics, so debug output is opt-in
# (LOGGING_LEVEL_treecmp_core_common=debug)
logger = LazyLogger(__name__, level='warning')


type PathKey = tuple[int, tuple[bytes, ...]]


def path_key(path: Path) -> PathKey:
    """
    Sort key defining the order both tree walks are produced in:
    paths with fewer components go first, the rest is compared component by component, as raw bytes
    """
    parts = path.parts
    return (len(parts), tuple(os.fsencode(p) for p in parts))


class Origin(Enum):
    """
    Which of the two walks produced a path
    """

    LEFT = 'left'
    RIGHT = 'right'
    BOTH = 'both'


class ErrorKind(Enum):
    NOT_FOUND = 'not-found'
    PERMISSION_DENIED = 'permission-denied'
    INTERRUPTED = 'interrupted'
    INVALID_DATA = 'invalid-data'
    OTHER = 'other'

    @property
    def description(self) -> str:
        # fmt: off
        return {
            ErrorKind.NOT_FOUND        : 'file not found',
            ErrorKind.PERMISSION_DENIED: 'permission denied',
            ErrorKind.INTERRUPTED      : 'file reading was interrupted',
            ErrorKind.INVALID_DATA     : 'invalid data',
            ErrorKind.OTHER            : 'unexpected error',
        }[self]
        # fmt: on


def error_kind(e: BaseException) -> ErrorKind:
    if isinstance(e, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(e, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(e, InterruptedError):
        return ErrorKind.INTERRUPTED
    if isinstance(e, TraversalError):
        return e.kind
    return ErrorKind.OTHER


class TraversalError(OSError):
    """
    Failure while listing a directory during a tree walk. Fatal for the walk that hit it.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Same:
    pass


@dataclass(frozen=True)
class Deleted:
    pass


@dataclass(frozen=True)
class Added:
    pass


@dataclass(frozen=True)
class Modified:
    pass


@dataclass(frozen=True)
class Error:
    kind: ErrorKind


type Verdict = Same | Deleted | Added | Modified | Error


@dataclass
class OutputRecord:
    """
    One unit of output: the stdout part is the report line,
    the stderr part explains it (only for errors, i.e. each '!' line has a matching '^' line)
    """

    stdout: bytes = b''
    stderr: bytes = b''

    @classmethod
    def empty(cls) -> OutputRecord:
        # still worth passing to printers, keeps progress reports accurate
        return cls()
