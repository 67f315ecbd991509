from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Protocol

import click

from .common import Added, Deleted, Error, ErrorKind, Modified, OutputRecord, Same, Verdict
from .utils import percent_encode_path, raw_path

# how much of stdout may be buffered before flushing
BYTES_PER_FLUSH = 512 * 1024

## VT100
SAVE_CURSOR = b'\x1b7'
RESTORE_CURSOR = b'\x1b8'
CLEAR_BELOW = b'\x1b[J'
##


class LineStatus(Enum):
    DELETED = '-'
    ADDED = '+'
    MODIFIED = '~'
    ERROR = '!'
    ERROR_DESCRIPTION = '^'

    @property
    def indicator(self) -> bytes:
        return self.value.encode('ascii')


def _code(fg: str) -> bytes:
    return click.style('', fg=fg, reset=False).encode('ascii')


@dataclass(frozen=True)
class LineStatusColors:
    deleted: bytes
    added: bytes
    modified: bytes
    error: bytes
    reset: bytes

    @classmethod
    def no_color(cls) -> LineStatusColors:
        return cls(deleted=b'', added=b'', modified=b'', error=b'', reset=b'')

    @classmethod
    def color(cls) -> LineStatusColors:
        # fmt: off
        return cls(
            deleted =_code('yellow'),
            added   =_code('green'),
            modified=_code('blue'),
            error   =_code('red'),
            reset   =_code('reset'),  # default foreground, not a full reset
        )
        # fmt: on

    def get(self, status: LineStatus) -> bytes:
        # fmt: off
        return {
            LineStatus.DELETED          : self.deleted,
            LineStatus.ADDED            : self.added,
            LineStatus.MODIFIED         : self.modified,
            LineStatus.ERROR            : self.error,
            LineStatus.ERROR_DESCRIPTION: self.error,
        }[status]
        # fmt: on


class ManualBuffer:
    """
    Collects writes in memory, only passes them on to the stream on explicit flush()
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.buf = bytearray()

    def write(self, data: bytes) -> None:
        self.buf += data

    def flush(self) -> None:
        if len(self.buf) > 0:
            self.stream.write(self.buf)
            self.buf.clear()
        self.stream.flush()

    def __len__(self) -> int:
        return len(self.buf)


@dataclass
class ProgressStatus:
    total: int = 0
    processed: int = 0

    def estimate_more(self, more: int) -> None:
        """
        more: how many items are left after the current one. Estimates lower than the current one are ignored
        """
        total = self.processed + more
        if self.total < total:
            self.total = total

    def processed_one(self) -> None:
        if self.total == self.processed:
            self.total += 1
        self.processed += 1

    @property
    def percent(self) -> int:
        return self.processed * 100 // self.total


class RecordPrinter(Protocol):
    def print(self, record: OutputRecord, more: int) -> None:
        """
        Called once for every compared path, even if there is nothing to print (just pass an empty record)
        more: hint on how many items are left after this one
        """

    def finish(self) -> None:
        """
        Called once, after everything was printed. Flushes all outputs
        """


class PlainRecordPrinter:
    """
    Buffers output, no progress reports
    """

    def __init__(self, stdout: BinaryIO, stderr: BinaryIO) -> None:
        self.stdout = ManualBuffer(stdout)
        self.stderr = ManualBuffer(stderr)

    def print(self, record: OutputRecord, more: int) -> None:  # noqa: ARG002
        self.stdout.write(record.stdout)
        self.stderr.write(record.stderr)
        if len(self.stdout) >= BYTES_PER_FLUSH or len(record.stderr) > 0:
            self.stdout.flush()
            self.stderr.flush()

    def finish(self) -> None:
        self.stdout.flush()
        self.stderr.flush()


class ProgressiveRecordPrinter:
    """
    Buffers output, and keeps a progress report line at the bottom of the terminal (on stderr)
    """

    def __init__(self, stdout: BinaryIO, stderr: BinaryIO, total_hint: int) -> None:
        self.stdout = ManualBuffer(stdout)
        self.stderr = ManualBuffer(stderr)
        self.status = ProgressStatus(total=total_hint, processed=0)
        self.last_percent = 0

    def print(self, record: OutputRecord, more: int) -> None:
        self.stdout.write(record.stdout)
        self.stderr.write(record.stderr)

        self.status.processed_one()
        self.status.estimate_more(more)

        percent = self.status.percent
        if len(self.stdout) < BYTES_PER_FLUSH and percent == self.last_percent and len(record.stderr) == 0:
            return
        self.last_percent = percent

        # stderr goes first, so the previous progress line is cleared before any more output
        self.stderr.flush()
        self.stdout.flush()

        self.stderr.write(SAVE_CURSOR)
        self.stderr.write(f'Files processed: {self.status.processed}/{self.status.total} ({percent}%)'.encode())
        self.stderr.flush()
        # these stay in the buffer until the next flush, i.e. right before more output
        self.stderr.write(RESTORE_CURSOR)
        self.stderr.write(CLEAR_BELOW)

    def finish(self) -> None:
        self.stdout.flush()
        self.stderr.flush()


@dataclass(frozen=True)
class OutputSetup:
    colors: LineStatusColors
    nul_terminated: bool

    @property
    def terminator(self) -> bytes:
        return b'\0' if self.nul_terminated else b'\n'

    def line(self, status: LineStatus, blob: bytes) -> bytes:
        """
        blob is either a serialized path or an error description, doesn't matter here
        """
        return b''.join([
            self.colors.get(status),
            status.indicator,
            b' ',
            blob,
            self.colors.reset,
            self.terminator,
        ])  # fmt: skip

    def path_blob(self, path: Path) -> bytes:
        if self.nul_terminated:
            return raw_path(path)
        return percent_encode_path(path).encode('utf8')

    def record(self, verdict: Verdict, path: Path) -> OutputRecord:
        stderr = b''
        status: LineStatus
        if isinstance(verdict, Same):
            return OutputRecord.empty()
        elif isinstance(verdict, Deleted):
            status = LineStatus.DELETED
        elif isinstance(verdict, Added):
            status = LineStatus.ADDED
        elif isinstance(verdict, Modified):
            status = LineStatus.MODIFIED
        elif isinstance(verdict, Error):
            status = LineStatus.ERROR
            stderr = self.error_description(verdict.kind)
        else:
            raise TypeError(verdict)
        return OutputRecord(stdout=self.line(status, self.path_blob(path)), stderr=stderr)

    def error_description(self, kind: ErrorKind) -> bytes:
        return self.line(LineStatus.ERROR_DESCRIPTION, kind.description.encode('utf8'))


def print_diff(
    verdicts: Iterable[tuple[Verdict, Path]],
    printer: RecordPrinter,
    *,
    colors: LineStatusColors,
    nul_terminated: bool,
    remaining: Callable[[], int] = lambda: 0,
) -> None:
    """
    remaining: hint on how many items are left to process, for progress reports
    """
    setup = OutputSetup(colors=colors, nul_terminated=nul_terminated)
    try:
        for verdict, path in verdicts:
            printer.print(setup.record(verdict, path), remaining())
    finally:
        printer.finish()
