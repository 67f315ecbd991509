from __future__ import annotations

import operator
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import BinaryIO

import more_itertools

from .common import Added, Deleted, Error, Modified, Same, TraversalError, Verdict, error_kind, logger, path_key
from .iters import Oks, SetSum
from .output import LineStatusColors, PlainRecordPrinter, ProgressiveRecordPrinter, RecordPrinter, print_diff
from .utils import percent_encode_path
from .verdict import Verdictor
from .walk import RootNotADirectory, SortedDirWalk


class When(Enum):
    NEVER = 'never'
    ALWAYS = 'always'
    AUTO = 'auto'

    def enabled(self, *, isatty: bool) -> bool:
        if self is When.AUTO:
            return isatty
        return self is When.ALWAYS


class ExitCode(IntEnum):
    SAME = 0
    DIFFER = 1
    ERRORS_SAME = 2
    ERRORS_DIFFER = 3
    FATAL = 4

    @classmethod
    def of(cls, *, errors: bool, differ: bool) -> ExitCode:
        # fmt: off
        return {
            (False, False): cls.SAME,
            (False, True ): cls.DIFFER,
            (True , False): cls.ERRORS_SAME,
            (True , True ): cls.ERRORS_DIFFER,
        }[(errors, differ)]
        # fmt: on


@dataclass
class Config:
    old_dir: Path
    new_dir: Path
    brief: bool = False
    nul_terminated: bool = False
    color: When = When.AUTO
    progress: When = When.AUTO
    chunk_size: int | None = None


def calc_total(lhs: Path, rhs: Path) -> int:
    """
    Estimate of how many paths are going to be compared, for progress reports
    """
    lwalk = (p for p in SortedDirWalk(lhs) if not isinstance(p, TraversalError))
    rwalk = (p for p in SortedDirWalk(rhs) if not isinstance(p, TraversalError))
    return more_itertools.ilen(SetSum(lwalk, rwalk, key=path_key))


def run_diff(
    config: Config,
    *,
    bin_name: str,
    stdout: BinaryIO,
    stderr: BinaryIO,
    stdout_is_tty: bool = False,
    stderr_is_tty: bool = False,
) -> ExitCode:
    def say(line: str) -> None:
        stderr.write(line.encode('utf8'))
        stderr.flush()

    walks: list[SortedDirWalk] = []
    for label, root in [('<old>', config.old_dir), ('<new>', config.new_dir)]:
        try:
            walks.append(SortedDirWalk(root))
        except RootNotADirectory:
            say(f'{bin_name}: {label} is not a directory: {percent_encode_path(root)}\n')
            return ExitCode.FATAL
    [lwalk, rwalk] = walks

    lhs: Oks[Path] = Oks(lwalk)
    rhs: Oks[Path] = Oks(rwalk)
    pairs = SetSum(lhs, rhs, key=path_key)
    verdictor = Verdictor(config.old_dir, config.new_dir, config.chunk_size)
    logger.debug('comparing %s and %s (chunk size %d)', config.old_dir, config.new_dir, verdictor.chunk_size)

    errors = False
    differ = False

    def verdicts() -> Iterator[tuple[Verdict, Path]]:
        nonlocal errors, differ
        for origin, path in pairs:
            verdict, vpath = verdictor.resolve(origin, path)
            if isinstance(verdict, Error):
                errors = True
            elif not isinstance(verdict, Same):
                assert isinstance(verdict, (Added, Deleted, Modified)), verdict
                differ = True
                if config.brief:
                    # in brief mode, the first difference settles it
                    return
            yield verdict, vpath

    colors = LineStatusColors.color() if config.color.enabled(isatty=stdout_is_tty) else LineStatusColors.no_color()

    printer: RecordPrinter
    if config.progress.enabled(isatty=stderr_is_tty):
        say('calculating totals... \n')
        total = calc_total(config.old_dir, config.new_dir)
        say('done.\n\n')
        logger.debug('total paths to compare: %d', total)
        printer = ProgressiveRecordPrinter(stdout, stderr, total_hint=total)
    else:
        printer = PlainRecordPrinter(stdout, stderr)

    print_diff(
        verdicts(),
        printer,
        colors=colors,
        nul_terminated=config.nul_terminated,
        remaining=lambda: operator.length_hint(pairs),
    )

    if differ and config.brief:
        say('directory trees differ\n')

    fatal = lhs.error or rhs.error
    if fatal is not None:
        desc = error_kind(fatal).description
        say(f'{colors.error.decode()}{bin_name}: fatal error: {desc}: {fatal}\n{colors.reset.decode()}')
        return ExitCode.FATAL

    if errors:
        say(f'{colors.error.decode()}{bin_name}: nonfatal errors encountered\n{colors.reset.decode()}')
    return ExitCode.of(errors=errors, differ=differ)
