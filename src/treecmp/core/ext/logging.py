'''
Logger with lazy handler setup, so importing modules never touches stderr
'''
from __future__ import annotations

import logging
import os
import sys

import logzero  # type: ignore[import-untyped]

type LevelIsh = int | str | None


def mklevel(level: LevelIsh) -> int:
    if level is None:
        return logging.NOTSET
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper())


_init_done = 'lazylogger_init_done'


def _env_level(name: str) -> int | None:
    # e.g. LOGGING_LEVEL_treecmp_core_common=debug
    var = 'LOGGING_LEVEL_' + name.replace('.', '_')
    lvl = os.environ.get(var)
    if lvl is None:
        return None
    return mklevel(lvl)


def setup_logger(logger: logging.Logger, *, level: LevelIsh) -> None:
    lvl = _env_level(logger.name)
    if lvl is None:
        lvl = mklevel(level)
    logger.setLevel(lvl)

    # stderr is part of the program's output, so the handler must not be shared with the root logger
    logger.propagate = False
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(lvl)
    handler.setFormatter(logzero.LogFormatter(color=sys.stderr.isatty()))
    logger.addHandler(handler)


def LazyLogger(name: str, *, level: LevelIsh = None) -> logging.Logger:  # noqa: N802
    logger = logging.getLogger(name)

    # this is called prior to all _log calls so makes sense to do it here?
    def isEnabledFor_lazyinit(*args, logger=logger, orig=logger.isEnabledFor, **kwargs) -> bool:  # noqa: N802
        if not getattr(logger, _init_done, False):
            setup_logger(logger, level=level)
            setattr(logger, _init_done, True)
            logger.isEnabledFor = orig  # type: ignore[method-assign]
        return orig(*args, **kwargs)

    logger.isEnabledFor = isEnabledFor_lazyinit  # type: ignore[method-assign]
    return logger

