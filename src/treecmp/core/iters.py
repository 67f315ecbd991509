from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Self, override

import more_itertools

from .common import Origin


class Oks[T](Iterator[T]):
    """
    Adapter for an iterable which yields errors as values (T | Exception)

    As long as it's all values, they are passed through. The first error is stored in .error,
    and the iteration stops there (even if the inner iterable has got more).
    The caller can check .error after consuming everything to find out whether the iteration was cut short.
    """

    def __init__(self, results: Iterable[T | Exception]) -> None:
        self._results = iter(results)
        self.error: Exception | None = None

    @override
    def __iter__(self) -> Self:
        return self

    @override
    def __next__(self) -> T:
        if self.error is not None:
            raise StopIteration
        item = next(self._results)
        if isinstance(item, Exception):
            self.error = item
            raise StopIteration
        return item

    def __length_hint__(self) -> int:
        if self.error is not None:
            return 0
        return operator.length_hint(self._results)


_DONE: Any = object()


class SetSum[T](Iterator[tuple[Origin, T]]):
    """
    Sum (in the set-theoretic sense) of two sorted iterables, tagging each item with where it came from.

    Both inputs have to be sorted according to the same key and contain no duplicates, e.g.

      lhs: 2 5 9
      rhs: 1 7 8 9
      ->   (RIGHT, 1) (LEFT, 2) (LEFT, 5) (RIGHT, 7) (RIGHT, 8) (BOTH, 9)

    If they aren't, the pairing is just garbage, it's not checked.
    """

    def __init__(self, lhs: Iterable[T], rhs: Iterable[T], *, key: Callable[[T], Any]) -> None:
        self._lhs_src = iter(lhs)
        self._rhs_src = iter(rhs)
        self._lhs = more_itertools.peekable(self._lhs_src)
        self._rhs = more_itertools.peekable(self._rhs_src)
        self._key = key

    @override
    def __iter__(self) -> Self:
        return self

    @override
    def __next__(self) -> tuple[Origin, T]:
        lv = self._lhs.peek(_DONE)
        rv = self._rhs.peek(_DONE)
        if lv is _DONE and rv is _DONE:
            raise StopIteration
        if rv is _DONE:
            return (Origin.LEFT, next(self._lhs))
        if lv is _DONE:
            return (Origin.RIGHT, next(self._rhs))

        lk = self._key(lv)
        rk = self._key(rv)
        if lk < rk:
            return (Origin.LEFT, next(self._lhs))
        if rk < lk:
            return (Origin.RIGHT, next(self._rhs))
        next(self._rhs)
        return (Origin.BOTH, next(self._lhs))

    def __length_hint__(self) -> int:
        # lower bound, same as the longer side; peeked items aren't accounted for, it's only a hint anyway
        return max(operator.length_hint(self._lhs_src), operator.length_hint(self._rhs_src))
