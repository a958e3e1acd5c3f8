from __future__ import annotations

from typing import Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


class LazyView(Generic[T]):
    """
    Restartable, order-preserving view over a live collection.

    Nothing is copied until iteration starts; every ``iter()`` re-reads the
    source, so a view handed out earlier reflects later mutations.
    """

    def __init__(self, source: Callable[[], Iterable[T]], predicate: Callable[[T], bool] | None = None) -> None:
        self._source = source
        self._predicate = predicate

    def __iter__(self) -> Iterator[T]:
        for item in tuple(self._source()):
            if self._predicate is None or self._predicate(item):
                yield item

    def __len__(self) -> int:
        return sum(1 for _ in self)
