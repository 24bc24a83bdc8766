"""Non-empty sequence with a movable current position (a list zipper)."""
from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Cursor(Generic[T]):
    """Immutable zipper over a non-empty sequence.

    ``before`` holds the elements left of ``current`` with the nearest one
    last, ``after`` holds the elements right of it with the nearest one first.
    """
    current: T
    before: Tuple[T, ...] = ()
    after: Tuple[T, ...] = ()

    @classmethod
    def create(cls, values: Iterable[T]) -> "Cursor[T]":
        """Create a cursor positioned on the first element."""
        items = tuple(values)
        if not items:
            raise ValueError("Cursor requires a non-empty sequence")
        return cls(current=items[0], before=(), after=items[1:])

    @classmethod
    def at(cls, values: Iterable[T], position: int) -> "Cursor[T]":
        """Create a cursor positioned on ``values[position]``."""
        items = tuple(values)
        if not items:
            raise ValueError("Cursor requires a non-empty sequence")
        if position < 0 or position >= len(items):
            raise ValueError(f"Position {position} is out of range for {len(items)} values")
        return cls(current=items[position], before=items[:position], after=items[position + 1:])

    def __iter__(self) -> Iterator[T]:
        return values(self)

    def __len__(self) -> int:
        return length(self)


def advance(cursor: Cursor[T]) -> Cursor[T]:
    """Move one step forward; a cursor already on the last element is returned as is."""
    if not cursor.after:
        return cursor
    return Cursor(
        current=cursor.after[0],
        before=cursor.before + (cursor.current,),
        after=cursor.after[1:],
    )


def retreat(cursor: Cursor[T]) -> Cursor[T]:
    """Move one step back; a cursor already on the first element is returned as is."""
    if not cursor.before:
        return cursor
    return Cursor(
        current=cursor.before[-1],
        before=cursor.before[:-1],
        after=(cursor.current,) + cursor.after,
    )


def position(cursor: Cursor[T]) -> int:
    """Index of the current element."""
    return len(cursor.before)


def length(cursor: Cursor[T]) -> int:
    """Total number of elements."""
    return len(cursor.before) + 1 + len(cursor.after)


def is_last(cursor: Cursor[T]) -> bool:
    return not cursor.after


def values(cursor: Cursor[T]) -> Iterator[T]:
    """Iterate over all elements in order, independent of the position."""
    yield from cursor.before
    yield cursor.current
    yield from cursor.after
