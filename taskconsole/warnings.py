"""Warnings detected for monitored entities and the linters that track them."""

from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, Generic, Optional, Protocol, TypeVar

T = TypeVar("T")


class WarnableTask(Protocol):
    """The parts of a task that the task warnings look at."""

    @property
    def self_wake_percent(self) -> int: ...

    @property
    def is_completed(self) -> bool: ...

    @property
    def waker_count(self) -> int: ...

    @property
    def is_running(self) -> bool: ...

    @property
    def is_awakened(self) -> bool: ...


class Warn(ABC, Generic[T]):
    """Detection and description of one kind of warning."""

    @abstractmethod
    def check(self, val: T) -> bool:
        """Whether the warning applies to ``val``."""

    @abstractmethod
    def format(self, val: T) -> str:
        """A full sentence describing the warning for ``val``."""

    @abstractmethod
    def summary(self) -> str:
        """A fragment that reads well after a count of affected entities."""


class Linter(Generic[T]):
    """Tracks which entities currently carry a given warning.

    :meth:`check` hands out a new linter for each entity the warning applies
    to; the entity keeps it. :meth:`count` reports how many of those are
    still alive.
    """

    def __init__(self, warning: Warn[T], *, _issued: Optional[weakref.WeakSet] = None) -> None:
        self._warning = warning
        self._issued: weakref.WeakSet = weakref.WeakSet() if _issued is None else _issued

    @property
    def warning(self) -> Warn[T]:
        return self._warning

    def check(self, val: T) -> Optional["Linter[T]"]:
        if not self._warning.check(val):
            return None
        issued = Linter(self._warning, _issued=self._issued)
        self._issued.add(issued)
        return issued

    def count(self) -> int:
        return len(self._issued)

    def format(self, val: T) -> str:
        if not self._warning.check(val):
            raise ValueError(
                f"tried to format a warning for a {type(val).__name__} "
                "that did not have that warning!"
            )
        return self._warning.format(val)

    def summary(self) -> str:
        return self._warning.summary()

    def __repr__(self) -> str:
        return f"Linter({self._warning!r})"


@dataclass(frozen=True)
class SelfWakePercent(Warn[WarnableTask]):
    """Tasks that wake themselves more often than a given share of their wakeups."""

    DEFAULT_PERCENT: ClassVar[int] = 50

    min_percent: int = DEFAULT_PERCENT
    description: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "description",
            f"tasks have woken themselves over {self.min_percent}% of the time",
        )

    def summary(self) -> str:
        return self.description

    def check(self, task: WarnableTask) -> bool:
        return task.self_wake_percent > self.min_percent

    def format(self, task: WarnableTask) -> str:
        return (
            f"This task has woken itself for more than {self.min_percent}% "
            f"of its total wakeups ({task.self_wake_percent}%)"
        )


@dataclass(frozen=True)
class LostWaker(Warn[WarnableTask]):
    """Tasks that are neither done nor runnable and have no waker left."""

    def summary(self) -> str:
        return "tasks have lost their waker"

    def check(self, task: WarnableTask) -> bool:
        return (
            not task.is_completed
            and task.waker_count == 0
            and not task.is_running
            and not task.is_awakened
        )

    def format(self, task: WarnableTask) -> str:
        return "This task has lost its waker, and will never be woken again."