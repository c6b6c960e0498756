"""Observers notified by the executor after every completed iteration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol

from ..logging import get_logger
from .state import StateSnapshot


class Observer(Protocol):
    """
    Protocol for iteration observers.

    An observer receives a read-only snapshot of the state and the index of
    the iteration that just completed. Exceptions raised by an observer are
    logged by the executor and otherwise ignored.
    """

    def notify(self, state: StateSnapshot, iteration: int) -> None:
        ...


class ObserverMode(Enum):
    """When an observer is notified."""

    ALWAYS = "always"
    NEVER = "never"
    EVERY = "every"
    NEW_BEST = "new_best"


@dataclass
class ObserverEntry:
    observer: Observer
    mode: ObserverMode = ObserverMode.ALWAYS
    every: int = 1

    def wants(self, iteration: int, new_best: bool) -> bool:
        if self.mode is ObserverMode.ALWAYS:
            return True
        if self.mode is ObserverMode.EVERY:
            return iteration % self.every == 0
        if self.mode is ObserverMode.NEW_BEST:
            return new_best
        return False


class LoggingObserver:
    """Logs a one-line summary of each iteration.

    Args:
        logger: Logger to write to. Defaults to the ``iterconduit.observers``
            logger.
        level: Log level of the summaries. Defaults to INFO.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self.logger = logger or get_logger(__name__)
        self.level = level

    def notify(self, state: StateSnapshot, iteration: int) -> None:
        extra = " ".join(f"{k}={_fmt(v)}" for k, v in state.kv.items())
        self.logger.log(
            self.level,
            "iter %d: cost=%s best_cost=%s %s",
            iteration,
            _fmt(state.cost),
            _fmt(state.best_cost),
            extra,
        )


@dataclass
class HistoryObserver:
    """Keeps every snapshot it is notified with."""

    states: List[StateSnapshot] = field(default_factory=list)

    def notify(self, state: StateSnapshot, iteration: int) -> None:
        self.states.append(state)

    def costs(self) -> List[float]:
        return [s.cost for s in self.states]

    def best_costs(self) -> List[float]:
        return [s.best_cost for s in self.states]

    def iterations(self) -> List[int]:
        return [s.cur_iter for s in self.states]

    def __len__(self) -> int:
        return len(self.states)


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


__all__ = [
    "HistoryObserver",
    "LoggingObserver",
    "Observer",
    "ObserverEntry",
    "ObserverMode",
]
