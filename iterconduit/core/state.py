"""Optimization state and the per-iteration deltas solvers produce.

:class:`IterState` is the single mutable record of a run. Solvers never
modify it; they return an :class:`IterationDelta` and the executor merges
it with :meth:`IterState.merge`, which is also the only place best-so-far
bookkeeping happens.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import numpy as np
import torch

from .termination import TerminationReason


@dataclass
class IterationDelta:
    """Sparse update produced by one solver step.

    Only fields that are not ``None`` are merged into the state. ``kv`` holds
    scalar diagnostics (e.g. trust-region radius) for observers.
    """

    param: Any = None
    cost: Optional[float] = None
    grad: Any = None
    hessian: Any = None
    termination: Optional[TerminationReason] = None
    kv: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IterState:
    """Mutable record of optimization progress.

    Attributes:
        param: Current parameter vector.
        prev_param: Parameter vector before the last update.
        best_param: Parameter vector with the lowest cost seen so far.
        cost: Current cost, ``nan`` until known.
        prev_cost: Cost before the last update.
        best_cost: Lowest cost merged so far, ``inf`` until known.
        prev_best_cost: Best cost before the last improvement.
        last_best_iter: Value of ``cur_iter`` when ``best_cost`` was merged.
        grad: Current gradient, if a solver reported one.
        hessian: Current Hessian, if a solver reported one.
        cur_iter: Number of completed iterations.
        max_iters: Iteration ceiling enforced by the executor.
        target_cost: Cost at or below which the run stops.
        termination_reason: ``NOT_TERMINATED`` until the run stops.
        time: Wall time of the run in seconds, set when it ends.
        kv: Diagnostics reported by the solver in its latest delta.
    """

    param: Any = None
    prev_param: Any = None
    best_param: Any = None
    cost: float = math.nan
    prev_cost: float = math.nan
    best_cost: float = math.inf
    prev_best_cost: float = math.inf
    last_best_iter: int = 0
    grad: Any = None
    hessian: Any = None
    cur_iter: int = 0
    max_iters: int = sys.maxsize
    target_cost: float = -math.inf
    termination_reason: TerminationReason = TerminationReason.NOT_TERMINATED
    time: Optional[float] = None
    kv: Dict[str, Any] = field(default_factory=dict)

    @property
    def terminated(self) -> bool:
        return self.termination_reason.terminated

    def terminate_with(self, reason: TerminationReason) -> None:
        """Record ``reason`` unless the state is already terminal."""
        if not self.terminated:
            self.termination_reason = reason

    def merge(self, delta: IterationDelta) -> bool:
        """Apply the fields present in ``delta``.

        Returns True if the merged cost is a new best.
        """
        if delta.param is not None:
            self.prev_param = self.param
            self.param = delta.param
        if delta.grad is not None:
            self.grad = delta.grad
        if delta.hessian is not None:
            self.hessian = delta.hessian
        if delta.kv:
            self.kv = dict(delta.kv)
        if delta.cost is None:
            return False

        self.prev_cost = self.cost
        self.cost = float(delta.cost)
        if self.cost < self.best_cost:
            self.prev_best_cost = self.best_cost
            self.best_cost = self.cost
            self.best_param = self.param
            self.last_best_iter = self.cur_iter
            return True
        return False

    def increment_iter(self) -> None:
        self.cur_iter += 1

    def snapshot(self) -> "StateSnapshot":
        """Read-only copy of the state handed to observers."""
        return StateSnapshot(**{f.name: _frozen_copy(getattr(self, f.name)) for f in fields(self)})


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable view of an :class:`IterState` at one point in time."""

    param: Any
    prev_param: Any
    best_param: Any
    cost: float
    prev_cost: float
    best_cost: float
    prev_best_cost: float
    last_best_iter: int
    grad: Any
    hessian: Any
    cur_iter: int
    max_iters: int
    target_cost: float
    termination_reason: TerminationReason
    time: Optional[float]
    kv: Dict[str, Any]

    @property
    def terminated(self) -> bool:
        return self.termination_reason.terminated


def _frozen_copy(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        out = value.copy()
        out.setflags(write=False)
        return out
    if torch.is_tensor(value):
        return value.detach().clone()
    if isinstance(value, dict):
        return dict(value)
    return value


__all__ = ["IterState", "IterationDelta", "StateSnapshot"]
