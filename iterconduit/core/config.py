"""Run configuration and shared tolerances."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any

RTOL = 1e-8
ATOL = 1e-10


@dataclass(frozen=True)
class ExecutorConfig:
    """
    Settings consumed once when a run starts.

    Args:
        param: Initial parameter vector. Required.
        max_iters: Iteration ceiling. Defaults to ``sys.maxsize``.
        target_cost: The run stops with ``TARGET_COST_REACHED`` once the best
            cost is at or below this value. Defaults to ``-inf`` (disabled).
    """

    param: Any = None
    max_iters: int = sys.maxsize
    target_cost: float = -math.inf

    def validate(self) -> None:
        """
        Raises:
            ValueError: If no initial parameter is set, ``max_iters`` is
                negative or ``target_cost`` is NaN.
        """
        if self.param is None:
            raise ValueError("An initial parameter vector is required.")
        if self.max_iters < 0:
            raise ValueError("max_iters must be non-negative.")
        if math.isnan(self.target_cost):
            raise ValueError("target_cost must not be NaN.")


def check_convergence(grad_norm: float, tol: float) -> bool:
    """Return True if the gradient norm satisfies the tolerance."""
    return grad_norm <= max(tol, ATOL)


__all__ = ["ATOL", "ExecutorConfig", "RTOL", "check_convergence"]
