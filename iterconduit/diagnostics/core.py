"""Consistency checks for optimization state and solver output.

The executor runs :func:`assert_state_invariants` after every merge while
debug mode is on. Debug mode starts enabled when ``ITERCONDUIT_DEBUG`` is set
to ``1``, ``true``, ``yes`` or ``on``.
"""

from __future__ import annotations

import math
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..core.errors import NumericalError
from ..core.state import IterState
from ..core.vector import ops_for

DEBUG_ENV_VAR = "ITERCONDUIT_DEBUG"

_debug = os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in {"1", "true", "yes", "on"}


def is_debug_enabled() -> bool:
    return _debug


def set_debug_enabled(enabled: bool) -> None:
    """Turn the per-iteration invariant checks on or off for the process."""
    global _debug
    _debug = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """Run a block with debug mode set to ``enabled``, then restore it.

    Example
    -------
    >>> with debug_context():
    ...     res = Executor(problem, NewtonCG()).configure(param=x0).run()
    """
    previous = is_debug_enabled()
    set_debug_enabled(enabled)
    try:
        yield
    finally:
        set_debug_enabled(previous)


def check_finite(value: Any, what: str) -> None:
    """
    Raise if ``value`` (a scalar or vector) contains non-finite entries.

    Raises
    ------
    NumericalError
        If any entry is NaN or infinite.
    """
    if value is None:
        return
    if isinstance(value, (int, float)):
        finite = math.isfinite(value)
    else:
        finite = ops_for(value).is_finite(value)
    if not finite:
        raise NumericalError(f"{what} is not finite: {value!r}")


def assert_state_invariants(
    state: IterState,
    prev_iter: Optional[int] = None,
    prev_best_cost: Optional[float] = None,
) -> None:
    """
    Check the invariants every merged state must satisfy.

    Parameters
    ----------
    state:
        State after a merge.
    prev_iter:
        ``cur_iter`` before the iteration, if known. The iteration counter
        must have advanced by exactly one.
    prev_best_cost:
        ``best_cost`` before the iteration, if known. The best cost must not
        have increased.

    Raises
    ------
    ValueError
        If an invariant is violated.
    """
    if state.cur_iter < 0:
        raise ValueError(f"Iteration counter is negative: {state.cur_iter}.")
    if state.cur_iter > state.max_iters:
        raise ValueError(
            f"Iteration counter {state.cur_iter} exceeds the ceiling {state.max_iters}."
        )
    if prev_iter is not None and state.cur_iter != prev_iter + 1:
        raise ValueError(
            f"Iteration counter advanced from {prev_iter} to {state.cur_iter}."
        )
    if not math.isnan(state.cost) and state.cost < state.best_cost:
        raise ValueError(
            f"Current cost {state.cost} is below the best cost {state.best_cost}."
        )
    if prev_best_cost is not None and state.best_cost > prev_best_cost:
        raise ValueError(
            f"Best cost increased from {prev_best_cost} to {state.best_cost}."
        )
    if math.isfinite(state.best_cost) and state.best_param is None:
        raise ValueError("A best cost is recorded without a best parameter.")


__all__ = [
    "DEBUG_ENV_VAR",
    "assert_state_invariants",
    "check_finite",
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
]
