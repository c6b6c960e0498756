"""Termination reasons shared by the executor and all solvers."""

from __future__ import annotations

from enum import Enum


class TerminationReason(Enum):
    """Why a run stopped. Every value except ``NOT_TERMINATED`` is final."""

    NOT_TERMINATED = "not_terminated"
    MAX_ITERS_REACHED = "max_iters_reached"
    TARGET_COST_REACHED = "target_cost_reached"
    CONVERGED = "converged"
    ABORTED = "aborted"

    @property
    def terminated(self) -> bool:
        return self is not TerminationReason.NOT_TERMINATED

    @property
    def message(self) -> str:
        return _MESSAGES[self]

    def __str__(self) -> str:
        return self.message


_MESSAGES = {
    TerminationReason.NOT_TERMINATED: "Not terminated",
    TerminationReason.MAX_ITERS_REACHED: "Maximum number of iterations reached",
    TerminationReason.TARGET_COST_REACHED: "Target cost value reached",
    TerminationReason.CONVERGED: "Solver converged",
    TerminationReason.ABORTED: "Aborted",
}


__all__ = ["TerminationReason"]
