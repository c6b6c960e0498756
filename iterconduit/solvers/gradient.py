"""Steepest descent with a line search."""

from __future__ import annotations

from typing import Optional

from ..core.config import RTOL, check_convergence
from ..core.operator import Capability, OperatorWrapper
from ..core.solver import LineSearch, Solver
from ..core.state import IterationDelta, IterState
from ..core.termination import TerminationReason
from ..core.vector import ops_for
from ..diagnostics.core import check_finite
from .linesearch import BacktrackingLineSearch


class SteepestDescent(Solver):
    """Moves along ``-g`` with a step length chosen by ``line_search``."""

    name = "Steepest descent"
    requires = frozenset({Capability.COST, Capability.GRADIENT})

    def __init__(self, line_search: Optional[LineSearch] = None, tol_grad: float = RTOL) -> None:
        if tol_grad < 0:
            raise ValueError("tol_grad must be non-negative.")
        self.line_search = line_search or BacktrackingLineSearch()
        self.tol_grad = float(tol_grad)

    def init(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        cost = float(op.cost(state.param))
        grad = op.gradient(state.param)
        check_finite(cost, "Initial cost")
        if check_convergence(ops_for(grad).norm(grad), self.tol_grad):
            return IterationDelta(cost=cost, grad=grad, termination=TerminationReason.CONVERGED)
        return IterationDelta(cost=cost, grad=grad)

    def next_iter(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        direction = ops_for(state.grad).scale(state.grad, -1.0)
        alpha, cost, grad = self.line_search.search(op, direction, state)
        x_new = state.param + direction * alpha
        if cost is None:
            cost = float(op.cost(x_new))
        if grad is None:
            grad = op.gradient(x_new)
        check_finite(cost, "Cost")
        check_finite(grad, "Gradient")
        return IterationDelta(param=x_new, cost=cost, grad=grad, kv={"alpha": alpha})

    def terminate(self, state: IterState) -> TerminationReason:
        if check_convergence(ops_for(state.grad).norm(state.grad), self.tol_grad):
            return TerminationReason.CONVERGED
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return f"SteepestDescent(line_search={self.line_search!r}, tol_grad={self.tol_grad})"


__all__ = ["SteepestDescent"]
