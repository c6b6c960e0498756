"""Newton-CG: truncated conjugate-gradient Newton direction plus line search."""

from __future__ import annotations

import math
import sys
from typing import Any, Optional

from ..core.config import RTOL, check_convergence
from ..core.operator import Capability, OperatorWrapper
from ..core.solver import LineSearch, Solver
from ..core.state import IterationDelta, IterState
from ..core.termination import TerminationReason
from ..core.vector import VectorOps, ops_for
from ..diagnostics.core import check_finite
from .linesearch import WolfeLineSearch


def cg_direction(
    ops: VectorOps,
    grad: Any,
    hess: Any,
    max_iter: Optional[int] = None,
) -> Any:
    """Approximately solve ``hess @ p = -grad`` by conjugate gradients.

    Iteration stops once the residual drops below
    ``min(0.5, sqrt(||g||)) * ||g||`` or as soon as a direction of
    non-positive curvature is met, in which case the last iterate (or ``-g``
    on the first step) is returned. The result is always a descent
    direction.
    """
    grad_norm = ops.norm(grad)
    tol = min(0.5, math.sqrt(grad_norm)) * grad_norm
    max_iter = max_iter or max(1, 2 * ops.size(grad))

    z = ops.zeros_like(grad)
    r = grad
    d = ops.scale(grad, -1.0)
    rr = ops.dot(r, r)
    for j in range(max_iter):
        hd = ops.apply(hess, d)
        curvature = ops.dot(d, hd)
        if curvature <= 0:
            return ops.scale(grad, -1.0) if j == 0 else z
        alpha = rr / curvature
        z = z + d * alpha
        r = r + hd * alpha
        rr_new = ops.dot(r, r)
        if math.sqrt(rr_new) < tol:
            return z
        d = ops.scale(r, -1.0) + d * (rr_new / rr)
        rr = rr_new
    return z


class NewtonCG(Solver):
    """
    Newton's method with a conjugate-gradient inner solve.

    Args:
        line_search: Step-length strategy. Defaults to a strong Wolfe search.
        tol_grad: Stop with ``CONVERGED`` once ``||g|| <= tol_grad``.
        tol_cost: Stop with ``CONVERGED`` once a step changes the cost by at
            most this much.
        cg_max_iter: Iteration limit of the inner CG solve. Defaults to
            twice the problem dimension.
    """

    name = "Newton-CG"
    requires = frozenset({Capability.COST, Capability.GRADIENT, Capability.HESSIAN})

    def __init__(
        self,
        line_search: Optional[LineSearch] = None,
        tol_grad: float = RTOL,
        tol_cost: float = sys.float_info.epsilon,
        cg_max_iter: Optional[int] = None,
    ) -> None:
        if tol_grad < 0 or tol_cost < 0:
            raise ValueError("Tolerances must be non-negative.")
        self.line_search = line_search or WolfeLineSearch()
        self.tol_grad = float(tol_grad)
        self.tol_cost = float(tol_cost)
        self.cg_max_iter = cg_max_iter

    def init(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        cost = float(op.cost(state.param))
        grad = op.gradient(state.param)
        check_finite(cost, "Initial cost")
        check_finite(grad, "Initial gradient")
        if check_convergence(ops_for(grad).norm(grad), self.tol_grad):
            return IterationDelta(cost=cost, grad=grad, termination=TerminationReason.CONVERGED)
        return IterationDelta(cost=cost, grad=grad)

    def next_iter(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        x = state.param
        ops = ops_for(state.grad)
        hess = op.hessian(x)
        direction = cg_direction(ops, state.grad, hess, self.cg_max_iter)
        alpha, cost, grad = self.line_search.search(op, direction, state)

        x_new = x + direction * alpha
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
        if abs(state.cost - state.prev_cost) <= self.tol_cost:
            return TerminationReason.CONVERGED
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return f"NewtonCG(line_search={self.line_search!r}, tol_grad={self.tol_grad})"


__all__ = ["NewtonCG", "cg_direction"]
