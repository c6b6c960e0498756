"""Cauchy point of the trust-region subproblem.

The Cauchy point minimizes the quadratic model

    m(p) = g^T p + 1/2 p^T H p

along the steepest-descent direction ``-g`` subject to ``||p|| <= radius``.

References:
    - Nocedal & Wright, *Numerical Optimization* (2006), Algorithm 4.2
"""

from __future__ import annotations

import math
from typing import Any

from ...core.operator import Capability, OperatorWrapper
from ...core.solver import TrustRegionSubproblem
from ...core.state import IterationDelta, IterState
from ...core.termination import TerminationReason
from ...core.vector import ops_for


class CauchyPoint(TrustRegionSubproblem):
    """
    Single-shot trust-region subproblem solver.

    The enclosing trust-region algorithm sets the radius, gradient and
    Hessian before each call. The returned delta's ``param`` is the step
    ``p``; the solver never evaluates the operator itself. The Hessian may
    be a matrix or a callable computing Hessian-vector products.

    A zero gradient yields the zero step. Callers are expected to stop
    before that point, since a stationary point makes the subproblem
    meaningless.
    """

    name = "Cauchy point"
    requires = frozenset({Capability.COST})

    def __init__(self) -> None:
        self.radius: float = math.nan
        self.grad: Any = None
        self.hessian: Any = None

    def set_radius(self, radius: float) -> None:
        radius = float(radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Trust-region radius must be positive and finite, got {radius}.")
        self.radius = radius

    def set_grad(self, grad: Any) -> None:
        self.grad = grad

    def set_hessian(self, hessian: Any) -> None:
        self.hessian = hessian

    def next_iter(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        if self.grad is None or self.hessian is None or math.isnan(self.radius):
            raise ValueError("CauchyPoint requires radius, gradient and Hessian to be set.")
        ops = ops_for(self.grad)
        grad_norm = ops.norm(self.grad)
        if grad_norm == 0.0:
            return IterationDelta(param=ops.zeros_like(self.grad))

        wdp = ops.weighted_dot(self.grad, self.hessian, self.grad)
        if wdp <= 0.0:
            tau = 1.0
        else:
            tau = min(1.0, grad_norm**3 / (self.radius * wdp))

        step = ops.scale(self.grad, -tau * self.radius / grad_norm)
        return IterationDelta(param=step, kv={"tau": tau})

    def terminate(self, state: IterState) -> TerminationReason:
        if state.cur_iter >= 1:
            return TerminationReason.MAX_ITERS_REACHED
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return f"CauchyPoint(radius={self.radius})"


__all__ = ["CauchyPoint"]
