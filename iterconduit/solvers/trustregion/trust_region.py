"""Trust-region outer iteration around a pluggable subproblem solver."""

from __future__ import annotations

import math
from typing import Any, Optional

from ...core.config import RTOL, ExecutorConfig, check_convergence
from ...core.executor import Executor
from ...core.operator import Capability, OperatorWrapper
from ...core.solver import Solver, TrustRegionSubproblem
from ...core.state import IterationDelta, IterState
from ...core.termination import TerminationReason
from ...core.vector import ops_for
from ...diagnostics.core import check_finite
from .cauchy_point import CauchyPoint


class TrustRegion(Solver):
    """
    Basic trust-region method (Nocedal & Wright, Algorithm 4.1).

    Each iteration hands the current gradient, Hessian and radius to the
    subproblem solver, runs it as a one-step solver in a nested executor
    sharing this run's counted operator, and accepts the resulting step if
    the ratio of actual to predicted reduction exceeds ``eta``.

    Args:
        subproblem: Subproblem solver. Defaults to :class:`CauchyPoint`.
        radius: Initial trust-region radius.
        max_radius: Upper bound for the radius.
        eta: Acceptance threshold for the reduction ratio, in ``[0, 0.25)``.
        grad_tol: Stop with ``CONVERGED`` once ``||g|| <= grad_tol``.
    """

    name = "Trust region"
    requires = frozenset({Capability.COST, Capability.GRADIENT, Capability.HESSIAN})

    def __init__(
        self,
        subproblem: Optional[TrustRegionSubproblem] = None,
        radius: float = 1.0,
        max_radius: float = 100.0,
        eta: float = 0.125,
        grad_tol: float = RTOL,
    ) -> None:
        if not (radius > 0 and math.isfinite(radius)):
            raise ValueError("radius must be positive and finite.")
        if max_radius < radius:
            raise ValueError("max_radius must be at least the initial radius.")
        if not (0.0 <= eta < 0.25):
            raise ValueError("eta must lie in [0, 0.25).")
        self.subproblem = subproblem or CauchyPoint()
        self.radius = float(radius)
        self.max_radius = float(max_radius)
        self.eta = float(eta)
        self.grad_tol = float(grad_tol)
        self._radius = self.radius

    def _stationary(self, grad: Any) -> bool:
        return check_convergence(ops_for(grad).norm(grad), self.grad_tol)

    def init(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        self._radius = self.radius
        x = state.param
        cost = float(op.cost(x))
        check_finite(cost, "Initial cost")
        grad = op.gradient(x)
        if self._stationary(grad):
            return IterationDelta(
                cost=cost, grad=grad, termination=TerminationReason.CONVERGED
            )
        return IterationDelta(
            cost=cost, grad=grad, hessian=op.hessian(x), kv={"radius": self._radius}
        )

    def next_iter(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        x, fx, grad, hess = state.param, state.cost, state.grad, state.hessian
        if self._stationary(grad):
            return IterationDelta(termination=TerminationReason.CONVERGED)

        ops = ops_for(grad)
        self.subproblem.set_radius(self._radius)
        self.subproblem.set_grad(grad)
        self.subproblem.set_hessian(hess)
        inner = Executor(
            op, self.subproblem, ExecutorConfig(param=ops.zeros_like(grad), max_iters=1)
        ).run()
        step = inner.state.param

        x_new = x + step
        f_new = float(op.cost(x_new))
        predicted = -(ops.dot(grad, step) + 0.5 * ops.weighted_dot(step, hess, step))
        if predicted > 0 and math.isfinite(f_new):
            rho = (fx - f_new) / predicted
        else:
            rho = 0.0

        step_norm = ops.norm(step)
        if rho < 0.25:
            self._radius = 0.25 * self._radius
        elif rho > 0.75 and step_norm >= 0.9 * self._radius:
            self._radius = min(2.0 * self._radius, self.max_radius)
        kv = {"radius": self._radius, "rho": rho}

        if rho > self.eta:
            return IterationDelta(
                param=x_new,
                cost=f_new,
                grad=op.gradient(x_new),
                hessian=op.hessian(x_new),
                kv=kv,
            )
        return IterationDelta(kv=kv)

    def terminate(self, state: IterState) -> TerminationReason:
        if state.grad is not None and self._stationary(state.grad):
            return TerminationReason.CONVERGED
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return (
            f"TrustRegion(subproblem={self.subproblem!r}, radius={self.radius}, "
            f"max_radius={self.max_radius}, eta={self.eta})"
        )


__all__ = ["TrustRegion"]
