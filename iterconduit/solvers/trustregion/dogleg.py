"""Dogleg step for the trust-region subproblem."""

from __future__ import annotations

import math
from typing import Any

import numpy as np
import torch

from ...core.operator import Capability, OperatorWrapper
from ...core.solver import TrustRegionSubproblem
from ...core.state import IterationDelta, IterState
from ...core.termination import TerminationReason
from ...core.vector import ops_for
from ...utils import safe_solve


def _newton_step(hess: Any, grad: Any) -> Any:
    if torch.is_tensor(grad):
        try:
            return torch.linalg.solve(hess, -grad)
        except RuntimeError:
            return torch.linalg.lstsq(hess, -grad.unsqueeze(-1)).solution.squeeze(-1)
    return safe_solve(np.asarray(hess, dtype=float), -np.asarray(grad, dtype=float))


class Dogleg(TrustRegionSubproblem):
    """
    Dogleg path between the steepest-descent minimizer and the Newton step.

    Requires a dense Hessian. When the model has non-positive curvature
    along the gradient, the step falls back to the boundary point along
    ``-g``.
    """

    name = "Dogleg"
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
            raise ValueError("Dogleg requires radius, gradient and Hessian to be set.")
        ops = ops_for(self.grad)
        g = self.grad
        delta = self.radius
        grad_norm = ops.norm(g)
        if grad_norm == 0.0:
            return IterationDelta(param=ops.zeros_like(g))

        gbg = ops.weighted_dot(g, self.hessian, g)
        if gbg <= 0.0:
            return IterationDelta(param=ops.scale(g, -delta / grad_norm))

        p_b = _newton_step(self.hessian, g)
        if ops.norm(p_b) <= delta:
            return IterationDelta(param=p_b)

        p_u = ops.scale(g, -(grad_norm**2) / gbg)
        p_u_norm = ops.norm(p_u)
        if p_u_norm >= delta:
            return IterationDelta(param=ops.scale(p_u, delta / p_u_norm))

        # Intersect p_u + t (p_b - p_u), t in [0, 1], with the boundary.
        diff = p_b - p_u
        a = ops.dot(diff, diff)
        b = 2.0 * ops.dot(p_u, diff)
        c = ops.dot(p_u, p_u) - delta**2
        t = (-b + math.sqrt(max(b * b - 4.0 * a * c, 0.0))) / (2.0 * a)
        return IterationDelta(param=p_u + diff * t)

    def terminate(self, state: IterState) -> TerminationReason:
        if state.cur_iter >= 1:
            return TerminationReason.MAX_ITERS_REACHED
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return f"Dogleg(radius={self.radius})"


__all__ = ["Dogleg"]
