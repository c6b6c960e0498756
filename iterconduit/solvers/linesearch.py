"""Line searches following Nocedal & Wright, chapter 3.

Both implementations read the current point, cost and gradient from the
state and evaluate the operator only through the counted wrapper. They
return the accepted step length together with the cost and gradient already
evaluated there (``None`` where they were not), so solvers do not pay for
them twice.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Optional, Tuple

from ..core.operator import OperatorWrapper
from ..core.solver import LineSearch
from ..core.state import IterState
from ..core.vector import ops_for

StepResult = Tuple[float, Optional[float], Optional[Any]]


def _current(op: OperatorWrapper, state: IterState) -> tuple[Any, float, Any]:
    x = state.param
    fx = state.cost if not math.isnan(state.cost) else float(op.cost(x))
    grad = state.grad if state.grad is not None else op.gradient(x)
    return x, fx, grad


class _Ray:
    """Evaluations of the operator along ``x + alpha * direction``, cached by ``alpha``."""

    def __init__(self, op: OperatorWrapper, x: Any, direction: Any) -> None:
        self.op = op
        self.x = x
        self.direction = direction
        self.costs: Dict[float, float] = {}
        self.grads: Dict[float, Any] = {}

    def cost(self, alpha: float) -> float:
        if alpha not in self.costs:
            self.costs[alpha] = float(self.op.cost(self.x + self.direction * alpha))
        return self.costs[alpha]

    def gradient(self, alpha: float) -> Any:
        if alpha not in self.grads:
            self.grads[alpha] = self.op.gradient(self.x + self.direction * alpha)
        return self.grads[alpha]

    def result(self, alpha: float) -> StepResult:
        return alpha, self.costs.get(alpha), self.grads.get(alpha)


class BacktrackingLineSearch(LineSearch):
    """Armijo backtracking: shrink ``alpha`` by ``rho`` until sufficient decrease."""

    def __init__(
        self,
        alpha0: float = 1.0,
        rho: float = 0.5,
        c: float = 1e-4,
        max_iter: int = 50,
    ) -> None:
        if not (0 < c < 1):
            raise ValueError("Armijo constant c must lie in (0, 1)")
        if not (0 < rho < 1):
            raise ValueError("rho must lie in (0, 1)")
        if alpha0 <= 0:
            raise ValueError("alpha0 must be positive")
        self.alpha0 = float(alpha0)
        self.rho = float(rho)
        self.c = float(c)
        self.max_iter = int(max_iter)

    def search(self, op: OperatorWrapper, direction: Any, state: IterState) -> StepResult:
        x, fx, grad = _current(op, state)
        slope = ops_for(grad).dot(grad, direction)
        ray = _Ray(op, x, direction)
        alpha = self.alpha0
        for _ in range(self.max_iter):
            if ray.cost(alpha) <= fx + self.c * alpha * slope:
                return ray.result(alpha)
            alpha *= self.rho
        return ray.result(alpha)

    def __repr__(self) -> str:
        return f"BacktrackingLineSearch(alpha0={self.alpha0}, rho={self.rho}, c={self.c})"


class WolfeLineSearch(LineSearch):
    """Strong Wolfe line search using bracketing and zoom."""

    def __init__(
        self,
        alpha0: float = 1.0,
        c1: float = 1e-4,
        c2: float = 0.9,
        max_iter: int = 40,
    ) -> None:
        if not (0 < c1 < c2 < 1):
            raise ValueError("Require 0 < c1 < c2 < 1 for Wolfe conditions.")
        if alpha0 <= 0:
            raise ValueError("alpha0 must be positive")
        self.alpha0 = float(alpha0)
        self.c1 = float(c1)
        self.c2 = float(c2)
        self.max_iter = int(max_iter)

    def search(self, op: OperatorWrapper, direction: Any, state: IterState) -> StepResult:
        x, phi0, grad = _current(op, state)
        ops = ops_for(grad)
        ray = _Ray(op, x, direction)

        def phi_prime(alpha: float) -> float:
            return ops.dot(ray.gradient(alpha), direction)

        der0 = ops.dot(grad, direction)
        if der0 >= 0:
            raise ValueError("Search direction must be a descent direction.")

        alpha_prev = 0.0
        phi_prev = phi0
        alpha = self.alpha0
        for iteration in range(self.max_iter):
            phi_alpha = ray.cost(alpha)
            if phi_alpha > phi0 + self.c1 * alpha * der0 or (
                iteration > 0 and phi_alpha >= phi_prev
            ):
                return ray.result(
                    self._zoom(ray.cost, phi_prime, alpha_prev, alpha, phi_prev, phi0, der0)
                )
            der_alpha = phi_prime(alpha)
            if abs(der_alpha) <= -self.c2 * der0:
                return ray.result(alpha)
            if der_alpha >= 0:
                return ray.result(
                    self._zoom(ray.cost, phi_prime, alpha, alpha_prev, phi_alpha, phi0, der0)
                )
            alpha_prev = alpha
            phi_prev = phi_alpha
            alpha *= 2.0
        return ray.result(alpha)

    def _zoom(
        self,
        phi: Callable[[float], float],
        phi_prime: Callable[[float], float],
        alo: float,
        ahi: float,
        phi_alo: float,
        phi0: float,
        der0: float,
    ) -> float:
        alpha = 0.5 * (alo + ahi)
        for _ in range(32):
            alpha = 0.5 * (alo + ahi)
            phi_alpha = phi(alpha)
            if phi_alpha > phi0 + self.c1 * alpha * der0 or phi_alpha >= phi_alo:
                ahi = alpha
            else:
                der_alpha = phi_prime(alpha)
                if abs(der_alpha) <= -self.c2 * der0:
                    return alpha
                if der_alpha * (ahi - alo) >= 0:
                    ahi = alo
                alo = alpha
                phi_alo = phi_alpha
            if abs(ahi - alo) < 1e-12:
                break
        # alo always satisfies sufficient decrease; prefer it over a failed midpoint.
        return alo if alo > 0 else alpha

    def __repr__(self) -> str:
        return f"WolfeLineSearch(alpha0={self.alpha0}, c1={self.c1}, c2={self.c2})"


__all__ = ["BacktrackingLineSearch", "WolfeLineSearch"]
