"""Operator capabilities and the counting wrapper the executor owns.

A user operator is any object implementing some of ``cost``, ``gradient``
and ``hessian``. Solvers declare which of these they need through
:attr:`iterconduit.core.solver.Solver.requires`; the executor compares that
against :func:`operator_capabilities` before a run starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import numpy as np

from ..utils import approx_grad, approx_hessian
from .errors import CapabilityError


class Capability(Enum):
    """Evaluation capabilities an operator may provide."""

    COST = "cost"
    GRADIENT = "gradient"
    HESSIAN = "hessian"


@runtime_checkable
class CostFunction(Protocol):
    def cost(self, param: Any) -> float:
        ...


@runtime_checkable
class Gradient(Protocol):
    def gradient(self, param: Any) -> Any:
        ...


@runtime_checkable
class Hessian(Protocol):
    def hessian(self, param: Any) -> Any:
        ...


_PROTOCOLS = {
    Capability.COST: CostFunction,
    Capability.GRADIENT: Gradient,
    Capability.HESSIAN: Hessian,
}


def operator_capabilities(operator: Any) -> frozenset[Capability]:
    """Return the capabilities ``operator`` provides.

    An operator may declare them explicitly through a ``capabilities()``
    method; otherwise they are inferred from the methods it implements.
    """
    declared = getattr(operator, "capabilities", None)
    if callable(declared):
        return frozenset(declared())
    return frozenset(cap for cap, proto in _PROTOCOLS.items() if isinstance(operator, proto))


@dataclass(frozen=True)
class Problem:
    """Operator built from plain callables.

    ``grad`` and ``hess`` are optional. With ``finite_diff=True`` the missing
    ones are approximated by central differences of ``fun``.
    """

    fun: Callable[[Any], float]
    grad: Optional[Callable[[Any], Any]] = None
    hess: Optional[Callable[[Any], Any]] = None
    dim: Optional[int] = None
    finite_diff: bool = False

    def capabilities(self) -> frozenset[Capability]:
        caps = {Capability.COST}
        if self.grad is not None or self.finite_diff:
            caps.add(Capability.GRADIENT)
        if self.hess is not None or self.finite_diff:
            caps.add(Capability.HESSIAN)
        return frozenset(caps)

    def cost(self, param: Any) -> float:
        return float(self.fun(param))

    def gradient(self, param: Any) -> Any:
        if self.grad is not None:
            return self.grad(param)
        if self.finite_diff:
            return approx_grad(self.fun, np.asarray(param, dtype=float))
        raise CapabilityError("Problem", ["gradient"])

    def hessian(self, param: Any) -> Any:
        if self.hess is not None:
            return self.hess(param)
        if self.finite_diff:
            return approx_hessian(self.fun, np.asarray(param, dtype=float))
        raise CapabilityError("Problem", ["hessian"])


class OperatorWrapper:
    """Owns the user operator for a run and counts every evaluation.

    Counters are incremented before the call is forwarded, so they reflect
    attempted evaluations including ones that raise. Results and exceptions
    pass through unchanged.
    """

    def __init__(self, operator: Any) -> None:
        self.operator = operator
        self.capabilities = operator_capabilities(operator)
        self.cost_count = 0
        self.gradient_count = 0
        self.hessian_count = 0

    def _require(self, capability: Capability) -> None:
        if capability not in self.capabilities:
            raise CapabilityError(type(self.operator).__name__, [capability.value])

    def cost(self, param: Any) -> float:
        self._require(Capability.COST)
        self.cost_count += 1
        return self.operator.cost(param)

    def gradient(self, param: Any) -> Any:
        self._require(Capability.GRADIENT)
        self.gradient_count += 1
        return self.operator.gradient(param)

    def hessian(self, param: Any) -> Any:
        self._require(Capability.HESSIAN)
        self.hessian_count += 1
        return self.operator.hessian(param)

    def counts(self) -> dict[str, int]:
        return {
            "cost": self.cost_count,
            "gradient": self.gradient_count,
            "hessian": self.hessian_count,
        }

    def missing(self, required: frozenset[Capability]) -> frozenset[Capability]:
        return frozenset(required) - self.capabilities

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={v}" for k, v in self.counts().items())
        return f"OperatorWrapper({type(self.operator).__name__}, {counts})"


__all__ = [
    "Capability",
    "CostFunction",
    "Gradient",
    "Hessian",
    "OperatorWrapper",
    "Problem",
    "operator_capabilities",
]
