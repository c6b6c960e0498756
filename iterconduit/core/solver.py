"""The contract every algorithm implements.

The executor drives a :class:`Solver` one step at a time: ``next_iter``
computes an :class:`IterationDelta` from a read-only view of the state and
``terminate`` inspects the state after that delta was merged. Solvers that
are parameterized by an enclosing algorithm (trust-region subproblems)
additionally implement :class:`TrustRegionSubproblem`; step-length
strategies used inside solvers implement :class:`LineSearch`.

Solver instances must only hold plain values (floats, arrays) so that they
can be pickled and handed to another thread, e.g. for multi-start runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from .operator import Capability, OperatorWrapper
from .state import IterationDelta, IterState
from .termination import TerminationReason


class Solver(ABC):
    """Base class for optimization algorithms."""

    #: Human-readable algorithm name.
    name: str = "Solver"

    #: Operator capabilities the solver calls. Must not be empty.
    requires: frozenset[Capability] = frozenset({Capability.COST})

    def init(self, op: OperatorWrapper, state: IterState) -> Optional[IterationDelta]:
        """Prepare the run. The returned delta is merged before iteration 1."""
        return None

    @abstractmethod
    def next_iter(self, op: OperatorWrapper, state: IterState) -> IterationDelta:
        """Compute one iteration's update without mutating ``state``."""

    def terminate(self, state: IterState) -> TerminationReason:
        """Algorithm-specific stopping test, evaluated after each merge."""
        return TerminationReason.NOT_TERMINATED

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TrustRegionSubproblem(Solver):
    """Single-step solver for the trust-region model subproblem.

    The enclosing trust-region algorithm sets radius, gradient and Hessian
    before every call. The delta's ``param`` is the step, not a new point.
    """

    @abstractmethod
    def set_radius(self, radius: float) -> None:
        ...

    @abstractmethod
    def set_grad(self, grad: Any) -> None:
        ...

    @abstractmethod
    def set_hessian(self, hessian: Any) -> None:
        ...


class LineSearch(ABC):
    """Chooses a step length along a fixed search direction.

    ``state`` provides the current ``param``, ``cost`` and ``grad``. All
    operator evaluations go through ``op`` and are therefore counted.
    """

    @abstractmethod
    def search(
        self, op: OperatorWrapper, direction: Any, state: IterState
    ) -> Tuple[float, Optional[float], Optional[Any]]:
        """
        Return ``(alpha, cost, grad)`` for the accepted step length
        ``alpha > 0``. ``cost`` and ``grad`` are the values at
        ``param + alpha * direction`` if the search evaluated them, else None.
        """


__all__ = ["LineSearch", "Solver", "TrustRegionSubproblem"]
