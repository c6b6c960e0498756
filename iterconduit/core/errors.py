"""Exception types raised by the iteration engine.

Operator failures are never wrapped: whatever a user cost, gradient or
Hessian raises reaches the caller unchanged. The classes below cover the
failures the engine itself detects.
"""

from __future__ import annotations

from typing import Iterable


class IterconduitError(Exception):
    """Base class for errors raised by iterconduit itself."""


class CapabilityError(IterconduitError, TypeError):
    """The operator does not provide a capability the solver requires."""

    def __init__(self, solver: str, missing: Iterable[str]) -> None:
        self.solver = solver
        self.missing = tuple(sorted(missing))
        super().__init__(
            f"Solver {solver!r} requires operator capabilities that are not "
            f"implemented: {', '.join(self.missing)}."
        )


class NumericalError(IterconduitError, ArithmeticError):
    """A solver produced a result that is not finite."""


__all__ = ["CapabilityError", "IterconduitError", "NumericalError"]
