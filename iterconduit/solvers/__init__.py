"""Optimization algorithms implementing the :class:`~iterconduit.core.Solver` contract."""

from .gradient import SteepestDescent
from .linesearch import BacktrackingLineSearch, WolfeLineSearch
from .newton import NewtonCG, cg_direction
from .trustregion import CauchyPoint, Dogleg, TrustRegion

__all__ = [
    "BacktrackingLineSearch",
    "CauchyPoint",
    "Dogleg",
    "NewtonCG",
    "SteepestDescent",
    "TrustRegion",
    "WolfeLineSearch",
    "cg_direction",
]
