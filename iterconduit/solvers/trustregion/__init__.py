"""Trust-region method and its subproblem solvers."""

from .cauchy_point import CauchyPoint
from .dogleg import Dogleg
from .trust_region import TrustRegion

__all__ = ["CauchyPoint", "Dogleg", "TrustRegion"]
