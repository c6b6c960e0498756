"""Iteration engine: operator wrapper, state, solver contract and executor."""

from .config import ATOL, RTOL, ExecutorConfig, check_convergence
from .errors import CapabilityError, IterconduitError, NumericalError
from .operator import (
    Capability,
    CostFunction,
    Gradient,
    Hessian,
    OperatorWrapper,
    Problem,
    operator_capabilities,
)
from .state import IterationDelta, IterState, StateSnapshot
from .termination import TerminationReason
from .vector import NumpyOps, TorchOps, VectorOps, ops_for
from .solver import LineSearch, Solver, TrustRegionSubproblem
from .observers import HistoryObserver, LoggingObserver, Observer, ObserverMode
from .executor import Executor, ExecutorStatus, OptimizationResult

__all__ = [
    "ATOL",
    "Capability",
    "CapabilityError",
    "CostFunction",
    "Executor",
    "ExecutorConfig",
    "ExecutorStatus",
    "Gradient",
    "Hessian",
    "HistoryObserver",
    "IterState",
    "IterationDelta",
    "IterconduitError",
    "LineSearch",
    "LoggingObserver",
    "NumericalError",
    "NumpyOps",
    "Observer",
    "ObserverMode",
    "OperatorWrapper",
    "OptimizationResult",
    "Problem",
    "RTOL",
    "Solver",
    "StateSnapshot",
    "TerminationReason",
    "TorchOps",
    "TrustRegionSubproblem",
    "VectorOps",
    "check_convergence",
    "ops_for",
]
