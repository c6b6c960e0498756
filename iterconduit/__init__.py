"""iterconduit - a generic iterative numerical-optimization engine.

Example
-------
>>> import numpy as np
>>> from iterconduit import Executor, NewtonCG, Problem
>>> def rosen(x):
...     return (1 - x[0])**2 + 100 * (x[1] - x[0]**2)**2
>>> def rosen_grad(x):
...     return np.array([
...         -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
...         200 * (x[1] - x[0] ** 2),
...     ])
>>> def rosen_hess(x):
...     return np.array([
...         [1200 * x[0] ** 2 - 400 * x[1] + 2, -400 * x[0]],
...         [-400 * x[0], 200.0],
...     ])
>>> problem = Problem(fun=rosen, grad=rosen_grad, hess=rosen_hess, dim=2)
>>> res = Executor(problem, NewtonCG()).configure(
...     param=np.array([1.2, 1.2]), max_iters=100
... ).run()
>>> res.best_cost < 1e-10
True
"""

__version__ = "0.1.0"

# Core engine (imported first: diagnostics and solvers build on it)
from .core import (
    ATOL,
    RTOL,
    Capability,
    CapabilityError,
    CostFunction,
    Executor,
    ExecutorConfig,
    ExecutorStatus,
    Gradient,
    Hessian,
    HistoryObserver,
    IterationDelta,
    IterconduitError,
    IterState,
    LineSearch,
    LoggingObserver,
    NumericalError,
    Observer,
    ObserverMode,
    OperatorWrapper,
    OptimizationResult,
    Problem,
    Solver,
    StateSnapshot,
    TerminationReason,
    TrustRegionSubproblem,
    VectorOps,
    ops_for,
)

# Diagnostics
from .diagnostics import (
    assert_state_invariants,
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)

# Persistence
from .io import (
    dump_json_state,
    load_json_state,
    solver_from_json,
    solver_to_json,
    state_from_json,
    state_to_json,
)

# Logging
from .logging import configure_logging, get_logger, set_log_level

# Algorithms
from .solvers import (
    BacktrackingLineSearch,
    CauchyPoint,
    Dogleg,
    NewtonCG,
    SteepestDescent,
    TrustRegion,
    WolfeLineSearch,
)

__all__ = [
    "__version__",
    "ATOL",
    "RTOL",
    # Core
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
    "Observer",
    "ObserverMode",
    "OperatorWrapper",
    "OptimizationResult",
    "Problem",
    "Solver",
    "StateSnapshot",
    "TerminationReason",
    "TrustRegionSubproblem",
    "VectorOps",
    "ops_for",
    # Diagnostics
    "assert_state_invariants",
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
    # Persistence
    "dump_json_state",
    "load_json_state",
    "solver_from_json",
    "solver_to_json",
    "state_from_json",
    "state_to_json",
    # Logging
    "configure_logging",
    "get_logger",
    "set_log_level",
    # Algorithms
    "BacktrackingLineSearch",
    "CauchyPoint",
    "Dogleg",
    "NewtonCG",
    "SteepestDescent",
    "TrustRegion",
    "WolfeLineSearch",
]
