import numpy as np
import pytest

from iterconduit.core import CapabilityError, Executor, Problem, TerminationReason
from iterconduit.solvers import SteepestDescent, WolfeLineSearch


def test_converges_on_quadratic(quadratic):
    res = (
        Executor(quadratic, SteepestDescent())
        .configure(param=np.array([3.0, 3.0]), max_iters=500)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert np.allclose(res.best_param, quadratic.minimizer, atol=1e-7)
    assert res.counts["hessian"] == 0


def test_wolfe_line_search(quadratic):
    res = (
        Executor(quadratic, SteepestDescent(WolfeLineSearch()))
        .configure(param=np.array([3.0, 3.0]), max_iters=500)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED


def test_target_cost_stops_early(quadratic):
    # f(3, 3) = 30; the first accepted step lands at 23.75.
    res = (
        Executor(quadratic, SteepestDescent())
        .configure(param=np.array([3.0, 3.0]), max_iters=500, target_cost=25.0)
        .run()
    )
    assert res.termination_reason is TerminationReason.TARGET_COST_REACHED
    assert res.n_iter == 1
    assert res.best_cost == pytest.approx(23.75)


def test_stationary_start_converges_without_iterating(quadratic):
    res = (
        Executor(quadratic, SteepestDescent())
        .configure(param=quadratic.minimizer, max_iters=10)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.n_iter == 0
    assert res.best_cost == pytest.approx(-0.75)


def test_gradient_evaluated_once_per_iteration(quadratic):
    res = (
        Executor(quadratic, SteepestDescent())
        .configure(param=np.array([3.0, 3.0]), max_iters=5)
        .run()
    )
    assert res.counts["gradient"] == res.n_iter + 1


def test_requires_gradient():
    problem = Problem(fun=lambda x: float(x @ x))
    with pytest.raises(CapabilityError, match="gradient"):
        Executor(problem, SteepestDescent())
