import math

import numpy as np
import pytest
import torch

from iterconduit.core import (
    Executor,
    NumericalError,
    Problem,
    TerminationReason,
)
from iterconduit.core.vector import NUMPY_OPS
from iterconduit.solvers import BacktrackingLineSearch, NewtonCG, cg_direction


class Unimodal:
    """(x - 1)^4 + (x - 1)^2 + 2 (y - 2)^2, minimum 0 at (1, 2)."""

    def cost(self, p):
        return float((p[0] - 1) ** 4 + (p[0] - 1) ** 2 + 2 * (p[1] - 2) ** 2)

    def gradient(self, p):
        return np.array([4 * (p[0] - 1) ** 3 + 2 * (p[0] - 1), 4 * (p[1] - 2)])

    def hessian(self, p):
        return np.array([[12 * (p[0] - 1) ** 2 + 2, 0.0], [0.0, 4.0]])


def test_converges_on_unimodal_cost():
    res = (
        Executor(Unimodal(), NewtonCG())
        .configure(param=np.array([1.5, 2.5]), max_iters=100)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.best_cost < 1e-6
    assert np.allclose(res.best_param, [1.0, 2.0], atol=1e-3)


def test_converges_on_rosenbrock(rosenbrock):
    res = (
        Executor(rosenbrock, NewtonCG())
        .configure(param=np.array([1.2, 1.2]), max_iters=100)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.best_cost < 1e-6
    assert res.counts["hessian"] == res.n_iter


def test_stationary_start_converges_without_iterating(rosenbrock):
    res = (
        Executor(rosenbrock, NewtonCG())
        .configure(param=np.array([1.0, 1.0]), max_iters=100)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.n_iter == 0
    assert res.best_cost == 0.0
    assert np.array_equal(res.best_param, [1.0, 1.0])
    assert res.counts == {"cost": 1, "gradient": 1, "hessian": 0}


class Bowl:
    """x^2 + 2 y^2: every CG direction is minimized exactly at alpha = 1."""

    def cost(self, p):
        return float(p[0] ** 2 + 2 * p[1] ** 2)

    def gradient(self, p):
        return np.array([2 * p[0], 4 * p[1]])

    def hessian(self, p):
        return np.diag([2.0, 4.0])


def test_line_search_evaluations_are_reused():
    res = (
        Executor(Bowl(), NewtonCG())
        .configure(param=np.array([4.0, 4.0]), max_iters=20)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.n_iter >= 1
    # One unit step per iteration, evaluated once by the line search.
    assert res.counts["cost"] == res.n_iter + 1
    assert res.counts["gradient"] == res.n_iter + 1


def test_backtracking_line_search(quadratic):
    res = (
        Executor(quadratic, NewtonCG(BacktrackingLineSearch()))
        .configure(param=np.array([4.0, 4.0]), max_iters=20)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert np.allclose(res.best_param, quadratic.minimizer, atol=1e-8)


def test_cg_direction_is_descent(rng):
    for _ in range(10):
        M = rng.normal(size=(5, 5))
        H = M @ M.T + 0.1 * np.eye(5)
        g = rng.normal(size=5)
        p = cg_direction(NUMPY_OPS, g, H)
        assert g @ p < 0


def test_cg_direction_solves_small_spd_system():
    H = np.array([[3.0, 1.0], [1.0, 2.0]])
    g = np.array([1e-4, -2e-4])
    p = cg_direction(NUMPY_OPS, g, H)
    assert np.allclose(H @ p, -g, atol=1e-6)


def test_cg_direction_negative_curvature_falls_back_to_steepest_descent():
    g = np.array([1.0, -1.0])
    p = cg_direction(NUMPY_OPS, g, -np.eye(2))
    assert np.allclose(p, -g)


def test_non_finite_initial_cost_aborts():
    problem = Problem(
        fun=lambda x: math.nan,
        grad=lambda x: np.zeros(2),
        hess=lambda x: np.eye(2),
        dim=2,
    )
    executor = Executor(problem, NewtonCG()).configure(param=np.zeros(2), max_iters=5)
    with pytest.raises(NumericalError):
        executor.run()
    assert executor.state.termination_reason is TerminationReason.ABORTED
    assert executor.state.cur_iter == 0


def test_invalid_tolerances():
    with pytest.raises(ValueError):
        NewtonCG(tol_grad=-1.0)


class TorchUnimodal:
    def cost(self, p):
        return float((p[0] - 1) ** 4 + (p[0] - 1) ** 2 + 2 * (p[1] - 2) ** 2)

    def gradient(self, p):
        return torch.stack([4 * (p[0] - 1) ** 3 + 2 * (p[0] - 1), 4 * (p[1] - 2)])

    def hessian(self, p):
        h00 = 12 * (p[0] - 1) ** 2 + 2
        zero = torch.zeros((), dtype=p.dtype)
        return torch.stack([torch.stack([h00, zero]), torch.stack([zero, zero + 4.0])])


def test_torch_backend():
    res = (
        Executor(TorchUnimodal(), NewtonCG())
        .configure(param=torch.tensor([1.5, 2.5], dtype=torch.float64), max_iters=100)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert torch.is_tensor(res.best_param)
    assert res.best_cost < 1e-6
