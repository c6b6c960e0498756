import math

import numpy as np
import pytest
import torch

from iterconduit.core import Executor, ExecutorConfig, TerminationReason
from iterconduit.solvers import CauchyPoint


def configured(radius, grad, hessian) -> CauchyPoint:
    solver = CauchyPoint()
    solver.set_radius(radius)
    solver.set_grad(grad)
    solver.set_hessian(hessian)
    return solver


def model(g, H, p) -> float:
    return float(g @ p + 0.5 * p @ (H @ p))


def test_non_positive_curvature_steps_to_boundary():
    g = np.array([2.0, 0.0])
    H = np.diag([-1.25, 3.0])  # g^T H g = -5
    delta = configured(1.0, g, H).next_iter(None, None)
    assert np.allclose(delta.param, -0.5 * g)
    assert np.linalg.norm(delta.param) == pytest.approx(1.0)
    assert delta.kv["tau"] == 1.0


def test_positive_curvature_stops_inside_region():
    g = np.array([1.0, 0.0])
    H = np.diag([4.0, 1.0])  # g^T H g = 4
    delta = configured(10.0, g, H).next_iter(None, None)
    assert delta.kv["tau"] == pytest.approx(0.025)
    assert np.allclose(delta.param, -0.25 * g)


def test_accepts_hessian_vector_product():
    g = np.array([1.0, 0.0])
    H = np.diag([4.0, 1.0])
    delta = configured(10.0, g, lambda v: H @ v).next_iter(None, None)
    assert np.allclose(delta.param, -0.25 * g)


def test_step_stays_in_region_and_decreases_model(rng):
    for _ in range(20):
        g = rng.normal(size=4)
        M = rng.normal(size=(4, 4))
        H = 0.5 * (M + M.T)
        radius = float(rng.uniform(0.1, 5.0))
        p = configured(radius, g, H).next_iter(None, None).param
        assert np.linalg.norm(p) <= radius * (1 + 1e-12)
        assert model(g, H, p) <= 0.0
        # p is a non-positive multiple of g
        assert p @ g <= 0.0


def test_zero_gradient_gives_zero_step():
    delta = configured(1.0, np.zeros(3), np.eye(3)).next_iter(None, None)
    assert np.array_equal(delta.param, np.zeros(3))


def test_requires_all_inputs():
    solver = CauchyPoint()
    solver.set_grad(np.ones(2))
    with pytest.raises(ValueError, match="to be set"):
        solver.next_iter(None, None)


@pytest.mark.parametrize("radius", [0.0, -1.0, math.nan, math.inf])
def test_rejects_invalid_radius(radius):
    with pytest.raises(ValueError):
        CauchyPoint().set_radius(radius)


def test_single_shot_under_executor(quadratic):
    solver = configured(1.0, np.array([2.0, 0.0]), np.diag([-1.25, 3.0]))
    res = Executor(quadratic, solver, ExecutorConfig(param=np.zeros(2), max_iters=10)).run()
    assert res.termination_reason is TerminationReason.MAX_ITERS_REACHED
    assert res.n_iter == 1
    assert np.allclose(res.param, [-1.0, 0.0])
    assert res.counts == {"cost": 0, "gradient": 0, "hessian": 0}


def test_torch_tensors():
    g = torch.tensor([1.0, 0.0], dtype=torch.float64)
    H = torch.diag(torch.tensor([4.0, 1.0], dtype=torch.float64))
    p = configured(10.0, g, H).next_iter(None, None).param
    assert torch.is_tensor(p)
    assert torch.allclose(p, -0.25 * g)
