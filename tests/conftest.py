"""Pytest configuration and shared fixtures for iterconduit tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Common test problems (quadratic, Rosenbrock) as operators
- Isolation of the global debug-mode and logging settings
"""

import logging
import os

import numpy as np
import pytest
import torch

from iterconduit.diagnostics import set_debug_enabled, is_debug_enabled
from iterconduit.logging import configure_logging


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic torch RNG for tests."""
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    generator = torch.Generator()
    generator.manual_seed(seed)
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Set global random seeds so every test is reproducible."""
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture(scope="function", autouse=True)
def restore_globals():
    """Reset debug mode and logging configuration after each test."""
    debug = is_debug_enabled()
    yield
    set_debug_enabled(debug)
    configure_logging(level=logging.WARNING)


class Quadratic:
    """f(x) = 1/2 x^T A x - b^T x with analytic derivatives."""

    def __init__(self, A: np.ndarray, b: np.ndarray) -> None:
        self.A = A
        self.b = b

    def cost(self, x: np.ndarray) -> float:
        return float(0.5 * x @ (self.A @ x) - self.b @ x)

    def gradient(self, x: np.ndarray) -> np.ndarray:
        return self.A @ x - self.b

    def hessian(self, x: np.ndarray) -> np.ndarray:
        return self.A

    @property
    def minimizer(self) -> np.ndarray:
        return np.linalg.solve(self.A, self.b)


class Rosenbrock:
    """Two-dimensional Rosenbrock function."""

    def cost(self, x: np.ndarray) -> float:
        return float((1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2)

    def gradient(self, x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
                200 * (x[1] - x[0] ** 2),
            ]
        )

    def hessian(self, x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                [1200 * x[0] ** 2 - 400 * x[1] + 2, -400 * x[0]],
                [-400 * x[0], 200.0],
            ]
        )


@pytest.fixture
def quadratic() -> Quadratic:
    return Quadratic(np.array([[2.0, 0.0], [0.0, 4.0]]), np.array([1.0, -2.0]))


@pytest.fixture
def rosenbrock() -> Rosenbrock:
    return Rosenbrock()
