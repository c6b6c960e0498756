"""Finite-difference derivatives and small linear-algebra helpers.

Used by :class:`iterconduit.core.operator.Problem` to supply gradient and
Hessian capabilities for operators that only implement a cost, and by the
dogleg subproblem for its Newton step.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

Array = np.ndarray
Objective = Callable[[Array], float]


def approx_grad(fun: Objective, x: Array, eps: float = 1e-6) -> Array:
    """Central-difference gradient of ``fun`` at ``x``.

    Parameters
    ----------
    fun:
        Objective returning a scalar for a 1-D parameter vector.
    x:
        Point where the gradient is approximated.
    eps:
        Perturbation size. Must be positive.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float)
    grad = np.empty(x.size, dtype=float)
    for i, ei in enumerate(np.eye(x.size) * eps):
        grad[i] = (fun(x + ei) - fun(x - ei)) / (2.0 * eps)
    return grad.reshape(x.shape)


def approx_hessian(fun: Objective, x: Array, eps: float = 1e-4) -> Array:
    """Second-order central-difference Hessian of ``fun`` at ``x``.

    The result is symmetric by construction.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float)
    n = x.size
    steps = np.eye(n) * eps
    fx = fun(x)
    hess = np.zeros((n, n), dtype=float)
    for i in range(n):
        ei = steps[i]
        hess[i, i] = (fun(x + ei) - 2.0 * fx + fun(x - ei)) / eps**2
        for j in range(i + 1, n):
            ej = steps[j]
            value = (
                fun(x + ei + ej) - fun(x + ei - ej) - fun(x - ei + ej) + fun(x - ei - ej)
            ) / (4.0 * eps**2)
            hess[i, j] = hess[j, i] = value
    return hess


def is_pos_def(mat: Array, tol: float = 1e-12) -> bool:
    """Check whether the symmetric part of ``mat`` is positive definite."""
    sym = 0.5 * (mat + mat.T)
    return bool(np.all(np.linalg.eigvalsh(sym) > tol))


def safe_solve(mat: Array, vec: Array, reg: float = 1e-12) -> Array:
    """Solve ``mat @ x = vec``, adding a ridge term if ``mat`` is singular."""
    try:
        return np.linalg.solve(mat, vec)
    except np.linalg.LinAlgError:
        eye = np.eye(mat.shape[0], dtype=mat.dtype)
        return np.linalg.lstsq(mat + reg * eye, vec, rcond=None)[0]


__all__ = ["approx_grad", "approx_hessian", "is_pos_def", "safe_solve"]
