"""Vector-space operations over the supported numeric backends.

Solvers never call NumPy or PyTorch directly for the handful of linear
algebra operations they need. Instead they ask :func:`ops_for` for the
backend matching the parameter type and use its methods, so the same solver
runs on ``numpy.ndarray`` and ``torch.Tensor`` parameters alike.

Matrices passed to :meth:`VectorOps.apply` and
:meth:`VectorOps.weighted_dot` may be dense arrays, anything implementing
``@`` (e.g. SciPy sparse matrices), or a callable computing a
Hessian-vector product.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Union

import numpy as np
import torch

Vector = Union[np.ndarray, torch.Tensor]
LinearOperator = Union[np.ndarray, torch.Tensor, Callable[[Any], Any], Any]


class VectorOps(ABC):
    """Minimal vector-space capability used by the solvers."""

    name: str = ""

    @abstractmethod
    def norm(self, x: Vector) -> float:
        """Euclidean norm of ``x``."""

    @abstractmethod
    def dot(self, x: Vector, y: Vector) -> float:
        """Inner product ``x^T y``."""

    @abstractmethod
    def apply(self, mat: LinearOperator, y: Vector) -> Vector:
        """Matrix-vector product ``mat @ y``."""

    @abstractmethod
    def scale(self, x: Vector, factor: float) -> Vector:
        """Return ``factor * x`` as a new vector."""

    @abstractmethod
    def zeros_like(self, x: Vector) -> Vector:
        ...

    @abstractmethod
    def size(self, x: Vector) -> int:
        """Number of entries in ``x``."""

    @abstractmethod
    def copy(self, x: Vector) -> Vector:
        ...

    @abstractmethod
    def is_finite(self, x: Vector) -> bool:
        ...

    def weighted_dot(self, x: Vector, mat: LinearOperator, y: Vector) -> float:
        """Bilinear form ``x^T M y``."""
        return self.dot(x, self.apply(mat, y))


class NumpyOps(VectorOps):
    name = "numpy"

    def norm(self, x: Vector) -> float:
        return float(np.linalg.norm(x))

    def dot(self, x: Vector, y: Vector) -> float:
        return float(np.dot(np.ravel(x), np.ravel(y)))

    def apply(self, mat: LinearOperator, y: Vector) -> Vector:
        if callable(mat):
            return np.asarray(mat(y), dtype=float)
        return np.asarray(mat @ y, dtype=float)

    def scale(self, x: Vector, factor: float) -> Vector:
        return float(factor) * np.asarray(x, dtype=float)

    def zeros_like(self, x: Vector) -> Vector:
        return np.zeros_like(x, dtype=float)

    def size(self, x: Vector) -> int:
        return int(np.size(x))

    def copy(self, x: Vector) -> Vector:
        return np.array(x, dtype=float, copy=True)

    def is_finite(self, x: Vector) -> bool:
        return bool(np.all(np.isfinite(x)))


class TorchOps(VectorOps):
    name = "torch"

    def norm(self, x: Vector) -> float:
        return float(torch.linalg.vector_norm(x))

    def dot(self, x: Vector, y: Vector) -> float:
        return float(torch.dot(x.reshape(-1), y.reshape(-1)))

    def apply(self, mat: LinearOperator, y: Vector) -> Vector:
        if callable(mat):
            return mat(y)
        return mat @ y

    def scale(self, x: Vector, factor: float) -> Vector:
        return x * float(factor)

    def zeros_like(self, x: Vector) -> Vector:
        return torch.zeros_like(x)

    def size(self, x: Vector) -> int:
        return int(x.numel())

    def copy(self, x: Vector) -> Vector:
        return x.detach().clone()

    def is_finite(self, x: Vector) -> bool:
        return bool(torch.isfinite(x).all())


NUMPY_OPS = NumpyOps()
TORCH_OPS = TorchOps()


def ops_for(x: Any) -> VectorOps:
    """Return the backend operations matching the type of ``x``."""
    if torch.is_tensor(x):
        return TORCH_OPS
    return NUMPY_OPS


def norm(x: Vector) -> float:
    return ops_for(x).norm(x)


def weighted_dot(x: Vector, mat: LinearOperator, y: Vector) -> float:
    return ops_for(x).weighted_dot(x, mat, y)


def scale(x: Vector, factor: float) -> Vector:
    return ops_for(x).scale(x, factor)


__all__ = [
    "LinearOperator",
    "NUMPY_OPS",
    "NumpyOps",
    "TORCH_OPS",
    "TorchOps",
    "Vector",
    "VectorOps",
    "norm",
    "ops_for",
    "scale",
    "weighted_dot",
]
