"""JSON import and export of optimization state and solver configuration.

See schema.py for the document layout.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np
import torch

from ..core.solver import LineSearch, Solver
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..solvers.gradient import SteepestDescent
from ..solvers.linesearch import BacktrackingLineSearch, WolfeLineSearch
from ..solvers.newton import NewtonCG
from ..solvers.trustregion import CauchyPoint, Dogleg, TrustRegion
from .schema import (
    _ARRAY_FIELDS,
    _FLOAT_FIELDS,
    _INT_FIELDS,
    SCHEMA_VERSION,
    validate_json_solver,
    validate_json_state,
)

PathLike = Union[str, Path]


def _encode_float(value: float) -> Union[float, str]:
    value = float(value)
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return value


def _decode_float(value: Union[float, int, str]) -> float:
    return float(value)


def encode_array(value: Any) -> Optional[Dict[str, Any]]:
    """Encode a NumPy array or torch tensor (or None)."""
    if value is None:
        return None
    if torch.is_tensor(value):
        flat = value.detach().cpu().reshape(-1).tolist()
        return {
            "backend": "torch",
            "dtype": str(value.dtype).replace("torch.", ""),
            "shape": list(value.shape),
            "data": [_encode_float(v) for v in flat],
        }
    if isinstance(value, (np.ndarray, np.generic, float, int)):
        arr = np.asarray(value)
        return {
            "backend": "numpy",
            "dtype": str(arr.dtype),
            "shape": list(arr.shape),
            "data": [_encode_float(v) for v in arr.reshape(-1).tolist()],
        }
    raise TypeError(
        f"Cannot encode value of type {type(value).__name__}; only NumPy arrays "
        "and torch tensors are supported."
    )


def decode_array(obj: Optional[Dict[str, Any]]) -> Any:
    """Inverse of :func:`encode_array`."""
    if obj is None:
        return None
    data = [_decode_float(v) for v in obj["data"]]
    shape = tuple(obj["shape"])
    if obj["backend"] == "torch":
        dtype = getattr(torch, obj["dtype"])
        return torch.tensor(data, dtype=dtype).reshape(shape)
    return np.asarray(data, dtype=obj["dtype"]).reshape(shape)


def state_to_json(state: IterState) -> Dict[str, Any]:
    """
    Convert an IterState to a JSON-compatible document.

    Raises
    ------
    TypeError
        If an array field holds something other than a NumPy array or a
        torch tensor (e.g. a callable Hessian-vector product).
    """
    obj: Dict[str, Any] = {"version": SCHEMA_VERSION, "kind": "state"}
    for name in _ARRAY_FIELDS:
        obj[name] = encode_array(getattr(state, name))
    for name in _FLOAT_FIELDS:
        obj[name] = _encode_float(getattr(state, name))
    for name in _INT_FIELDS:
        obj[name] = int(getattr(state, name))
    obj["termination_reason"] = state.termination_reason.value
    obj["time"] = None if state.time is None else _encode_float(state.time)
    obj["kv"] = {
        k: _encode_float(v) if isinstance(v, float) else v for k, v in state.kv.items()
    }
    return obj


def state_from_json(obj: Dict[str, Any]) -> IterState:
    """
    Reconstruct an IterState from a document produced by :func:`state_to_json`.

    Raises
    ------
    ValueError
        If the document does not match the schema.
    """
    validate_json_state(obj)
    state = IterState()
    for name in _ARRAY_FIELDS:
        setattr(state, name, decode_array(obj[name]))
    for name in _FLOAT_FIELDS:
        setattr(state, name, _decode_float(obj[name]))
    for name in _INT_FIELDS:
        setattr(state, name, obj[name])
    state.termination_reason = TerminationReason(obj["termination_reason"])
    if obj.get("time") is not None:
        state.time = _decode_float(obj["time"])
    state.kv = {
        k: _decode_float(v) if isinstance(v, str) else v for k, v in obj.get("kv", {}).items()
    }
    return state


def dump_json_state(state: IterState, path: PathLike, indent: int = 2) -> None:
    """Write ``state`` to ``path`` as JSON."""
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(state_to_json(state), fh, indent=indent, allow_nan=False)


def load_json_state(path: PathLike) -> IterState:
    """Read a state written by :func:`dump_json_state`."""
    with open(path, "r", encoding="utf-8") as fh:
        return state_from_json(json.load(fh))


# Solvers -------------------------------------------------------------------


def _encode_subproblem(solver: Any) -> Dict[str, Any]:
    return {
        "radius": _encode_float(solver.radius),
        "grad": encode_array(solver.grad),
        "hessian": encode_array(solver.hessian),
    }


def _decode_subproblem(cls: type) -> Callable[[Dict[str, Any]], Any]:
    def decode(params: Dict[str, Any]) -> Any:
        solver = cls()
        solver.radius = _decode_float(params["radius"])
        solver.grad = decode_array(params["grad"])
        solver.hessian = decode_array(params["hessian"])
        return solver

    return decode


_CODECS: Dict[str, Tuple[type, Callable[[Any], Dict[str, Any]], Callable[[Dict[str, Any]], Any]]] = {
    "CauchyPoint": (CauchyPoint, _encode_subproblem, _decode_subproblem(CauchyPoint)),
    "Dogleg": (Dogleg, _encode_subproblem, _decode_subproblem(Dogleg)),
    "TrustRegion": (
        TrustRegion,
        lambda s: {
            "subproblem": solver_to_json(s.subproblem),
            "radius": s.radius,
            "max_radius": s.max_radius,
            "eta": s.eta,
            "grad_tol": s.grad_tol,
        },
        lambda p: TrustRegion(
            subproblem=solver_from_json(p["subproblem"]),
            radius=p["radius"],
            max_radius=p["max_radius"],
            eta=p["eta"],
            grad_tol=p["grad_tol"],
        ),
    ),
    "NewtonCG": (
        NewtonCG,
        lambda s: {
            "line_search": solver_to_json(s.line_search),
            "tol_grad": s.tol_grad,
            "tol_cost": s.tol_cost,
            "cg_max_iter": s.cg_max_iter,
        },
        lambda p: NewtonCG(
            line_search=solver_from_json(p["line_search"]),
            tol_grad=p["tol_grad"],
            tol_cost=p["tol_cost"],
            cg_max_iter=p["cg_max_iter"],
        ),
    ),
    "SteepestDescent": (
        SteepestDescent,
        lambda s: {"line_search": solver_to_json(s.line_search), "tol_grad": s.tol_grad},
        lambda p: SteepestDescent(
            line_search=solver_from_json(p["line_search"]), tol_grad=p["tol_grad"]
        ),
    ),
    "BacktrackingLineSearch": (
        BacktrackingLineSearch,
        lambda s: {"alpha0": s.alpha0, "rho": s.rho, "c": s.c, "max_iter": s.max_iter},
        lambda p: BacktrackingLineSearch(**p),
    ),
    "WolfeLineSearch": (
        WolfeLineSearch,
        lambda s: {"alpha0": s.alpha0, "c1": s.c1, "c2": s.c2, "max_iter": s.max_iter},
        lambda p: WolfeLineSearch(**p),
    ),
}


def solver_to_json(solver: Union[Solver, LineSearch]) -> Dict[str, Any]:
    """
    Convert a solver (or line search) configuration to a JSON document.

    Raises
    ------
    TypeError
        If the solver type has no registered codec.
    """
    for name, (cls, encode, _) in _CODECS.items():
        if type(solver) is cls:
            return {
                "version": SCHEMA_VERSION,
                "kind": "solver",
                "type": name,
                "params": encode(solver),
            }
    raise TypeError(f"No JSON codec registered for {type(solver).__name__}.")


def solver_from_json(obj: Dict[str, Any]) -> Any:
    """
    Reconstruct a solver from a document produced by :func:`solver_to_json`.

    Raises
    ------
    ValueError
        If the document is malformed or names an unknown solver type.
    """
    validate_json_solver(obj)
    try:
        _, _, decode = _CODECS[obj["type"]]
    except KeyError:
        raise ValueError(f"Unknown solver type {obj['type']!r}.") from None
    return decode(obj["params"])


__all__ = [
    "decode_array",
    "dump_json_state",
    "encode_array",
    "load_json_state",
    "solver_from_json",
    "solver_to_json",
    "state_from_json",
    "state_to_json",
]
