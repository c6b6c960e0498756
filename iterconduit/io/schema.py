"""JSON schema for persisted optimization state and solver configuration.

State documents look like::

    {
        "version": "iterconduit-json-1.0",
        "kind": "state",
        "param": <vector>,            # null when unset
        "prev_param": <vector>,
        "best_param": <vector>,
        "cost": <float>,
        "prev_cost": <float>,
        "best_cost": <float>,
        "prev_best_cost": <float>,
        "last_best_iter": <integer>,
        "grad": <vector>,
        "hessian": <vector>,
        "cur_iter": <integer>,
        "max_iters": <integer>,
        "target_cost": <float>,
        "termination_reason": <string>,   # TerminationReason value
        "time": <float>,                  # optional
        "kv": {<string>: <float>, ...}    # optional
    }

Vectors and matrices are encoded as::

    {"backend": "numpy" | "torch", "dtype": <string>,
     "shape": [<integer>, ...], "data": [<float>, ...]}

with ``data`` in row-major order. Floats that are not finite are written as
the strings ``"nan"``, ``"inf"`` and ``"-inf"`` so documents stay strict
JSON.

Solver documents are ``{"version", "kind": "solver", "type", "params"}``,
where ``params`` holds the constructor arguments of the solver ``type``.
"""

from __future__ import annotations

from typing import Any, Dict

from ..core.termination import TerminationReason

SCHEMA_VERSION = "iterconduit-json-1.0"

_FLOAT_FIELDS = ("cost", "prev_cost", "best_cost", "prev_best_cost", "target_cost")
_INT_FIELDS = ("last_best_iter", "cur_iter", "max_iters")
_ARRAY_FIELDS = ("param", "prev_param", "best_param", "grad", "hessian")
_SPECIAL_FLOATS = ("nan", "inf", "-inf")


def json_state_schema() -> Dict[str, Any]:
    """Return a structural description of the state document."""
    schema: Dict[str, Any] = {
        "version": {"type": "string", "required": True, "const": SCHEMA_VERSION},
        "kind": {"type": "string", "required": True, "const": "state"},
        "termination_reason": {
            "type": "string",
            "required": True,
            "enum": [r.value for r in TerminationReason],
        },
        "time": {"type": "number", "required": False},
        "kv": {"type": "dict", "required": False},
    }
    for name in _FLOAT_FIELDS:
        schema[name] = {"type": "number", "required": True}
    for name in _INT_FIELDS:
        schema[name] = {"type": "integer", "required": True, "min": 0}
    for name in _ARRAY_FIELDS:
        schema[name] = {"type": "array", "required": True, "nullable": True}
    return schema


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) or value in _SPECIAL_FLOATS


def _validate_array(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, dict):
        raise ValueError(f"Field '{name}' must be an encoded array or null.")
    for key in ("backend", "dtype", "shape", "data"):
        if key not in value:
            raise ValueError(f"Encoded array '{name}' is missing '{key}'.")
    if value["backend"] not in ("numpy", "torch"):
        raise ValueError(f"Encoded array '{name}' has unknown backend {value['backend']!r}.")
    shape = value["shape"]
    if not isinstance(shape, list) or not all(isinstance(n, int) and n >= 0 for n in shape):
        raise ValueError(f"Encoded array '{name}' has an invalid shape {shape!r}.")
    size = 1
    for n in shape:
        size *= n
    if not isinstance(value["data"], list) or len(value["data"]) != size:
        raise ValueError(
            f"Encoded array '{name}' has {len(value['data'])} entries, expected {size}."
        )


def validate_json_state(obj: Any) -> None:
    """
    Validate a state document.

    Raises
    ------
    ValueError
        If a required field is missing or has the wrong type.
    """
    if not isinstance(obj, dict):
        raise ValueError("State document must be a JSON object.")
    if obj.get("version") != SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported version {obj.get('version')!r}, expected {SCHEMA_VERSION!r}."
        )
    if obj.get("kind") != "state":
        raise ValueError(f"Expected a state document, got kind {obj.get('kind')!r}.")

    for name in _FLOAT_FIELDS:
        if name not in obj:
            raise ValueError(f"Missing required field '{name}'.")
        if not _is_number(obj[name]):
            raise ValueError(f"Field '{name}' must be a number.")
    for name in _INT_FIELDS:
        if name not in obj:
            raise ValueError(f"Missing required field '{name}'.")
        value = obj[name]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Field '{name}' must be a non-negative integer.")
    for name in _ARRAY_FIELDS:
        if name not in obj:
            raise ValueError(f"Missing required field '{name}'.")
        _validate_array(name, obj[name])

    reasons = {r.value for r in TerminationReason}
    if obj.get("termination_reason") not in reasons:
        raise ValueError(f"Unknown termination reason {obj.get('termination_reason')!r}.")
    if obj.get("time") is not None and not _is_number(obj["time"]):
        raise ValueError("Field 'time' must be a number or null.")
    if "kv" in obj and not isinstance(obj["kv"], dict):
        raise ValueError("Field 'kv' must be an object.")


def validate_json_solver(obj: Any) -> None:
    """
    Validate the envelope of a solver document.

    Raises
    ------
    ValueError
        If the document is not a solver document of a supported version.
    """
    if not isinstance(obj, dict):
        raise ValueError("Solver document must be a JSON object.")
    if obj.get("version") != SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported version {obj.get('version')!r}, expected {SCHEMA_VERSION!r}."
        )
    if obj.get("kind") != "solver":
        raise ValueError(f"Expected a solver document, got kind {obj.get('kind')!r}.")
    if not isinstance(obj.get("type"), str):
        raise ValueError("Solver document requires a string 'type'.")
    if not isinstance(obj.get("params"), dict):
        raise ValueError("Solver document requires a 'params' object.")


__all__ = [
    "SCHEMA_VERSION",
    "json_state_schema",
    "validate_json_solver",
    "validate_json_state",
]
