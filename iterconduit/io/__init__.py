"""JSON persistence for optimization state and solver configuration."""

from .json_state import (
    decode_array,
    dump_json_state,
    encode_array,
    load_json_state,
    solver_from_json,
    solver_to_json,
    state_from_json,
    state_to_json,
)
from .schema import SCHEMA_VERSION, json_state_schema, validate_json_solver, validate_json_state

__all__ = [
    "SCHEMA_VERSION",
    "decode_array",
    "dump_json_state",
    "encode_array",
    "json_state_schema",
    "load_json_state",
    "solver_from_json",
    "solver_to_json",
    "state_from_json",
    "state_to_json",
    "validate_json_solver",
    "validate_json_state",
]
