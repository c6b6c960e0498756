"""Diagnostics and debugging utilities for iterconduit."""

from .core import (
    DEBUG_ENV_VAR,
    assert_state_invariants,
    check_finite,
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "DEBUG_ENV_VAR",
    "assert_state_invariants",
    "check_finite",
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
]
