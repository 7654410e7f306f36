"""Pure analysis package for Actify.

This package contains deterministic, testable computations that operate on
in-memory inputs and return DTOs. It must not import Django or perform any
database I/O.
"""

from .hours_series import compute_hours_series

__all__ = ["compute_hours_series"]
