"""Pure aggregation package for Dashboard Studio.

This package contains deterministic, testable computations that operate on
in-memory records and return DTOs: filtering, bucketing, aggregation, the
dataset-shaped processors (scatter, bubble, radar) and the table pipeline. It
must not import Django or perform any I/O.
"""

from .bucketing import process_buckets
from .filters import apply_all_filters

__all__ = ["apply_all_filters", "process_buckets"]
