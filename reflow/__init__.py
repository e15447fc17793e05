"""
reflow — composable primitives for async, fallible, stateful workflows.

    from reflow import task as T      # then / catch / deadline
    from reflow import retry as R     # Retry policies
    from reflow import cache as C     # Cache-aside
    from reflow import pipeline as P  # Action → reducer → effect
"""

import logging

from reflow import task
from reflow import retry
from reflow import cache
from reflow import pipeline
from reflow import lift
from reflow._types import (
    Lazy,
    Pure,
    Fallible,
    LCR,
    NoError,
    Fault,
    matches,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = (
    "task",
    "retry",
    "cache",
    "pipeline",
    "lift",
    "Lazy",
    "Pure",
    "Fallible",
    "LCR",
    "NoError",
    "Fault",
    "matches",
)
