"""
Shared compute infrastructure for pythagstats.

Timing utilities, tolerance tiers and linear algebra kernels shared by
the OLS and mixed-model estimators.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical tolerance tiers
    linalg: Linear algebra kernels (QR)
"""

from pythagstats.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
