"""
Generic result container for all pythagstats computations.

The Result class provides a standardized envelope that all estimator
results use. This enables shared tooling for timing, diagnostics and
reproducibility while allowing each estimator to define its own
parameter structure.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The estimator-specific parameter payload type

    Attributes:
        params: Estimator-specific parameters (coefficients, estimates, etc.)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> # Direct method (no convergence notion)
        >>> Result(
        ...     params=OLSParams(...),
        ...     info={'method': 'qr', 'rank': 2},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_qr'
        ... )

        >>> # Iterative method
        >>> Result(
        ...     params=LMMParams(...),
        ...     info={'method': 'REML', 'converged': True, 'n_iter': 23},
        ...     timing={'total_seconds': 0.5, 'optimization': 0.4},
        ...     backend_name='cpu_lmm'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
