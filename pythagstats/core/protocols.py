"""
Core protocols for pythagstats.

Structural interfaces that the estimator backends satisfy. Protocol
(structural typing) rather than ABC, so a backend only needs the right
shape, not a common base class.
"""

from typing import Protocol, TypeVar, runtime_checkable

P = TypeVar('P', covariant=True)  # Parameter payload type
D = TypeVar('D', contravariant=True)  # Design type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    A computational backend: one design in, one Result envelope out.

    Backends are stateless; all configuration is passed via the design
    or keyword arguments to solve().
    """

    @property
    def name(self) -> str:
        """
        Backend identifier.

        Convention: '{device}_{algorithm}', e.g. 'cpu_qr', 'cpu_em'.
        """
        ...

    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the computation.

        Raises:
            ConvergenceError: If an iterative method fails to converge
            NumericalError: If numerical issues prevent a solution
        """
        ...


@runtime_checkable
class VarianceSolver(Protocol):
    """
    Estimator of the random-effects variance components.

    Implementations differ in algorithm only; all return
    Result[VarianceComponents] for the same design and criterion.
    """

    @property
    def name(self) -> str:
        ...

    def solve(
        self,
        design,
        *,
        reml: bool = True,
        tol: float = 1e-8,
        max_iter: int = 200,
    ) -> 'Result':
        ...
