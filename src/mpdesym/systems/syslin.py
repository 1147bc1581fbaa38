# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Descriptor Linear Systems over a Semiring

Implicit dynamic linear systems of timed event graphs:

    x(n) = D ⊗ x(n) ⊕ A ⊗ x(n-1) ⊕ B ⊗ u(n)
    y(n) = C ⊗ x(n)
    x(0) = x0

In max-plus, x_i(n) is the date of the n-th firing of transition i: a
transition fires once all its upstream tokens are available (⊕ = max)
after the holding times (⊗ = +). D holds same-instant precedences, A the
precedences through one token.

Mathematical Background
----------------------
When D* exists (no circuit of positive weight in the same-instant graph),
the least solution of the implicit equation is the explicit system

    x(n) = D* ⊗ A ⊗ x(n-1) ⊕ D* ⊗ B ⊗ u(n)

Systems compose like transfer operators:
- Parallel (S1 + S2): common input, outputs added
- Series (S1 * S2): S2 feeds S1
- Feedback (S1 / S2): output of S1 fed back to its input through S2
- Diagonal (S1 | S2): independent inputs and outputs

Usage
-----
>>> from mpdesym.systems.syslin import LinearSystem
>>>
>>> S = LinearSystem(A=[[1, 2], [3, 4]], B=[0, 0], C=[[0, 0]], x0=[0, 0])
>>> S.simulate([range(1, 11)])['outputs'].to_numpy()
array([[ 4.,  8., 12., 16., 20., 24., 28., 32., 36., 40.]])
>>> S.cycle_time()
MaxPlus(4.0)
"""

import numbers
from typing import Optional, Tuple

import numpy as np

from mpdesym.algebra.closure import star
from mpdesym.algebra.exceptions import DimensionMismatch
from mpdesym.algebra.howard import eigen
from mpdesym.algebra.matrix import (
    DenseMatrix,
    TropicalMatrix,
    _dense_matmul,
    as_matrix,
    block,
    zeros,
)
from mpdesym.algebra.scalar import Tropical
from mpdesym.algebra.semiring import get_semiring
from mpdesym.types.backends import DEFAULT_SEMIRING, Semiring
from mpdesym.types.core import (
    DimensionTuple,
    ImplicitMatrix,
    InitialState,
    InputMatrix,
    InputSequence,
    OutputMatrix,
    StateMatrix,
)
from mpdesym.types.trajectories import SimulationResult
from mpdesym.utils.backend_utils import to_numpy


def _is_gain(x) -> bool:
    if isinstance(x, (Tropical, TropicalMatrix)):
        return True
    return isinstance(x, (numbers.Real, np.number))


class LinearSystem:
    """
    Implicit max-plus (or min-plus) linear system (A, B, C, D, x0).

    Matrices are validated at construction and never modified afterwards;
    every operation returns a new system.

    Parameters
    ----------
    A : StateMatrix
        (nx, nx) state matrix
    B : InputMatrix
        (nx, nu) input matrix; a 1-D vector is a single input column
    C : OutputMatrix
        (ny, nx) output matrix (give it 2-D)
    D : ImplicitMatrix, optional
        (nx, nx) implicit matrix; all-ε by default
    x0 : InitialState, optional
        (nx, 1) initial state; all-ε by default
    semiring : Semiring, optional
        Semiring used to lift classical data; defaults to the semiring of
        the first semiring matrix given, else max-plus

    Raises
    ------
    DimensionMismatch
        If shapes are inconsistent
    TypeError
        If matrices belong to different semirings

    Examples
    --------
    >>> S = LinearSystem([[1, 2], [3, 4]], [[0], [0]], [[0, 0]])
    >>> S.dims
    DimensionTuple(nx=2, nu=1, ny=1)
    """

    # Make NumPy defer to the reflected operators below
    __array_ufunc__ = None
    __hash__ = None

    def __init__(
        self,
        A: StateMatrix,
        B: InputMatrix,
        C: OutputMatrix,
        D: Optional[ImplicitMatrix] = None,
        x0: Optional[InitialState] = None,
        semiring: Optional[Semiring] = None,
    ):
        if semiring is None:
            given = [M for M in (A, B, C, D, x0) if isinstance(M, TropicalMatrix)]
            semiring = given[0].semiring if given else DEFAULT_SEMIRING
        self._ops = get_semiring(semiring)

        self._A = self._lift(A)
        n = self._A.nrows
        self._B = self._lift(B)
        self._C = self._lift(C)
        self._D = zeros(n, n, semiring, "sparse") if D is None else self._lift(D)
        self._x0 = zeros(n, 1, semiring, "sparse") if x0 is None else self._lift(x0)
        self._validate()

    def _lift(self, M) -> TropicalMatrix:
        if isinstance(M, TropicalMatrix):
            return as_matrix(M, semiring=self._ops.name)
        return as_matrix(M, semiring=self._ops.name, storage="sparse")

    def _validate(self) -> None:
        n = self._A.nrows
        if self._A.shape != (n, n):
            raise DimensionMismatch(f"A must be square, got shape {self._A.shape}")
        if self._B.nrows != n:
            raise DimensionMismatch(f"B must have {n} rows, got {self._B.nrows}")
        if self._C.ncols != n:
            raise DimensionMismatch(f"C must have {n} columns, got {self._C.ncols}")
        if self._D.shape != (n, n):
            raise DimensionMismatch(f"D must be ({n}, {n}), got {self._D.shape}")
        if self._x0.shape != (n, 1):
            raise DimensionMismatch(f"x0 must be ({n}, 1), got {self._x0.shape}")

    @classmethod
    def _from_matrices(cls, A, B, C, D, x0) -> "LinearSystem":
        return cls(A, B, C, D, x0, semiring=A.semiring)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def A(self) -> TropicalMatrix:
        return self._A.copy()

    @property
    def B(self) -> TropicalMatrix:
        return self._B.copy()

    @property
    def C(self) -> TropicalMatrix:
        return self._C.copy()

    @property
    def D(self) -> TropicalMatrix:
        return self._D.copy()

    @property
    def x0(self) -> TropicalMatrix:
        return self._x0.copy()

    @property
    def semiring(self) -> str:
        return self._ops.name

    @property
    def nx(self) -> int:
        """Number of states."""
        return self._A.nrows

    @property
    def nu(self) -> int:
        """Number of inputs."""
        return self._B.ncols

    @property
    def ny(self) -> int:
        """Number of outputs."""
        return self._C.nrows

    @property
    def dims(self) -> DimensionTuple:
        return DimensionTuple(nx=self.nx, nu=self.nu, ny=self.ny)

    def to_numpy(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Classical (A, B, C, D, x0) arrays, ε as the semiring's infinity."""
        return tuple(M.to_numpy() for M in (self._A, self._B, self._C, self._D, self._x0))

    # ------------------------------------------------------------------
    # Block helpers
    # ------------------------------------------------------------------

    def _eps(self, m: int, n: int) -> TropicalMatrix:
        return zeros(m, n, self.semiring, "sparse")

    def _diag(self, X: TropicalMatrix, Y: TropicalMatrix) -> TropicalMatrix:
        return block([[X, self._eps(X.nrows, Y.ncols)], [self._eps(Y.nrows, X.ncols), Y]])

    def _check_other(self, other: "LinearSystem") -> None:
        if not isinstance(other, LinearSystem):
            raise TypeError(f"Expected a LinearSystem, got {type(other).__name__}")
        if other.semiring != self.semiring:
            raise TypeError(f"Cannot compose {self.semiring} and {other.semiring} systems")

    # ------------------------------------------------------------------
    # Compositions
    # ------------------------------------------------------------------

    def parallel(self, other: "LinearSystem") -> "LinearSystem":
        """
        Common input, outputs added: y = y1 ⊕ y2.

        Raises
        ------
        DimensionMismatch
            If the systems differ in number of inputs or outputs
        """
        self._check_other(other)
        if (self.nu, self.ny) != (other.nu, other.ny):
            raise DimensionMismatch(
                f"Parallel composition needs equal (nu, ny): "
                f"{(self.nu, self.ny)} vs {(other.nu, other.ny)}"
            )
        return self._from_matrices(
            self._diag(self._A, other._A),
            block([[self._B], [other._B]]),
            block([[self._C, other._C]]),
            self._diag(self._D, other._D),
            block([[self._x0], [other._x0]]),
        )

    def series(self, other: "LinearSystem") -> "LinearSystem":
        """
        Cascade: the output of this system is the input of ``other``.

        The coupling B2 ⊗ C1 acts within the same event, so it appears in
        the implicit matrix.

        Raises
        ------
        DimensionMismatch
            If self.ny != other.nu
        """
        self._check_other(other)
        if self.ny != other.nu:
            raise DimensionMismatch(
                f"Series composition needs self.ny == other.nu, got {self.ny} and {other.nu}"
            )
        n1, n2 = self.nx, other.nx
        return self._from_matrices(
            self._diag(self._A, other._A),
            block([[self._B], [self._eps(n2, self.nu)]]),
            block([[self._eps(other.ny, n1), other._C]]),
            block(
                [
                    [self._D, self._eps(n1, n2)],
                    [other._B.matmul(self._C), other._D],
                ]
            ),
            block([[self._x0], [other._x0]]),
        )

    def feedback(self, other: "LinearSystem") -> "LinearSystem":
        """
        Closed loop: u1 = u ⊕ y2 with ``other`` fed by y1.

        Output and input are those of this system. The closed-loop
        transfer is star(S1 ⊗ S2) ⊗ S1.

        Raises
        ------
        DimensionMismatch
            If other is not (self.ny inputs, self.nu outputs)
        """
        self._check_other(other)
        if other.nu != self.ny or other.ny != self.nu:
            raise DimensionMismatch(
                f"Feedback system must have {self.ny} inputs and {self.nu} outputs, "
                f"got {other.nu} and {other.ny}"
            )
        n1, n2 = self.nx, other.nx
        return self._from_matrices(
            self._diag(self._A, other._A),
            block([[self._B], [self._eps(n2, self.nu)]]),
            block([[self._C, self._eps(self.ny, n2)]]),
            block(
                [
                    [self._D, self._B.matmul(other._C)],
                    [other._B.matmul(self._C), other._D],
                ]
            ),
            block([[self._x0], [other._x0]]),
        )

    def diagonal(self, other: "LinearSystem") -> "LinearSystem":
        """Independent systems side by side: inputs and outputs stacked."""
        self._check_other(other)
        return self._from_matrices(
            self._diag(self._A, other._A),
            self._diag(self._B, other._B),
            self._diag(self._C, other._C),
            self._diag(self._D, other._D),
            block([[self._x0], [other._x0]]),
        )

    def vstack(self, other: "LinearSystem") -> "LinearSystem":
        """Common input, outputs stacked: y = [y1; y2]."""
        self._check_other(other)
        if self.nu != other.nu:
            raise DimensionMismatch(
                f"Vertical stacking needs equal nu, got {self.nu} and {other.nu}"
            )
        return self._from_matrices(
            self._diag(self._A, other._A),
            block([[self._B], [other._B]]),
            self._diag(self._C, other._C),
            self._diag(self._D, other._D),
            block([[self._x0], [other._x0]]),
        )

    def hstack(self, other: "LinearSystem") -> "LinearSystem":
        """Inputs stacked, outputs added: y = y1(u1) ⊕ y2(u2)."""
        self._check_other(other)
        if self.ny != other.ny:
            raise DimensionMismatch(
                f"Horizontal stacking needs equal ny, got {self.ny} and {other.ny}"
            )
        return self._from_matrices(
            self._diag(self._A, other._A),
            self._diag(self._B, other._B),
            block([[self._C, other._C]]),
            self._diag(self._D, other._D),
            block([[self._x0], [other._x0]]),
        )

    def with_input_gain(self, K) -> "LinearSystem":
        """
        Pre-compensation: B ← B ⊗ K.

        A scalar delays (or advances) every input; a (nu, m) matrix maps
        m new inputs onto the current ones.
        """
        if isinstance(K, TropicalMatrix):
            B = self._B.matmul(as_matrix(K, semiring=self.semiring))
        else:
            B = self._B.mul(K)
        return self._from_matrices(self._A, B, self._C, self._D, self._x0)

    def with_output_gain(self, K) -> "LinearSystem":
        """Post-compensation: C ← K ⊗ C (scalar, or (p, ny) matrix)."""
        if isinstance(K, TropicalMatrix):
            C = as_matrix(K, semiring=self.semiring).matmul(self._C)
        else:
            C = self._C.mul(K)
        return self._from_matrices(self._A, self._B, C, self._D, self._x0)

    # ------------------------------------------------------------------
    # Realization and analysis
    # ------------------------------------------------------------------

    def explicit(self) -> "LinearSystem":
        """
        Explicit realization (D* ⊗ A, D* ⊗ B, C, ε, x0).

        Raises
        ------
        DivergentSemiring
            If D has an improving circuit, so D* does not exist

        Examples
        --------
        >>> S = LinearSystem([[1]], [[0]], [[0]], D=[[-2]])
        >>> S.explicit().D.nnz
        0
        """
        Dstar = star(self._D)
        return self._from_matrices(
            Dstar.matmul(self._A),
            Dstar.matmul(self._B),
            self._C,
            self._eps(self.nx, self.nx),
            self._x0,
        )

    def cycle_time(self) -> Tropical:
        """
        Asymptotic inter-event time λ of the autonomous explicit system.

        Raises
        ------
        UndefinedSpectrum, AmbiguousSpectrum
            See ``mpdesym.algebra.howard.eigen``
        """
        lam, _ = eigen(self.explicit()._A)
        return lam

    def _input_sequence(self, u) -> TropicalMatrix:
        if isinstance(u, TropicalMatrix):
            U = as_matrix(u, semiring=self.semiring)
        else:
            values = to_numpy(u)
            if values.ndim == 1:
                # A 1-D sequence drives a single-input system over time
                values = values.reshape(1, -1) if self.nu == 1 else values.reshape(-1, 1)
            U = as_matrix(values, semiring=self.semiring)
        if U.nrows != self.nu:
            raise DimensionMismatch(
                f"Input sequence must have {self.nu} rows, got shape {U.shape}"
            )
        return U

    def simulate(self, u: InputSequence, history: bool = True) -> SimulationResult:
        """
        Simulate the system over the columns of an input sequence.

        Args:
            u: (nu, n_steps) input daters; column k is u(k+1). A 1-D
                sequence is read as the time series of a single input.
            history: Keep every step (True) or only the last one

        Returns:
            SimulationResult with state and output daters

        Raises:
            DimensionMismatch: u has the wrong number of rows
            DivergentSemiring: D* does not exist

        Examples:
            >>> S = LinearSystem([[1, 2], [3, 4]], [[0], [0]], [[0, 0]], D=eye(2))
            >>> S.simulate([range(1, 11)])['outputs'].to_numpy()
            array([[ 1.,  5.,  9., 13., 17., 21., 25., 29., 33., 37.]])
        """
        U = self._input_sequence(u).to_numpy()
        realized = self.explicit()
        ops = self._ops
        A = realized._A.to_numpy()
        B = realized._B.to_numpy()
        C = realized._C.to_numpy()

        x = self._x0.to_numpy()
        n_steps = U.shape[1]
        states, outputs = [], []
        for k in range(n_steps):
            x = ops.ufunc(_dense_matmul(A, x, ops), _dense_matmul(B, U[:, k : k + 1], ops))
            y = _dense_matmul(C, x, ops)
            if history or k == n_steps - 1:
                states.append(x)
                outputs.append(y)

        if not states:
            if history:
                states = [np.full((self.nx, 0), ops.zero)]
                outputs = [np.full((self.ny, 0), ops.zero)]
            else:
                states = [x]
                outputs = [_dense_matmul(C, x, ops)]

        result: SimulationResult = {
            "states": DenseMatrix._adopt(np.hstack(states), ops),
            "outputs": DenseMatrix._adopt(np.hstack(outputs), ops),
            "n_steps": n_steps,
        }
        return result

    # ------------------------------------------------------------------
    # Operator sugar
    # ------------------------------------------------------------------

    def __add__(self, other):
        if isinstance(other, LinearSystem):
            return self.parallel(other)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, LinearSystem):
            # Operator composition: (S1 * S2)(u) = S1(S2(u))
            return other.series(self)
        if _is_gain(other):
            return self.with_input_gain(other)
        return NotImplemented

    def __rmul__(self, other):
        if _is_gain(other):
            return self.with_output_gain(other)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, LinearSystem):
            return self.feedback(other)
        return NotImplemented

    def __or__(self, other):
        if isinstance(other, LinearSystem):
            return self.diagonal(other)
        return NotImplemented

    def __eq__(self, other):
        if not isinstance(other, LinearSystem):
            return NotImplemented
        return (
            self._A == other._A
            and self._B == other._B
            and self._C == other._C
            and self._D == other._D
            and self._x0 == other._x0
        )

    def __repr__(self):
        return (
            f"LinearSystem(nx={self.nx}, nu={self.nu}, ny={self.ny}, "
            f"semiring='{self.semiring}')"
        )


def syslin(
    A: StateMatrix,
    B: InputMatrix,
    C: OutputMatrix,
    D: Optional[ImplicitMatrix] = None,
    x0: Optional[InitialState] = None,
    semiring: Optional[Semiring] = None,
) -> LinearSystem:
    """Build a LinearSystem (functional alias of the constructor)."""
    return LinearSystem(A, B, C, D=D, x0=x0, semiring=semiring)


__all__ = ["LinearSystem", "syslin"]
