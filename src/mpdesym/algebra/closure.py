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
Kleene Star Closure

Star closure of semiring scalars and square matrices:

    A* = I ⊕ A ⊕ A² ⊕ A³ ⊕ ...

Mathematical Background
----------------------
A*[i, j] is the weight of the best path from i to j in the precedence
graph of A (the empty path having weight e on the diagonal). The series
converges exactly when no circuit is strictly improving: no circuit of
positive weight in max-plus, none of negative weight in min-plus. It
then equals I ⊕ A ⊕ ... ⊕ A^(n-1) and is computed by Floyd-Warshall in
O(n³):

    for k: C[i, j] ← C[i, j] ⊕ C[i, k] ⊗ C[k, j]

Before pivoting on k, C[k, k] holds the best circuit through k whose
other vertices are below k, so every improving circuit is detected at
its highest vertex.

Applications:
- x = A ⊗ x ⊕ b has least solution x = A* ⊗ b
- Implicit descriptor equations x = D ⊗ x ⊕ ... are made explicit with D*

Usage
-----
>>> from mpdesym.algebra.closure import star, plus
>>>
>>> star(from_array([[-1, 2], [-np.inf, -3]])).to_numpy()
array([[  0.,   2.],
       [-inf,   0.]])
>>> star(MaxPlus(2))
Traceback (most recent call last):
    ...
DivergentSemiring: ...
"""

import numbers
from typing import Union

import numpy as np

from mpdesym.algebra.exceptions import DimensionMismatch, DivergentSemiring
from mpdesym.algebra.matrix import TropicalMatrix, _check_range, _wrap, as_matrix
from mpdesym.algebra.scalar import Tropical, as_tropical
from mpdesym.algebra.semiring import SemiringOps
from mpdesym.types.core import MatrixLike, ScalarLike

DEFAULT_CYCLE_TOLERANCE = 0.0
"""Relative round-off allowance on circuit weights; 0.0 is the exact test."""


def _is_scalar(x) -> bool:
    if isinstance(x, Tropical):
        return True
    return isinstance(x, (numbers.Real, np.number))


def _cycle_threshold(C: np.ndarray, tol: float) -> float:
    """Largest circuit improvement accepted, scaled to the finite entries of C."""
    if tol <= 0.0:
        return 0.0
    finite = C[np.isfinite(C)]
    if finite.size == 0:
        return 0.0
    return float(finite.max() - finite.min() + 1.0) * tol


def _closure_values(C: np.ndarray, ops: SemiringOps, tol: float) -> np.ndarray:
    """Floyd-Warshall closure of a square classical array, in place."""
    n = C.shape[0]
    threshold = _cycle_threshold(C, tol)
    for k in range(n):
        # sign maps min-plus onto max-plus, and ε onto -inf
        if ops.sign * C[k, k] > threshold:
            raise DivergentSemiring(
                f"Star closure diverges: vertex {k} lies on a circuit of weight "
                f"{C[k, k]:g} ({'positive' if ops.sign > 0 else 'negative'} "
                f"circuits are not allowed in {ops.name})",
                vertex=k,
            )
        with np.errstate(over="ignore"):
            ops.ufunc(C, C[:, k : k + 1] + C[k : k + 1, :], out=C)
        _check_range(C, ops)
    np.fill_diagonal(C, ops.ufunc(np.diagonal(C), ops.one))
    return C


def star(
    A: Union[ScalarLike, MatrixLike], tol: float = DEFAULT_CYCLE_TOLERANCE
) -> Union[Tropical, TropicalMatrix]:
    """
    Kleene star A* = I ⊕ A ⊕ A² ⊕ ...

    Args:
        A: Scalar or square matrix (classical data is lifted in max-plus)
        tol: Relative round-off allowance. Circuits improving on e by at
            most (max(A) - min(A) + 1) * tol over the finite entries are
            accepted. The default 0.0 rejects every strictly improving
            circuit

    Returns:
        Scalar for scalar input; matrix with the storage kind of ``A``

    Raises:
        DimensionMismatch: A is not square
        DivergentSemiring: Some circuit is strictly improving, so the
            series does not converge

    Examples:
        >>> star(MaxPlus(-1))
        MaxPlus(0.0)
        >>> star(zeros(2)) == eye(2)
        True
    """
    if _is_scalar(A):
        x = as_tropical(A)
        if x._ops.sign * x.value > tol:
            raise DivergentSemiring(f"Star closure of {x!r} diverges", vertex=0)
        return x.one()

    A = as_matrix(A)
    if not A.is_square():
        raise DimensionMismatch(f"Matrix must be square, got shape {A.shape}")
    values = _closure_values(A.to_numpy(), A._ops, tol)
    return _wrap(values, A._ops, A.storage)


def plus(
    A: Union[ScalarLike, MatrixLike], tol: float = DEFAULT_CYCLE_TOLERANCE
) -> Union[Tropical, TropicalMatrix]:
    """
    Strict closure A⁺ = A ⊗ A* = A ⊕ A² ⊕ ...

    A⁺[i, j] is the weight of the best non-empty path from i to j; its
    diagonal holds the best circuit through each vertex.

    Examples:
        >>> plus(from_array([[-1, 2], [-np.inf, -3]])).to_numpy()
        array([[ -1.,   2.],
               [-inf,  -3.]])
    """
    if _is_scalar(A):
        x = as_tropical(A)
        return x.mul(star(x, tol=tol))
    A = as_matrix(A)
    return A.matmul(star(A, tol=tol))


def least_fixed_point(
    A: MatrixLike, b: MatrixLike, tol: float = DEFAULT_CYCLE_TOLERANCE
) -> TropicalMatrix:
    """
    Least solution x = A* ⊗ b of the equation x = A ⊗ x ⊕ b.

    Args:
        A: Square (n, n) matrix
        b: (n, k) matrix or length-n vector (lifted in the semiring of A)

    Raises:
        DimensionMismatch: A is not square or b has the wrong height
        DivergentSemiring: A* does not exist

    Examples:
        >>> A = from_array([[-1, 2], [-np.inf, -3]])
        >>> least_fixed_point(A, [0, 1]).to_numpy()
        array([[3.],
               [1.]])
    """
    A = as_matrix(A)
    b = as_matrix(b, semiring=A.semiring)
    return star(A, tol=tol).matmul(b)


__all__ = ["DEFAULT_CYCLE_TOLERANCE", "star", "plus", "least_fixed_point"]
