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
Semiring Operations

Named entry points for ⊕ and ⊗ on any combination of scalars and
matrices. Operators on MaxPlus/MinPlus/TropicalMatrix are sugar over the
same code paths.

Usage
-----
>>> from mpdesym.algebra.operations import semiring_add, semiring_mul
>>>
>>> semiring_add(2, 5)
MaxPlus(5.0)
>>> semiring_mul(2, 5, semiring='minplus')
MinPlus(7.0)
>>> semiring_mul(A, B)      # matrix product
>>> semiring_mul(A, 3)      # broadcast
"""

from typing import Optional, Union

import numpy as np

from mpdesym.algebra.matrix import TropicalMatrix
from mpdesym.algebra.scalar import Tropical, as_tropical
from mpdesym.algebra.scalar import plustimes as _scalar_plustimes
from mpdesym.types.backends import Semiring
from mpdesym.types.core import ScalarLike

Operand = Union[ScalarLike, TropicalMatrix]


def _scalar_pair(a, b, semiring: Optional[Semiring]):
    # The semiring of a semiring operand wins over the default
    if semiring is None:
        for x in (a, b):
            if isinstance(x, Tropical):
                semiring = x.semiring
                break
    return as_tropical(a, semiring), as_tropical(b, semiring)


def _check_matrix_semiring(a, b, semiring: Optional[Semiring]) -> None:
    if semiring is None:
        return
    for x in (a, b):
        if isinstance(x, TropicalMatrix) and x.semiring != semiring:
            raise TypeError(
                f"semiring='{semiring}' disagrees with a {x.semiring} matrix operand"
            )


def semiring_add(a: Operand, b: Operand, semiring: Optional[Semiring] = None) -> Operand:
    """
    a ⊕ b for scalars, matrices, or a matrix and a scalar (broadcast).

    Args:
        a, b: Operands; classical numbers are promoted with ``as_tropical``
        semiring: Semiring used when both operands are classical numbers
            (default max-plus); must agree with any matrix operand

    Returns:
        Scalar when both operands are scalars, matrix otherwise

    Raises:
        DimensionMismatch: Matrices of different shapes
        TypeError: Operands of different semirings, or ``semiring``
            disagreeing with a matrix operand
    """
    _check_matrix_semiring(a, b, semiring)
    if isinstance(a, TropicalMatrix):
        return a.add(b)
    if isinstance(b, TropicalMatrix):
        return b.add(a)
    a, b = _scalar_pair(a, b, semiring)
    return a.add(b)


def semiring_mul(a: Operand, b: Operand, semiring: Optional[Semiring] = None) -> Operand:
    """
    a ⊗ b: scalar product, matrix product, or scalar broadcast.

    Raises:
        DimensionMismatch: Matrix inner dimensions differ
        TypeError: Operands of different semirings, or ``semiring``
            disagreeing with a matrix operand
    """
    _check_matrix_semiring(a, b, semiring)
    if isinstance(a, TropicalMatrix):
        return a.mul(b)
    if isinstance(b, TropicalMatrix):
        # Scalars commute with every entry
        return b.mul(a)
    a, b = _scalar_pair(a, b, semiring)
    return a.mul(b)


def plustimes(x: Operand):
    """
    Classical value(s) of a scalar or a matrix.

    Returns a float for scalars and a NumPy array for matrices, with ε as
    the semiring's infinity. This is the explicit exit to ordinary
    arithmetic (where subtraction and division exist).
    """
    if isinstance(x, TropicalMatrix):
        return x.to_numpy()
    if isinstance(x, np.ndarray):
        return x.astype(np.float64)
    return _scalar_plustimes(x)


__all__ = ["semiring_add", "semiring_mul", "plustimes"]
