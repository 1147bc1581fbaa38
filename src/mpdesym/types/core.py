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
Core Types - Fundamental Building Blocks

Defines the most basic types used throughout the package:
- Multi-backend classical array types (NumPy, PyTorch, JAX)
- Scalar inputs accepted by the semiring constructors
- Semantic matrix types of descriptor systems (A, B, C, D, x0)
- System dimensions

Usage
-----
>>> from mpdesym.types.core import StateMatrix, InputMatrix, MatrixLike
>>>
>>> def explicit_state(A: StateMatrix, Dstar: StateMatrix) -> StateMatrix:
...     return Dstar @ A
"""

from typing import TYPE_CHECKING, NamedTuple, Union

import numpy as np

if TYPE_CHECKING:
    import jax.numpy as jnp
    import scipy.sparse
    import torch

    from mpdesym.algebra.matrix import TropicalMatrix
    from mpdesym.algebra.scalar import Tropical


# ============================================================================
# Basic Array Types - Multi-Backend Support
# ============================================================================

ArrayLike = Union[np.ndarray, "torch.Tensor", "jnp.ndarray"]
"""
Classical array in any backend.

Entries are read as classical reals: -inf is ε in max-plus, +inf is ε
in min-plus, NaN is always rejected.

Shape conventions:
- Scalars: () lifted to 1×1
- Vectors: (n,) lifted to an n×1 column
- Matrices: (m, n)
"""

ScalarLike = Union[float, int, np.number, "Tropical"]
"""
Scalar accepted wherever a semiring scalar is expected.

Plain reals are promoted through ``as_tropical``.

Examples
--------
>>> k: ScalarLike = 3.0
>>> k: ScalarLike = MaxPlus(3.0)
"""

IntegerLike = Union[int, np.integer]
"""
Integer value (matrix powers).

Examples
--------
>>> k: IntegerLike = 3
"""

MatrixLike = Union["TropicalMatrix", ArrayLike, "scipy.sparse.spmatrix", list]
"""
Anything ``as_matrix`` can lift into a semiring matrix.

Examples
--------
>>> A: MatrixLike = [[1, 2], [3, 4]]
>>> A: MatrixLike = np.array([[1.0, -np.inf], [0.0, 2.0]])
"""


# ============================================================================
# Matrix Types - Semantic Naming by Role
# ============================================================================

StateMatrix = MatrixLike
"""
State-transition matrix A (nx, nx): x(n) ⊇ A ⊗ x(n-1).
"""

InputMatrix = MatrixLike
"""
Input matrix B (nx, nu): x(n) ⊇ B ⊗ u(n).
"""

OutputMatrix = MatrixLike
"""
Output matrix C (ny, nx): y(n) = C ⊗ x(n).
"""

ImplicitMatrix = MatrixLike
"""
Implicit (same-instant) matrix D (nx, nx): x(n) ⊇ D ⊗ x(n).

Requires a star closure D* to be eliminated.
"""

InitialState = MatrixLike
"""
Initial state x0 (nx, 1).
"""

InputSequence = MatrixLike
"""
Input sequence (nu, n_steps): column k is u(k+1).
"""


# ============================================================================
# Dimensions
# ============================================================================


class DimensionTuple(NamedTuple):
    """
    Descriptor system dimensions.

    Examples
    --------
    >>> dims = DimensionTuple(nx=2, nu=1, ny=1)
    >>> dims.nx
    2
    """

    nx: int
    nu: int
    ny: int


__all__ = [
    # Basic arrays
    "ArrayLike",
    "ScalarLike",
    "IntegerLike",
    "MatrixLike",
    # Matrices
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "ImplicitMatrix",
    "InitialState",
    "InputSequence",
    # Dimensions
    "DimensionTuple",
]
