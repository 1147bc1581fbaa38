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
mpdesym - Max-Plus Discrete-Event Symulation

Max-plus and min-plus algebra for timed discrete-event systems:
- Semiring scalars and dense/sparse matrices
- Kleene star closure and least fixed points
- Eigenvalues and cycle times by policy iteration (Howard)
- Descriptor linear systems, their compositions and simulation
- Flowshop event graphs

Usage
-----
>>> import mpdesym as mp
>>>
>>> A = mp.from_array([[3, 7], [2, 4]])
>>> lam, v = mp.eigen(A)
>>> (A @ v) == (v * lam)
True
"""

__version__ = "0.1.0"

from .algebra import (
    AmbiguousSpectrum,
    DenseMatrix,
    DimensionMismatch,
    DivergentSemiring,
    InvalidValue,
    IterationLimitExceeded,
    MaxPlus,
    MaxPlusError,
    MinPlus,
    SparseMatrix,
    Tropical,
    TropicalMatrix,
    UndefinedSpectrum,
    as_matrix,
    as_tropical,
    block,
    eigen,
    eye,
    from_array,
    from_scipy,
    howard,
    least_fixed_point,
    mi0,
    mi1,
    mp0,
    mp1,
    ones,
    plus,
    plustimes,
    semiring_add,
    semiring_mul,
    star,
    zeros,
)
from .systems import LinearSystem, flowshop, syslin

__all__ = [
    "__version__",
    "Tropical",
    "MaxPlus",
    "MinPlus",
    "as_tropical",
    "mp0",
    "mp1",
    "mi0",
    "mi1",
    "TropicalMatrix",
    "DenseMatrix",
    "SparseMatrix",
    "from_array",
    "from_scipy",
    "as_matrix",
    "zeros",
    "eye",
    "ones",
    "block",
    "semiring_add",
    "semiring_mul",
    "plustimes",
    "star",
    "plus",
    "least_fixed_point",
    "howard",
    "eigen",
    "LinearSystem",
    "syslin",
    "flowshop",
    "MaxPlusError",
    "DimensionMismatch",
    "InvalidValue",
    "DivergentSemiring",
    "UndefinedSpectrum",
    "AmbiguousSpectrum",
    "IterationLimitExceeded",
]
