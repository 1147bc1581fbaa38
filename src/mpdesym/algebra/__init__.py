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
Semiring Algebra

Scalars, matrices, star closure and spectral analysis over the max-plus
and min-plus semirings.
"""

from .closure import least_fixed_point, plus, star
from .exceptions import (
    AmbiguousSpectrum,
    DimensionMismatch,
    DivergentSemiring,
    InvalidValue,
    IterationLimitExceeded,
    MaxPlusError,
    UndefinedSpectrum,
)
from .howard import eigen, howard
from .matrix import (
    DenseMatrix,
    SparseMatrix,
    TropicalMatrix,
    as_matrix,
    block,
    eye,
    from_array,
    from_scipy,
    ones,
    zeros,
)
from .operations import plustimes, semiring_add, semiring_mul
from .scalar import MaxPlus, MinPlus, Tropical, as_tropical, mi0, mi1, mp0, mp1

__all__ = [
    # Scalars
    "Tropical",
    "MaxPlus",
    "MinPlus",
    "as_tropical",
    "mp0",
    "mp1",
    "mi0",
    "mi1",
    # Matrices
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
    # Operations
    "semiring_add",
    "semiring_mul",
    "plustimes",
    "star",
    "plus",
    "least_fixed_point",
    "howard",
    "eigen",
    # Errors
    "MaxPlusError",
    "DimensionMismatch",
    "InvalidValue",
    "DivergentSemiring",
    "UndefinedSpectrum",
    "AmbiguousSpectrum",
    "IterationLimitExceeded",
]
