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
Semiring Errors

Every error raised by the algebra and the systems built on it derives
from MaxPlusError and from the closest builtin exception, so callers can
catch either ``MaxPlusError`` or e.g. ``ValueError``.
"""

from typing import Optional, Sequence

import numpy as np


class MaxPlusError(Exception):
    """Base class for semiring computation errors"""


class DimensionMismatch(MaxPlusError, ValueError):
    """Raised when operand shapes are incompatible"""


class InvalidValue(MaxPlusError, ValueError):
    """Raised when a value is not in ℝ ∪ {ε} (NaN, wrong-signed infinity)"""


class DivergentSemiring(MaxPlusError, ArithmeticError):
    """
    Raised when a star closure does not exist.

    In max-plus this happens when the precedence graph has a circuit of
    strictly positive weight (strictly negative in min-plus): the series
    I ⊕ A ⊕ A² ⊕ ... then grows without bound.

    Attributes
    ----------
    vertex : int or None
        A vertex lying on a divergent circuit
    """

    def __init__(self, message: str, vertex: Optional[int] = None):
        super().__init__(message)
        self.vertex = vertex


class UndefinedSpectrum(MaxPlusError, ValueError):
    """
    Raised when the eigenproblem has no finite solution.

    This happens when some vertex has no successor (an all-ε row), so
    the walk from that vertex cannot reach any circuit.

    Attributes
    ----------
    rows : list of int
        Rows without any non-ε entry
    """

    def __init__(self, message: str, rows: Sequence[int] = ()):
        super().__init__(message)
        self.rows = list(rows)


class AmbiguousSpectrum(MaxPlusError, ValueError):
    """
    Raised when a single eigenvalue is requested from a reducible matrix
    whose closed classes have different cycle times.

    Attributes
    ----------
    eigenvalues : np.ndarray
        Per-vertex cycle times, usable as a fallback
    """

    def __init__(self, message: str, eigenvalues: Optional[np.ndarray] = None):
        super().__init__(message)
        self.eigenvalues = eigenvalues


class IterationLimitExceeded(MaxPlusError, RuntimeError):
    """Raised when policy iteration does not converge within its bound"""


__all__ = [
    "MaxPlusError",
    "DimensionMismatch",
    "InvalidValue",
    "DivergentSemiring",
    "UndefinedSpectrum",
    "AmbiguousSpectrum",
    "IterationLimitExceeded",
]
