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
Semiring Descriptors

Numerical description of the two idempotent semirings on the extended
reals. Scalars and matrices store classical floats and look up their
⊕ operation and ε encoding here.

Mathematical Background
----------------------
Max-plus: (ℝ ∪ {-∞}, max, +), ε = -∞, e = 0
Min-plus: (ℝ ∪ {+∞}, min, +), ε = +∞, e = 0

Each semiring uses exactly one infinity, so classical float addition
already gives ε ⊗ x = ε and never produces NaN on valid data.
"""

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from mpdesym.types.backends import VALID_SEMIRINGS, Semiring


@dataclass(frozen=True)
class SemiringOps:
    """
    Operations of one idempotent semiring on classical floats.

    Attributes
    ----------
    name : Semiring
        'maxplus' or 'minplus'
    zero : float
        ε, the ⊕-neutral and ⊗-absorbing element
    top : float
        The infinity that is NOT a member of the semiring
    add : Callable
        Scalar ⊕ (builtin max or min)
    ufunc : np.ufunc
        Elementwise ⊕ on arrays (np.maximum or np.minimum)
    sign : float
        +1 for max-plus, -1 for min-plus (maps the semiring onto max-plus)
    """

    name: str
    zero: float
    top: float
    add: Callable[[float, float], float]
    ufunc: np.ufunc
    sign: float
    one: float = 0.0

    def reduce(self, values: np.ndarray, axis=None) -> np.ndarray:
        """⊕-reduction with ε as the value of empty reductions."""
        return self.ufunc.reduce(values, axis=axis, initial=self.zero)

    def is_zero(self, values):
        """Boolean mask of the ε entries."""
        return np.asarray(values) == self.zero


MAXPLUS = SemiringOps(
    name="maxplus", zero=-np.inf, top=np.inf, add=max, ufunc=np.maximum, sign=1.0
)
MINPLUS = SemiringOps(
    name="minplus", zero=np.inf, top=-np.inf, add=min, ufunc=np.minimum, sign=-1.0
)

_SEMIRINGS: Dict[str, SemiringOps] = {"maxplus": MAXPLUS, "minplus": MINPLUS}


def get_semiring(name: Semiring) -> SemiringOps:
    """
    Look up a semiring by name.

    Raises
    ------
    ValueError
        If name is not a known semiring
    """
    try:
        return _SEMIRINGS[name]
    except KeyError:
        raise ValueError(
            f"Unknown semiring '{name}'. Valid semirings: {list(VALID_SEMIRINGS)}"
        ) from None


__all__ = ["SemiringOps", "MAXPLUS", "MINPLUS", "get_semiring"]
