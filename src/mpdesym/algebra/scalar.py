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
Semiring Scalars

Immutable scalars of the max-plus and min-plus semirings:
- MaxPlus: values in ℝ ∪ {ε = -∞}, ⊕ = max, ⊗ = +
- MinPlus: values in ℝ ∪ {ε = +∞}, ⊕ = min, ⊗ = +

Mathematical Background
----------------------
Both semirings are idempotent (a ⊕ a = a), commutative, and ε is
absorbing for ⊗ (ε ⊗ a = ε). There is no subtraction nor division:
a ⊕ x = b has no solution in general. The natural order of the reals is
kept, so ε is the minimum in max-plus and the maximum in min-plus.

The ``+`` and ``*`` operators are sugar for ``semiring_add`` and
``semiring_mul``; ``-`` and ``/`` are deliberately not defined. Classical
values are recovered explicitly with ``plustimes``.

Usage
-----
>>> from mpdesym.algebra.scalar import MaxPlus, mp0, mp1
>>>
>>> MaxPlus(2) + MaxPlus(3)
MaxPlus(3.0)
>>> MaxPlus(2) * 3
MaxPlus(5.0)
>>> mp0 * MaxPlus(7)
MaxPlus(-inf)
"""

import numbers
from typing import Optional, Type

import numpy as np

from mpdesym.algebra.exceptions import InvalidValue
from mpdesym.algebra.semiring import MAXPLUS, MINPLUS, SemiringOps, get_semiring
from mpdesym.types.backends import DEFAULT_SEMIRING, Semiring
from mpdesym.types.core import ScalarLike


def _classical_value(value, ops: SemiringOps) -> float:
    """Validate a classical number as a member of the semiring."""
    if isinstance(value, Tropical):
        if value.semiring != ops.name:
            raise TypeError(
                f"Cannot convert a {value.semiring} scalar to {ops.name}; "
                "use dual() for an explicit conversion"
            )
        return value.value
    if isinstance(value, (str, bytes)):
        raise TypeError(f"Cannot interpret {type(value).__name__} as a {ops.name} scalar")
    if isinstance(value, (complex, np.complexfloating)):
        raise InvalidValue(f"Complex value {value!r} is not a {ops.name} scalar")

    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise TypeError(
            f"Cannot interpret {type(value).__name__} as a {ops.name} scalar"
        ) from e

    if np.isnan(v):
        raise InvalidValue(f"NaN is not a {ops.name} scalar")
    if v == ops.top:
        raise InvalidValue(f"{v} is not a {ops.name} scalar (ε is {ops.zero})")
    return v


class Tropical:
    """
    Base class of semiring scalars.

    Subclasses bind a semiring through the ``_ops`` class attribute.
    Instances are immutable and hashable.

    Parameters
    ----------
    value : ScalarLike
        Classical real (the semiring's infinity is ε) or a scalar of the
        same semiring

    Raises
    ------
    InvalidValue
        If value is NaN or the infinity of the opposite sign
    TypeError
        If value is not numeric or belongs to the other semiring
    """

    __slots__ = ("_value",)
    _ops: SemiringOps = MAXPLUS

    # Make NumPy defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(self, value: ScalarLike):
        self._value = _classical_value(value, self._ops)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls) -> "Tropical":
        """ε, neutral for ⊕ and absorbing for ⊗."""
        return cls(cls._ops.zero)

    @classmethod
    def one(cls) -> "Tropical":
        """e = 0, neutral for ⊗."""
        return cls(cls._ops.one)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def value(self) -> float:
        """Classical value (ε as the semiring's infinity)."""
        return self._value

    @property
    def semiring(self) -> str:
        return self._ops.name

    def is_zero(self) -> bool:
        return self._value == self._ops.zero

    def is_one(self) -> bool:
        return self._value == self._ops.one

    # ------------------------------------------------------------------
    # Semiring operations
    # ------------------------------------------------------------------

    def _coerce(self, other) -> "Tropical":
        if isinstance(other, Tropical):
            if other.semiring != self.semiring:
                raise TypeError(
                    f"Cannot combine {self.semiring} and {other.semiring} scalars"
                )
            return other
        return type(self)(other)

    def add(self, other: ScalarLike) -> "Tropical":
        """a ⊕ b"""
        other = self._coerce(other)
        return type(self)(self._ops.add(self._value, other._value))

    def mul(self, other: ScalarLike) -> "Tropical":
        """a ⊗ b, with ε absorbing."""
        other = self._coerce(other)
        if self.is_zero() or other.is_zero():
            return self.zero()
        return type(self)(self._value + other._value)

    def power(self, k) -> "Tropical":
        """
        a ⊗ a ⊗ ... ⊗ a (k times), i.e. k·a in classical algebra.

        Real exponents k ≥ 0 are accepted; a⁰ = e even for a = ε.

        Raises
        ------
        InvalidValue
            If k is negative (ε has no inverse and division is not part
            of the semiring)
        """
        if not isinstance(k, (numbers.Real, np.number)) or isinstance(k, bool):
            raise TypeError(f"Exponent must be a real number, got {type(k).__name__}")
        if np.isnan(k) or k < 0:
            raise InvalidValue(f"Exponent must be non-negative, got {k}")
        if k == 0:
            return self.one()
        if self.is_zero():
            return self.zero()
        return type(self)(self._value * float(k))

    def dual(self) -> "Tropical":
        """
        Same finite value in the other semiring, ε mapped to ε.

        Examples
        --------
        >>> MaxPlus(3).dual()
        MinPlus(3.0)
        >>> mp0.dual()
        MinPlus(inf)
        """
        target = MinPlus if isinstance(self, MaxPlus) else MaxPlus
        if self.is_zero():
            return target.zero()
        return target(self._value)

    # ------------------------------------------------------------------
    # Operator sugar
    # ------------------------------------------------------------------

    def _is_operand(self, other) -> bool:
        if isinstance(other, Tropical):
            return True
        return isinstance(other, (numbers.Real, np.number)) and not isinstance(
            other, np.complexfloating
        )

    def __add__(self, other):
        if not self._is_operand(other):
            return NotImplemented
        return self.add(other)

    __radd__ = __add__

    def __mul__(self, other):
        if not self._is_operand(other):
            return NotImplemented
        return self.mul(other)

    __rmul__ = __mul__

    def __pow__(self, k):
        return self.power(k)

    # ------------------------------------------------------------------
    # Comparison and conversion
    # ------------------------------------------------------------------

    def _compare_value(self, other):
        if isinstance(other, Tropical):
            if other.semiring != self.semiring:
                raise TypeError(
                    f"Cannot compare {self.semiring} and {other.semiring} scalars"
                )
            return other._value
        if isinstance(other, (numbers.Real, np.number)):
            return float(other)
        return None

    def __eq__(self, other):
        if isinstance(other, Tropical) and other.semiring != self.semiring:
            return False
        v = self._compare_value(other)
        if v is None:
            return NotImplemented
        return self._value == v

    def __lt__(self, other):
        v = self._compare_value(other)
        return NotImplemented if v is None else self._value < v

    def __le__(self, other):
        v = self._compare_value(other)
        return NotImplemented if v is None else self._value <= v

    def __gt__(self, other):
        v = self._compare_value(other)
        return NotImplemented if v is None else self._value > v

    def __ge__(self, other):
        v = self._compare_value(other)
        return NotImplemented if v is None else self._value >= v

    def __hash__(self):
        return hash(self._value)

    def __float__(self):
        return self._value

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r})"

    def __str__(self):
        return "ε" if self.is_zero() else f"{self._value:g}"


class MaxPlus(Tropical):
    """
    Max-plus scalar: ⊕ = max, ⊗ = +, ε = -∞.

    Examples
    --------
    >>> MaxPlus(1) + MaxPlus(4)
    MaxPlus(4.0)
    >>> MaxPlus(1) * MaxPlus(4)
    MaxPlus(5.0)
    """

    __slots__ = ()
    _ops = MAXPLUS


class MinPlus(Tropical):
    """
    Min-plus scalar: ⊕ = min, ⊗ = +, ε = +∞.

    Examples
    --------
    >>> MinPlus(1) + MinPlus(4)
    MinPlus(1.0)
    """

    __slots__ = ()
    _ops = MINPLUS


_SCALAR_TYPES = {"maxplus": MaxPlus, "minplus": MinPlus}


def scalar_type(semiring: Semiring) -> Type[Tropical]:
    """Scalar class of a semiring ('maxplus' → MaxPlus)."""
    return _SCALAR_TYPES[get_semiring(semiring).name]


def as_tropical(x: ScalarLike, semiring: Optional[Semiring] = None) -> Tropical:
    """
    Convert a classical number or a semiring scalar to a semiring scalar.

    This is the single promotion point used by every API accepting mixed
    classical/semiring scalars.

    Args:
        x: Classical real or semiring scalar
        semiring: Target semiring; None keeps the semiring of ``x`` and
            uses max-plus for classical numbers

    Returns:
        Semiring scalar

    Raises:
        InvalidValue: NaN or wrong-signed infinity
        TypeError: Non-numeric input or semiring mismatch

    Examples:
        >>> as_tropical(3)
        MaxPlus(3.0)
        >>> as_tropical(float('inf'), 'minplus')
        MinPlus(inf)
    """
    if semiring is None:
        if isinstance(x, Tropical):
            return x
        semiring = DEFAULT_SEMIRING
    cls = scalar_type(semiring)
    if isinstance(x, cls):
        return x
    return cls(x)


def plustimes(x: ScalarLike) -> float:
    """
    Classical value of a scalar (escape hatch to ordinary arithmetic).

    Examples:
        >>> plustimes(MaxPlus(3)) - 1
        2.0
    """
    if isinstance(x, Tropical):
        return x.value
    return float(x)


mp0 = MaxPlus.zero()
"""Max-plus ε (-∞)."""

mp1 = MaxPlus.one()
"""Max-plus e (0)."""

mi0 = MinPlus.zero()
"""Min-plus ε (+∞)."""

mi1 = MinPlus.one()
"""Min-plus e (0)."""


__all__ = [
    "Tropical",
    "MaxPlus",
    "MinPlus",
    "scalar_type",
    "as_tropical",
    "plustimes",
    "mp0",
    "mp1",
    "mi0",
    "mi1",
]
