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
Backend, Semiring and Storage Types

Defines the literal identifiers used to configure computations:
- Array backends accepted at the construction/export boundary
- Semiring selection (max-plus or min-plus)
- Matrix storage kind (dense or sparse)

Usage
-----
>>> from mpdesym.types.backends import Backend, Semiring, StorageKind
>>>
>>> def lift(
...     data,
...     semiring: Semiring = 'maxplus',
...     storage: StorageKind = 'dense',
... ):
...     pass
"""

from typing import Literal, Tuple

# ============================================================================
# Backend Types
# ============================================================================

Backend = Literal["numpy", "torch", "jax"]
"""
Backend identifier for classical arrays.

Valid values:
- 'numpy': NumPy arrays (default, used internally for dense storage)
- 'torch': PyTorch tensors (converted on input, produced on export)
- 'jax': JAX arrays (converted on input, produced on export)

Semiring kernels always run on NumPy; other backends only appear at the
boundary (``from_array`` / ``to_array``).

Examples
--------
>>> backend: Backend = 'torch'
>>> A.to_array(backend)
"""

VALID_BACKENDS: Tuple[str, ...] = ("numpy", "torch", "jax")
DEFAULT_BACKEND: Backend = "numpy"


# ============================================================================
# Semiring Types
# ============================================================================

Semiring = Literal["maxplus", "minplus"]
"""
Idempotent semiring identifier.

Valid values:
- 'maxplus': ⊕ = max, ⊗ = +, ε = -∞, e = 0
- 'minplus': ⊕ = min, ⊗ = +, ε = +∞, e = 0

Values of different semirings never mix implicitly.
"""

VALID_SEMIRINGS: Tuple[str, ...] = ("maxplus", "minplus")
DEFAULT_SEMIRING: Semiring = "maxplus"


# ============================================================================
# Storage Types
# ============================================================================

StorageKind = Literal["dense", "sparse"]
"""
Matrix storage identifier.

Valid values:
- 'dense': every entry stored, ε encoded as the semiring's infinity
- 'sparse': only non-ε entries stored (explicit zeros of classical
  algebra are semiring units and ARE stored)

Binary operations yield sparse results only when both operands are
sparse. Unary operations and scalar broadcasts keep the storage kind.
"""

VALID_STORAGE: Tuple[str, ...] = ("dense", "sparse")
DEFAULT_STORAGE: StorageKind = "dense"


__all__ = [
    "Backend",
    "VALID_BACKENDS",
    "DEFAULT_BACKEND",
    "Semiring",
    "VALID_SEMIRINGS",
    "DEFAULT_SEMIRING",
    "StorageKind",
    "VALID_STORAGE",
    "DEFAULT_STORAGE",
]
