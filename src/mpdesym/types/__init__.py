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
Types Module - Type Definitions for mpdesym

Central import point for all type definitions.

Module Organization
------------------
- core: Classical arrays, semantic matrices, dimensions
- backends: Backend, semiring and storage literals
- spectral: Howard policy iteration results
- trajectories: Simulation results
"""

# ============================================================================
# Core Types
# ============================================================================

from .core import (
    ArrayLike,
    DimensionTuple,
    ImplicitMatrix,
    InitialState,
    InputMatrix,
    InputSequence,
    IntegerLike,
    MatrixLike,
    OutputMatrix,
    ScalarLike,
    StateMatrix,
)

# ============================================================================
# Configuration Literals
# ============================================================================

from .backends import (
    DEFAULT_BACKEND,
    DEFAULT_SEMIRING,
    DEFAULT_STORAGE,
    VALID_BACKENDS,
    VALID_SEMIRINGS,
    VALID_STORAGE,
    Backend,
    Semiring,
    StorageKind,
)

# ============================================================================
# Result Types
# ============================================================================

from .spectral import HowardResult, PolicyCycle
from .trajectories import SimulationResult

__all__ = [
    # Core
    "ArrayLike",
    "ScalarLike",
    "IntegerLike",
    "MatrixLike",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "ImplicitMatrix",
    "InitialState",
    "InputSequence",
    "DimensionTuple",
    # Literals
    "Backend",
    "Semiring",
    "StorageKind",
    "VALID_BACKENDS",
    "VALID_SEMIRINGS",
    "VALID_STORAGE",
    "DEFAULT_BACKEND",
    "DEFAULT_SEMIRING",
    "DEFAULT_STORAGE",
    # Results
    "HowardResult",
    "PolicyCycle",
    "SimulationResult",
]
