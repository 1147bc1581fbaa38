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
Unit Tests for Types Module

Tests cover:
- Backend, semiring and storage literals and their defaults
- DimensionTuple structure
- HowardResult and SimulationResult produced by the algorithms
"""

import numpy as np
import pytest

from mpdesym.algebra.howard import howard
from mpdesym.systems.syslin import LinearSystem
from mpdesym.types import core
from mpdesym.types import (
    DEFAULT_BACKEND,
    DEFAULT_SEMIRING,
    DEFAULT_STORAGE,
    VALID_BACKENDS,
    VALID_SEMIRINGS,
    VALID_STORAGE,
    DimensionTuple,
    HowardResult,
    SimulationResult,
)

# ============================================================================
# Test Literals
# ============================================================================


class TestLiterals:
    """Test configuration literals."""

    def test_defaults_are_valid(self):
        assert DEFAULT_BACKEND in VALID_BACKENDS
        assert DEFAULT_SEMIRING in VALID_SEMIRINGS
        assert DEFAULT_STORAGE in VALID_STORAGE

    def test_defaults(self):
        assert DEFAULT_BACKEND == "numpy"
        assert DEFAULT_SEMIRING == "maxplus"
        assert DEFAULT_STORAGE == "dense"

    def test_semirings(self):
        assert set(VALID_SEMIRINGS) == {"maxplus", "minplus"}


# ============================================================================
# Test Structures
# ============================================================================


class TestCoreAliases:
    """Test the exported alias set."""

    def test_exported_aliases(self):
        assert set(core.__all__) == {
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
        }
        for name in core.__all__:
            assert hasattr(core, name)


class TestDimensionTuple:
    """Test DimensionTuple."""

    def test_fields(self):
        dims = DimensionTuple(nx=3, nu=1, ny=2)
        assert dims.nx == 3
        assert dims.nu == 1
        assert dims.ny == 2

    def test_unpacking(self):
        nx, nu, ny = DimensionTuple(4, 2, 1)
        assert (nx, nu, ny) == (4, 2, 1)

    def test_immutable(self):
        dims = DimensionTuple(1, 1, 1)
        with pytest.raises(AttributeError):
            dims.nx = 2


class TestResultTypes:
    """Result dictionaries returned by the algorithms."""

    def test_howard_result(self):
        result: HowardResult = howard([[3, 7], [2, 4]])
        assert set(result) == set(HowardResult.__annotations__)
        assert isinstance(result["eigenvalues"], np.ndarray)
        assert isinstance(result["components"], int)

    def test_simulation_result(self):
        S = LinearSystem([[1]], [[0]], [[0]])
        result: SimulationResult = S.simulate([[0, 1]])
        assert set(result) == set(SimulationResult.__annotations__)
        assert result["n_steps"] == 2
