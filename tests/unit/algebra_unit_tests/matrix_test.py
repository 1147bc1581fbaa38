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
Unit Tests for Semiring Matrices

Tests cover:
- Lifting classical data (lists, NumPy, SciPy) and validation
- Dense and sparse storage, ε never stored in sparse form
- ⊕, matrix product, scalar broadcast, elementwise ⊗, powers
- Storage propagation rules
- Entry access, slicing, transposition, duality
- Constructors (zeros, eye, ones, block)
- Conversions to classical arrays
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from scipy import sparse

from mpdesym.algebra.exceptions import DimensionMismatch, InvalidValue
from mpdesym.algebra.matrix import (
    DenseMatrix,
    SparseMatrix,
    as_matrix,
    block,
    eye,
    from_array,
    from_scipy,
    ones,
    zeros,
)
from mpdesym.algebra.operations import plustimes, semiring_add, semiring_mul
from mpdesym.algebra.scalar import MaxPlus, MinPlus, mp0

try:
    import torch

    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False

EPS = -np.inf

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def A():
    """Matrix with a single ε entry."""
    return from_array([[4, 3], [7, EPS]])


@pytest.fixture
def A_sparse():
    """Same matrix in sparse storage."""
    return from_array([[4, 3], [7, EPS]]).to_sparse()


@pytest.fixture
def chain():
    """Sparse 3×3 chain 0 → 1 → 2 with an e entry."""
    return SparseMatrix((3, 3), entries={(0, 1): 2.0, (1, 2): 0.0})


# ============================================================================
# Construction and Validation
# ============================================================================


class TestConstruction:
    """Test lifting classical data."""

    def test_from_nested_lists(self, A):
        assert isinstance(A, DenseMatrix)
        assert A.shape == (2, 2)
        assert A.semiring == "maxplus"
        assert A[1, 1] == mp0

    def test_from_numpy_copies(self):
        data = np.array([[1.0, 2.0], [3.0, 4.0]])
        M = from_array(data)
        data[0, 0] = 100.0
        assert M[0, 0] == MaxPlus(1)

    def test_vector_becomes_column(self):
        v = from_array([1, 2, 3])
        assert v.shape == (3, 1)

    def test_scalar_becomes_1x1(self):
        assert from_array(5).shape == (1, 1)

    def test_mixed_semiring_scalars(self):
        M = from_array([[MaxPlus(1), 2], [mp0, 0]])
        assert_array_equal(M.to_numpy(), [[1, 2], [EPS, 0]])

    def test_nan_rejected(self):
        with pytest.raises(InvalidValue, match="NaN"):
            from_array([[1, np.nan]])

    def test_wrong_infinity_rejected(self):
        with pytest.raises(InvalidValue):
            from_array([[1, np.inf]])
        with pytest.raises(InvalidValue):
            from_array([[1, -np.inf]], semiring="minplus")

    def test_minplus_epsilon(self):
        M = from_array([[1, np.inf]], semiring="minplus")
        assert M.nnz == 1
        assert M[0, 1].is_zero()

    def test_complex_rejected(self):
        with pytest.raises(InvalidValue):
            from_array(np.array([[1 + 1j]]))

    def test_strings_rejected(self):
        with pytest.raises(TypeError):
            from_array([["a", "b"]])

    def test_three_dimensions_rejected(self):
        with pytest.raises(DimensionMismatch):
            from_array(np.zeros((2, 2, 2)))

    def test_unknown_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            from_array([[1]], storage="csr")

    def test_unknown_semiring(self):
        with pytest.raises(ValueError, match="Unknown semiring"):
            from_array([[1]], semiring="plustimes")

    def test_sparse_density_warning(self):
        with pytest.warns(UserWarning, match="Sparse storage"):
            from_array([[1, 2], [3, 4]], storage="sparse")

    def test_sparse_of_sparse_data_is_quiet(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            from_array([[1, EPS], [EPS, EPS]], storage="sparse")

    def test_as_matrix_passthrough(self, A):
        assert as_matrix(A) is A
        assert as_matrix(A, storage="sparse").storage == "sparse"

    def test_as_matrix_semiring_mismatch(self, A):
        with pytest.raises(TypeError):
            as_matrix(A, semiring="minplus")

    @pytest.mark.skipif(not HAS_TORCH, reason="PyTorch not installed")
    def test_from_torch(self):
        M = from_array(torch.tensor([[1.0, 2.0]]))
        assert_array_equal(M.to_numpy(), [[1.0, 2.0]])


class TestSparseStorage:
    """Test the dict-of-rows storage invariant."""

    def test_epsilon_never_stored(self, chain):
        assert chain.nnz == 2
        chain[0, 1] = EPS
        assert chain.nnz == 1
        assert chain[0, 1].is_zero()

    def test_one_is_stored(self, chain):
        assert (1, 2, 0.0) in list(chain.iter_entries())

    def test_entries_with_epsilon_dropped(self):
        S = SparseMatrix((2, 2), entries={(0, 0): EPS, (1, 1): 3})
        assert S.nnz == 1

    def test_iter_entries_order(self):
        S = SparseMatrix((2, 3), entries={(1, 0): 1, (0, 2): 2, (0, 1): 3})
        assert list(S.iter_entries()) == [(0, 1, 3.0), (0, 2, 2.0), (1, 0, 1.0)]

    def test_dense_and_sparse_agree(self, A, A_sparse):
        assert A == A_sparse
        assert A.nnz == A_sparse.nnz == 3

    def test_invalid_shape(self):
        with pytest.raises(DimensionMismatch):
            SparseMatrix((-1, 2))


# ============================================================================
# Semiring Algebra
# ============================================================================


class TestAddition:
    """Test ⊕ between matrices and with scalars."""

    def test_entrywise_max(self, A):
        B = from_array([[1, 5], [EPS, 2]])
        assert_array_equal((A + B).to_numpy(), [[4, 5], [7, 2]])

    def test_identity_added(self, A):
        assert_array_equal((A + eye(2)).to_numpy(), [[4, 3], [7, 0]])

    def test_zero_is_neutral(self, A):
        assert A + zeros(2) == A

    def test_scalar_broadcast(self, A):
        assert_array_equal((A + 5).to_numpy(), [[5, 5], [7, 5]])
        assert_array_equal((5 + A).to_numpy(), [[5, 5], [7, 5]])

    def test_shape_mismatch(self, A):
        with pytest.raises(DimensionMismatch):
            A + zeros(3)

    def test_semiring_mismatch(self, A):
        with pytest.raises(TypeError):
            A + from_array([[1, 2], [3, 4]], semiring="minplus")

    def test_minplus_entrywise_min(self):
        X = from_array([[1, np.inf], [3, 4]], semiring="minplus")
        Y = from_array([[2, 0], [np.inf, 1]], semiring="minplus")
        assert_array_equal((X + Y).to_numpy(), [[1, 0], [3, 1]])


class TestProducts:
    """Test the matrix product, broadcast and elementwise ⊗."""

    def test_square(self, A):
        assert_array_equal((A @ A).to_numpy(), [[10, 7], [11, 10]])

    def test_identity_neutral(self, A):
        assert A @ eye(2) == A
        assert eye(2) @ A == A

    def test_zero_absorbing(self, A):
        assert (A @ zeros(2)).nnz == 0

    def test_rectangular(self):
        X = from_array([[1, 2, 3]])
        Y = from_array([[0], [EPS], [-1]])
        assert_array_equal((X @ Y).to_numpy(), [[2]])
        assert (Y @ X).shape == (3, 3)

    def test_inner_dimension_mismatch(self, A):
        with pytest.raises(DimensionMismatch, match="Inner dimensions"):
            A @ zeros(3, 1)

    def test_rectangular_mismatch(self):
        with pytest.raises(DimensionMismatch, match=r"\(2, 3\) @ \(2, 2\)"):
            zeros(2, 3) @ zeros(2)

    def test_associative(self, A):
        B = from_array([[0, EPS], [-1, 2]])
        C = from_array([[1, 1], [EPS, 0]])
        assert (A @ B) @ C == A @ (B @ C)

    def test_epsilon_times_epsilon_no_nan(self):
        X = zeros(2)
        assert not np.isnan((X @ X).to_numpy()).any()
        Y = zeros(2, semiring="minplus")
        assert not np.isnan((Y @ Y).to_numpy()).any()

    def test_minplus_product(self):
        X = from_array([[1, 2], [3, 4]], semiring="minplus")
        assert_array_equal((X @ X).to_numpy(), [[2, 3], [4, 5]])

    def test_matmul_with_classical_array(self, A):
        assert A @ [[0], [0]] == from_array([[4], [7]])

    def test_scalar_broadcast(self, A):
        assert_array_equal((A * 2).to_numpy(), [[6, 5], [9, EPS]])
        assert_array_equal((MaxPlus(2) * A).to_numpy(), [[6, 5], [9, EPS]])

    def test_scalar_epsilon_broadcast(self, A):
        assert (A * mp0).nnz == 0

    def test_elementwise(self, A):
        B = from_array([[1, EPS], [1, 1]])
        assert_array_equal((A * B).to_numpy(), [[5, EPS], [8, EPS]])

    def test_elementwise_shape_mismatch(self, A):
        with pytest.raises(DimensionMismatch):
            A * zeros(3)

    def test_no_subtraction_or_division(self, A):
        with pytest.raises(TypeError):
            A - A
        with pytest.raises(TypeError):
            A / 2

    def test_named_operations(self, A):
        assert semiring_mul(A, A) == A @ A
        assert semiring_mul(2, A) == A * 2
        assert semiring_add(A, eye(2)) == A + eye(2)
        assert_array_equal(plustimes(A), A.to_numpy())

    def test_named_operations_semiring_must_agree(self, A):
        assert semiring_add(A, 3, semiring="maxplus") == A + 3
        with pytest.raises(TypeError, match="disagrees"):
            semiring_add(A, 3, semiring="minplus")
        with pytest.raises(TypeError, match="disagrees"):
            semiring_mul(2, A, semiring="minplus")
        with pytest.raises(TypeError, match="disagrees"):
            semiring_mul(A, A, semiring="minplus")


class TestPowers:
    """Test A ** k."""

    def test_powers(self, A):
        assert_array_equal((A ** 2).to_numpy(), [[10, 7], [11, 10]])
        assert_array_equal((A ** 3).to_numpy(), [[14, 13], [17, 14]])

    def test_power_zero_is_identity(self, A):
        assert A ** 0 == eye(2)

    def test_power_matches_repeated_product(self, A):
        assert A ** 5 == A @ A @ A @ A @ A

    def test_numpy_integer_exponent(self, A):
        assert A ** np.int64(2) == A @ A

    def test_negative_power(self, A):
        with pytest.raises(InvalidValue):
            A ** -1

    def test_non_integer_power(self, A):
        with pytest.raises(TypeError):
            A ** 1.5

    def test_non_square(self):
        with pytest.raises(DimensionMismatch):
            zeros(2, 3) ** 2


class TestRange:
    """Sums leaving the float64 range."""

    def test_product_overflow_rejected(self):
        big = from_array([[1e308]])
        with pytest.raises(InvalidValue, match="overflows"):
            big @ big

    def test_scalar_and_elementwise_overflow_rejected(self):
        big = from_array([[1e308, 0]])
        with pytest.raises(InvalidValue):
            big * 1e308
        with pytest.raises(InvalidValue):
            big * big

    def test_sparse_overflow_rejected(self):
        big = from_array([[1e308]]).to_sparse()
        with pytest.raises(InvalidValue):
            big @ big
        with pytest.raises(InvalidValue):
            big * big
        with pytest.raises(InvalidValue):
            big * MaxPlus(1e308)

    def test_minplus_overflow_rejected(self):
        low = from_array([[-1e308]], semiring="minplus")
        with pytest.raises(InvalidValue):
            low @ low

    def test_overflow_towards_epsilon_is_epsilon(self):
        low = from_array([[-1e308]])
        assert (low @ low).to_numpy()[0, 0] == -np.inf

    def test_power_overflow_rejected(self):
        with pytest.raises(InvalidValue):
            from_array([[1e308]]) ** 2


class TestStorageRules:
    """Sparse only when both operands are sparse."""

    def test_sparse_sparse(self, A_sparse):
        assert (A_sparse + A_sparse).storage == "sparse"
        assert (A_sparse @ A_sparse).storage == "sparse"
        assert (A_sparse * A_sparse).storage == "sparse"

    def test_mixed_is_dense(self, A, A_sparse):
        assert (A + A_sparse).storage == "dense"
        assert (A_sparse @ A).storage == "dense"
        assert (A_sparse * A).storage == "dense"

    def test_unary_and_scalar_keep_storage(self, A_sparse):
        assert (A_sparse * 3).storage == "sparse"
        assert (A_sparse + 1).storage == "sparse"
        assert A_sparse.T.storage == "sparse"
        assert (A_sparse ** 2).storage == "sparse"

    def test_sparse_results_match_dense(self, A, A_sparse):
        assert A_sparse @ A_sparse == A @ A
        assert A_sparse + A_sparse == A + A
        assert A_sparse * A_sparse == A * A
        assert A_sparse ** 3 == A ** 3

    def test_sparse_product_drops_epsilon(self, chain):
        P = chain @ chain
        assert P.nnz == 1
        assert P[0, 2] == MaxPlus(2)


class TestReductions:
    """Test trace and norm."""

    def test_trace(self, A):
        assert A.trace() == MaxPlus(4)

    def test_trace_empty(self):
        assert zeros(0).trace().is_zero()

    def test_trace_non_square(self):
        with pytest.raises(DimensionMismatch):
            zeros(2, 3).trace()

    def test_norm(self):
        assert from_array([[1, 5], [3, 2]]).norm() == 4.0

    def test_norm_with_epsilon_is_infinite(self, A):
        assert A.norm() == np.inf

    def test_norm_constant(self):
        assert zeros(3).norm() == 0.0
        assert ones(2).norm() == 0.0


class TestInPlace:
    """Test in-place ⊕ and scalar ⊗."""

    def test_add_inplace(self, A):
        result = A.add_inplace(eye(2))
        assert result is A
        assert_array_equal(A.to_numpy(), [[4, 3], [7, 0]])

    def test_add_inplace_keeps_storage(self, A_sparse):
        A_sparse.add_inplace(ones(2))
        assert isinstance(A_sparse, SparseMatrix)
        assert A_sparse.nnz == 4

    def test_mul_inplace(self, A_sparse):
        A_sparse.mul_inplace(1)
        assert_array_equal(A_sparse.to_numpy(), [[5, 4], [8, EPS]])

    def test_mul_inplace_rejects_matrix(self, A):
        with pytest.raises(TypeError):
            A.mul_inplace(A)


# ============================================================================
# Access and Conversion
# ============================================================================


class TestAccess:
    """Test indexing and structural operations."""

    def test_entry(self, A):
        assert A[0, 1] == MaxPlus(3)
        assert A[-1, 0] == MaxPlus(7)

    def test_out_of_bounds(self, A):
        with pytest.raises(IndexError):
            A[2, 0]

    def test_row_and_column(self, A):
        assert A[0].shape == (1, 2)
        assert_array_equal(A[:, 1].to_numpy(), [[3], [EPS]])

    def test_submatrix_keeps_storage(self, A_sparse):
        assert A_sparse[0:1, :].storage == "sparse"

    def test_setitem(self, A):
        A[1, 1] = 2
        assert A[1, 1] == MaxPlus(2)

    def test_setitem_needs_pair(self, A):
        with pytest.raises(TypeError):
            A[0] = 1

    def test_setitem_validates(self, A):
        with pytest.raises(InvalidValue):
            A[0, 0] = np.inf

    def test_transpose(self, A):
        assert_array_equal(A.T.to_numpy(), [[4, 7], [3, EPS]])
        assert SparseMatrix((2, 3)).T.shape == (3, 2)

    def test_dual(self, A):
        D = A.dual()
        assert D.semiring == "minplus"
        assert_array_equal(D.to_numpy(), [[4, 3], [7, np.inf]])
        assert D.dual() == A

    def test_equality(self, A):
        assert A == from_array([[4, 3], [7, EPS]])
        assert A != from_array([[4, 3], [7, 0]])
        assert A != A.dual()

    def test_allclose(self, A):
        assert A.allclose([[4 + 1e-12, 3], [7, EPS]])
        assert not A.allclose([[4, 3], [7, 0]])

    def test_repr(self, A):
        assert "DenseMatrix" in repr(A)
        assert "maxplus" in repr(A)


class TestConstructors:
    """Test zeros, eye, ones and block."""

    def test_zeros(self):
        Z = zeros(2, 3, storage="sparse")
        assert Z.shape == (2, 3) and Z.nnz == 0

    def test_eye_rectangular(self):
        assert_array_equal(eye(2, 3).to_numpy(), [[0, EPS, EPS], [EPS, 0, EPS]])

    def test_eye_sparse_minplus(self):
        I = eye(3, semiring="minplus", storage="sparse")
        assert I.nnz == 3
        assert I[0, 1] == MinPlus(np.inf)

    def test_ones(self):
        assert_array_equal(ones(2, 1).to_numpy(), [[0], [0]])
        assert ones(2, storage="sparse").nnz == 4

    def test_block(self, A):
        M = block([[A, zeros(2, 1)], [zeros(1, 2), eye(1)]])
        assert M.shape == (3, 3)
        assert_array_equal(M.to_numpy()[:2, :2], A.to_numpy())
        assert M[2, 2] == MaxPlus(0)
        assert M.storage == "dense"

    def test_block_all_sparse(self, A_sparse):
        M = block([[A_sparse, zeros(2, 1, storage="sparse")]])
        assert M.storage == "sparse"
        assert M.nnz == 3

    def test_block_inconsistent(self, A):
        with pytest.raises(DimensionMismatch):
            block([[A, zeros(3, 1)]])


class TestConversion:
    """Test exports to classical arrays."""

    def test_lift_round_trip(self):
        data = np.array([[1.5, -np.inf], [0.0, -2.0]])
        assert_array_equal(from_array(data).to_numpy(), data)
        with pytest.warns(UserWarning):
            S = from_array(data, storage="sparse")
        assert_array_equal(S.to_numpy(), data)

    def test_to_numpy_is_copy(self, A):
        arr = A.to_numpy()
        arr[0, 0] = 0
        assert A[0, 0] == MaxPlus(4)

    def test_to_scipy_keeps_explicit_zero(self, chain):
        S = chain.to_scipy()
        assert S.format == "coo"
        assert S.nnz == 2
        assert_allclose(S.toarray(), [[0, 2, 0], [0, 0, 0], [0, 0, 0]])

    def test_from_scipy(self):
        S = sparse.coo_matrix(([0.0, 2.0], ([0, 1], [1, 0])), shape=(2, 2))
        M = from_scipy(S)
        assert M.storage == "sparse"
        assert_array_equal(M.to_numpy(), [[EPS, 0], [2, EPS]])

    def test_scipy_round_trip(self, chain):
        assert from_scipy(chain.to_scipy()) == chain

    def test_from_array_dispatches_scipy(self):
        S = sparse.csr_matrix(np.array([[1.0, 0.0]]))
        assert from_array(S).nnz == 1

    def test_to_array_numpy(self, A):
        assert isinstance(A.to_array("numpy"), np.ndarray)

    def test_to_array_unknown_backend(self, A):
        with pytest.raises(ValueError, match="Unknown backend"):
            A.to_array("cupy")

    @pytest.mark.skipif(not HAS_TORCH, reason="PyTorch not installed")
    def test_to_array_torch(self, A):
        t = A.to_array("torch")
        assert isinstance(t, torch.Tensor)
        assert t.shape == (2, 2)
