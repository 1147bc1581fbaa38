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
Semiring Matrices

Matrices over the max-plus and min-plus semirings with two storage
variants sharing one contract (entry access, dimensions, iteration over
non-ε entries):
- DenseMatrix: NumPy float64 array, ε stored as the semiring's infinity
- SparseMatrix: dict of rows holding only non-ε entries

Mathematical Background
----------------------
(A ⊕ B)[i, j] = A[i, j] ⊕ B[i, j]
(A ⊗ B)[i, j] = ⊕_k A[i, k] ⊗ B[k, j]      (max_k A[i, k] + B[k, j])
(a ⊗ A)[i, j] = a ⊗ A[i, j]
Identity: e on the diagonal, ε elsewhere. Zero matrix: all ε.

Storage Rules
-------------
- Binary operations between matrices are sparse only when both operands
  are sparse, dense otherwise
- Scalar broadcasts and unary operations keep the storage kind
- Sparse storage never holds ε; it does hold e (classical zero)

Operators
---------
- ``A + B``, ``A + a``: semiring sum (broadcast for scalars)
- ``A @ B``: semiring matrix product
- ``A * a``: scalar broadcast ⊗; ``A * B``: elementwise ⊗
- ``A ** k``: semiring power, ``A ** 0`` is the identity
There is no ``-`` nor ``/``.

Range
-----
Products are classical sums in float64. A sum that overflows onto the
excluded infinity (+inf in max-plus, -inf in min-plus) raises
InvalidValue; one that overflows the other way is ε.

Usage
-----
>>> from mpdesym.algebra.matrix import from_array, eye
>>>
>>> A = from_array([[4, 3], [7, -np.inf]])
>>> (A @ A).to_numpy()
array([[10.,  7.],
       [11., 10.]])
>>> (A + eye(2)).to_numpy()
array([[4., 3.],
       [7., 0.]])
"""

import numbers
import warnings
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse

from mpdesym.algebra.exceptions import DimensionMismatch, InvalidValue
from mpdesym.algebra.scalar import Tropical, as_tropical, scalar_type
from mpdesym.algebra.semiring import SemiringOps, get_semiring
from mpdesym.types.backends import (
    DEFAULT_BACKEND,
    DEFAULT_SEMIRING,
    DEFAULT_STORAGE,
    VALID_STORAGE,
    Backend,
    Semiring,
    StorageKind,
)
from mpdesym.types.core import IntegerLike, MatrixLike, ScalarLike
from mpdesym.utils.backend_utils import from_numpy, to_numpy

# Sparse storage of a denser matrix than this triggers a warning
SPARSE_DENSITY_WARNING = 0.5


# ============================================================================
# Validation Helpers
# ============================================================================


def _is_scalar(x) -> bool:
    if isinstance(x, Tropical):
        return True
    return isinstance(x, (numbers.Real, np.number)) and not isinstance(x, np.complexfloating)


def _check_storage(storage: str) -> None:
    if storage not in VALID_STORAGE:
        raise ValueError(f"Unknown storage '{storage}'. Valid storage: {list(VALID_STORAGE)}")


def _check_values(values: np.ndarray, ops: SemiringOps) -> None:
    """Reject entries outside ℝ ∪ {ε}."""
    if np.isnan(values).any():
        raise InvalidValue(f"NaN entries are not {ops.name} values")
    if (values == ops.top).any():
        raise InvalidValue(f"{ops.top} entries are not {ops.name} values (ε is {ops.zero})")


def _lift_values(data, ops: SemiringOps) -> np.ndarray:
    """
    Convert classical data (any backend, nested lists, scalars) to a fresh
    validated 2-D float64 array.
    """
    arr = to_numpy(data)

    if arr.dtype == object:
        # Nested lists mixing classical numbers and semiring scalars
        def convert(x):
            return as_tropical(x, ops.name).value

        arr = np.vectorize(convert, otypes=[np.float64])(arr)
    elif np.iscomplexobj(arr):
        raise InvalidValue(f"Complex entries are not {ops.name} values")
    elif arr.dtype.kind not in "biuf":
        raise TypeError(f"Cannot lift array of dtype {arr.dtype} to {ops.name}")

    arr = np.array(arr, dtype=np.float64)

    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    elif arr.ndim > 2:
        raise DimensionMismatch(f"Expected at most 2 dimensions, got shape {arr.shape}")

    _check_values(arr, ops)
    return arr


# ============================================================================
# Abstract Matrix
# ============================================================================


class TropicalMatrix(ABC):
    """
    Matrix over an idempotent semiring.

    Subclasses implement storage (entry access, non-ε iteration,
    conversion to a classical array); the semiring algebra lives here.
    Use ``from_array``, ``from_scipy``, ``zeros``, ``eye`` or ``ones``
    to build matrices.
    """

    storage: StorageKind = "dense"

    # Make NumPy defer to the reflected operators below
    __array_ufunc__ = None
    __hash__ = None

    def __init__(self, shape: Tuple[int, int], semiring: Semiring = DEFAULT_SEMIRING):
        self._shape = (int(shape[0]), int(shape[1]))
        self._ops = get_semiring(semiring)

    # ------------------------------------------------------------------
    # Storage contract
    # ------------------------------------------------------------------

    @abstractmethod
    def _get(self, i: int, j: int) -> float:
        """Classical value of entry (i, j), indices already validated."""

    @abstractmethod
    def _set(self, i: int, j: int, value: float) -> None:
        """Store a validated classical value at (i, j)."""

    @abstractmethod
    def iter_entries(self) -> Iterator[Tuple[int, int, float]]:
        """Yield (i, j, value) for every non-ε entry, row by row."""

    @property
    @abstractmethod
    def nnz(self) -> int:
        """Number of non-ε entries."""

    @abstractmethod
    def to_numpy(self) -> np.ndarray:
        """Classical copy of all entries, ε as the semiring's infinity."""

    @abstractmethod
    def copy(self) -> "TropicalMatrix":
        pass

    @abstractmethod
    def transpose(self) -> "TropicalMatrix":
        pass

    @abstractmethod
    def _scalar_mul(self, s: float) -> "TropicalMatrix":
        pass

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def nrows(self) -> int:
        return self._shape[0]

    @property
    def ncols(self) -> int:
        return self._shape[1]

    @property
    def semiring(self) -> str:
        return self._ops.name

    @property
    def scalar_type(self):
        """MaxPlus or MinPlus."""
        return scalar_type(self.semiring)

    @property
    def T(self) -> "TropicalMatrix":
        return self.transpose()

    def is_square(self) -> bool:
        return self._shape[0] == self._shape[1]

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def _normalize(self, i, j) -> Tuple[int, int]:
        m, n = self._shape
        i, j = int(i), int(j)
        if i < 0:
            i += m
        if j < 0:
            j += n
        if not (0 <= i < m and 0 <= j < n):
            raise IndexError(f"Index ({i}, {j}) out of bounds for shape {self._shape}")
        return i, j

    def get(self, i: int, j: int) -> Tropical:
        """Entry (i, j) as a semiring scalar."""
        i, j = self._normalize(i, j)
        return self.scalar_type(self._get(i, j))

    def set_entry(self, i: int, j: int, value: ScalarLike) -> None:
        """
        Overwrite entry (i, j) in place.

        Setting ε on sparse storage removes the entry.
        """
        i, j = self._normalize(i, j)
        self._set(i, j, as_tropical(value, self.semiring).value)

    def __getitem__(self, key):
        if (
            isinstance(key, tuple)
            and len(key) == 2
            and all(isinstance(k, (numbers.Integral, np.integer)) for k in key)
        ):
            return self.get(*key)

        rows, cols = key if isinstance(key, tuple) else (key, slice(None))
        values = self.to_numpy()
        # Integer indices keep their axis so that results stay 2-D
        if isinstance(rows, (numbers.Integral, np.integer)):
            rows = [self._normalize(rows, 0)[0]]
        if isinstance(cols, (numbers.Integral, np.integer)):
            cols = [self._normalize(0, cols)[1]]
        values = values[rows, :][:, cols]
        return _wrap(values, self._ops, self.storage)

    def __setitem__(self, key, value):
        if not (isinstance(key, tuple) and len(key) == 2):
            raise TypeError("Only single entries can be assigned: A[i, j] = value")
        self.set_entry(key[0], key[1], value)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_array(self, backend: Backend = DEFAULT_BACKEND):
        """
        Classical array in the requested backend.

        Examples
        --------
        >>> eye(2).to_array('numpy')
        array([[  0., -inf],
               [-inf,   0.]])
        """
        return from_numpy(self.to_numpy(), backend)

    def to_scipy(self) -> sparse.coo_matrix:
        """
        Classical COO matrix of the non-ε entries.

        Entries equal to e (classical 0) are stored explicitly; implicit
        entries of the result stand for ε.
        """
        entries = list(self.iter_entries())
        if entries:
            rows, cols, data = (np.array(x) for x in zip(*entries))
        else:
            rows = cols = np.zeros(0, dtype=np.intp)
            data = np.zeros(0, dtype=np.float64)
        return sparse.coo_matrix((data, (rows, cols)), shape=self._shape)

    def to_dense(self) -> "DenseMatrix":
        if isinstance(self, DenseMatrix):
            return self.copy()
        return DenseMatrix._adopt(self.to_numpy(), self._ops)

    def to_sparse(self) -> "SparseMatrix":
        if isinstance(self, SparseMatrix):
            return self.copy()
        return SparseMatrix._from_values(self.to_numpy(), self._ops)

    def dual(self) -> "TropicalMatrix":
        """Same finite entries in the other semiring, ε mapped to ε."""
        other = get_semiring("minplus" if self.semiring == "maxplus" else "maxplus")
        values = self.to_numpy()
        values[values == self._ops.zero] = other.zero
        return _wrap(values, other, self.storage)

    # ------------------------------------------------------------------
    # Semiring algebra
    # ------------------------------------------------------------------

    def _check_compatible(self, other: "TropicalMatrix") -> None:
        if other.semiring != self.semiring:
            raise TypeError(f"Cannot combine {self.semiring} and {other.semiring} matrices")

    def _check_same_shape(self, other: "TropicalMatrix", op: str) -> None:
        if other.shape != self.shape:
            raise DimensionMismatch(f"Shapes do not agree for {op}: {self.shape} vs {other.shape}")

    def add(self, other) -> "TropicalMatrix":
        """
        A ⊕ B (same shape) or A ⊕ a (broadcast to every entry).

        Raises
        ------
        DimensionMismatch
            If matrix shapes differ
        """
        if isinstance(other, TropicalMatrix):
            self._check_compatible(other)
            self._check_same_shape(other, "addition")
            if isinstance(self, SparseMatrix) and isinstance(other, SparseMatrix):
                return self._sparse_add(other)
            values = self._ops.ufunc(self.to_numpy(), other.to_numpy())
            return DenseMatrix._adopt(values, self._ops)

        s = as_tropical(other, self.semiring)
        if s.is_zero():
            return self.copy()
        values = self._ops.ufunc(self.to_numpy(), s.value)
        return _wrap(values, self._ops, self.storage)

    def matmul(self, other: "TropicalMatrix") -> "TropicalMatrix":
        """
        Semiring matrix product A ⊗ B.

        Raises
        ------
        DimensionMismatch
            If A.ncols != B.nrows
        """
        if not isinstance(other, TropicalMatrix):
            raise TypeError(f"Expected a semiring matrix, got {type(other).__name__}")
        self._check_compatible(other)
        if self.ncols != other.nrows:
            raise DimensionMismatch(
                f"Inner dimensions do not agree: {self.shape} @ {other.shape}"
            )
        if isinstance(self, SparseMatrix) and isinstance(other, SparseMatrix):
            return self._sparse_matmul(other)
        values = _dense_matmul(self.to_numpy(), other.to_numpy(), self._ops)
        return DenseMatrix._adopt(values, self._ops)

    def mul(self, other) -> "TropicalMatrix":
        """
        A ⊗ B for matrices (matrix product), A ⊗ a for scalars.

        This is the named form of the semiring product; ``@`` and ``*``
        are the operator forms of its two cases.
        """
        if isinstance(other, TropicalMatrix):
            return self.matmul(other)
        return self._scalar_mul(as_tropical(other, self.semiring).value)

    def elementwise_mul(self, other) -> "TropicalMatrix":
        """Entry-by-entry ⊗ (classical sum, ε absorbing)."""
        if not isinstance(other, TropicalMatrix):
            return self._scalar_mul(as_tropical(other, self.semiring).value)
        self._check_compatible(other)
        self._check_same_shape(other, "elementwise product")
        if isinstance(self, SparseMatrix) and isinstance(other, SparseMatrix):
            return self._sparse_hadamard(other)
        with np.errstate(over="ignore"):
            values = self.to_numpy() + other.to_numpy()
        return DenseMatrix._adopt(_check_range(values, self._ops), self._ops)

    def power(self, k: IntegerLike) -> "TropicalMatrix":
        """
        A ⊗ A ⊗ ... ⊗ A (k factors) by repeated squaring; A⁰ = I.

        Raises
        ------
        DimensionMismatch
            If A is not square
        InvalidValue
            If k is negative
        """
        if isinstance(k, bool) or not isinstance(k, (numbers.Integral, np.integer)):
            raise TypeError(f"Matrix powers need an integer exponent, got {type(k).__name__}")
        if k < 0:
            raise InvalidValue(f"Exponent must be non-negative, got {k}")
        if not self.is_square():
            raise DimensionMismatch(f"Matrix must be square, got shape {self.shape}")

        result = eye(self.nrows, semiring=self.semiring, storage=self.storage)
        base = self
        k = int(k)
        while k:
            if k & 1:
                result = result.matmul(base)
            k >>= 1
            if k:
                base = base.matmul(base)
        return result

    def trace(self) -> Tropical:
        """⊕ of the diagonal entries (ε for an empty matrix)."""
        if not self.is_square():
            raise DimensionMismatch(f"Matrix must be square, got shape {self.shape}")
        diag = np.array([self._get(i, i) for i in range(self.nrows)], dtype=np.float64)
        return self.scalar_type(self._ops.reduce(diag))

    def norm(self) -> float:
        """
        Classical spread max(A) - min(A) of the entries.

        Infinite when A mixes ε and finite entries; 0 for matrices with
        a single distinct value (including all-ε and empty matrices).
        """
        values = self.to_numpy()
        if values.size == 0:
            return 0.0
        hi, lo = float(values.max()), float(values.min())
        if hi == lo:
            return 0.0
        return hi - lo

    def add_inplace(self, other) -> "TropicalMatrix":
        """A ← A ⊕ other, keeping this matrix's storage kind."""
        result = self.add(other)
        self._adopt_values(result)
        return self

    def mul_inplace(self, scalar: ScalarLike) -> "TropicalMatrix":
        """A ← A ⊗ a for a scalar a, keeping this matrix's storage kind."""
        if isinstance(scalar, TropicalMatrix):
            raise TypeError("In-place product is only defined for scalars")
        result = self._scalar_mul(as_tropical(scalar, self.semiring).value)
        self._adopt_values(result)
        return self

    @abstractmethod
    def _adopt_values(self, other: "TropicalMatrix") -> None:
        pass

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, TropicalMatrix):
            return NotImplemented
        if other.semiring != self.semiring or other.shape != self.shape:
            return False
        return bool(np.array_equal(self.to_numpy(), other.to_numpy()))

    def allclose(self, other: MatrixLike, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        """
        Entrywise closeness; ε only matches ε.

        ``other`` may be a classical array, lifted in this matrix's semiring.
        """
        other = as_matrix(other, semiring=self.semiring)
        if other.shape != self.shape:
            return False
        return bool(np.allclose(self.to_numpy(), other.to_numpy(), rtol=rtol, atol=atol))

    # ------------------------------------------------------------------
    # Operator sugar
    # ------------------------------------------------------------------

    def __add__(self, other):
        if isinstance(other, TropicalMatrix) or _is_scalar(other):
            return self.add(other)
        return NotImplemented

    __radd__ = __add__

    def __mul__(self, other):
        if isinstance(other, TropicalMatrix) or _is_scalar(other):
            return self.elementwise_mul(other)
        return NotImplemented

    __rmul__ = __mul__

    def __matmul__(self, other):
        if isinstance(other, TropicalMatrix):
            return self.matmul(other)
        if isinstance(other, (np.ndarray, list)):
            return self.matmul(as_matrix(other, semiring=self.semiring))
        return NotImplemented

    def __rmatmul__(self, other):
        if isinstance(other, (np.ndarray, list)):
            return as_matrix(other, semiring=self.semiring).matmul(self)
        return NotImplemented

    def __pow__(self, k):
        return self.power(k)

    def __repr__(self):
        m, n = self._shape
        if m * n <= 100:
            body = np.array2string(self.to_numpy(), separator=", ")
        else:
            body = f"<{m}x{n}, nnz={self.nnz}>"
        return f"{type(self).__name__}({body}, semiring='{self.semiring}')"


# ============================================================================
# Dense Storage
# ============================================================================


class DenseMatrix(TropicalMatrix):
    """
    Dense semiring matrix backed by a float64 NumPy array.

    Parameters
    ----------
    values : array_like
        2-D classical values, copied; ε as the semiring's infinity
    semiring : Semiring
        'maxplus' or 'minplus'

    Examples
    --------
    >>> A = DenseMatrix([[1, -np.inf], [0, 2]])
    >>> A.nnz
    3
    """

    storage = "dense"

    def __init__(self, values, semiring: Semiring = DEFAULT_SEMIRING):
        ops = get_semiring(semiring)
        values = _lift_values(values, ops)
        super().__init__(values.shape, semiring)
        self._values = values

    @classmethod
    def _adopt(cls, values: np.ndarray, ops: SemiringOps) -> "DenseMatrix":
        # Takes ownership of an already validated array
        obj = cls.__new__(cls)
        TropicalMatrix.__init__(obj, values.shape, ops.name)
        obj._values = values
        return obj

    def _get(self, i, j):
        return float(self._values[i, j])

    def _set(self, i, j, value):
        self._values[i, j] = value

    def iter_entries(self):
        rows, cols = np.nonzero(~self._ops.is_zero(self._values))
        for i, j in zip(rows.tolist(), cols.tolist()):
            yield i, j, float(self._values[i, j])

    @property
    def nnz(self):
        return int(np.count_nonzero(~self._ops.is_zero(self._values)))

    def to_numpy(self):
        return self._values.copy()

    def copy(self):
        return DenseMatrix._adopt(self._values.copy(), self._ops)

    def transpose(self):
        return DenseMatrix._adopt(self._values.T.copy(), self._ops)

    def _scalar_mul(self, s):
        if s == self._ops.zero:
            return DenseMatrix._adopt(np.full(self._shape, self._ops.zero), self._ops)
        with np.errstate(over="ignore"):
            values = self._values + s
        return DenseMatrix._adopt(_check_range(values, self._ops), self._ops)

    def _adopt_values(self, other):
        self._values = other.to_numpy()


# ============================================================================
# Sparse Storage
# ============================================================================


class SparseMatrix(TropicalMatrix):
    """
    Sparse semiring matrix storing only non-ε entries.

    Rows are kept as ``{i: {j: value}}``; entries equal to e are stored,
    ε is never stored.

    Parameters
    ----------
    shape : tuple of int
        (nrows, ncols)
    semiring : Semiring
        'maxplus' or 'minplus'
    entries : mapping, optional
        ``{(i, j): value}``; ε values are dropped

    Examples
    --------
    >>> S = SparseMatrix((3, 3), entries={(0, 1): 2, (1, 0): 0})
    >>> S.nnz
    2
    """

    storage = "sparse"

    def __init__(
        self,
        shape: Tuple[int, int],
        semiring: Semiring = DEFAULT_SEMIRING,
        entries: Optional[Mapping[Tuple[int, int], ScalarLike]] = None,
    ):
        if len(shape) != 2 or min(shape) < 0:
            raise DimensionMismatch(f"Invalid matrix shape {shape}")
        super().__init__(shape, semiring)
        self._rows: Dict[int, Dict[int, float]] = {}
        for (i, j), value in (entries or {}).items():
            self.set_entry(i, j, value)

    @classmethod
    def _adopt(
        cls, shape: Tuple[int, int], ops: SemiringOps, rows: Dict[int, Dict[int, float]]
    ) -> "SparseMatrix":
        obj = cls.__new__(cls)
        TropicalMatrix.__init__(obj, shape, ops.name)
        obj._rows = rows
        return obj

    @classmethod
    def _from_values(cls, values: np.ndarray, ops: SemiringOps) -> "SparseMatrix":
        rows: Dict[int, Dict[int, float]] = {}
        for i, j in zip(*np.nonzero(~ops.is_zero(values))):
            rows.setdefault(int(i), {})[int(j)] = float(values[i, j])
        return cls._adopt(values.shape, ops, rows)

    def _get(self, i, j):
        return self._rows.get(i, {}).get(j, self._ops.zero)

    def _set(self, i, j, value):
        if value == self._ops.zero:
            row = self._rows.get(i)
            if row is not None:
                row.pop(j, None)
                if not row:
                    del self._rows[i]
        else:
            self._rows.setdefault(i, {})[j] = value

    def iter_entries(self):
        for i in sorted(self._rows):
            row = self._rows[i]
            for j in sorted(row):
                yield i, j, row[j]

    @property
    def nnz(self):
        return sum(len(row) for row in self._rows.values())

    def to_numpy(self):
        values = np.full(self._shape, self._ops.zero)
        for i, row in self._rows.items():
            for j, v in row.items():
                values[i, j] = v
        return values

    def copy(self):
        return SparseMatrix._adopt(
            self._shape, self._ops, {i: dict(row) for i, row in self._rows.items()}
        )

    def transpose(self):
        rows: Dict[int, Dict[int, float]] = {}
        for i, row in self._rows.items():
            for j, v in row.items():
                rows.setdefault(j, {})[i] = v
        return SparseMatrix._adopt((self.ncols, self.nrows), self._ops, rows)

    def _scalar_mul(self, s):
        if s == self._ops.zero:
            return SparseMatrix._adopt(self._shape, self._ops, {})
        rows = {i: {j: v + s for j, v in row.items()} for i, row in self._rows.items()}
        _check_rows_range(rows, self._ops)
        return SparseMatrix._adopt(self._shape, self._ops, rows)

    def _adopt_values(self, other):
        self._rows = other.to_sparse()._rows

    def _sparse_add(self, other: "SparseMatrix") -> "SparseMatrix":
        add = self._ops.add
        rows = {i: dict(row) for i, row in self._rows.items()}
        for i, row in other._rows.items():
            target = rows.setdefault(i, {})
            for j, v in row.items():
                target[j] = add(target[j], v) if j in target else v
        return SparseMatrix._adopt(self._shape, self._ops, rows)

    def _sparse_matmul(self, other: "SparseMatrix") -> "SparseMatrix":
        add = self._ops.add
        rows: Dict[int, Dict[int, float]] = {}
        for i, row in self._rows.items():
            acc: Dict[int, float] = {}
            for k, a in row.items():
                for j, b in other._rows.get(k, {}).items():
                    v = a + b
                    acc[j] = add(acc[j], v) if j in acc else v
            if acc:
                rows[i] = acc
        _check_rows_range(rows, self._ops)
        return SparseMatrix._adopt((self.nrows, other.ncols), self._ops, rows)

    def _sparse_hadamard(self, other: "SparseMatrix") -> "SparseMatrix":
        rows: Dict[int, Dict[int, float]] = {}
        for i, row in self._rows.items():
            other_row = other._rows.get(i)
            if not other_row:
                continue
            common = {j: v + other_row[j] for j, v in row.items() if j in other_row}
            if common:
                rows[i] = common
        _check_rows_range(rows, self._ops)
        return SparseMatrix._adopt(self._shape, self._ops, rows)


# ============================================================================
# Kernels
# ============================================================================


def _dense_matmul(a: np.ndarray, b: np.ndarray, ops: SemiringOps) -> np.ndarray:
    """
    (a ⊗ b)[i, j] = ⊕_k a[i, k] + b[k, j] on classical arrays.

    Accumulates one rank-one term per k so memory stays O(m·n).
    """
    m, inner = a.shape
    n = b.shape[1]
    out = np.full((m, n), ops.zero)
    with np.errstate(over="ignore"):
        for k in range(inner):
            ops.ufunc(out, a[:, k : k + 1] + b[k : k + 1, :], out=out)
    return _check_range(out, ops)


def _check_range(values: np.ndarray, ops: SemiringOps) -> np.ndarray:
    """
    Reject classical sums that overflowed onto the excluded infinity.

    Sums past the other end of the float64 range collapse to ε.
    """
    if (values == ops.top).any():
        raise InvalidValue(
            f"Result overflows the float64 range ({ops.top} is not a {ops.name} value)"
        )
    return values


def _check_rows_range(rows: Dict[int, Dict[int, float]], ops: SemiringOps) -> None:
    values = np.fromiter((v for row in rows.values() for v in row.values()), dtype=np.float64)
    _check_range(values, ops)


def _wrap(values: np.ndarray, ops: SemiringOps, storage: StorageKind) -> TropicalMatrix:
    """Build a matrix of the requested storage from validated values."""
    if storage == "sparse":
        return SparseMatrix._from_values(values, ops)
    return DenseMatrix._adopt(values, ops)


# ============================================================================
# Construction
# ============================================================================


def from_array(
    data,
    semiring: Semiring = DEFAULT_SEMIRING,
    storage: StorageKind = DEFAULT_STORAGE,
) -> TropicalMatrix:
    """
    Lift classical data into a semiring matrix.

    Args:
        data: Nested lists, NumPy/PyTorch/JAX array or scalar. Entries
            may be classical reals or semiring scalars; -inf (max-plus)
            or +inf (min-plus) denote ε. 1-D data becomes a column.
        semiring: 'maxplus' or 'minplus'
        storage: 'dense' or 'sparse'

    Returns:
        New matrix (never shares memory with ``data``)

    Raises:
        InvalidValue: NaN, complex or wrong-signed infinite entries
        DimensionMismatch: More than 2 dimensions

    Examples:
        >>> A = from_array([[1, 2], [3, 4]])
        >>> A[1, 0]
        MaxPlus(3.0)
    """
    _check_storage(storage)
    ops = get_semiring(semiring)
    if sparse.issparse(data):
        return from_scipy(data, semiring=semiring, storage=storage)
    if isinstance(data, TropicalMatrix):
        return as_matrix(data, semiring=semiring, storage=storage).copy()

    values = _lift_values(data, ops)
    if storage == "sparse":
        if values.size and np.count_nonzero(values != ops.zero) > SPARSE_DENSITY_WARNING * values.size:
            warnings.warn(
                f"Sparse storage requested for a matrix with more than "
                f"{SPARSE_DENSITY_WARNING:.0%} non-ε entries; dense storage is "
                "usually faster",
                UserWarning,
                stacklevel=2,
            )
        return SparseMatrix._from_values(values, ops)
    return DenseMatrix._adopt(values, ops)


def from_scipy(
    S,
    semiring: Semiring = DEFAULT_SEMIRING,
    storage: StorageKind = "sparse",
) -> TropicalMatrix:
    """
    Lift a classical SciPy sparse matrix.

    Stored entries (explicit zeros included) become semiring values;
    implicit entries become ε.

    Examples:
        >>> S = sparse.coo_matrix(([0.0, 2.0], ([0, 1], [1, 0])), shape=(2, 2))
        >>> from_scipy(S).to_numpy()
        array([[-inf,   0.],
               [  2., -inf]])
    """
    _check_storage(storage)
    ops = get_semiring(semiring)
    coo = sparse.coo_matrix(S, dtype=np.float64, copy=True)
    coo.sum_duplicates()
    _check_values(coo.data, ops)

    rows: Dict[int, Dict[int, float]] = {}
    for i, j, v in zip(coo.row.tolist(), coo.col.tolist(), coo.data.tolist()):
        if v != ops.zero:
            rows.setdefault(i, {})[j] = v
    M = SparseMatrix._adopt(coo.shape, ops, rows)
    return M if storage == "sparse" else M.to_dense()


def as_matrix(
    data: MatrixLike,
    semiring: Optional[Semiring] = None,
    storage: Optional[StorageKind] = None,
) -> TropicalMatrix:
    """
    Return ``data`` as a semiring matrix, converting only when needed.

    Semiring matrices are returned as they are when semiring and storage
    already match. Classical data is lifted with ``from_array`` (or
    ``from_scipy`` for SciPy matrices).

    Raises:
        TypeError: Semiring matrix of another semiring
    """
    if isinstance(data, TropicalMatrix):
        if semiring is not None and data.semiring != get_semiring(semiring).name:
            raise TypeError(f"Expected a {semiring} matrix, got a {data.semiring} matrix")
        if storage is None or storage == data.storage:
            return data
        _check_storage(storage)
        return data.to_sparse() if storage == "sparse" else data.to_dense()

    semiring = semiring or DEFAULT_SEMIRING
    if sparse.issparse(data):
        return from_scipy(data, semiring=semiring, storage=storage or "sparse")
    ops = get_semiring(semiring)
    return _wrap(_lift_values(data, ops), ops, storage or DEFAULT_STORAGE)


def zeros(
    m: int,
    n: Optional[int] = None,
    semiring: Semiring = DEFAULT_SEMIRING,
    storage: StorageKind = DEFAULT_STORAGE,
) -> TropicalMatrix:
    """All-ε m×n matrix (n defaults to m)."""
    _check_storage(storage)
    ops = get_semiring(semiring)
    n = m if n is None else n
    if storage == "sparse":
        return SparseMatrix._adopt((m, n), ops, {})
    return DenseMatrix._adopt(np.full((m, n), ops.zero), ops)


def eye(
    m: int,
    n: Optional[int] = None,
    semiring: Semiring = DEFAULT_SEMIRING,
    storage: StorageKind = DEFAULT_STORAGE,
) -> TropicalMatrix:
    """
    Semiring identity: e on the diagonal, ε elsewhere.

    Rectangular shapes are accepted (n defaults to m).
    """
    _check_storage(storage)
    ops = get_semiring(semiring)
    n = m if n is None else n
    if storage == "sparse":
        rows = {i: {i: ops.one} for i in range(min(m, n))}
        return SparseMatrix._adopt((m, n), ops, rows)
    values = np.full((m, n), ops.zero)
    np.fill_diagonal(values, ops.one)
    return DenseMatrix._adopt(values, ops)


def ones(
    m: int,
    n: Optional[int] = None,
    semiring: Semiring = DEFAULT_SEMIRING,
    storage: StorageKind = DEFAULT_STORAGE,
) -> TropicalMatrix:
    """All-e m×n matrix (n defaults to m)."""
    _check_storage(storage)
    ops = get_semiring(semiring)
    n = m if n is None else n
    if storage == "sparse":
        rows = {i: {j: ops.one for j in range(n)} for i in range(m)} if n else {}
        return SparseMatrix._adopt((m, n), ops, rows)
    return DenseMatrix._adopt(np.full((m, n), ops.one), ops)


def block(blocks: Sequence[Sequence[TropicalMatrix]]) -> TropicalMatrix:
    """
    Assemble a matrix from a 2-D grid of blocks.

    Every block of a block row has the same number of rows and every
    block column has the same number of columns. The result is sparse
    when all blocks are sparse.

    Examples:
        >>> A, B = eye(2), zeros(2, 1)
        >>> block([[A, B]]).shape
        (2, 3)

    Raises:
        DimensionMismatch: Inconsistent block sizes
    """
    if not blocks or not blocks[0]:
        raise DimensionMismatch("block() needs at least one block")
    ncols_grid = len(blocks[0])
    if any(len(row) != ncols_grid for row in blocks):
        raise DimensionMismatch("Every block row must have the same number of blocks")

    first = blocks[0][0]
    for row in blocks:
        for M in row:
            first._check_compatible(M)

    heights = [row[0].nrows for row in blocks]
    widths = [M.ncols for M in blocks[0]]
    for r, row in enumerate(blocks):
        for c, M in enumerate(row):
            if M.shape != (heights[r], widths[c]):
                raise DimensionMismatch(
                    f"Block ({r}, {c}) has shape {M.shape}, expected {(heights[r], widths[c])}"
                )

    ops = first._ops
    shape = (sum(heights), sum(widths))
    row_offsets = np.concatenate([[0], np.cumsum(heights)[:-1]]).astype(int)
    col_offsets = np.concatenate([[0], np.cumsum(widths)[:-1]]).astype(int)

    if all(isinstance(M, SparseMatrix) for row in blocks for M in row):
        rows: Dict[int, Dict[int, float]] = {}
        for r, row in enumerate(blocks):
            for c, M in enumerate(row):
                for i, j, v in M.iter_entries():
                    rows.setdefault(int(row_offsets[r]) + i, {})[int(col_offsets[c]) + j] = v
        return SparseMatrix._adopt(shape, ops, rows)

    values = np.full(shape, ops.zero)
    for r, row in enumerate(blocks):
        for c, M in enumerate(row):
            r0, c0 = row_offsets[r], col_offsets[c]
            values[r0 : r0 + M.nrows, c0 : c0 + M.ncols] = M.to_numpy()
    return DenseMatrix._adopt(values, ops)


__all__ = [
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
]
