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
Backend conversion helpers.

Semiring kernels run on NumPy; PyTorch and JAX arrays are accepted when
lifting classical data and can be produced when exporting it. No backend
is imported unless an array of that backend is actually seen.
"""

from typing import Any, Optional

import numpy as np

from mpdesym.types.backends import VALID_BACKENDS, Backend


def detect_backend(arr: Any) -> str:
    """
    Auto-detect backend from array type.

    Args:
        arr: Array-like object

    Returns:
        Backend name: 'torch', 'numpy', 'jax', or 'unknown'
    """
    if isinstance(arr, np.ndarray):
        return "numpy"

    # Check the module name first so that torch/jax are only imported when
    # the object could come from them
    module = type(arr).__module__
    if module.startswith("torch"):
        try:
            import torch

            if isinstance(arr, torch.Tensor):
                return "torch"
        except ImportError:
            pass

    if module.startswith("jax") or module.startswith("jaxlib"):
        return "jax"

    return "unknown"


def to_numpy(arr: Any, backend: Optional[Backend] = None) -> np.ndarray:
    """
    Convert array to NumPy.

    Args:
        arr: Array in any backend (or nested lists)
        backend: Source backend identifier (auto-detected if None)

    Returns:
        NumPy array (may share memory with ``arr`` for NumPy inputs)
    """
    if isinstance(arr, np.ndarray):
        return arr

    if backend is None:
        backend = detect_backend(arr)

    if backend == "torch":
        return arr.detach().cpu().numpy()
    if backend == "jax":
        return np.array(arr)
    # Try generic conversion
    return np.asarray(arr)


def from_numpy(arr: np.ndarray, backend: Backend):
    """
    Convert NumPy array to target backend.

    Args:
        arr: NumPy array
        backend: Target backend

    Returns:
        Array in target backend

    Raises:
        ValueError: If backend is unknown
    """
    if backend == "numpy":
        return arr
    if backend == "torch":
        import torch

        return torch.from_numpy(np.ascontiguousarray(arr))
    if backend == "jax":
        import jax.numpy as jnp

        return jnp.array(arr)
    raise ValueError(f"Unknown backend '{backend}'. Valid backends: {list(VALID_BACKENDS)}")


__all__ = ["detect_backend", "to_numpy", "from_numpy"]
