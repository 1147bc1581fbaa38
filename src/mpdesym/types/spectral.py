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
Spectral Analysis Types

Result types for the semiring spectral problem A ⊗ v = λ ⊗ v solved by
policy iteration (Howard's algorithm).

Mathematical Background
----------------------
For a square max-plus matrix A, the precedence graph has an arc i → j of
weight A[i, j] for every non-ε entry. When every vertex has a successor:

    χ_i = lim (A^k ⊗ x)_i / k

is the cycle time of vertex i, equal to the maximal mean weight of the
circuits reachable from i. A policy π picks one successor per vertex; the
policy graph has exactly one circuit per connected component and the
bias v satisfies:

    v_i = A[i, π(i)] - χ_i + v_π(i)

When A is irreducible, χ is constant (the eigenvalue λ) and v is an
eigenvector.

Usage
-----
>>> from mpdesym.types.spectral import HowardResult
>>>
>>> result: HowardResult = howard(A)
>>> chi = result['eigenvalues']
>>> v = result['eigenvector']
"""

from typing import List

import numpy as np
from typing_extensions import TypedDict


class PolicyCycle(TypedDict):
    """
    Circuit of the final policy graph.

    Fields
    ------
    nodes : List[int]
        Vertices of the circuit in traversal order
    mean : float
        Mean weight of the circuit (its cycle time)
    """

    nodes: List[int]
    mean: float


class HowardResult(TypedDict):
    """
    Policy iteration result dictionary.

    Vectors are classical floats; ε never appears since every vertex
    has a finite cycle time once the spectrum is defined.

    Fields
    ------
    eigenvalues : np.ndarray
        Cycle time χ_i of every vertex (n,)
    eigenvector : np.ndarray
        Bias vector v (n,); an eigenvector when χ is constant
    policy : np.ndarray
        Successor chosen for every vertex in the final policy (n,)
    cycles : List[PolicyCycle]
        Circuits of the final policy graph, one per component
    components : int
        Number of connected components of the final policy graph
    iterations : int
        Number of policy improvements performed

    Examples
    --------
    >>> result: HowardResult = howard([[3, 7], [2, 4]])
    >>> result['eigenvalues']
    array([4.5, 4.5])
    >>> result['eigenvector']
    array([6.5, 4. ])
    """

    eigenvalues: np.ndarray
    eigenvector: np.ndarray
    policy: np.ndarray
    cycles: List[PolicyCycle]
    components: int
    iterations: int


__all__ = [
    "PolicyCycle",
    "HowardResult",
]
