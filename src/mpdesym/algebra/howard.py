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
Spectral Analysis by Policy Iteration

Howard's algorithm for the semiring eigenproblem A ⊗ v = λ ⊗ v, following
Cochet-Terrasson, Cohen, Gaubert, McGettrick and Quadrat (1998).

Mathematical Background
----------------------
A policy π chooses one successor π(i) per vertex among the non-ε entries
of row i. The policy graph is functional, so each of its components has
exactly one circuit. Value determination gives every vertex the mean
weight χ of the circuit it reaches and a bias v with

    v_i = A[i, π(i)] - χ_i + v_π(i)

Policy improvement then looks for:
1. First order: a successor j reaching a better cycle time (χ_j > χ_i)
2. Second order: among successors with the same cycle time, one with
   A[i, j] + v_j - χ_i > v_i

Iteration stops when no vertex improves. For irreducible A the
cycle-time vector χ is constant and equals the unique eigenvalue λ;
v is then an eigenvector. For reducible A, χ gives the cycle time of
each vertex and may take several values.

Min-plus matrices are solved by duality: their spectrum is the negated
max-plus spectrum of -A.

Usage
-----
>>> from mpdesym.algebra.howard import howard, eigen
>>>
>>> result = howard([[3, 7], [2, 4]])
>>> result['eigenvalues']
array([4.5, 4.5])
>>> lam, v = eigen([[3, 7], [2, 4]])
>>> lam
MaxPlus(4.5)
"""

from typing import List, Optional, Tuple

import numpy as np

from mpdesym.algebra.exceptions import (
    AmbiguousSpectrum,
    DimensionMismatch,
    IterationLimitExceeded,
    UndefinedSpectrum,
)
from mpdesym.algebra.matrix import DenseMatrix, TropicalMatrix, as_matrix
from mpdesym.algebra.scalar import Tropical
from mpdesym.types.core import MatrixLike
from mpdesym.types.spectral import HowardResult, PolicyCycle

DEFAULT_MAX_ITERATIONS = 1000
ITERATIONS_PER_NODE = 100
"""Iteration bound is max(DEFAULT_MAX_ITERATIONS, ITERATIONS_PER_NODE * n)."""

BIAS_TOLERANCE_FACTOR = 1e-9
"""Improvements smaller than (max(A) - min(A) + 1) times this are ignored."""


# ============================================================================
# Policy Iteration State
# ============================================================================


class _PolicyIteration:
    """
    Working state of Howard's algorithm on a max-plus arc list.

    Arcs are (i, j, a) triples with finite weights, in the order used to
    break ties (the last best arc of a row wins the initial policy).
    """

    def __init__(self, n: int, arcs: List[Tuple[int, int, float]]):
        self.n = n
        self.arcs = arcs

        weights = [a for _, _, a in arcs]
        self.epsilon = (max(weights) - min(weights) + 1.0) * BIAS_TOLERANCE_FACTOR

        self.pi = [0] * n
        self.c = [0.0] * n
        self.vaux = [-np.inf] * n
        self.chi = [0.0] * n
        self.v = [0.0] * n
        self.cycles: List[Tuple[List[int], float]] = []

        for i, j, a in arcs:
            if self.vaux[i] <= a:
                self.pi[i] = j
                self.c[i] = a
                self.vaux[i] = a

    def _inverse_policy(self) -> List[List[int]]:
        preds: List[List[int]] = [[] for _ in range(self.n)]
        for i, j in enumerate(self.pi):
            preds[j].append(i)
        return preds

    def value(self) -> int:
        """
        Value determination for the current policy.

        Returns the number of components (circuits) of the policy graph.
        """
        pi, c, v, chi = self.pi, self.c, self.v, self.chi
        preds = self._inverse_policy()
        component = [0] * self.n
        visited = [False] * self.n
        self.cycles = []

        color = 0
        for start in range(self.n):
            if component[start]:
                continue
            color += 1

            # Walk the policy until the walk bites its own tail
            index = start
            component[index] = color
            nxt = pi[index]
            while component[nxt] == 0:
                component[nxt] = color
                index = nxt
                nxt = pi[index]

            nodes = [index]
            weight = c[index]
            i = pi[index]
            while i != index:
                nodes.append(i)
                weight += c[i]
                i = pi[i]
            lam = weight / len(nodes)
            self.cycles.append((nodes, lam))

            # The circuit root keeps its previous bias; the rest of the
            # component is labelled backwards along the inverse policy
            v[index] = self.vaux[index]
            chi[index] = lam
            visited[index] = True
            stack = [index]
            while stack:
                i = stack.pop()
                for p in preds[i]:
                    if not visited[p]:
                        visited[p] = True
                        v[p] = -lam + c[p] + v[i]
                        chi[p] = lam
                        component[p] = color
                        stack.append(p)

        return color

    def improve(self, components: int) -> bool:
        """Policy improvement; True when the policy changed."""
        eps = self.epsilon
        chi, v = self.chi, self.v
        newchi = list(chi)
        self.vaux = list(v)
        newpi = list(self.pi)
        newc = list(self.c)
        improved = False

        if components > 1:
            for i, j, a in self.arcs:
                if chi[j] > newchi[i] + eps:
                    improved = True
                    newpi[i] = j
                    newchi[i] = chi[j]
                    newc[i] = a

        if not improved:
            for i, j, a in self.arcs:
                if components > 1 and abs(chi[j] - newchi[i]) > eps:
                    continue
                w = a + v[j] - chi[i]
                if w > self.vaux[i] + eps:
                    improved = True
                    self.vaux[i] = w
                    newpi[i] = j
                    newc[i] = a

        self.pi = newpi
        self.c = newc
        self.vaux = list(v)
        return improved


# ============================================================================
# Public API
# ============================================================================


def howard(A: MatrixLike, max_iterations: Optional[int] = None) -> HowardResult:
    """
    Cycle times and bias of a square matrix by policy iteration.

    Args:
        A: Square matrix (classical data is lifted in max-plus)
        max_iterations: Bound on policy improvements; None uses
            max(1000, 100 * n)

    Returns:
        HowardResult with per-vertex cycle times, bias, final policy and
        its circuits

    Raises:
        DimensionMismatch: A is not square
        UndefinedSpectrum: A is empty or some row has no non-ε entry
        IterationLimitExceeded: No convergence within max_iterations

    Examples:
        >>> result = howard([[-np.inf, 2, -np.inf], [0, -np.inf, -np.inf], [-np.inf, -np.inf, 2]])
        >>> result['eigenvalues']
        array([1., 1., 2.])
        >>> result['eigenvector']
        array([1., 0., 2.])
    """
    A = as_matrix(A)
    if not A.is_square():
        raise DimensionMismatch(f"Matrix must be square, got shape {A.shape}")
    n = A.nrows
    if n == 0:
        raise UndefinedSpectrum("The spectrum of an empty matrix is undefined")

    # Min-plus is solved as the max-plus problem on -A
    sign = A._ops.sign
    arcs = sorted(((i, j, sign * a) for i, j, a in A.iter_entries()), key=lambda e: (e[1], e[0]))

    has_successor = np.zeros(n, dtype=bool)
    for i, _, _ in arcs:
        has_successor[i] = True
    if not has_successor.all():
        rows = np.flatnonzero(~has_successor).tolist()
        raise UndefinedSpectrum(
            f"Rows {rows} have no non-ε entry: these vertices reach no circuit",
            rows=rows,
        )

    if max_iterations is None:
        max_iterations = max(DEFAULT_MAX_ITERATIONS, ITERATIONS_PER_NODE * n)
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    state = _PolicyIteration(n, arcs)
    iterations = 0
    while True:
        components = state.value()
        final_chi, final_v = list(state.chi), list(state.v)
        final_cycles = list(state.cycles)
        improved = state.improve(components)
        iterations += 1
        if not improved:
            break
        if iterations >= max_iterations:
            raise IterationLimitExceeded(
                f"Policy iteration did not converge after {iterations} iterations"
            )

    cycles: List[PolicyCycle] = [
        {"nodes": nodes, "mean": sign * lam} for nodes, lam in final_cycles
    ]
    result: HowardResult = {
        "eigenvalues": sign * np.array(final_chi, dtype=np.float64),
        "eigenvector": sign * np.array(final_v, dtype=np.float64),
        "policy": np.array(state.pi, dtype=np.intp),
        "cycles": cycles,
        "components": components,
        "iterations": iterations,
    }
    return result


def eigen(
    A: MatrixLike, max_iterations: Optional[int] = None, atol: float = 1e-9
) -> Tuple[Tropical, TropicalMatrix]:
    """
    Eigenvalue and eigenvector with A ⊗ v = λ ⊗ v.

    Args:
        A: Square matrix (classical data is lifted in max-plus)
        max_iterations: See ``howard``
        atol: Tolerance when checking that all cycle times agree

    Returns:
        (λ, v) with λ a scalar and v an (n, 1) dense matrix

    Raises:
        DimensionMismatch: A is not square
        UndefinedSpectrum: Some row has no non-ε entry
        AmbiguousSpectrum: Vertices have different cycle times (reducible
            matrix with several closed classes); the per-vertex values are
            attached to the exception and available from ``howard``

    Examples:
        >>> lam, v = eigen([[2, 5], [1, 3]])
        >>> lam
        MaxPlus(3.0)
    """
    A = as_matrix(A)
    result = howard(A, max_iterations=max_iterations)
    chi = result["eigenvalues"]
    if np.ptp(chi) > atol:
        raise AmbiguousSpectrum(
            f"Cycle times differ across vertices (from {chi.min():g} to {chi.max():g}); "
            "use howard() for the per-vertex values",
            eigenvalues=chi,
        )
    ops = A._ops
    lam = A.scalar_type(ops.reduce(chi))
    v = DenseMatrix._adopt(result["eigenvector"].reshape(-1, 1), ops)
    return lam, v


__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "ITERATIONS_PER_NODE",
    "howard",
    "eigen",
]
