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
Flowshop Event Graphs

Builds the max-plus descriptor system of a flowshop: pieces visit the
machines in a fixed order, each machine processes pieces in a fixed
order, and E[j, i] is the processing time of piece i on machine j (ε
when machine j skips piece i).

Each task (i, j) is a transition whose firing date is its start time:

    x_ij = x_(previous piece on j) ⊗ E[j, previous piece]
         ⊕ x_(previous machine of i) ⊗ E[previous machine, i]
         ⊕ u (for the first task of a piece or of a machine)

All precedences happen within one production run, so they live in the
implicit matrix D and A is all-ε. Inputs are the availability dates of
the pieces then of the machines; outputs are the completion dates of the
pieces then of the machines.

Usage
-----
>>> from mpdesym.systems.flowshop import flowshop
>>>
>>> S = flowshop([[1, 2], [3, 4]])
>>> S.simulate([[0], [0], [0], [0]])['outputs'].to_numpy().ravel()
array([4., 8., 3., 8.])
"""

import warnings
from typing import Dict, List, Optional

from mpdesym.algebra.matrix import SparseMatrix, as_matrix, zeros
from mpdesym.systems.syslin import LinearSystem
from mpdesym.types.core import MatrixLike


def flowshop(E: MatrixLike) -> LinearSystem:
    """
    Max-plus linear system of a flowshop.

    Args:
        E: (nmach, npiece) processing times; ε means no operation

    Returns:
        LinearSystem with nx = nmach * npiece, nu = ny = npiece + nmach.
        State (i, j) has index i + j * npiece.

    Examples:
        >>> S = flowshop([[1, 2], [3, 4]])
        >>> S.dims
        DimensionTuple(nx=4, nu=4, ny=4)
    """
    E = as_matrix(E, semiring="maxplus")
    nmach, npiece = E.shape
    n = nmach * npiece
    one = E._ops.one

    def node(piece: int, machine: int) -> int:
        return piece + machine * npiece

    D: Dict = {}
    B: Dict = {}
    C: Dict = {}
    last_piece: List[Optional[int]] = [None] * nmach
    last_machine: List[Optional[int]] = [None] * npiece

    for i in range(npiece):
        for j in range(nmach):
            if E.get(j, i).is_zero():
                continue
            k = node(i, j)
            p = last_piece[j]
            if p is None:
                B[(k, npiece + j)] = one
            else:
                D[(k, node(p, j))] = E.get(j, p)
            m = last_machine[i]
            if m is None:
                B[(k, i)] = one
            else:
                D[(k, node(i, m))] = E.get(m, i)
            last_piece[j] = i
            last_machine[i] = j

        m = last_machine[i]
        if m is None:
            warnings.warn(
                f"Piece {i} has no operation; its output stays ε", UserWarning, stacklevel=2
            )
        else:
            C[(i, node(i, m))] = E.get(m, i)

    for j in range(nmach):
        p = last_piece[j]
        if p is None:
            warnings.warn(
                f"Machine {j} processes no piece; its output stays ε", UserWarning, stacklevel=2
            )
        else:
            C[(npiece + j, node(p, j))] = E.get(j, p)

    ports = npiece + nmach
    return LinearSystem(
        A=zeros(n, n, "maxplus", "sparse"),
        B=SparseMatrix((n, ports), "maxplus", B),
        C=SparseMatrix((ports, n), "maxplus", C),
        D=SparseMatrix((n, n), "maxplus", D),
        x0=zeros(n, 1, "maxplus", "sparse"),
    )


__all__ = ["flowshop"]
