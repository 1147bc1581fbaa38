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
Trajectory Types

Result types for the simulation of descriptor max-plus systems:

    x(n) = D ⊗ x(n) ⊕ A ⊗ x(n-1) ⊕ B ⊗ u(n)
    y(n) = C ⊗ x(n)

In timed event graphs x_i(n) is the date of the n-th firing of
transition i, so trajectories are sequences of dates (daters).

Usage
-----
>>> from mpdesym.types.trajectories import SimulationResult
>>>
>>> result: SimulationResult = system.simulate(u)
>>> result['outputs'].to_numpy()
"""

from typing import TYPE_CHECKING

from typing_extensions import TypedDict

if TYPE_CHECKING:
    from mpdesym.algebra.matrix import TropicalMatrix


class SimulationResult(TypedDict):
    """
    Descriptor system simulation result.

    With ``history=True`` every column of the input sequence produces a
    column in ``states`` and ``outputs``; otherwise only the last one is
    kept.

    Fields
    ------
    states : TropicalMatrix
        State daters (nx, n_steps) or (nx, 1)
    outputs : TropicalMatrix
        Output daters (ny, n_steps) or (ny, 1)
    n_steps : int
        Number of simulated events

    Examples
    --------
    >>> result: SimulationResult = system.simulate([[1, 2, 3]])
    >>> result['n_steps']
    3
    """

    states: "TropicalMatrix"
    outputs: "TropicalMatrix"
    n_steps: int


__all__ = ["SimulationResult"]
