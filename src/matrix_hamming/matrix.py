"""The square bit matrix holding a single block.

Example 4x4 block::

    +---------------+
    | E | P | P | x |
    | P | x | x | x |
    | P | x | x | x |
    | x | x | x | x |
    +---------------+

E is the meta (extended) parity bit, P the hamming parity bits and x the data
bits. The linear index of a cell `(i, j)` is `i * dimension + j`, which places
the parity bits at the power of two indices 1, 2, 4, ...
"""

from __future__ import annotations

import enum
import functools
import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
from typing_extensions import override

from .settings import is_power_of_two, validate_dimension


class Cell(enum.IntEnum):
    """The value of a single matrix cell."""

    Zero = 0
    One = 1
    Padding = 2

    @classmethod
    def from_bit(cls, bit: int) -> Cell:
        match bit:
            case 0:
                return Cell.Zero
            case 1:
                return Cell.One
            case _:
                raise ValueError(f"Expected a bit, got {bit}")

    def symbol(self) -> str:
        match self:
            case Cell.Zero:
                return "0"
            case Cell.One:
                return "1"
            case Cell.Padding:
                return "."


class CellKind(enum.Enum):
    MetaParity = enum.auto()
    Parity = enum.auto()
    Data = enum.auto()


def classify(i: int, j: int, dimension: int) -> CellKind:
    """Return the role of the cell at row `i` and column `j`.

    Raises:
        IndexError:
            If the position is outside of the matrix.
    """
    if not (0 <= i < dimension and 0 <= j < dimension):
        raise IndexError(f"Position ({i}, {j}) is outside a {dimension}x{dimension} matrix")

    if i == 0 and j == 0:
        return CellKind.MetaParity
    if i == 0 and is_power_of_two(j):
        return CellKind.Parity
    if j == 0 and is_power_of_two(i):
        return CellKind.Parity
    return CellKind.Data


@dataclass(frozen=True, eq=False)
class BlockLayout:
    """Precomputed geometry for a matrix dimension."""

    dimension: int
    kinds: tuple[CellKind, ...]
    # Meta parity first, then row 0, then column 0. This is the wire order.
    wire_parity_order: npt.NDArray[np.intp]
    # Row-major.
    data_order: npt.NDArray[np.intp]

    @property
    def capacity(self) -> int:
        return self.dimension * self.dimension

    @property
    def parity_bits_count(self) -> int:
        """The number of hamming parity bits, excluding meta parity."""
        return 2 * int(math.log2(self.dimension))

    @property
    def redundant_bits_count(self) -> int:
        """All the bits that don't carry data."""
        return self.parity_bits_count + 1

    @property
    def payload_bits_count(self) -> int:
        return self.capacity - self.redundant_bits_count

    def redundancy(self) -> float:
        """Return the share of redundant bits in a block as a percentage."""
        return self.redundant_bits_count / self.capacity * 100

    def kind(self, index: int) -> CellKind:
        return self.kinds[index]


@functools.cache
def layout_for(dimension: int) -> BlockLayout:
    """Compute the layout for a matrix dimension.

    Raises:
        ConfigurationError:
            For invalid dimensions.
    """
    dimension = validate_dimension(dimension)

    kinds = tuple(
        classify(i, j, dimension) for i in range(dimension) for j in range(dimension)
    )

    parity_order = [0]
    parity_order.extend(j for j in range(1, dimension) if is_power_of_two(j))
    parity_order.extend(
        i * dimension for i in range(1, dimension) if is_power_of_two(i)
    )

    data_order = [index for index, kind in enumerate(kinds) if kind == CellKind.Data]

    return BlockLayout(
        dimension=dimension,
        kinds=kinds,
        wire_parity_order=np.array(parity_order, dtype=np.intp),
        data_order=np.array(data_order, dtype=np.intp),
    )


class BlockMatrix:
    """A `dimension x dimension` grid of cells for one block.

    The cells are stored flat, indexed by their linear index.
    """

    def __init__(self, dimension: int) -> None:
        self.layout: BlockLayout = layout_for(dimension)
        self.cells: npt.NDArray[np.uint8] = np.zeros(
            self.layout.capacity, dtype=np.uint8
        )

    @property
    def dimension(self) -> int:
        return self.layout.dimension

    def linear_index(self, i: int, j: int) -> int:
        if not (0 <= i < self.dimension and 0 <= j < self.dimension):
            raise IndexError(
                f"Position ({i}, {j}) is outside a {self.dimension}x{self.dimension} matrix"
            )
        return i * self.dimension + j

    def position(self, index: int) -> tuple[int, int]:
        """Return the (row, column) for a linear index."""
        if not (0 <= index < self.layout.capacity):
            raise IndexError(f"Linear index {index} is outside the matrix")
        return divmod(index, self.dimension)

    def __getitem__(self, position: tuple[int, int]) -> Cell:
        return Cell(int(self.cells[self.linear_index(*position)]))

    def __setitem__(self, position: tuple[int, int], value: Cell) -> None:
        self.cells[self.linear_index(*position)] = value

    def get(self, index: int) -> Cell:
        return Cell(int(self.cells[index]))

    def set(self, index: int, value: Cell) -> None:
        self.cells[index] = value

    def flip(self, index: int) -> None:
        """Toggle the bit at a linear index.

        Raises:
            ValueError:
                If the cell holds padding.
        """
        match self.get(index):
            case Cell.Zero:
                self.cells[index] = Cell.One
            case Cell.One:
                self.cells[index] = Cell.Zero
            case Cell.Padding:
                raise ValueError(f"Cannot flip padding at {self.position(index)}")

    def clear(self) -> None:
        self.cells.fill(Cell.Zero)

    def grid(self) -> npt.NDArray[np.uint8]:
        """Return a 2D view of the cells."""
        return self.cells.reshape(self.dimension, self.dimension)

    def ones(self) -> npt.NDArray[np.intp]:
        """Return the linear indices of all cells set to one."""
        return np.flatnonzero(self.cells == Cell.One)

    @override
    def __str__(self) -> str:
        return "\n".join(
            " ".join(Cell(int(value)).symbol() for value in row) for row in self.grid()
        )

    @override
    def __repr__(self) -> str:
        return f"BlockMatrix(dimension={self.dimension})"


def accumulate_parity(matrix: BlockMatrix) -> tuple[int, int]:
    """XOR the linear indices of all set cells.

    The meta parity cell at index 0 is left out.

    Returns:
        The xor of the indices and the parity of the number of set cells.
    """
    ones = matrix.ones()
    ones = ones[ones != 0]
    if ones.size == 0:
        return 0, 0
    return int(np.bitwise_xor.reduce(ones)), int(ones.size & 1)
