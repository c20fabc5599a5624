import logging

import numpy as np

from .bitstream import BitSource, cells_to_wire
from .matrix import BlockMatrix, Cell, accumulate_parity

logger = logging.getLogger(__name__)


def fill(matrix: BlockMatrix, source: BitSource) -> int:
    """Fill the data cells from `source` in row-major order.

    All other cells are set to zero. Data cells past the end of input are
    filled with padding.

    Returns:
        The number of real data bits taken from the source.
    """
    matrix.clear()

    taken = 0
    for index in matrix.layout.data_order:
        cell = source.pop()
        matrix.cells[index] = cell
        if cell != Cell.Padding:
            taken += 1

    return taken


def compute_parity(matrix: BlockMatrix) -> None:
    """Set the hamming parity bits and the meta parity bit."""
    matrix.cells[matrix.layout.wire_parity_order] = Cell.Zero

    parity, meta_parity = accumulate_parity(matrix)

    # Each set bit k of the syndrome is cancelled by the parity cell at 1 << k.
    for k in range(parity.bit_length()):
        if (parity >> k) & 1:
            meta_parity ^= 1
            matrix.set(1 << k, Cell.One)

    matrix.set(0, Cell.from_bit(meta_parity))


def serialize(matrix: BlockMatrix) -> str:
    """Render a block in wire order.

    Parity bits come first, then the data bits in row-major order. The output
    stops at the first padding cell.
    """
    layout = matrix.layout

    parity = matrix.cells[layout.wire_parity_order]
    data = matrix.cells[layout.data_order]

    padding = np.flatnonzero(data == Cell.Padding)
    if padding.size > 0:
        data = data[: padding[0]]

    return cells_to_wire(parity) + cells_to_wire(data)


def encode_block(matrix: BlockMatrix, source: BitSource) -> str:
    """Encode the next block from `source`."""
    taken = fill(matrix, source)
    compute_parity(matrix)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Encoded a block with {taken} data bits:\n{matrix}")
    return serialize(matrix)
