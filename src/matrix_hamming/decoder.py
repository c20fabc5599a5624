from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from .bitstream import BitSource
from .matrix import BlockMatrix, Cell, accumulate_parity

logger = logging.getLogger(__name__)


class BlockStatus(enum.Enum):
    """The outcome of checking a block."""

    Clean = enum.auto()
    Corrected = enum.auto()
    Uncorrectable = enum.auto()


@dataclass
class ErrorCounters:
    """Errors seen during one decode session.

    `errors` only grows and `correctable` never goes back to True.
    """

    errors: int = 0
    correctable: bool = True
    blocks: int = 0
    corrected_blocks: int = 0
    uncorrectable_blocks: int = 0

    def record(self, status: BlockStatus) -> None:
        self.blocks += 1
        match status:
            case BlockStatus.Clean:
                pass
            case BlockStatus.Corrected:
                self.errors += 1
                self.corrected_blocks += 1
            case BlockStatus.Uncorrectable:
                self.errors += 2
                self.correctable = False
                self.uncorrectable_blocks += 1


def deserialize(source: BitSource, matrix: BlockMatrix) -> int:
    """Read a block in wire order into `matrix`.

    Reads past the end of input become padding.

    Returns:
        The number of bits that were actually read.
    """
    layout = matrix.layout

    read = 0
    for order in (layout.wire_parity_order, layout.data_order):
        for index in order:
            cell = source.pop()
            matrix.cells[index] = cell
            if cell != Cell.Padding:
                read += 1

    return read


def syndrome(matrix: BlockMatrix) -> tuple[int, int]:
    """Return the hamming syndrome and the expected meta parity."""
    return accumulate_parity(matrix)


def check(matrix: BlockMatrix) -> tuple[BlockStatus, int]:
    """Classify the block without modifying it.

    Returns:
        The status and the linear index of the faulty bit. The index is only
        meaningful for `BlockStatus.Corrected`.
    """
    parity, meta_parity = syndrome(matrix)

    if parity == 0:
        return BlockStatus.Clean, 0

    # A single flip breaks the meta parity, a second one restores it.
    if meta_parity == matrix.get(0):
        return BlockStatus.Uncorrectable, parity

    # Bits that were never transmitted can't be the single faulty one.
    if matrix.get(parity) == Cell.Padding:
        return BlockStatus.Uncorrectable, parity

    return BlockStatus.Corrected, parity


def correct(matrix: BlockMatrix, counters: ErrorCounters) -> BlockStatus:
    """Check the block, fix a single error in place and update `counters`."""
    status, index = check(matrix)

    match status:
        case BlockStatus.Clean:
            pass
        case BlockStatus.Corrected:
            logger.debug(f"Correcting a bit error at {matrix.position(index)}")
            matrix.flip(index)
        case BlockStatus.Uncorrectable:
            logger.warning(
                f"Detected an uncorrectable error in block {counters.blocks + 1}"
            )

    counters.record(status)
    return status


def extract_payload(matrix: BlockMatrix) -> npt.NDArray[np.uint8]:
    """Return the data bits in row-major order, without padding."""
    data = matrix.cells[matrix.layout.data_order]
    return data[data != Cell.Padding]


def decode_block(
    source: BitSource, matrix: BlockMatrix, counters: ErrorCounters
) -> npt.NDArray[np.uint8]:
    """Decode the next block from `source`, returning its payload bits."""
    _ = deserialize(source, matrix)
    _ = correct(matrix, counters)
    return extract_payload(matrix)
