from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from .errors import WireFormatError

logger = logging.getLogger(__name__)


def wire_bit_offsets(text: str) -> npt.NDArray[np.intp]:
    """Return the character offsets of all bits in wire text.

    Raises:
        WireFormatError:
            For characters other than `0`, `1` and whitespace.
    """
    offsets: list[int] = []
    for offset, char in enumerate(text):
        if char in "01":
            offsets.append(offset)
        elif not char.isspace():
            raise WireFormatError(char, offset)
    return np.array(offsets, dtype=np.intp)


def flip_wire_bits(text: str, bits: Iterable[int]) -> str:
    """Flip the given bits of wire text.

    `bits` are bit indices, whitespace is not counted. Repeated indices are
    flipped repeatedly.
    """
    offsets = wire_bit_offsets(text)
    chars = list(text)

    for bit in bits:
        if not (0 <= bit < offsets.size):
            raise IndexError(f"Bit {bit} is outside the {offsets.size} wire bits")
        offset = offsets[bit]
        chars[offset] = "1" if chars[offset] == "0" else "0"

    return "".join(chars)


@dataclass
class WireFaultInjector:
    """Flips unique random bits in encoded wire text."""

    text: str
    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    def bits_count(self) -> int:
        return int(wire_bit_offsets(self.text).size)

    def fault_injector_inject_n(self, faults_count: int) -> list[int]:
        """Flip `faults_count` unique bits and return their indices, sorted.

        Raises:
            ValueError:
                If there are fewer bits than faults to inject.
        """
        if faults_count < 0:
            raise ValueError(f"Faults count must be non-negative, got {faults_count}")

        bits_count = self.bits_count()
        if faults_count > bits_count:
            raise ValueError(
                f"Cannot inject {faults_count} faults into {bits_count} bits"
            )

        if faults_count == 0:
            logger.warning("Skipping fault injection because the faults count is 0")
            return []

        chosen = self.rng.choice(bits_count, size=faults_count, replace=False)
        flipped = sorted(int(bit) for bit in chosen)
        logger.debug(f"Flipping bits {flipped}")

        self.text = flip_wire_bits(self.text, flipped)
        return flipped
