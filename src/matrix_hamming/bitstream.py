"""Conversions between bytes, bits and the `0`/`1` wire text.

End of input is never an error here. Sources report it by returning
`Cell.Padding` and through their `exhausted` property.
"""

from __future__ import annotations

import abc
import functools
import logging
from collections.abc import Iterable, Iterator
from typing import BinaryIO, TextIO

import numpy as np
import numpy.typing as npt
from typing_extensions import override

from .errors import WireFormatError
from .matrix import Cell

logger = logging.getLogger(__name__)

BITS_PER_BYTE = 8
CHUNK_SIZE = 1 << 16


def byte_to_bits(byte: int) -> list[int]:
    """Split a byte into bits, most significant first."""
    if not (0 <= byte <= 0xFF):
        raise ValueError(f"Expected a byte, got {byte}")
    return [(byte >> (BITS_PER_BYTE - 1 - i)) & 1 for i in range(BITS_PER_BYTE)]


def bits_to_byte(bits: Iterable[int]) -> int:
    """Combine 8 bits, most significant first, into a byte."""
    byte = 0
    count = 0
    for bit in bits:
        if bit not in (0, 1):
            raise ValueError(f"Expected a bit, got {bit}")
        byte = (byte << 1) | bit
        count += 1

    if count != BITS_PER_BYTE:
        raise ValueError(f"Expected {BITS_PER_BYTE} bits, got {count}")
    return byte


def cells_to_wire(cells: npt.NDArray[np.uint8]) -> str:
    """Render zero/one cells as wire text.

    Raises:
        ValueError:
            If there's padding among the cells.
    """
    if np.any(cells > Cell.One):
        raise ValueError("Padding cannot be written to the wire")
    return (cells + ord("0")).astype(np.uint8).tobytes().decode("ascii")


class BitBuffer:
    """A fixed capacity queue of bits.

    Writing and reading use separate cursors. Once the write cursor reaches the
    capacity the buffer is full and has to be `reset` before it accepts more
    bits, no matter how many have been read.
    """

    def __init__(self, capacity: int = BITS_PER_BYTE) -> None:
        if capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {capacity}")

        self.capacity: int = capacity
        self._bits: list[int] = [0] * capacity
        self._read: int = 0
        self._write: int = 0

    @property
    def size(self) -> int:
        """The number of bits written but not yet read."""
        return self._write - self._read

    def is_full(self) -> bool:
        return self._write == self.capacity

    def is_drained(self) -> bool:
        return self._read == self._write

    def push(self, bit: int) -> None:
        if self.is_full():
            raise BufferError("Cannot push into a full bit buffer")
        self._bits[self._write] = bit
        self._write += 1

    def pop(self) -> int:
        if self.is_drained():
            raise BufferError("Cannot pop from a drained bit buffer")
        bit = self._bits[self._read]
        self._read += 1
        return bit

    def reset(self) -> None:
        self._read = 0
        self._write = 0

    def load_byte(self, byte: int) -> None:
        """Replace the contents with the bits of `byte`.

        Raises:
            BufferError:
                If there are unread bits left.
        """
        if not self.is_drained():
            raise BufferError(f"Refilling a buffer with {self.size} unread bits")
        if self.capacity != BITS_PER_BYTE:
            raise BufferError(f"Cannot load a byte into a {self.capacity} bit buffer")

        self.reset()
        for bit in byte_to_bits(byte):
            self.push(bit)

    def to_byte(self) -> int:
        """Return the byte made of the buffered bits."""
        if not self.is_full() or self._read != 0:
            raise BufferError(
                f"Need {BITS_PER_BYTE} unread bits to make a byte, have {self.size}"
            )
        return bits_to_byte(self._bits)


class BitSource(abc.ABC):
    @property
    @abc.abstractmethod
    def exhausted(self) -> bool:
        """True if every following `pop` would return padding."""
        ...

    @abc.abstractmethod
    def pop(self) -> Cell:
        """Return the next bit, or padding at the end of input."""
        ...


class ByteBitSource(BitSource):
    """Bits pulled lazily from a sequence of byte chunks.

    The buffer carries the unread bits of the current byte across blocks.
    """

    def __init__(self, chunks: Iterable[bytes], buffer: BitBuffer | None = None) -> None:
        self.buffer: BitBuffer = buffer if buffer is not None else BitBuffer()
        self.bytes_read: int = 0
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending: bytes = b""
        self._offset: int = 0

    @classmethod
    def from_stream(cls, stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> ByteBitSource:
        return cls(iter(functools.partial(stream.read, chunk_size), b""))

    @classmethod
    def from_bytes(cls, data: bytes) -> ByteBitSource:
        return cls([data])

    def _next_byte(self) -> int | None:
        while self._offset >= len(self._pending):
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return None
            self._offset = 0

        byte = self._pending[self._offset]
        self._offset += 1
        self.bytes_read += 1
        return byte

    def _refill(self) -> bool:
        """Make sure there's an unread bit in the buffer, if possible."""
        if not self.buffer.is_drained():
            return True

        byte = self._next_byte()
        if byte is None:
            return False

        self.buffer.load_byte(byte)
        return True

    @property
    @override
    def exhausted(self) -> bool:
        """True once all input bytes and the carried over bits are consumed."""
        return not self._refill()

    @override
    def pop(self) -> Cell:
        """Return the next bit or padding at the end of input."""
        if not self._refill():
            return Cell.Padding
        return Cell.from_bit(self.buffer.pop())

    def __iter__(self) -> Iterator[int]:
        while self._refill():
            yield self.buffer.pop()


class WireBitSource(BitSource):
    """Bits pulled lazily from wire text.

    Whitespace is skipped. Any other character besides `0` and `1` raises a
    `WireFormatError`.
    """

    def __init__(self, chunks: Iterable[str]) -> None:
        self.bits_read: int = 0
        self._chunks: Iterator[str] = iter(chunks)
        self._pending: str = ""
        self._index: int = 0
        # Position in the whole input, for error messages.
        self._offset: int = 0

    @classmethod
    def from_stream(cls, stream: TextIO, chunk_size: int = CHUNK_SIZE) -> WireBitSource:
        return cls(iter(functools.partial(stream.read, chunk_size), ""))

    @classmethod
    def from_text(cls, text: str) -> WireBitSource:
        return cls([text])

    def _skip_whitespace(self) -> bool:
        """Advance to the next significant character.

        Returns False at the end of input.
        """
        while True:
            while self._index < len(self._pending):
                if not self._pending[self._index].isspace():
                    return True
                self._index += 1
                self._offset += 1

            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return False
            self._index = 0

    @property
    @override
    def exhausted(self) -> bool:
        return not self._skip_whitespace()

    @override
    def pop(self) -> Cell:
        """Return the next bit or padding at the end of input.

        Raises:
            WireFormatError:
                For characters other than `0`, `1` and whitespace.
        """
        if not self._skip_whitespace():
            return Cell.Padding

        char = self._pending[self._index]
        match char:
            case "0":
                cell = Cell.Zero
            case "1":
                cell = Cell.One
            case _:
                raise WireFormatError(char, self._offset)

        self._index += 1
        self._offset += 1
        self.bits_read += 1
        return cell

    def __iter__(self) -> Iterator[int]:
        while self._skip_whitespace():
            yield int(self.pop())


class ByteAssembler:
    """Collects bits into bytes, most significant bit first."""

    def __init__(self, buffer: BitBuffer | None = None) -> None:
        self.buffer: BitBuffer = buffer if buffer is not None else BitBuffer()
        self.bytes_written: int = 0

    @property
    def pending_bits(self) -> int:
        return self.buffer.size

    def push(self, bit: int) -> int | None:
        """Add a bit, returning the completed byte if there is one."""
        self.buffer.push(bit)
        if not self.buffer.is_full():
            return None

        byte = self.buffer.to_byte()
        self.buffer.reset()
        self.bytes_written += 1
        return byte

    def push_bits(self, bits: Iterable[int]) -> bytes:
        """Add several bits, returning all the bytes they completed."""
        out = bytearray()
        for bit in bits:
            byte = self.push(int(bit))
            if byte is not None:
                out.append(byte)
        return bytes(out)

    def drop_partial(self) -> int:
        """Discard an incomplete trailing byte and return how many bits it had."""
        dropped = self.buffer.size
        if dropped > 0:
            logger.debug(f"Dropping {dropped} trailing bits that don't form a byte")
        self.buffer.reset()
        return dropped
