"""Block by block encoding and decoding of whole streams.

The caller owns the streams: encoding reads bytes and writes wire text,
decoding reads wire text and writes bytes.
"""

from __future__ import annotations

import functools
import io
import logging
from typing import IO, Any, BinaryIO, TextIO

import numpy as np

from .bitstream import (
    BITS_PER_BYTE,
    CHUNK_SIZE,
    ByteAssembler,
    ByteBitSource,
    WireBitSource,
    cells_to_wire,
)
from .decoder import ErrorCounters, decode_block
from .encoder import encode_block
from .matrix import BlockMatrix
from .report import DecodeReport, EncodeReport, Report
from .settings import DEFAULT_DIMENSION, Direction, Mode, Settings

logger = logging.getLogger(__name__)

# Every byte maps to a character so stray bytes show up as wire format errors.
WIRE_READ_ENCODING = "latin-1"
WIRE_WRITE_ENCODING = "ascii"


def encode_stream(
    input: BinaryIO, output: TextIO, dimension: int = DEFAULT_DIMENSION
) -> EncodeReport:
    """Encode all bytes of `input` as matrix blocks written to `output`."""
    matrix = BlockMatrix(dimension)
    source = ByteBitSource.from_stream(input)

    report = EncodeReport(
        dimension=matrix.dimension,
        redundant_bits=matrix.layout.redundant_bits_count,
        block_bits=matrix.layout.capacity,
    )

    logger.debug(
        f"Encoding with {matrix.layout.payload_bits_count} payload bits per block"
    )

    while not source.exhausted:
        wire = encode_block(matrix, source)
        _ = output.write(wire)
        report.blocks += 1
        report.output_bits += len(wire)

    report.input_bytes = source.bytes_read
    logger.info(f"Encoded {report.input_bytes} bytes into {report.blocks} blocks")
    return report


def decode_stream(
    input: TextIO, output: BinaryIO, dimension: int = DEFAULT_DIMENSION
) -> DecodeReport:
    """Decode the wire text of `input`, writing the recovered bytes to `output`."""
    matrix = BlockMatrix(dimension)
    source = WireBitSource.from_stream(input)
    assembler = ByteAssembler()
    counters = ErrorCounters()

    while not source.exhausted:
        payload = decode_block(source, matrix, counters)
        _ = output.write(assembler.push_bits(payload))

    report = DecodeReport(
        dimension=matrix.dimension,
        blocks=counters.blocks,
        input_bits=source.bits_read,
        output_bytes=assembler.bytes_written,
        errors=counters.errors,
        correctable=counters.correctable,
        corrected_blocks=counters.corrected_blocks,
        uncorrectable_blocks=counters.uncorrectable_blocks,
        dropped_bits=assembler.drop_partial(),
    )

    logger.info(
        f"Decoded {report.blocks} blocks into {report.output_bytes} bytes, {report.errors} bit error(s)"
    )
    return report


def encode_vegetarian(input: BinaryIO, output: TextIO) -> EncodeReport:
    """Write every input byte as 8 wire bits, without any parity."""
    report = EncodeReport(
        dimension=DEFAULT_DIMENSION,
        mode=Mode.Vegetarian,
        block_bits=BITS_PER_BYTE,
    )

    for chunk in iter(functools.partial(input.read, CHUNK_SIZE), b""):
        bits = np.unpackbits(np.frombuffer(chunk, dtype=np.uint8))
        _ = output.write(cells_to_wire(bits))
        report.input_bytes += len(chunk)
        report.output_bits += bits.size

    report.blocks = report.input_bytes
    return report


def decode_vegetarian(input: TextIO, output: BinaryIO) -> DecodeReport:
    """Reassemble bytes from groups of 8 wire bits."""
    source = WireBitSource.from_stream(input)
    assembler = ByteAssembler()

    out = bytearray()
    for bit in source:
        byte = assembler.push(bit)
        if byte is not None:
            out.append(byte)
        if len(out) >= CHUNK_SIZE:
            _ = output.write(out)
            out.clear()
    _ = output.write(out)

    return DecodeReport(
        dimension=DEFAULT_DIMENSION,
        mode=Mode.Vegetarian,
        blocks=assembler.bytes_written,
        input_bits=source.bits_read,
        output_bytes=assembler.bytes_written,
        dropped_bits=assembler.drop_partial(),
    )


def stream_modes(direction: Direction) -> tuple[str, str]:
    """Return the `open` modes for the input and output of a session."""
    match direction:
        case Direction.Encode:
            return "rb", "w"
        case Direction.Decode:
            return "r", "wb"


def stream_encodings(direction: Direction) -> tuple[str | None, str | None]:
    """Return the text encodings to pair with `stream_modes`."""
    match direction:
        case Direction.Encode:
            return None, WIRE_WRITE_ENCODING
        case Direction.Decode:
            return WIRE_READ_ENCODING, None


def run_session(settings: Settings, input: IO[Any], output: IO[Any]) -> Report:
    """Run a full session on already opened streams.

    See `stream_modes` for the expected stream types.
    """
    logger.debug(f"Starting session with {settings}")

    match (settings.direction, settings.mode):
        case (Direction.Encode, Mode.Standard):
            return encode_stream(input, output, settings.dimension)
        case (Direction.Decode, Mode.Standard):
            return decode_stream(input, output, settings.dimension)
        case (Direction.Encode, Mode.Vegetarian):
            return encode_vegetarian(input, output)
        case (Direction.Decode, Mode.Vegetarian):
            return decode_vegetarian(input, output)


def encode_bytes(
    data: bytes, dimension: int = DEFAULT_DIMENSION, mode: Mode = Mode.Standard
) -> str:
    """Encode `data` in memory and return the wire text."""
    settings = Settings(Direction.Encode, dimension, mode)
    output = io.StringIO()
    _ = run_session(settings, io.BytesIO(data), output)
    return output.getvalue()


def decode_text(
    text: str, dimension: int = DEFAULT_DIMENSION, mode: Mode = Mode.Standard
) -> tuple[bytes, DecodeReport]:
    """Decode wire text in memory.

    Returns:
        The recovered bytes and the error statistics.
    """
    settings = Settings(Direction.Decode, dimension, mode)
    output = io.BytesIO()
    report = run_session(settings, io.StringIO(text), output)
    assert isinstance(report, DecodeReport)
    return output.getvalue(), report
