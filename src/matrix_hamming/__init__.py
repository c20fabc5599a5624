"Extended hamming (SECDED) codes on square bit matrices"

from .bitstream import (
    BitBuffer,
    ByteAssembler,
    ByteBitSource,
    WireBitSource,
)
from .decoder import (
    BlockStatus,
    ErrorCounters,
    decode_block,
)
from .encoder import encode_block
from .errors import (
    ConfigurationError,
    MatrixHammingError,
    WireFormatError,
)
from .matrix import (
    BlockMatrix,
    Cell,
    CellKind,
    classify,
    layout_for,
)
from .report import DecodeReport, EncodeReport
from .session import (
    decode_stream,
    decode_text,
    encode_bytes,
    encode_stream,
    run_session,
)
from .settings import (
    Direction,
    Mode,
    ReportLevel,
    Settings,
)

__all__ = [
    "BitBuffer",
    "BlockMatrix",
    "BlockStatus",
    "ByteAssembler",
    "ByteBitSource",
    "Cell",
    "CellKind",
    "ConfigurationError",
    "DecodeReport",
    "Direction",
    "EncodeReport",
    "ErrorCounters",
    "MatrixHammingError",
    "Mode",
    "ReportLevel",
    "Settings",
    "WireBitSource",
    "WireFormatError",
    "classify",
    "decode_block",
    "decode_stream",
    "decode_text",
    "encode_block",
    "encode_bytes",
    "encode_stream",
    "layout_for",
    "run_session",
]
