class MatrixHammingError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(MatrixHammingError, ValueError):
    """The session settings are invalid."""


class WireFormatError(MatrixHammingError, ValueError):
    """The encoded input contains something other than `0`/`1` characters."""

    def __init__(self, char: str, offset: int) -> None:
        super().__init__(
            f"Unexpected character {char!r} at offset {offset}, expected `0` or `1`"
        )
        self.char = char
        self.offset = offset
