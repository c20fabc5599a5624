from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import ConfigurationError

MIN_DIMENSION = 2
MAX_DIMENSION = 256
DEFAULT_DIMENSION = 4


def is_power_of_two(n: int) -> bool:
    """Check if `n` is a power of two. Zero is not."""
    return n >= 1 and (n & (n - 1)) == 0


class Direction(enum.Enum):
    """Which way a session converts data."""

    Encode = "encode"
    Decode = "decode"


class Mode(enum.Enum):
    """How the bits are laid out on the wire.

    `Standard` uses the matrix code, `Vegetarian` dumps the raw bits without
    any parity.
    """

    Standard = "standard"
    Vegetarian = "vegetarian"


class ReportLevel(enum.Enum):
    Quiet = "quiet"
    Normal = "normal"


@dataclass(frozen=True)
class Settings:
    """The configuration of a single encode or decode session.

    Raises:
        ConfigurationError:
            If the dimension is out of range or not a power of two.
    """

    direction: Direction
    dimension: int = DEFAULT_DIMENSION
    mode: Mode = Mode.Standard
    report_level: ReportLevel = ReportLevel.Normal

    def __post_init__(self) -> None:
        validate_dimension(self.dimension)

    @property
    def quiet(self) -> bool:
        return self.report_level == ReportLevel.Quiet


def validate_dimension(dimension: int) -> int:
    """Return `dimension` if it's a valid matrix size.

    Raises:
        ConfigurationError:
            If the dimension is out of range or not a power of two.
    """
    # bool is an int subclass but never a meaningful size
    if isinstance(dimension, bool) or not isinstance(dimension, int):
        raise ConfigurationError(
            f"Matrix size must be an integer, got {type(dimension).__name__}"
        )

    if not (MIN_DIMENSION <= dimension <= MAX_DIMENSION):
        raise ConfigurationError(
            f"Matrix size must be in range [{MIN_DIMENSION}, {MAX_DIMENSION}], got {dimension}"
        )

    if not is_power_of_two(dimension):
        raise ConfigurationError(
            f"Matrix size must be a power of 2, got {dimension}"
        )

    return dimension
