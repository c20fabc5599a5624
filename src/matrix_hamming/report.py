"""Statistics gathered over a session.

The session computes these; printing and saving is left to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Self

from pydantic import BaseModel
from typing_extensions import override

from .settings import Mode

logger = logging.getLogger(__name__)


class Report(BaseModel):
    dimension: int
    mode: Mode = Mode.Standard
    blocks: int = 0

    def summary(self) -> str:
        raise NotImplementedError

    def save(self, path: Path) -> None:
        """Save the report to `path` in json format.

        If the path is a directory, a file called `report.json` is created in
        it.
        """
        if path.is_dir():
            path = path.joinpath("report.json")

        if path.exists():
            logger.info(f'Overwriting the report at "{path}"')
        else:
            logger.info(f'Saving the report to a new file at "{path}"')

        with open(path, "w") as f:
            _ = f.write(self.model_dump_json())

    @classmethod
    def load(cls, path: Path) -> Self:
        with open(path, "r") as f:
            return cls.model_validate_json(f.read())


class EncodeReport(Report):
    input_bytes: int = 0
    output_bits: int = 0
    # Per block.
    redundant_bits: int = 0
    block_bits: int = 0

    def redundancy(self) -> float:
        """The share of redundant bits in a full block as a percentage."""
        if self.block_bits == 0:
            return 0.0
        return self.redundant_bits / self.block_bits * 100

    @override
    def summary(self) -> str:
        return f"{self.redundant_bits} parity bits / {self.block_bits} bit block = {self.redundancy():.2f}% redundancy"


class DecodeReport(Report):
    input_bits: int = 0
    output_bytes: int = 0
    errors: int = 0
    correctable: bool = True
    corrected_blocks: int = 0
    uncorrectable_blocks: int = 0
    # Trailing bits that didn't add up to a byte.
    dropped_bits: int = 0

    @override
    def summary(self) -> str:
        if self.mode == Mode.Vegetarian:
            return "Errors are not detected in vegetarian mode."

        if self.errors == 0:
            return "No errors detected."

        if self.correctable:
            return f"{self.errors} bit error(s) detected.\nAll errors corrected."

        return f"{self.errors} or more bit error(s) detected.\nNot all errors could be corrected."
