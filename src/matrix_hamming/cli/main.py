from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import numpy as np
import typer

from matrix_hamming.errors import ConfigurationError, WireFormatError
from matrix_hamming.fault_injector import WireFaultInjector
from matrix_hamming.report import Report
from matrix_hamming.session import (
    WIRE_READ_ENCODING,
    run_session,
    stream_encodings,
    stream_modes,
)
from matrix_hamming.settings import (
    DEFAULT_DIMENSION,
    Direction,
    Mode,
    ReportLevel,
    Settings,
    validate_dimension,
)

from .utils import derive_output_path, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Encode and decode files with an extended hamming code laid out as a square bit matrix.",
    no_args_is_help=True,
)


def parse_size(value: int) -> int:
    try:
        return validate_dimension(value)
    except ConfigurationError as e:
        raise typer.BadParameter(str(e)) from e


InputArg = Annotated[
    Path,
    typer.Argument(
        exists=True,
        dir_okay=False,
        readable=True,
        help="The file to read.",
    ),
]
OutputOpt = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        dir_okay=False,
        help="The file to write. \
By default `_encoded`, `_decoded` or `_faulty` is added to the input file name.",
    ),
]
SizeOpt = Annotated[
    int,
    typer.Option(
        "--size",
        "-s",
        callback=parse_size,
        help="The matrix size. Must be a power of 2 in range [2, 256].",
        rich_help_panel="Encoding settings",
    ),
]
VegetarianOpt = Annotated[
    bool,
    typer.Option(
        "--vegetarian",
        "-v",
        help="Write the raw bits without any parity.",
        rich_help_panel="Encoding settings",
    ),
]
QuietOpt = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Don't print the statistics at the end.",
    ),
]
ReportOpt = Annotated[
    Path | None,
    typer.Option(
        "--report",
        help="Save the statistics to this path in json format. \
If the path is a directory then the file will be called report.json",
    ),
]


def run(
    direction: Direction,
    input: Path,
    output: Path | None,
    size: int,
    vegetarian: bool,
    quiet: bool,
    report_path: Path | None,
) -> Report:
    settings = Settings(
        direction=direction,
        dimension=size,
        mode=Mode.Vegetarian if vegetarian else Mode.Standard,
        report_level=ReportLevel.Quiet if quiet else ReportLevel.Normal,
    )

    if output is None:
        output = derive_output_path(input, f"{direction.value}d")

    if output.resolve() == input.resolve():
        logger.error("The output file must differ from the input file")
        raise typer.Exit(1)

    input_mode, output_mode = stream_modes(direction)
    input_encoding, output_encoding = stream_encodings(direction)

    logger.info(f'Writing to "{output}"')

    try:
        with (
            open(input, input_mode, encoding=input_encoding) as src,
            open(output, output_mode, encoding=output_encoding) as dst,
        ):
            report = run_session(settings, src, dst)
    except WireFormatError as e:
        logger.error(f'"{input}" is not a valid encoded file: {e}')
        raise typer.Exit(1)
    except OSError as e:
        logger.error(f"{e}")
        raise typer.Exit(1)

    if not settings.quiet:
        print(report.summary())

    if report_path is not None:
        report.save(report_path.expanduser())

    return report


@app.command()
def encode(
    input: InputArg,
    output: OutputOpt = None,
    size: SizeOpt = DEFAULT_DIMENSION,
    vegetarian: VegetarianOpt = False,
    quiet: QuietOpt = False,
    report_path: ReportOpt = None,
):
    """Encode a file into `0`/`1` text made of hamming blocks."""
    _ = run(Direction.Encode, input, output, size, vegetarian, quiet, report_path)


@app.command()
def decode(
    input: InputArg,
    output: OutputOpt = None,
    size: SizeOpt = DEFAULT_DIMENSION,
    vegetarian: VegetarianOpt = False,
    quiet: QuietOpt = False,
    report_path: ReportOpt = None,
):
    """Decode a file written by `encode`, correcting the errors it can."""
    _ = run(Direction.Decode, input, output, size, vegetarian, quiet, report_path)


@app.command()
def inject(
    input: InputArg,
    output: OutputOpt = None,
    faults_count: Annotated[
        int,
        typer.Option(
            "--faults-count",
            "-n",
            min=0,
            help="How many unique bits to flip.",
        ),
    ] = 1,
    seed: Annotated[
        int | None,
        typer.Option(help="Seed for choosing the bits."),
    ] = None,
    quiet: QuietOpt = False,
):
    """Flip random bits of an encoded file."""
    if output is None:
        output = derive_output_path(input, "faulty")

    injector = WireFaultInjector(
        input.read_text(encoding=WIRE_READ_ENCODING), np.random.default_rng(seed)
    )

    try:
        flipped = injector.fault_injector_inject_n(faults_count)
    except ValueError as e:
        logger.error(f"{e}")
        raise typer.Exit(1)

    _ = output.write_text(injector.text, encoding=WIRE_READ_ENCODING)

    if not quiet:
        print(f"Flipped {len(flipped)}/{injector.bits_count()} bits: {flipped}")


def main():
    setup_logging()
    app()


if __name__ == "__main__":
    main()
