"""
Toshiba COM extractor CLI entry point.

Extracts the firmware image from a compressed COM file used in Toshiba BIOS updates.

Usage::

    comextract update.com image.bin
    python -m comextract update.com image.bin --verbose

Options:
    -v, --verbose   Enable debug logging
    --no-color      Disable colored logging output
    --keep-going    Skip segments that fail to decode instead of aborting

Exit codes:
    0  success
    1  extraction failed (no segment found, or a segment failed to decode)
    2  input file cannot be opened
    3  out of memory
    4  input file cannot be read
    5  output file cannot be created
    6  output file cannot be written
    7  wrong arguments
"""

from __future__ import annotations

import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import NoReturn, Sequence

from comextract.config import ExtractConfig
from comextract.container import extract
from comextract.exceptions import ComExtractError

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit status, one value per failure class."""

    OK = 0
    EXTRACTION_FAILED = 1
    CANNOT_OPEN_INPUT = 2
    OUT_OF_MEMORY = 3
    CANNOT_READ_INPUT = 4
    CANNOT_CREATE_OUTPUT = 5
    CANNOT_WRITE_OUTPUT = 6
    USAGE = 7


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with the tool's own exit code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ExitCode.USAGE, f"{self.prog}: error: {message}\n")


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = self.formatTime(record, self.datefmt)
        colored_time = f"{self.CYAN}{timestamp}{self.RESET}"

        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        return f"{colored_time} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the extractor with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def read_input(path: Path) -> bytes | ExitCode:
    """
    Read the whole input file.

    Returns:
        The file contents, or the exit code describing why it could not be read.
    """
    try:
        file = path.open("rb")
    except OSError as e:
        logger.error("Can't open input file: %s", e)
        return ExitCode.CANNOT_OPEN_INPUT

    with file:
        try:
            return file.read()
        except MemoryError:
            logger.error("Can't allocate memory for input file")
            return ExitCode.OUT_OF_MEMORY
        except OSError as e:
            logger.error("Can't read input file: %s", e)
            return ExitCode.CANNOT_READ_INPUT


def write_output(path: Path, image: bytes) -> ExitCode:
    """Write the extracted image, returning the matching exit code."""
    try:
        file = path.open("wb")
    except OSError as e:
        logger.error("Can't create output file: %s", e)
        return ExitCode.CANNOT_CREATE_OUTPUT

    with file:
        try:
            file.write(image)
        except OSError as e:
            logger.error("Can't write to output file: %s", e)
            return ExitCode.CANNOT_WRITE_OUTPUT

    return ExitCode.OK


def run(infile: Path, outfile: Path, config: ExtractConfig) -> ExitCode:
    """
    Extract the image from `infile` into `outfile`.

    Args:
        infile: The COM file to read.
        outfile: Where to write the extracted image.
        config: Scanner configuration.

    Returns:
        The process exit code.
    """
    data = read_input(infile)
    if isinstance(data, ExitCode):
        return data

    try:
        image = extract(data, config)
    except MemoryError:
        logger.error("Can't allocate memory for output image")
        return ExitCode.OUT_OF_MEMORY
    except ComExtractError as e:
        logger.error("Extraction failed: %s", e)
        return ExitCode.EXTRACTION_FAILED

    status = write_output(outfile, image)
    if status == ExitCode.OK:
        logger.info("Wrote %d bytes to %s", len(image), outfile)
    return status


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = ArgumentParser(
        prog="comextract",
        description=(
            "Toshiba COM Extractor - extracts payload from compressed COM file "
            "used in Toshiba BIOS updates"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("infile", type=Path, help="Path to the COM update file")
    parser.add_argument("outfile", type=Path, help="Path to write the extracted image to")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip segments that fail to decode instead of aborting",
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.no_color)

    config = ExtractConfig(continue_on_error=args.keep_going)
    return int(run(args.infile, args.outfile, config))


if __name__ == "__main__":
    sys.exit(main())
