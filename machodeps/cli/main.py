import argparse
import logging
from typing import List, Optional

from machodeps.cli.utils import StringPalette, _StringPalette, print_slice_reports
from machodeps.macho import decode_path


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(description="List the dylib ID, dependencies and rpaths of Mach-O binaries")
    arg_parser.add_argument("--verbose", action="store_true", help="Output extra info while decoding")
    arg_parser.add_argument("--no-color", action="store_true", help="Print the report without ANSI colors")
    arg_parser.add_argument(
        "binary_paths", metavar="binary_path", type=str, nargs="+", help="Path to a Mach-O or FAT binary"
    )
    return arg_parser


def configure_logger(verbose: bool) -> None:
    # Diagnostics go to stderr, so they stay out of the report on stdout
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """Decode and print a report for every path on the command line

    A file which can't be decoded is reported with no slices, and the remaining files are still processed.
    argparse exits with a non-zero status when no paths are given.
    """
    args = build_arg_parser().parse_args(argv)
    configure_logger(args.verbose)

    palette = _StringPalette if args.no_color else StringPalette
    for binary_path in args.binary_paths:
        print_slice_reports(binary_path, decode_path(binary_path), palette)
        print()
    return 0
