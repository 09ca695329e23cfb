from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from machodeps.logger import machodeps_logger
from machodeps.macho.macho_binary import MachoBinary
from machodeps.macho.macho_errors import MachoDecodeError
from machodeps.macho.macho_parse import MachoParser
from machodeps.macho.macho_slice import SliceReport

logger = machodeps_logger.getChild(__name__.rsplit(".", 1)[-1])


def decode(source: BinaryIO, name: Optional[str] = None) -> List[SliceReport]:
    """Decode the dependency information of every Mach-O slice within a seekable binary input

    A slice which fails to decode is logged and skipped; its siblings are still decoded.

    Args:
        source: Seekable, readable binary input holding a thin Mach-O or a FAT archive
        name: Name to refer to the input by in diagnostics. Defaults to the input's file name, if it has one

    Returns:
        One SliceReport per decoded slice, in the order the input declares the slices. Empty if the input isn't a
        Mach-O or FAT archive.
    """
    parser = MachoParser(source, name)

    reports: List[SliceReport] = []
    for arch_slice in parser.locate():
        try:
            binary = MachoBinary(source, arch_slice)
        except MachoDecodeError as e:
            logger.warning(f"{parser.name}: skipping {arch_slice.architecture_name} slice: {e}")
            continue
        reports.append(binary.report())
    return reports


def decode_path(path: Union[str, Path]) -> List[SliceReport]:
    """Open the file at a path and decode it. A file which cannot be opened or read is logged and yields no reports."""
    try:
        with open(path, "rb") as binary_file:
            return decode(binary_file, str(path))
    except OSError as e:
        logger.warning(f"Could not open file: {path} ({e.strerror or e})")
        return []
