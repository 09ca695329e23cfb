import os
from ctypes import c_uint32, sizeof
from typing import BinaryIO, List, Optional, Type, TypeVar

from machodeps.logger import machodeps_logger
from machodeps.macho.arch_independent_structs import (
    ArchIndependentStructure,
    MachoFatArchStruct,
    MachoFatHeaderStruct,
    MachoHeaderStruct,
)
from machodeps.macho.arch_info import get_arch_name
from machodeps.macho.macho_binary import MachoBinary
from machodeps.macho.macho_definitions import MachArch, StaticFilePointer
from machodeps.macho.macho_errors import (
    ArchitectureNotSupportedError,
    MachoDecodeError,
    UnreadableInputError,
    UnresolvableArchitectureError,
)
from machodeps.macho.macho_slice import ArchitectureSlice

logger = machodeps_logger.getChild(__name__.rsplit(".", 1)[-1])

AIS = TypeVar("AIS", bound=ArchIndependentStructure)


class MachoParser:
    _FAT_MAGIC = [MachArch.FAT_MAGIC, MachArch.FAT_CIGAM, MachArch.FAT_MAGIC_64, MachArch.FAT_CIGAM_64]
    # FAT archives whose architecture descriptors use the fat_arch_64 layout
    _FAT_64_MAGIC = [MachArch.FAT_MAGIC_64, MachArch.FAT_CIGAM_64]
    _MACHO_MAGIC = MachoBinary.SUPPORTED_MAG
    _SWAPPED_MAG = [MachArch.FAT_CIGAM, MachArch.FAT_CIGAM_64, MachArch.MH_CIGAM, MachArch.MH_CIGAM_64]

    SUPPORTED_MAG = _FAT_MAGIC + _MACHO_MAGIC

    def __init__(self, source: BinaryIO, name: Optional[str] = None) -> None:
        self.source = source
        self.name = name or getattr(source, "name", "<stream>")

        self.header: Optional[MachoFatHeaderStruct] = None
        self.is_swapped: bool = False
        self.slices: List[ArchitectureSlice] = []

    def locate(self) -> List[ArchitectureSlice]:
        """Find the Mach-O slices within the input, in the order the input declares them

        Problems with the input are logged rather than raised. A slice whose architecture can't be named is skipped,
        and an input which isn't a Mach-O or FAT yields no slices.
        """
        try:
            self.parse()
        except MachoDecodeError as e:
            logger.warning(str(e))
            return []
        return self.slices

    def parse(self) -> None:
        """Parse a Mach-O or FAT archive represented by the input
        This method will throw an exception if the input is not a Mach-O or FAT archive, or if a thin Mach-O's header
        cannot be read or names an unknown architecture
        """
        if not self.is_magic_supported():
            raise ArchitectureNotSupportedError(f"File {self.name} is not a Mach-O file")

        self.is_swapped = self.should_swap_bytes()
        self.slices = []

        if self.is_fat:
            self.parse_fat_header()
        else:
            self.parse_thin_header()

    def parse_thin_header(self) -> None:
        """Parse the Mach-O header at the start of the input, and add the slice it describes to self.slices"""
        is_64bit = MachoBinary.magic_is_64(self.file_magic)
        header = self.read_struct(StaticFilePointer(0), MachoHeaderStruct, is_64bit=is_64bit)

        arch_name = get_arch_name(header.cputype, header.cpusubtype)
        if not arch_name:
            raise UnresolvableArchitectureError(header.cputype, header.cpusubtype)

        self.slices.append(ArchitectureSlice(arch_name, StaticFilePointer(0), is_64bit, self.is_swapped))

    def parse_fat_header(self) -> None:
        """Parse the FAT header implicitly found at the start of the input
        This method will also locate all Mach-O slices that the FAT describes
        """
        # start reading from the start of the file
        self.header = self.read_struct(StaticFilePointer(0), MachoFatHeaderStruct)
        # first fat_arch structure is directly after FAT header
        read_off = StaticFilePointer(self.header.sizeof)

        is_fat_64 = self.file_magic in MachoParser._FAT_64_MAGIC
        for i in range(self.header.nfat_arch):
            try:
                fat_arch = self.read_struct(read_off, MachoFatArchStruct, is_64bit=is_fat_64)
            except UnreadableInputError as e:
                logger.warning(f"{e}, stopping after {i} of {self.header.nfat_arch} architectures")
                return
            # move to next fat_arch structure in file
            read_off += fat_arch.sizeof

            arch_name = get_arch_name(fat_arch.cputype, fat_arch.cpusubtype)
            if not arch_name:
                logger.warning(str(UnresolvableArchitectureError(fat_arch.cputype, fat_arch.cpusubtype)))
                continue

            # The slice's own magic says how its header is laid out
            slice_off = StaticFilePointer(fat_arch.offset)
            slice_magic = self.read_magic(slice_off)
            self.slices.append(
                ArchitectureSlice(
                    arch_name,
                    slice_off,
                    MachoBinary.magic_is_64(slice_magic),
                    MachoBinary.magic_is_swapped(slice_magic),
                )
            )

    def read_struct(self, offset: StaticFilePointer, struct_type: Type[AIS], is_64bit: bool = False) -> AIS:
        """Read a structure stored in the input's byte order from a file offset

        Raises:
            UnreadableInputError: The input ended before the structure did
        """
        backing_layout = struct_type.get_backing_data_layout(is_64bit, self.is_swapped)
        data = self.get_bytes(offset, sizeof(backing_layout))
        if len(data) < sizeof(backing_layout):
            raise UnreadableInputError(f"Could not read {struct_type.__name__} at file offset {hex(int(offset))}")
        return struct_type(offset, data, backing_layout)

    def read_magic(self, offset: StaticFilePointer) -> Optional[int]:
        """Read the magic number at a file offset, in the host's byte order

        Returns:
            The magic, or None if the input ends before a full magic could be read
        """
        magic_bytes = self.get_bytes(offset, sizeof(c_uint32))
        if len(magic_bytes) < sizeof(c_uint32):
            return None
        return c_uint32.from_buffer(magic_bytes).value

    def is_magic_supported(self) -> bool:
        """Check whether the input's magic represents a file format which this class is capable of parsing

        Returns:
            True if the magic number represents a supported file format, False otherwise

        """
        return self.file_magic in MachoParser.SUPPORTED_MAG

    @property
    def file_magic(self) -> Optional[int]:
        """Read file magic."""
        return self.read_magic(StaticFilePointer(0))

    @property
    def is_fat(self) -> bool:
        """Check if file magic indicates a FAT archive or not

        Returns:
            True if the magic indicates FAT format, False otherwise

        """
        return self.file_magic in MachoParser._FAT_MAGIC

    def should_swap_bytes(self) -> bool:
        """Check if we need to swap due to a difference in endianness between host and input

        FAT headers are big-endian on disk, so on a little-endian host a FAT archive reads back a *_CIGAM magic.

        Returns:
            True if the host and input differ in endianness, False otherwise

        """
        return self.file_magic in MachoParser._SWAPPED_MAG

    def get_bytes(self, offset: StaticFilePointer, size: int) -> bytearray:
        """Read a byte list from the input of a given size, starting from a given offset

        Args:
            offset: Offset within file to begin reading from
            size: Maximum number of bytes to read

        Returns:
            Byte list representing contents of file at provided address

        """
        # FAT offsets can lie anywhere in a 64-bit range, past what seek() accepts
        if offset >= self.source.seek(0, os.SEEK_END):
            return bytearray()
        self.source.seek(offset)
        return bytearray(self.source.read(size))
