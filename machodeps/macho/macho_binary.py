import os
from ctypes import sizeof
from typing import BinaryIO, List, Optional, Type, TypeVar

from machodeps.logger import machodeps_logger
from machodeps.macho.arch_independent_structs import (
    ArchIndependentStructure,
    DylibCommandStruct,
    MachoHeaderStruct,
    MachoLoadCommandStruct,
    RpathCommandStruct,
)
from machodeps.macho.arch_info import get_arch_name
from machodeps.macho.macho_definitions import MachArch, MachoLoadCommand, StaticFilePointer
from machodeps.macho.macho_errors import UnreadableInputError, UnresolvableArchitectureError
from machodeps.macho.macho_load_commands import MachoLoadCommands
from machodeps.macho.macho_slice import ArchitectureSlice, SliceReport

logger = machodeps_logger.getChild(__name__.rsplit(".", 1)[-1])

AIS = TypeVar("AIS", bound=ArchIndependentStructure)


class MachoBinary:
    _MAG_64 = [MachArch.MH_MAGIC_64, MachArch.MH_CIGAM_64]
    _MAG_32 = [MachArch.MH_MAGIC, MachArch.MH_CIGAM]
    _MAG_SWAPPED = [MachArch.MH_CIGAM, MachArch.MH_CIGAM_64]
    SUPPORTED_MAG = _MAG_64 + _MAG_32

    # Every load command begins with its cmd and cmdsize fields
    LOAD_COMMAND_PREFIX_SIZE = sizeof(MachoLoadCommand)

    def __init__(self, source: BinaryIO, arch_slice: ArchitectureSlice) -> None:
        """Parse the Mach-O slice which begins at arch_slice.byte_offset within source.

        Raises:
            UnreadableInputError: The slice header couldn't be read, or doesn't begin with a Mach-O magic
            UnresolvableArchitectureError: The header's cputype and cpusubtype don't name a known architecture
        """
        self.source = source
        self.arch_slice = arch_slice

        self.file_offset = arch_slice.byte_offset
        self.is_64bit = arch_slice.is_64bit
        self.is_swap = arch_slice.is_swapped

        self._header: Optional[MachoHeaderStruct] = None
        self.architecture_name = ""

        # Raw bytes of the load commands, which directly follow the header
        self._load_commands = bytearray()
        self._load_commands_off = 0

        self.load_dylib_commands: List[DylibCommandStruct] = []
        self.rpath_commands: List[RpathCommandStruct] = []
        self._id_dylib_cmd: Optional[DylibCommandStruct] = None

        # This kicks off the parse of the slice
        self.parse()

    def __repr__(self) -> str:
        return f"<MachoBinary {self.architecture_name or '?'} slice @ {self.file_offset}>"

    @classmethod
    def magic_is_64(cls, magic: Optional[int]) -> bool:
        """Check if a slice magic corresponds to the wide mach_header_64 layout."""
        return magic in cls._MAG_64

    @classmethod
    def magic_is_swapped(cls, magic: Optional[int]) -> bool:
        """Check if a slice magic indicates the slice is stored in the byte order opposite to the host's."""
        return magic in cls._MAG_SWAPPED

    def parse(self) -> None:
        """Read the Mach-O header, then the dependency information from the load commands which follow it."""
        self.parse_header()

        arch_name = get_arch_name(self.header.cputype, self.header.cpusubtype)
        if not arch_name:
            raise UnresolvableArchitectureError(self.header.cputype, self.header.cpusubtype)
        self.architecture_name = arch_name

        # load commands begin directly after Mach-O header, so the offset is the size of the header
        self._load_commands_off = self.header.sizeof
        self._load_commands = self._read_load_commands(
            StaticFilePointer(self._load_commands_off), self.header.sizeofcmds
        )
        self._parse_load_commands(self.header.ncmds)

        logger.debug(
            f"{self}: parsed {len(self.load_dylib_commands)} dylib loads, {len(self.rpath_commands)} rpaths. "
            f"64-bit? {self.is_64bit}. non-native endianness? {self.is_swap}"
        )

    def parse_header(self) -> None:
        """Read the mach_header or mach_header_64 at the start of the slice."""
        self._header = self.read_struct(StaticFilePointer(0), MachoHeaderStruct)

        # The header layout normalizes the byte order, so a valid header always reads back a native magic
        expected_magic = MachArch.MH_MAGIC_64 if self.is_64bit else MachArch.MH_MAGIC
        if self.header.magic != expected_magic:
            raise UnreadableInputError(
                f"Parsing error: data at file offset {hex(int(self.file_offset))} was not a valid Mach-O slice!"
            )

    def _read_load_commands(self, offset: StaticFilePointer, sizeofcmds: int) -> bytearray:
        """Read the load command region of the slice, never asking for more bytes than the input holds

        Args:
            offset: Slice offset of the first load command
            sizeofcmds: Byte-count of the load commands, as declared by the header's sizeofcmds field
        """
        available = max(0, self._source_size() - (self.file_offset + offset))
        if sizeofcmds > available:
            logger.debug(f"{self}: sizeofcmds {hex(sizeofcmds)} exceeds the {hex(available)} bytes left in the input")
        return self.get_bytes(offset, min(sizeofcmds, available))

    def _parse_load_commands(self, ncmds: int) -> None:
        """Walk the load commands, keeping those which describe the slice's dylib identity, dependencies and rpaths

        Iteration ends early, without error, once the remaining bytes can't hold the next load command.

        Args:
            ncmds: Number of load commands to parse, as declared by the header's ncmds field
        """
        self.load_dylib_commands = []
        self.rpath_commands = []
        self._id_dylib_cmd = None

        offset = 0
        for i in range(ncmds):
            load_command = self._read_load_command_struct(offset, MachoLoadCommandStruct, len(self._load_commands))
            if not load_command:
                logger.debug(f"{self}: load commands truncated after {i} of {ncmds} commands")
                break

            cmdsize = load_command.cmdsize
            if cmdsize < self.LOAD_COMMAND_PREFIX_SIZE or offset + cmdsize > len(self._load_commands):
                logger.debug(f"{self}: load command {i} declares cmdsize {hex(cmdsize)} which doesn't fit, stopping")
                break
            command_end = offset + cmdsize

            if load_command.cmd in [MachoLoadCommands.LC_LOAD_DYLIB, MachoLoadCommands.LC_LOAD_WEAK_DYLIB]:
                dylib_load_command = self._read_load_command_struct(offset, DylibCommandStruct, command_end)
                if dylib_load_command:
                    self.load_dylib_commands.append(dylib_load_command)

            elif load_command.cmd == MachoLoadCommands.LC_ID_DYLIB:
                # A well-formed dylib declares its identity once. If there are more, the last one wins
                id_dylib_command = self._read_load_command_struct(offset, DylibCommandStruct, command_end)
                if id_dylib_command:
                    self._id_dylib_cmd = id_dylib_command

            elif load_command.cmd == MachoLoadCommands.LC_RPATH:
                rpath_command = self._read_load_command_struct(offset, RpathCommandStruct, command_end)
                if rpath_command:
                    self.rpath_commands.append(rpath_command)

            # move to next load command in header
            offset = command_end

    def _read_load_command_struct(self, offset: int, struct_type: Type[AIS], end: int) -> Optional[AIS]:
        """Interpret the bytes at an offset within the load command region as a structure

        Args:
            offset: Offset of the structure from the start of the load command region
            struct_type: ArchIndependentStructure subclass
            end: Offset within the load command region which the structure must not extend past

        Returns:
            The parsed structure, or None if the structure would extend past end
        """
        backing_layout = struct_type.get_backing_data_layout(self.is_64bit, self.is_swap)
        struct_size = sizeof(backing_layout)
        if offset + struct_size > end:
            logger.debug(f"{self}: no room for a {struct_type.__name__} at load command offset {hex(offset)}")
            return None

        data = self._load_commands[offset : offset + struct_size]
        return struct_type(self._load_commands_off + offset, data, backing_layout)

    def _read_load_command_string(self, load_command: ArchIndependentStructure, string_offset: int) -> str:
        """Read an lc_str embedded within a load command

        The string runs from string_offset to the first NUL byte, and never past the end of the load command.

        Args:
            load_command: The load command containing the string
            string_offset: Offset of the string from the start of the load command

        Returns:
            The decoded string, or an empty string if string_offset lies outside the load command
        """
        command_start = load_command.binary_offset - self._load_commands_off
        if string_offset >= load_command.cmdsize:
            return ""

        string_bytes = self._load_commands[command_start + string_offset : command_start + load_command.cmdsize]
        # trim anything after NUL character
        return string_bytes.split(b"\x00")[0].decode("utf-8", errors="replace")

    def read_struct(self, binary_offset: int, struct_type: Type[AIS]) -> AIS:
        """Given a slice offset, return the structure it describes.

        Params:
            binary_offset: Offset from the start of the slice to read the structure from.
            struct_type: ArchIndependentStructure subclass.
        Returns:
            ArchIndependentStructure loaded from the offset.
        Raises:
            UnreadableInputError: The input ended before the structure did
        """
        backing_layout = struct_type.get_backing_data_layout(self.is_64bit, self.is_swap)
        data = self.get_bytes(StaticFilePointer(binary_offset), sizeof(backing_layout))
        if len(data) < sizeof(backing_layout):
            raise UnreadableInputError(
                f"Could not read {struct_type.__name__} at file offset {hex(int(self.file_offset + binary_offset))}"
            )
        return struct_type(binary_offset, data, backing_layout)

    def get_bytes(self, offset: StaticFilePointer, size: int) -> bytearray:
        """Retrieve bytes from the Mach-O slice, taking into account that the slice could be at an offset within a FAT

        Args:
            offset: index from beginning of slice to retrieve data from
            size: maximum number of bytes to read

        Returns:
            byte content of the Mach-O slice at an offset from the start of the slice. May be shorter than size if the
            input ends first.
        """
        # The slice offset comes from the FAT table, and can lie anywhere in a 64-bit range
        if self.file_offset + offset >= self._source_size():
            return bytearray()
        self.source.seek(self.file_offset + offset)
        return bytearray(self.source.read(size))

    def _source_size(self) -> int:
        return self.source.seek(0, os.SEEK_END)

    @property
    def header(self) -> MachoHeaderStruct:
        if self._header:
            return self._header
        raise UnreadableInputError("Mach-O header has not been parsed")

    @property
    def dylib_id(self) -> Optional[str]:
        """If the binary contains an LC_ID_DYLIB load command, return the dylib ID string. Otherwise, return None."""
        if not self._id_dylib_cmd:
            return None
        return self._read_load_command_string(self._id_dylib_cmd, self._id_dylib_cmd.dylib.name.offset)

    @property
    def dependencies(self) -> List[str]:
        """The install names from the LC_LOAD_DYLIB and LC_LOAD_WEAK_DYLIB commands, in load command order."""
        return [self._read_load_command_string(cmd, cmd.dylib.name.offset) for cmd in self.load_dylib_commands]

    @property
    def rpaths(self) -> List[str]:
        """The runtime search paths from the LC_RPATH commands, in load command order."""
        return [self._read_load_command_string(cmd, cmd.path.offset) for cmd in self.rpath_commands]

    def report(self) -> SliceReport:
        return SliceReport(
            architecture_name=self.architecture_name,
            library_identity=self.dylib_id,
            dependencies=self.dependencies,
            search_paths=self.rpaths,
        )
