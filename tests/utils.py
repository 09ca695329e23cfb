"""Builders for synthetic Mach-O and FAT images.

Fields are packed with the struct module in an explicit byte order ('<' or '>'), independently of the ctypes layouts
under test, so the same image can be produced in either byte order.
"""
import struct
from typing import List, Optional, Tuple

from machodeps.macho import CpuType, MachArch, MachoLoadCommands

MH_DYLIB = 6
MH_EXECUTE = 2

# sizeof(struct dylib_command) and sizeof(struct rpath_command)
DYLIB_COMMAND_SIZE = 24
RPATH_COMMAND_SIZE = 12


def _pad(data: bytes, alignment: int = 8) -> bytes:
    return data + b"\x00" * (-len(data) % alignment)


def dylib_command(cmd: int, name: str, byteorder: str = "<") -> bytes:
    """Build an LC_LOAD_DYLIB / LC_LOAD_WEAK_DYLIB / LC_ID_DYLIB command with the name directly after the struct"""
    name_bytes = name.encode() + b"\x00"
    cmdsize = len(_pad(bytes(DYLIB_COMMAND_SIZE) + name_bytes))
    fixed = struct.pack(f"{byteorder}6I", cmd, cmdsize, DYLIB_COMMAND_SIZE, 2, 0x10000, 0x10000)
    return _pad(fixed + name_bytes)


def load_dylib(name: str, byteorder: str = "<") -> bytes:
    return dylib_command(MachoLoadCommands.LC_LOAD_DYLIB, name, byteorder)


def load_weak_dylib(name: str, byteorder: str = "<") -> bytes:
    return dylib_command(MachoLoadCommands.LC_LOAD_WEAK_DYLIB, name, byteorder)


def id_dylib(name: str, byteorder: str = "<") -> bytes:
    return dylib_command(MachoLoadCommands.LC_ID_DYLIB, name, byteorder)


def rpath(path: str, byteorder: str = "<") -> bytes:
    path_bytes = path.encode() + b"\x00"
    cmdsize = len(_pad(bytes(RPATH_COMMAND_SIZE) + path_bytes))
    fixed = struct.pack(f"{byteorder}3I", MachoLoadCommands.LC_RPATH, cmdsize, RPATH_COMMAND_SIZE)
    return _pad(fixed + path_bytes)


def raw_command(cmd: int, cmdsize: int, payload: bytes = b"", byteorder: str = "<") -> bytes:
    """Build a load command verbatim, with whatever cmdsize is asked for"""
    return struct.pack(f"{byteorder}2I", cmd, cmdsize) + payload


def thin_macho(
    commands: List[bytes],
    cputype: int = CpuType.ARM64,
    cpusubtype: int = 0,
    is_64bit: bool = True,
    byteorder: str = "<",
    filetype: int = MH_DYLIB,
    ncmds: Optional[int] = None,
    sizeofcmds: Optional[int] = None,
) -> bytes:
    """Build a thin Mach-O slice: a mach_header(_64) followed by the provided load commands"""
    load_commands = b"".join(commands)
    if ncmds is None:
        ncmds = len(commands)
    if sizeofcmds is None:
        sizeofcmds = len(load_commands)

    if is_64bit:
        header = struct.pack(
            f"{byteorder}I2i5I", MachArch.MH_MAGIC_64, cputype, cpusubtype, filetype, ncmds, sizeofcmds, 0, 0
        )
    else:
        header = struct.pack(
            f"{byteorder}I2i4I", MachArch.MH_MAGIC, cputype, cpusubtype, filetype, ncmds, sizeofcmds, 0
        )
    return header + load_commands


def fat_archive(
    slices: List[Tuple[int, int, bytes]],
    is_64bit_descriptors: bool = False,
    byteorder: str = ">",
    alignment: int = 0x100,
) -> bytes:
    """Build a FAT archive holding each (cputype, cpusubtype, slice bytes) entry, in order

    FAT archives are big-endian on disk, so byteorder defaults to '>'.
    """
    magic = MachArch.FAT_MAGIC_64 if is_64bit_descriptors else MachArch.FAT_MAGIC
    descriptor_size = 32 if is_64bit_descriptors else 20
    header = struct.pack(f"{byteorder}2I", magic, len(slices))

    # Place each slice on an aligned offset after the descriptor table
    data_end = len(header) + descriptor_size * len(slices)
    descriptors = b""
    placements: List[Tuple[int, bytes]] = []
    for cputype, cpusubtype, slice_data in slices:
        offset = data_end + (-data_end % alignment)
        if is_64bit_descriptors:
            descriptors += struct.pack(f"{byteorder}2i2Q2I", cputype, cpusubtype, offset, len(slice_data), 8, 0)
        else:
            descriptors += struct.pack(f"{byteorder}2i3I", cputype, cpusubtype, offset, len(slice_data), 8)
        placements.append((offset, slice_data))
        data_end = offset + len(slice_data)

    archive = bytearray(header + descriptors)
    for offset, slice_data in placements:
        archive += bytes(offset - len(archive))
        archive += slice_data
    return bytes(archive)


def fat_archive_with_descriptors(
    descriptors: List[Tuple[int, int, int, int]], byteorder: str = ">", is_64bit_descriptors: bool = False
) -> bytes:
    """Build a FAT header and descriptor table verbatim from (cputype, cpusubtype, offset, size) entries, no slices"""
    magic = MachArch.FAT_MAGIC_64 if is_64bit_descriptors else MachArch.FAT_MAGIC
    data = struct.pack(f"{byteorder}2I", magic, len(descriptors))
    for cputype, cpusubtype, offset, size in descriptors:
        if is_64bit_descriptors:
            data += struct.pack(f"{byteorder}2i2Q2I", cputype, cpusubtype, offset, size, 8, 0)
        else:
            data += struct.pack(f"{byteorder}2i3I", cputype, cpusubtype, offset, size, 8)
    return data
