from ctypes import Structure, c_int32, c_uint32, c_uint64
from enum import IntEnum
from typing import TypeVar

_BasePointerT = TypeVar("_BasePointerT", bound="_BasePointer")


class _BasePointer(int):
    def __add__(self: _BasePointerT, other: int) -> _BasePointerT:
        return type(self)(super().__add__(other))

    def __str__(self) -> str:
        return hex(self)

    def __repr__(self) -> str:
        return hex(self)


class StaticFilePointer(_BasePointer):
    """A pointer analogous to a file offset within the container
    """

    def __str__(self) -> str:
        return f"Phys[{super().__str__()}]"

    def __repr__(self) -> str:
        return f"Phys[{super().__repr__()}]"


class MachArch(IntEnum):
    MH_MAGIC = 0xFEEDFACE
    MH_CIGAM = 0xCEFAEDFE
    MH_MAGIC_64 = 0xFEEDFACF
    MH_CIGAM_64 = 0xCFFAEDFE

    FAT_MAGIC = 0xCAFEBABE
    FAT_CIGAM = 0xBEBAFECA
    FAT_MAGIC_64 = 0xCAFEBABF
    FAT_CIGAM_64 = 0xBFBAFECA


class CpuType(IntEnum):
    # https://opensource.apple.com/source/xnu/xnu-7195.81.3/osfmk/mach/machine.h.auto.html
    CPU_ARCH_ABI64 = 0x01000000
    CPU_ARCH_ABI64_32 = 0x02000000

    ANY = -1
    VAX = 1
    MC680x0 = 6
    X86 = 7
    X86_64 = X86 | CPU_ARCH_ABI64
    MC98000 = 10
    HPPA = 11
    ARM = 12
    ARM64 = ARM | CPU_ARCH_ABI64
    ARM64_32 = ARM | CPU_ARCH_ABI64_32
    MC88000 = 13
    SPARC = 14
    I860 = 15
    POWERPC = 18
    POWERPC64 = POWERPC | CPU_ARCH_ABI64


class CpuSubtype(IntEnum):
    """Subset of the cpusubtype constants used by the architecture table

    Values are only unique per cputype, so members sharing a value are aliases
    """

    CPU_SUBTYPE_MASK = 0xFF000000  # capability bits, ie CPU_SUBTYPE_LIB64 / CPU_SUBTYPE_PTRAUTH_ABI
    CPU_SUBTYPE_LIB64 = 0x80000000
    CPU_SUBTYPE_PTRAUTH_ABI = 0x80000000
    CPU_SUBTYPE_MULTIPLE = -1


class MachoHeader32(Structure):
    _fields_ = [
        ("magic", c_uint32),
        ("cputype", c_int32),
        ("cpusubtype", c_int32),
        ("filetype", c_uint32),
        ("ncmds", c_uint32),
        ("sizeofcmds", c_uint32),
        ("flags", c_uint32),
    ]


class MachoHeader64(Structure):
    _fields_ = [
        ("magic", c_uint32),
        ("cputype", c_int32),
        ("cpusubtype", c_int32),
        ("filetype", c_uint32),
        ("ncmds", c_uint32),
        ("sizeofcmds", c_uint32),
        ("flags", c_uint32),
        ("reserved", c_uint32),
    ]


class MachoLoadCommand(Structure):
    _fields_ = [("cmd", c_uint32), ("cmdsize", c_uint32)]


class LcStr(Structure):
    """Python representation of union lc_str

    Within a file only the offset member is meaningful: it is the byte offset of the string from the start of the
    load command which contains it.
    """

    _fields_ = [("offset", c_uint32)]


class DylibStruct(Structure):
    _fields_ = [
        ("name", LcStr),
        ("timestamp", c_uint32),
        ("current_version", c_uint32),
        ("compatibility_version", c_uint32),
    ]


class DylibCommand(Structure):
    """Python representation of struct dylib_command

    Definition found in <mach-o/loader.h>
    """

    _fields_ = [*MachoLoadCommand._fields_, ("dylib", DylibStruct)]


class RpathCommand(Structure):
    """Python representation of struct rpath_command

    Definition found in <mach-o/loader.h>
    """

    _fields_ = [*MachoLoadCommand._fields_, ("path", LcStr)]


class MachoFatHeader(Structure):
    """Python representation of a struct fat_header

    Definition found in <mach-o/fat.h>
    """

    _fields_ = [("magic", c_uint32), ("nfat_arch", c_uint32)]


class MachoFatArch(Structure):
    """Python representation of a struct fat_arch

    Definition found in <mach-o/fat.h>
    """

    _fields_ = [
        ("cputype", c_int32),
        ("cpusubtype", c_int32),
        ("offset", c_uint32),
        ("size", c_uint32),
        ("align", c_uint32),
    ]


class MachoFatArch64(Structure):
    """Python representation of a struct fat_arch_64

    Definition found in <mach-o/fat.h>
    """

    _fields_ = [
        ("cputype", c_int32),
        ("cpusubtype", c_int32),
        ("offset", c_uint64),
        ("size", c_uint64),
        ("align", c_uint32),
        ("reserved", c_uint32),
    ]
