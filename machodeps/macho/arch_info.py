"""Resolution of (cputype, cpusubtype) pairs to architecture names, after the NXArchInfo table in <mach-o/arch.h>"""
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional

from more_itertools import first_true

from machodeps.macho.macho_definitions import CpuSubtype, CpuType

# cpusubtype with the capability bits stripped
_CPU_SUBTYPE_INDEX_MASK = ~CpuSubtype.CPU_SUBTYPE_MASK & 0xFFFFFFFF


class NXByteOrder(IntEnum):
    UNKNOWN = 0
    LITTLE_ENDIAN = 1
    BIG_ENDIAN = 2


@dataclass(frozen=True)
class ArchInfo:
    name: str
    cputype: int
    cpusubtype: int
    byteorder: NXByteOrder
    description: str


_LE = NXByteOrder.LITTLE_ENDIAN
_BE = NXByteOrder.BIG_ENDIAN

# Lookups take the first matching entry, so architecture families must precede their specific implementations
ARCH_INFO_TABLE: List[ArchInfo] = [
    # architecture families
    ArchInfo("hppa", CpuType.HPPA, 0, _BE, "HP-PA"),
    ArchInfo("i386", CpuType.X86, 3, _LE, "Intel 80x86"),
    ArchInfo("x86_64", CpuType.X86_64, 3, _LE, "Intel x86-64"),
    ArchInfo("x86_64h", CpuType.X86_64, 8, _LE, "Intel x86-64h Haswell"),
    ArchInfo("i860", CpuType.I860, 0, _BE, "Intel 860"),
    ArchInfo("m68k", CpuType.MC680x0, 1, _BE, "Motorola 68K"),
    ArchInfo("m88k", CpuType.MC88000, 0, _BE, "Motorola 88K"),
    ArchInfo("ppc", CpuType.POWERPC, 0, _BE, "PowerPC"),
    ArchInfo("ppc64", CpuType.POWERPC64, 0, _BE, "PowerPC 64-bit"),
    ArchInfo("sparc", CpuType.SPARC, 0, _BE, "SPARC"),
    ArchInfo("arm", CpuType.ARM, 0, _LE, "ARM"),
    ArchInfo("arm64", CpuType.ARM64, 0, _LE, "ARM64"),
    ArchInfo("arm64_32", CpuType.ARM64_32, 1, _LE, "arm64_32"),
    ArchInfo("any", CpuType.ANY, CpuSubtype.CPU_SUBTYPE_MULTIPLE, NXByteOrder.UNKNOWN, "Architecture Independent"),
    # specific architecture implementations
    ArchInfo("hppa7100LC", CpuType.HPPA, 1, _BE, "HP-PA 7100LC"),
    ArchInfo("m68030", CpuType.MC680x0, 3, _BE, "Motorola 68030"),
    ArchInfo("m68040", CpuType.MC680x0, 2, _BE, "Motorola 68040"),
    ArchInfo("i486", CpuType.X86, 4, _LE, "Intel 80486"),
    ArchInfo("i486SX", CpuType.X86, 0x84, _LE, "Intel 80486SX"),
    ArchInfo("pentium", CpuType.X86, 5, _LE, "Intel Pentium"),
    ArchInfo("i586", CpuType.X86, 5, _LE, "Intel 80586"),
    ArchInfo("pentpro", CpuType.X86, 0x16, _LE, "Intel Pentium Pro"),
    ArchInfo("i686", CpuType.X86, 0x16, _LE, "Intel Pentium Pro"),
    ArchInfo("pentIIm3", CpuType.X86, 0x36, _LE, "Intel Pentium II Model 3"),
    ArchInfo("pentIIm5", CpuType.X86, 0x56, _LE, "Intel Pentium II Model 5"),
    ArchInfo("pentium4", CpuType.X86, 0x0A, _LE, "Intel Pentium 4"),
    ArchInfo("ppc601", CpuType.POWERPC, 1, _BE, "PowerPC 601"),
    ArchInfo("ppc603", CpuType.POWERPC, 3, _BE, "PowerPC 603"),
    ArchInfo("ppc603e", CpuType.POWERPC, 4, _BE, "PowerPC 603e"),
    ArchInfo("ppc603ev", CpuType.POWERPC, 5, _BE, "PowerPC 603ev"),
    ArchInfo("ppc604", CpuType.POWERPC, 6, _BE, "PowerPC 604"),
    ArchInfo("ppc604e", CpuType.POWERPC, 7, _BE, "PowerPC 604e"),
    ArchInfo("ppc750", CpuType.POWERPC, 9, _BE, "PowerPC 750"),
    ArchInfo("ppc7400", CpuType.POWERPC, 10, _BE, "PowerPC 7400"),
    ArchInfo("ppc7450", CpuType.POWERPC, 11, _BE, "PowerPC 7450"),
    ArchInfo("ppc970", CpuType.POWERPC, 100, _BE, "PowerPC 970"),
    ArchInfo("ppc970-64", CpuType.POWERPC64, 100, _BE, "PowerPC 970 64-bit"),
    ArchInfo("armv4t", CpuType.ARM, 5, _LE, "arm v4t"),
    ArchInfo("armv6", CpuType.ARM, 6, _LE, "arm v6"),
    ArchInfo("armv5", CpuType.ARM, 7, _LE, "arm v5"),
    ArchInfo("xscale", CpuType.ARM, 8, _LE, "arm xscale"),
    ArchInfo("armv7", CpuType.ARM, 9, _LE, "arm v7"),
    ArchInfo("armv7f", CpuType.ARM, 10, _LE, "arm v7f"),
    ArchInfo("armv7s", CpuType.ARM, 11, _LE, "arm v7s"),
    ArchInfo("armv7k", CpuType.ARM, 12, _LE, "arm v7k"),
    ArchInfo("armv8", CpuType.ARM, 13, _LE, "arm v8"),
    ArchInfo("armv6m", CpuType.ARM, 14, _LE, "arm v6m"),
    ArchInfo("armv7m", CpuType.ARM, 15, _LE, "arm v7m"),
    ArchInfo("armv7em", CpuType.ARM, 16, _LE, "arm v7em"),
    ArchInfo("arm64v8", CpuType.ARM64, 1, _LE, "arm64v8"),
    ArchInfo("arm64e", CpuType.ARM64, 2, _LE, "arm64e"),
    ArchInfo("little", CpuType.ANY, 0, _LE, "Little Endian"),
    ArchInfo("big", CpuType.ANY, 1, _BE, "Big Endian"),
]


def get_arch_info_from_cpu_type(cputype: int, cpusubtype: int) -> Optional[ArchInfo]:
    """Look up the architecture described by a cputype and cpusubtype

    Capability bits in the cpusubtype (ie CPU_SUBTYPE_PTRAUTH_ABI) are ignored. CPU_SUBTYPE_MULTIPLE matches the
    architecture family. A known cputype paired with an unknown cpusubtype resolves to the architecture family, with
    the cpusubtype recorded as given.

    Returns:
        The matching ArchInfo, or None if the cputype isn't known
    """
    if cpusubtype == CpuSubtype.CPU_SUBTYPE_MULTIPLE:
        return first_true(ARCH_INFO_TABLE, pred=lambda info: info.cputype == cputype, default=None)

    masked_subtype = cpusubtype & _CPU_SUBTYPE_INDEX_MASK
    arch_info = first_true(
        ARCH_INFO_TABLE,
        pred=lambda info: info.cputype == cputype and info.cpusubtype & _CPU_SUBTYPE_INDEX_MASK == masked_subtype,
        default=None,
    )
    if arch_info:
        return arch_info

    family = first_true(ARCH_INFO_TABLE, pred=lambda info: info.cputype == cputype, default=None)
    if not family:
        return None
    return replace(family, cpusubtype=cpusubtype, description=f"{family.description} cpusubtype {masked_subtype}")


def get_arch_name(cputype: int, cpusubtype: int) -> Optional[str]:
    """Convenience wrapper returning only the architecture name of a (cputype, cpusubtype) pair."""
    arch_info = get_arch_info_from_cpu_type(cputype, cpusubtype)
    if not arch_info:
        return None
    return arch_info.name
