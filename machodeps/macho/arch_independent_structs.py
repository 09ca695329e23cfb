import sys
from ctypes import BigEndianStructure, LittleEndianStructure, Structure, sizeof
from functools import lru_cache
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Type, Union

from machodeps.macho.macho_definitions import (
    DylibCommand,
    MachoFatArch,
    MachoFatArch64,
    MachoFatHeader,
    MachoHeader32,
    MachoHeader64,
    MachoLoadCommand,
    RpathCommand,
)

# Create type alias for the layouts which back ArchIndependentStructure subclasses
_32_BIT_STRUCT_ALIAS = Union[
    Type[MachoHeader32],
    Type[MachoFatHeader],
    Type[MachoFatArch],
    Type[MachoLoadCommand],
    Type[DylibCommand],
    Type[RpathCommand],
]

_64_BIT_STRUCT_ALIAS = Union[
    Type[MachoHeader64],
    Type[MachoFatHeader],
    Type[MachoFatArch64],
    Type[MachoLoadCommand],
    Type[DylibCommand],
    Type[RpathCommand],
]

# ctypes only lets us name the non-native byte order explicitly
_SWAPPED_STRUCTURE_BASE = BigEndianStructure if sys.byteorder == "little" else LittleEndianStructure


@lru_cache(maxsize=None)
def byte_swapped_layout(layout: Type[Structure]) -> Type[Structure]:
    """Build a copy of a ctypes layout whose fields are stored in the byte order opposite to the host's.

    ctypes keeps nested structures in native order when they're embedded in a swapped structure, so nested
    structures are swapped too.

    Args:
        layout: Native-order Structure subclass to mirror

    Returns:
        A Structure subclass with the same fields and field offsets, read in the opposite byte order
    """
    fields: List[Tuple[Any, ...]] = []
    for field_name, field_type, *rest in layout._fields_:
        if isinstance(field_type, type) and issubclass(field_type, Structure):
            field_type = byte_swapped_layout(field_type)
        fields.append((field_name, field_type, *rest))
    return type(f"{layout.__name__}Swapped", (_SWAPPED_STRUCTURE_BASE,), {"_fields_": fields})  # type: ignore


class ArchIndependentStructure:
    _32_BIT_STRUCT: Optional[_32_BIT_STRUCT_ALIAS] = None
    _64_BIT_STRUCT: Optional[_64_BIT_STRUCT_ALIAS] = None

    @classmethod
    def get_backing_data_layout(cls, is_64bit: bool = True, is_swapped: bool = False) -> Type[Structure]:
        """The underlying data layout may be different depending on the slice type.
        Args:
            is_64bit: Whether the wide layout should be used
            is_swapped: Whether the data is stored in the byte order opposite to the host's
        Returns:
            ctypes layout to interpret the structure's bytes with
        """
        struct_type = cls._64_BIT_STRUCT if is_64bit else cls._32_BIT_STRUCT

        if struct_type is None:
            raise ValueError("Undefined struct_type")

        if is_swapped:
            return byte_swapped_layout(struct_type)
        return struct_type

    def __init__(self, binary_offset: int, struct_bytes: bytearray, backing_layout: Type[Structure]):
        struct = backing_layout.from_buffer(struct_bytes)

        for field_name, *_ in struct._fields_:
            # clone fields from struct to this class
            setattr(self, field_name, getattr(struct, field_name))

        # record size of underlying struct, for when traversing file by structs
        self.sizeof = sizeof(backing_layout)
        # record the location this struct was parsed from
        self.binary_offset = binary_offset

    if TYPE_CHECKING:
        # GVR suggested to use this pattern to ignore dynamic attribute assignment errors
        def __getattr__(self, key: str) -> Any:
            pass

    def __repr__(self) -> str:
        attributes = "\t".join([f"{x}: {getattr(self, x)}" for x in self.__dict__.keys()])
        rep = f"{self.__class__.__name__} ({attributes})"
        return rep


class MachoHeaderStruct(ArchIndependentStructure):
    _32_BIT_STRUCT = MachoHeader32
    _64_BIT_STRUCT = MachoHeader64


class MachoFatHeaderStruct(ArchIndependentStructure):
    _32_BIT_STRUCT = MachoFatHeader
    _64_BIT_STRUCT = MachoFatHeader


class MachoFatArchStruct(ArchIndependentStructure):
    """A FAT architecture descriptor. The 64-bit layout is selected by the FAT_MAGIC_64 family of magics."""

    _32_BIT_STRUCT = MachoFatArch
    _64_BIT_STRUCT = MachoFatArch64


class MachoLoadCommandStruct(ArchIndependentStructure):
    _32_BIT_STRUCT = MachoLoadCommand
    _64_BIT_STRUCT = MachoLoadCommand


class DylibCommandStruct(ArchIndependentStructure):
    _32_BIT_STRUCT = DylibCommand
    _64_BIT_STRUCT = DylibCommand


class RpathCommandStruct(ArchIndependentStructure):
    _32_BIT_STRUCT = RpathCommand
    _64_BIT_STRUCT = RpathCommand
