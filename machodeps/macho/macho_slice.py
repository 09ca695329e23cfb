from dataclasses import dataclass, field
from typing import List, Optional

from machodeps.macho.macho_definitions import StaticFilePointer


@dataclass(frozen=True)
class ArchitectureSlice:
    """A Mach-O slice found within a container, as located from the container's headers."""

    architecture_name: str
    byte_offset: StaticFilePointer
    is_64bit: bool
    # Whether the slice is stored in the byte order opposite to the host's
    is_swapped: bool = False


@dataclass
class SliceReport:
    """The dependency information declared by one Mach-O slice."""

    architecture_name: str
    library_identity: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    search_paths: List[str] = field(default_factory=list)
