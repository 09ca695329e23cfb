from .macho_definitions import (
    CpuType,
    CpuSubtype,
    StaticFilePointer,

    MachArch,
    LcStr,
    DylibStruct,
    DylibCommand,
    RpathCommand,
    MachoFatArch,
    MachoFatArch64,
    MachoFatHeader,
    MachoLoadCommand,
    MachoHeader32, MachoHeader64,
)

from .arch_independent_structs import (
    ArchIndependentStructure,
    byte_swapped_layout,

    MachoHeaderStruct,
    MachoFatArchStruct,
    MachoFatHeaderStruct,

    DylibCommandStruct,
    RpathCommandStruct,
    MachoLoadCommandStruct,
)

from .macho_load_commands import (
    MachoLoadCommands
)

from .arch_info import (
    ArchInfo,
    NXByteOrder,
    ARCH_INFO_TABLE,
    get_arch_name,
    get_arch_info_from_cpu_type,
)

from .macho_errors import (
    MachoDecodeError,
    UnreadableInputError,
    UnrecognizedContainerError,
    ArchitectureNotSupportedError,
    UnresolvableArchitectureError,
)

from .macho_slice import (
    SliceReport,
    ArchitectureSlice,
)

from .macho_binary import (
    MachoBinary,
)

from .macho_parse import (
    MachoParser,
)

from .macho_decode import (
    decode,
    decode_path,
)
