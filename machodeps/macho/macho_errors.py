class MachoDecodeError(Exception):
    """Base class for failures which prevent a container or a slice from being decoded."""


class UnreadableInputError(MachoDecodeError):
    """Raised when the input, or a structure within it, cannot be read in full."""


class ArchitectureNotSupportedError(MachoDecodeError):
    """Raised when the leading magic of the input matches none of the Mach-O or FAT magics."""


UnrecognizedContainerError = ArchitectureNotSupportedError


class UnresolvableArchitectureError(MachoDecodeError):
    """Raised when a (cputype, cpusubtype) pair has no known architecture name."""

    def __init__(self, cputype: int, cpusubtype: int) -> None:
        super().__init__(f"Unable to get architecture name for cputype {cputype} cpusubtype {cpusubtype}")
        self.cputype = cputype
        self.cpusubtype = cpusubtype
