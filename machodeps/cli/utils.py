from typing import Callable, List, Type

from machodeps.macho import SliceReport


class StringFormatter:
    @staticmethod
    def green(string: str) -> str:
        return f"\033[0;32m{string}\033[0m"

    @staticmethod
    def blue(string: str) -> str:
        return f"\033[34;1m{string}\033[0m"

    @staticmethod
    def none(string: str) -> str:
        return string

    @staticmethod
    def bold(string: str) -> str:
        return f"\033[1m{string}\033[0m"

    @staticmethod
    def bold_blue(string: str) -> str:
        return StringFormatter.bold(StringFormatter.blue(string))

    @staticmethod
    def bold_green(string: str) -> str:
        return StringFormatter.bold(StringFormatter.green(string))


class _StringPalette:
    FILE_KEY: Callable[[str], str] = StringFormatter.none
    SLICE_KEY: Callable[[str], str] = StringFormatter.none


class StringPalette(_StringPalette):
    FILE_KEY = StringFormatter.bold_blue
    SLICE_KEY = StringFormatter.bold_green


def format_slice_reports(
    binary_path: str, reports: List[SliceReport], palette: Type[_StringPalette] = StringPalette
) -> List[str]:
    """Render the reports decoded from one input as YAML-like lines

    The dylib_id line is omitted for slices which don't declare an identity.
    """
    lines = [
        f"{palette.FILE_KEY('- filename:')} {binary_path}",
        palette.FILE_KEY("  info:"),
    ]
    for report in reports:
        lines.append(f"{palette.SLICE_KEY('  - arch:')} {report.architecture_name}")
        if report.library_identity:
            lines.append(f"{palette.SLICE_KEY('    dylib_id:')} {report.library_identity}")

        lines.append(palette.SLICE_KEY("    deps:"))
        lines += [f"    - {dependency}" for dependency in report.dependencies]

        lines.append(palette.SLICE_KEY("    rpaths:"))
        lines += [f"    - {search_path}" for search_path in report.search_paths]
    return lines


def print_slice_reports(
    binary_path: str, reports: List[SliceReport], palette: Type[_StringPalette] = StringPalette
) -> None:
    for line in format_slice_reports(binary_path, reports, palette):
        print(line)
