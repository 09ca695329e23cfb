"""List the dylibs loaded by an app's main binary and by each of its embedded frameworks.
Expects the path to an extracted .app directory, ie Payload/Stride.app
"""
import argparse
import logging
from pathlib import Path
from typing import List

from machodeps.macho import decode_path


def binaries_in_app(app_dir: Path) -> List[Path]:
    # The main binary is named after the bundle, as is each framework's binary
    paths = [app_dir / app_dir.stem]

    frameworks_folder = app_dir / "Frameworks"
    if frameworks_folder.is_dir():
        for framework_dir in sorted(frameworks_folder.iterdir()):
            if framework_dir.suffix != ".framework":
                continue
            paths.append(framework_dir / framework_dir.stem)
    return paths


def main() -> None:
    arg_parser = argparse.ArgumentParser(description="List the dylibs loaded by an app and its frameworks")
    arg_parser.add_argument("app_path", type=str, help="Path to an extracted .app directory")
    args = arg_parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(message)s")

    for path in binaries_in_app(Path(args.app_path)):
        for report in decode_path(path):
            for dependency in report.dependencies:
                print(f"{path} ({report.architecture_name}) loads {dependency}")


if __name__ == "__main__":
    main()
