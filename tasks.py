import pathlib
from pkgutil import iter_modules
from typing import List, Tuple

from invoke import Context, task

# (tool, command checking the tree without modifying it, command rewriting the tree in place)
_FORMATTERS: List[Tuple[str, str, str]] = [
    ("autoflake", "autoflake --recursive", "autoflake --in-place --recursive"),
    ("isort", "isort --check --diff", "isort"),
    ("black", "black --check --diff", "black"),
]


def _get_python_modules() -> List[str]:
    modules_in_dir = iter_modules([pathlib.Path(__file__).parent.as_posix()])
    return [m.name if m.ispkg else m.name + ".py" for m in modules_in_dir]


@task
def install(ctx):
    # type: (Context) -> None
    ctx.run("pip install -e .[test]")


@task
def test(ctx):
    # type: (Context) -> None
    ctx.run("mypy machodeps machodeps-cli.py")
    ctx.run("pytest")


@task
def autoformat_lint(ctx):
    # type: (Context) -> None
    """Check formatting of the code."""
    files_to_process = " ".join(_get_python_modules())
    for tool, check_cmd, _ in _FORMATTERS:
        print(f"Checking {tool}")
        ctx.run(f"{check_cmd} {files_to_process}")

    print("Checking format (flake8)")
    ctx.run(f"flake8 {files_to_process}")


@task
def autoformat(ctx):
    # type: (Context) -> None
    """Run auto-formatting tools."""
    files_to_process = " ".join(_get_python_modules())
    for tool, _, format_cmd in _FORMATTERS:
        print(f"Running {tool}")
        ctx.run(f"{format_cmd} {files_to_process}")
