from setuptools import find_packages, setup

from machodeps import __author__, __version__

setup(
    name="machodeps",
    version=__version__,
    description="Mach-O dylib ID, dependency and rpath lister",
    author=__author__,
    packages=find_packages(exclude=["tests"]),
    install_requires=["more_itertools"],
    extras_require={"test": ["pytest", "mypy", "invoke"]},
    package_data={"machodeps": ["py.typed"]},
    scripts=["machodeps-cli.py"],
)
