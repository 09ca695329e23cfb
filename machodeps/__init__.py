"""Mach-O dependency lister"""

__version__ = "1.0.0"
__author__ = "Data Theorem"

__all__ = ["__version__", "__author__"]
