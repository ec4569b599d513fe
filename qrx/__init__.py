"""
QRx - A small command shell over a virtual filesystem

This package provides a command language (pipelines, logical operators,
groups, conditionals, redirection and background jobs) evaluated against
an in-memory filesystem, implemented in Python 3.10+ using only the
standard library.
"""

__version__ = "1.0.0"
__author__ = "YSNRFD"

from .core.bootloader import Bootloader, boot_shell
from .shell.shell import Shell, create_shell

__all__ = [
    'Bootloader',
    'boot_shell',
    'Shell',
    'create_shell',
]
