"""
QRx Filesystem Package

In-memory storage consumed by the shell through FileSystemInterface.
"""

from .inode import Inode, FileType
from .path_resolver import PathResolver, ParsedPath
from .vfs import FileSystemInterface, VirtualFileSystem, Stat

__all__ = [
    "Inode",
    "FileType",
    "PathResolver",
    "ParsedPath",
    "FileSystemInterface",
    "VirtualFileSystem",
    "Stat",
]
