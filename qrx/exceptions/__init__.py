"""
QRx Exception Hierarchy

Architecture:
    ShellException (Base)
    ├── ParseError
    ├── CommandNotFoundError
    ├── CommandRuntimeError
    ├── RedirectionIOError
    ├── BootFailureError
    ├── ConfigValidationError
    └── PluginLoadError
    FileSystemException (Base)
    ├── FileNotFoundError
    ├── FileExistsError
    ├── DirectoryNotEmptyError
    ├── DiskFullError
    ├── PathResolutionError
    ├── NotAFileError
    └── NotADirectoryError
"""

from .shell_exceptions import (
    ShellException,
    ParseError,
    CommandNotFoundError,
    CommandRuntimeError,
    RedirectionIOError,
    BootFailureError,
    ConfigValidationError,
    PluginLoadError,
)

from .fs_exceptions import (
    FileSystemException,
    FileNotFoundError,
    FileExistsError,
    DirectoryNotEmptyError,
    DiskFullError,
    PathResolutionError,
    NotAFileError,
    NotADirectoryError,
)

__all__ = [
    # Shell exceptions
    "ShellException",
    "ParseError",
    "CommandNotFoundError",
    "CommandRuntimeError",
    "RedirectionIOError",
    "BootFailureError",
    "ConfigValidationError",
    "PluginLoadError",
    # Filesystem exceptions
    "FileSystemException",
    "FileNotFoundError",
    "FileExistsError",
    "DirectoryNotEmptyError",
    "DiskFullError",
    "PathResolutionError",
    "NotAFileError",
    "NotADirectoryError",
]
