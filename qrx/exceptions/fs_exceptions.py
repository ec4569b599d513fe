"""
Filesystem Exceptions

Errors raised by the virtual file system. Commands and the redirection
step print `exc.message` as is, so each message reads the way a shell
reports it: "cat: /tmp/x: No such file or directory".

Each subclass only names its message and code; the path it concerns is
the one required argument.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class FileSystemException(Exception):
    """
    Base class for virtual file system errors.

    Attributes:
        message: Text shown to the shell user
        path: Resolved path the operation failed on, if any
        error_code: 4xxx code for programmatic handling
        context: Extra details for log lines
    """

    default_message = "Input/output error"
    default_code = 4000

    def __init__(
        self,
        message: Optional[str] = None,
        path: Optional[str] = None,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        self.message = message or self.default_message
        self.path = path
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})
        if path:
            self.context["path"] = path
        super().__init__(self.message)

    def __str__(self) -> str:
        text = f"[Error {self.error_code}] {self.message}"
        return f"{text} (path={self.path})" if self.path else text


class _PathError(FileSystemException):
    """An error about one path, with the message fixed by the subclass."""

    def __init__(self, path: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(path=path, context=context)


class FileNotFoundError(_PathError):
    """Nothing exists at the path (or at one of its parents)."""
    default_message = "No such file or directory"
    default_code = 4001


class FileExistsError(_PathError):
    """mkdir or rename onto a name that is taken."""
    default_message = "File exists"
    default_code = 4002


class DirectoryNotEmptyError(_PathError):
    """rmdir on a directory that still has entries."""
    default_message = "Directory not empty"
    default_code = 4004


class NotAFileError(_PathError):
    """A file operation on a directory."""
    default_message = "Is a directory"
    default_code = 4008


class NotADirectoryError(_PathError):
    """A directory operation on a file."""
    default_message = "Not a directory"
    default_code = 4009


class PathResolutionError(FileSystemException):
    """
    A path goes through a file as if it were a directory.

    Example:
        >>> raise PathResolutionError("/tmp/notes/x", component="/tmp/notes")
    """

    default_message = "Not a directory"
    default_code = 4006

    def __init__(
        self,
        path: str,
        component: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = dict(context or {})
        if component:
            ctx["component"] = component
        super().__init__(path=path, context=ctx)
        self.component = component


class DiskFullError(FileSystemException):
    """
    A write is larger than the per-file size limit.

    Example:
        >>> raise DiskFullError("File too large", path="/tmp/big", requested=2048, available=1024)
    """

    default_message = "No space left on device"
    default_code = 4005

    def __init__(
        self,
        message: Optional[str] = None,
        path: Optional[str] = None,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = dict(context or {})
        if requested is not None:
            ctx["requested"] = requested
        if available is not None:
            ctx["available"] = available
        super().__init__(message, path=path, context=ctx)
        self.requested = requested
        self.available = available
