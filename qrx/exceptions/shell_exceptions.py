"""
Shell Exceptions

Exceptions raised by the parser, the executor, command dispatch and the
startup sequence. Most of these never reach the user as tracebacks: the
executor turns them into an exit status plus a message on the output sink.

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional, Any


class ShellException(Exception):
    """
    Base exception for all shell-related errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        context: Additional context about the error

    Example:
        >>> raise ShellException("Executor failure", error_code=1001)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 1000
        self.context = context or {}

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({context_str})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code})"
        )


class ParseError(ShellException):
    """
    A line does not match the shell grammar.

    Raised inside the parser only. CommandParser.parse() catches it and
    returns an ErrorNode instead, so callers never see it.

    Example:
        >>> raise ParseError("unexpected token 'fi'", position=5)
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if position is not None:
            ctx["position"] = position
        super().__init__(message, error_code=1001, context=ctx)
        self.position = position


class CommandNotFoundError(ShellException):
    """No override, registered command or session built-in has this name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"command not found: {name}",
            error_code=1127,
            context={"command": name}
        )
        self.name = name


class CommandRuntimeError(ShellException):
    """
    A command body failed.

    Commands may raise this (or any other exception) from run(); the
    dispatch boundary reports it as '<name>: <message>' with status 1.
    """

    def __init__(
        self,
        name: str,
        message: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["command"] = name
        super().__init__(message, error_code=1002, context=ctx)
        self.name = name


class RedirectionIOError(ShellException):
    """Captured output could not be written to its redirection target."""

    def __init__(
        self,
        path: str,
        reason: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["path"] = path
        super().__init__(f"{path}: {reason}", error_code=1003, context=ctx)
        self.path = path
        self.reason = reason


class BootFailureError(ShellException):
    """
    The shell could not be started.

    This is the only fatal error: without a configuration, a filesystem,
    a parser and an executor there is no session to report errors into.
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if stage:
            ctx["stage"] = stage
        super().__init__(message, error_code=1010, context=ctx)
        self.stage = stage


class ConfigValidationError(ShellException):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(
            message,
            error_code=1011,
            context={"key": key} if key else None
        )
        self.key = key


class PluginLoadError(ShellException):
    """Error loading or activating a plugin."""

    def __init__(self, message: str, plugin: Optional[str] = None) -> None:
        super().__init__(
            message,
            error_code=1020,
            context={"plugin": plugin} if plugin else None
        )
        self.plugin = plugin
