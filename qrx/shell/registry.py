"""
QRx Command Registry

A central registry of the commands the shell can dispatch to.
Provides:
- The ShellCommand base class every command implements
- Registration by name, lookup and removal
- The sorted name list used by help

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional, List, TYPE_CHECKING

from qrx.logger import get_logger

if TYPE_CHECKING:
    from .context import CommandContext


class ShellCommand(ABC):
    """
    Abstract base class for all shell commands.

    A command writes through its context and returns its exit status:
    None means 0, an int is the status, and an object with an integer
    `status` attribute is also accepted. Raising reports
    '<name>: <message>' and yields status 1.

    Long-running commands may also define `cancel(context)`. The shell
    calls it when the user presses Ctrl-C while the command is in the
    foreground; the usual implementation is `context.cancelled.set()`.

    Example:
        >>> class Hello(ShellCommand):
        ...     name = "hello"
        ...     description = "Print a greeting"
        ...
        ...     async def run(self, context, args, stdin=None):
        ...         context.writeln("hello")
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    async def run(
        self,
        context: 'CommandContext',
        args: List[str],
        stdin: Optional[str] = None
    ) -> Any:
        """
        Run the command.

        Args:
            context: Output, session and filesystem access
            args: Expanded argument words
            stdin: Output of the previous pipeline stage, if any

        Returns:
            Exit status (None for success)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class CommandRegistry:
    """
    Mapping from command name to command object.

    Example:
        >>> registry = CommandRegistry()
        >>> registry.register(EchoCommand())
        >>> registry.get('echo')
        EchoCommand(name='echo')
    """

    def __init__(self):
        self._logger = get_logger('registry')
        self._commands: dict[str, ShellCommand] = {}
        self._lock = threading.RLock()

    def register(self, command: ShellCommand, name: Optional[str] = None) -> None:
        """
        Register a command.

        Args:
            command: Command instance
            name: Register under this name instead of command.name
                (used for aliases)

        Raises:
            ValueError: If the name is empty
        """
        key = command.name if name is None else name
        if not key:
            raise ValueError("Command name must not be empty")

        with self._lock:
            if key in self._commands:
                self._logger.warning(
                    "Replacing registered command",
                    context={'command': key}
                )
            self._commands[key] = command

        self._logger.debug("Registered command", context={'command': key})

    def unregister(self, name: str) -> bool:
        """
        Remove a command.

        Returns:
            True if a command was removed
        """
        with self._lock:
            removed = self._commands.pop(name, None)

        if removed is not None:
            self._logger.debug("Unregistered command", context={'command': name})
        return removed is not None

    def get(self, name: str) -> Optional[ShellCommand]:
        with self._lock:
            return self._commands.get(name)

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._commands

    def names(self) -> List[str]:
        """Sorted list of registered command names."""
        with self._lock:
            return sorted(self._commands)

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return self.is_registered(name)
