"""
Plugin Interface Module

Defines the interface for QRx plugins.

Plugins are Python files installed by the operator on the host. They are
never loaded from the shell's virtual filesystem.

Author: YSNRFD
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
from enum import Enum

from qrx.shell.registry import ShellCommand


class PluginState(Enum):
    """Plugin lifecycle state."""
    UNLOADED = "unloaded"
    LOADED = "loaded"
    ACTIVE = "active"
    ERROR = "error"


@dataclass
class PluginInfo:
    """Information about a plugin."""
    name: str
    version: str
    description: str
    author: str
    state: PluginState = PluginState.UNLOADED
    error: Optional[str] = None


class PluginInterface(ABC):
    """
    Abstract base class for QRx plugins.

    A plugin extends the shell with commands. Its commands are registered
    when it is activated and removed when it is deactivated.

    Example:
        >>> class GreetPlugin(PluginInterface):
        ...     def __init__(self):
        ...         self._info = PluginInfo(
        ...             name="greet",
        ...             version="1.0.0",
        ...             description="Adds a greet command",
        ...             author="Me"
        ...         )
        ...
        ...     @property
        ...     def info(self) -> PluginInfo:
        ...         return self._info
        ...
        ...     def initialize(self, shell) -> None:
        ...         pass
        ...
        ...     def get_commands(self):
        ...         return {"greet": GreetCommand()}
    """

    @property
    @abstractmethod
    def info(self) -> PluginInfo:
        """Get plugin information."""
        pass

    @abstractmethod
    def initialize(self, shell: Any) -> None:
        """
        Initialize the plugin.

        Args:
            shell: The Shell instance the plugin is activated against
        """
        pass

    def shutdown(self) -> None:
        """Clean up plugin resources."""
        pass

    def get_commands(self) -> dict[str, ShellCommand]:
        """
        Get shell commands provided by this plugin.

        Returns:
            Dict of command name to command object
        """
        return {}
