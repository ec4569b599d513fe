"""
Plugin Loader Module

Manages plugin discovery, loading, and lifecycle.

Author: YSNRFD
Version: 1.0.0
"""

import threading
import importlib.util
from pathlib import Path
from typing import Optional, Any, List

from .plugin_interface import PluginInterface, PluginState
from qrx.exceptions import PluginLoadError
from qrx.logger import get_logger


class PluginLoader:
    """
    Plugin manager.

    Provides:
    - Plugin discovery in a host directory
    - Plugin loading from Python files
    - Activation against a shell (registers the plugin's commands)
    - Deactivation and unloading

    Example:
        >>> loader = PluginLoader()
        >>> name = loader.load_plugin('/path/to/plugin.py')
        >>> loader.activate_plugin(name, shell)
    """

    def __init__(self):
        self._logger = get_logger('plugins')
        self._plugins: dict[str, PluginInterface] = {}
        self._commands: dict[str, List[str]] = {}
        self._shells: dict[str, Any] = {}
        self._lock = threading.Lock()

    def discover_plugins(self, plugin_dir: str) -> List[str]:
        """
        Discover plugins in a directory.

        Args:
            plugin_dir: Directory to search

        Returns:
            Sorted list of plugin file paths
        """
        plugin_path = Path(plugin_dir)

        if not plugin_path.is_dir():
            return []

        return sorted(
            str(file) for file in plugin_path.glob('*.py')
            if not file.name.startswith('_')
        )

    def load_plugin(self, plugin_path: str) -> str:
        """
        Load a plugin from a file.

        Args:
            plugin_path: Path to the plugin file

        Returns:
            Plugin name

        Raises:
            PluginLoadError: If loading fails
        """
        with self._lock:
            try:
                spec = importlib.util.spec_from_file_location(
                    f"qrx_plugin_{Path(plugin_path).stem}",
                    plugin_path
                )

                if spec is None or spec.loader is None:
                    raise PluginLoadError(f"Cannot load plugin from {plugin_path}")

                module = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(module)

                plugin_class = None
                for attr_name in dir(module):
                    attr = getattr(module, attr_name)
                    if (isinstance(attr, type) and
                            issubclass(attr, PluginInterface) and
                            attr is not PluginInterface):
                        plugin_class = attr
                        break

                if plugin_class is None:
                    raise PluginLoadError(
                        f"No PluginInterface class found in {plugin_path}"
                    )

                plugin = plugin_class()
                info = plugin.info

            except PluginLoadError:
                raise
            except Exception as e:
                raise PluginLoadError(f"Failed to load plugin: {e}") from e

            if info.name in self._plugins:
                raise PluginLoadError(
                    f"Plugin '{info.name}' is already loaded",
                    plugin=info.name
                )

            self._plugins[info.name] = plugin
            info.state = PluginState.LOADED

        self._logger.info(
            f"Loaded plugin '{info.name}'",
            context={'version': info.version}
        )
        return info.name

    def activate_plugin(self, name: str, shell: Any) -> bool:
        """
        Activate a loaded plugin and register its commands.

        Args:
            name: Plugin name
            shell: Shell whose registry receives the commands

        Returns:
            True if activated successfully
        """
        plugin = self._plugins.get(name)

        if plugin is None:
            return False
        if plugin.info.state == PluginState.ACTIVE:
            return True

        try:
            plugin.initialize(shell)
            commands = plugin.get_commands()

            for command_name, command in commands.items():
                shell.registry.register(command, name=command_name)

        except Exception as e:
            plugin.info.state = PluginState.ERROR
            plugin.info.error = str(e)

            self._logger.error(
                f"Failed to activate plugin '{name}'",
                context={'error': str(e)}
            )
            return False

        self._commands[name] = list(commands)
        self._shells[name] = shell
        plugin.info.state = PluginState.ACTIVE
        plugin.info.error = None

        self._logger.info(
            f"Activated plugin '{name}'",
            context={'commands': len(commands)}
        )
        return True

    def deactivate_plugin(self, name: str) -> bool:
        """Deactivate a plugin and remove its commands."""
        plugin = self._plugins.get(name)

        if plugin is None or plugin.info.state != PluginState.ACTIVE:
            return False

        shell = self._shells.pop(name, None)
        for command_name in self._commands.pop(name, []):
            if shell is not None:
                shell.registry.unregister(command_name)

        try:
            plugin.shutdown()
        except Exception as e:
            plugin.info.state = PluginState.ERROR
            plugin.info.error = str(e)
            self._logger.error(
                f"Error deactivating plugin '{name}'",
                context={'error': str(e)}
            )
            return False

        plugin.info.state = PluginState.LOADED
        self._logger.info(f"Deactivated plugin '{name}'")
        return True

    def unload_plugin(self, name: str) -> bool:
        """Unload a plugin completely."""
        plugin = self._plugins.get(name)

        if plugin is None:
            return False

        if plugin.info.state == PluginState.ACTIVE:
            self.deactivate_plugin(name)

        with self._lock:
            self._plugins.pop(name, None)

        plugin.info.state = PluginState.UNLOADED
        self._logger.info(f"Unloaded plugin '{name}'")
        return True

    def unload_all(self) -> None:
        for name in list(self._plugins):
            self.unload_plugin(name)

    def get_plugin(self, name: str) -> Optional[PluginInterface]:
        """Get a plugin by name."""
        return self._plugins.get(name)

    def list_plugins(self) -> List[dict[str, Any]]:
        """List all loaded plugins."""
        return [
            {
                'name': plugin.info.name,
                'version': plugin.info.version,
                'description': plugin.info.description,
                'author': plugin.info.author,
                'state': plugin.info.state.value,
                'error': plugin.info.error,
                'commands': list(self._commands.get(plugin.info.name, [])),
            }
            for plugin in self._plugins.values()
        ]
