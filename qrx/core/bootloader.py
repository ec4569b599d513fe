"""
QRx Bootloader

The bootloader is responsible for:
- Loading configuration
- Initializing logging
- Building the virtual filesystem and the command registry
- Constructing the shell
- Activating plugins
- Handling boot failures

This is the entry point for a shell session.

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional, List, TYPE_CHECKING
import sys
import time

if TYPE_CHECKING:
    from qrx.shell.output import OutputSink

from qrx.logger import Logger, get_logger, LogLevel
from qrx.exceptions import BootFailureError, PluginLoadError
from qrx.core.config_loader import ConfigLoader, Config
from qrx.filesystem.vfs import VirtualFileSystem
from qrx.plugins.plugin_loader import PluginLoader
from qrx.shell.builtins import create_default_registry
from qrx.shell.registry import CommandRegistry
from qrx.shell.shell import Shell


class BootStage(Enum):
    """Boot process stages."""
    PRE_INIT = auto()
    CONFIG_LOAD = auto()
    LOGGING_INIT = auto()
    FILESYSTEM_INIT = auto()
    COMMANDS_INIT = auto()
    SHELL_INIT = auto()
    PLUGINS_INIT = auto()
    COMPLETE = auto()
    FAILED = auto()


@dataclass
class BootResult:
    """Result of the boot process."""
    success: bool
    stage: BootStage
    message: str
    elapsed_time: float
    error: Optional[Exception] = None


class Bootloader:
    """
    The shell bootloader.

    Boot Sequence:
        1. Pre-initialization checks
        2. Load configuration (defaults when there is no file)
        3. Initialize logging
        4. Build the virtual filesystem
        5. Build the command registry
        6. Construct the shell
        7. Load and activate plugins
        8. Complete

    Only the first six stages can fail the boot. A plugin that cannot be
    loaded or activated is logged and skipped.

    Example:
        >>> bootloader = Bootloader('config.json')
        >>> result = bootloader.boot()
        >>> if result.success:
        ...     shell = bootloader.get_shell()
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        terminal: Optional['OutputSink'] = None
    ):
        self._config_path = config_path
        self._terminal = terminal
        self._stage = BootStage.PRE_INIT
        self._logger: Optional[Logger] = None
        self._start_time: float = 0
        self._config: Optional[Config] = None
        self._fs: Optional[VirtualFileSystem] = None
        self._registry: Optional[CommandRegistry] = None
        self._shell: Optional[Shell] = None
        self._plugin_loader = PluginLoader()

    @property
    def stage(self) -> BootStage:
        """Get the current boot stage."""
        return self._stage

    def boot(self) -> BootResult:
        """
        Execute the boot sequence.

        Returns:
            BootResult indicating success or failure
        """
        self._start_time = time.time()

        try:
            self._stage = BootStage.PRE_INIT
            self._pre_init()

            self._stage = BootStage.CONFIG_LOAD
            self._load_config()

            self._stage = BootStage.LOGGING_INIT
            self._init_logging()

            self._logger = get_logger('bootloader')
            self._logger.info("QRx bootloader starting")

            self._stage = BootStage.FILESYSTEM_INIT
            self._init_filesystem()

            self._stage = BootStage.COMMANDS_INIT
            self._init_commands()

            self._stage = BootStage.SHELL_INIT
            self._init_shell()

            self._stage = BootStage.PLUGINS_INIT
            self._init_plugins()

            self._stage = BootStage.COMPLETE
            elapsed = time.time() - self._start_time

            self._logger.info(
                "Boot complete",
                context={'elapsed_ms': f"{elapsed * 1000:.2f}"}
            )

            return BootResult(
                success=True,
                stage=self._stage,
                message="Shell booted successfully",
                elapsed_time=elapsed
            )

        except Exception as e:
            failed_stage = self._stage
            self._stage = BootStage.FAILED
            elapsed = time.time() - self._start_time

            if self._logger:
                self._logger.critical(
                    f"Boot failed at stage {failed_stage.name}: {e}"
                )

            return BootResult(
                success=False,
                stage=failed_stage,
                message=f"Boot failed: {e}",
                elapsed_time=elapsed,
                error=e
            )

    def _pre_init(self) -> None:
        """Pre-initialization checks."""
        if sys.version_info < (3, 10):
            raise BootFailureError("Python 3.10+ required", stage="pre_init")

    def _load_config(self) -> None:
        """Load configuration. A missing file leaves the defaults in place."""
        loader = ConfigLoader()

        if self._config_path and Path(self._config_path).exists():
            self._config = loader.load(self._config_path)
        else:
            self._config = loader.config

    def _init_logging(self) -> None:
        """Initialize the logging system."""
        logging_config = self._config.logging

        Logger.initialize(
            level=LogLevel.from_name(logging_config.level, LogLevel.WARNING),
            log_file=logging_config.log_file,
            console_output=logging_config.console_output
        )

    def _init_filesystem(self) -> None:
        """Build the virtual filesystem with its standard directories."""
        fs_config = self._config.filesystem

        self._fs = VirtualFileSystem(
            max_file_size=fs_config.max_file_size,
            standard_dirs=fs_config.standard_dirs
        )
        self._fs.initialize()

        self._logger.debug(
            "Filesystem initialized",
            context={'dirs': len(fs_config.standard_dirs)}
        )

    def _init_commands(self) -> None:
        """Register the built-in commands."""
        self._registry = create_default_registry()
        self._logger.debug(
            "Commands registered",
            context={'count': len(self._registry)}
        )

    def _init_shell(self) -> None:
        """Construct the shell."""
        self._shell = Shell(
            fs=self._fs,
            registry=self._registry,
            terminal=self._terminal,
            config=self._config
        )

    def _init_plugins(self) -> None:
        """Load and activate plugins from the configured host directory."""
        plugins_config = self._config.plugins

        if not plugins_config.enabled or not plugins_config.directory:
            return

        for path in self._select_plugins(plugins_config.directory, plugins_config.autoload):
            try:
                name = self._plugin_loader.load_plugin(path)
            except PluginLoadError as e:
                self._logger.error(
                    "Skipping plugin",
                    context={'path': path, 'error': e.message}
                )
                continue

            self._plugin_loader.activate_plugin(name, self._shell)

    def _select_plugins(self, directory: str, autoload: List[str]) -> List[str]:
        paths = self._plugin_loader.discover_plugins(directory)

        if not autoload:
            return paths

        wanted = set(autoload)
        return [path for path in paths if Path(path).stem in wanted]

    def get_shell(self) -> Optional[Shell]:
        """Get the constructed shell instance."""
        return self._shell

    def get_plugin_loader(self) -> PluginLoader:
        return self._plugin_loader

    def shutdown(self) -> None:
        """Shut the session down gracefully."""
        if self._logger:
            self._logger.info("Shutdown initiated")

        self._plugin_loader.unload_all()

        if self._logger:
            self._logger.info("Shutdown complete")


def boot_shell(
    config_path: Optional[str] = None,
    terminal: Optional['OutputSink'] = None
) -> tuple[BootResult, Optional[Shell], Bootloader]:
    """
    Convenience function to boot a shell.

    Args:
        config_path: Path to configuration file
        terminal: Sink for shell output; defaults to stdout

    Returns:
        Tuple of (BootResult, Shell or None, Bootloader)
    """
    bootloader = Bootloader(config_path, terminal)
    result = bootloader.boot()
    return result, bootloader.get_shell(), bootloader
