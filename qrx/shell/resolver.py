"""
Command Resolution Module

Finds the implementation behind a command name. Resolution order:

1. Override script `<override_dir>/<name>` in the virtual filesystem,
   written in the shell's own grammar
2. A command registered in the CommandRegistry (built-ins and plugins)
3. Session built-ins: help, clear and the empty name
4. Nothing: the caller reports "command not found"

Override scripts are never host code. Each non-blank line that does not
start with '#' is parsed and evaluated like an interactive line, with
$1..$9, $# and $@ bound to the script's arguments. A script is skipped
while it is already running, so an override of `echo` can still call the
registered `echo`.

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

from typing import Optional, List, Any, TYPE_CHECKING

from .context import EvalFrame, CommandContext
from .registry import ShellCommand
from qrx.exceptions import FileSystemException
from qrx.filesystem.path_resolver import PathResolver
from qrx.logger import get_logger

if TYPE_CHECKING:
    from .executor import AstExecutor


class OverrideScript(ShellCommand):
    """A user script shadowing a command by name."""

    description = "User override script"

    def __init__(self, name: str, path: str, executor: 'AstExecutor', frame: EvalFrame):
        self.name = name
        self.path = path
        self._executor = executor
        self._frame = frame

    async def run(
        self,
        context: CommandContext,
        args: List[str],
        stdin: Optional[str] = None
    ) -> int:
        source = await context.fs.read_file(self.path)

        frame = self._frame.derive(
            sink=context.sink,
            positional=tuple(args),
            overrides=self._frame.overrides | {self.name},
        )

        status = 0
        for line in source.splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            if context.cancelled.is_set():
                return 130

            nodes = self._executor.parser.parse(line)
            status = await self._executor.run_statements(nodes, frame, stdin)

        return status

    def cancel(self, context: CommandContext) -> None:
        """Stop before the next line of the script."""
        context.cancelled.set()


class HelpBuiltin(ShellCommand):
    name = "help"
    description = "List available commands"

    async def run(self, context, args, stdin=None):
        commands = ", ".join(context.registry.names())
        context.writeln(f"Builtins: help, clear. Commands: {commands}")


class ClearBuiltin(ShellCommand):
    name = "clear"
    description = "Clear the terminal"

    async def run(self, context, args, stdin=None):
        context.terminal.clear()


class EmptyBuiltin(ShellCommand):
    """An empty command name passes its input through."""

    name = ""

    async def run(self, context, args, stdin=None):
        if stdin is not None:
            context.write(stdin)


SESSION_BUILTINS: dict[str, ShellCommand] = {
    "help": HelpBuiltin(),
    "clear": ClearBuiltin(),
    "": EmptyBuiltin(),
}


class CommandResolver:
    """
    Resolves command names for the executor.

    Example:
        >>> resolver = CommandResolver(executor, override_dir='/sys/cmd')
        >>> command = await resolver.resolve('echo', frame)
    """

    def __init__(self, executor: 'AstExecutor', override_dir: str = '/sys/cmd'):
        self._executor = executor
        self._override_dir = PathResolver.normalize('/' + override_dir.lstrip('/'))
        self._logger = get_logger('resolver')

    @property
    def override_dir(self) -> str:
        return self._override_dir

    def override_path(self, name: str) -> Optional[str]:
        """Path an override for `name` would live at, if the name is usable."""
        if not name or '/' in name or name in ('.', '..'):
            return None
        return PathResolver.join(self._override_dir, name)

    async def find_override(self, name: str, frame: EvalFrame) -> Optional[OverrideScript]:
        if name in frame.overrides:
            return None

        path = self.override_path(name)
        if path is None:
            return None

        try:
            stat = await self._executor.fs.stat(path)
        except FileSystemException:
            return None

        if not stat.is_file:
            return None
        return OverrideScript(name, path, self._executor, frame)

    async def resolve(self, name: str, frame: EvalFrame) -> Optional[ShellCommand]:
        """
        Find the command to run for `name`.

        Returns:
            The command, or None if nothing answers to the name
        """
        override = await self.find_override(name, frame)
        if override is not None:
            self._logger.debug(
                "Resolved override script",
                context={'command': name, 'path': override.path}
            )
            return override

        command = self._executor.registry.get(name)
        if command is not None:
            self._logger.debug("Resolved registered command", context={'command': name})
            return command

        builtin = SESSION_BUILTINS.get(name)
        if builtin is not None:
            self._logger.debug("Resolved session builtin", context={'command': name})
        return builtin


def status_of(outcome: Any) -> int:
    """Exit status from a command's return value."""
    if outcome is None:
        return 0
    if isinstance(outcome, int):
        return int(outcome)
    status = getattr(outcome, 'status', None)
    if isinstance(status, int):
        return status
    return 0
