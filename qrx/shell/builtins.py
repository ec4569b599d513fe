"""
Shell Built-in Commands

The command catalog registered by default. Every command writes through
its CommandContext and returns an exit status.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import re
import time
from typing import Optional, List

from .context import CommandContext
from .registry import ShellCommand, CommandRegistry
from qrx.exceptions import FileSystemException, CommandRuntimeError
from qrx.filesystem.path_resolver import PathResolver


VARIABLE_NAME_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def split_flags(args: List[str]) -> tuple[set[str], List[str]]:
    """Separate '-rf' style flags from operands."""
    flags: set[str] = set()
    operands: List[str] = []

    for arg in args:
        if arg.startswith('-') and len(arg) > 1:
            flags.update(arg[1:])
        else:
            operands.append(arg)

    return flags, operands


class EchoCommand(ShellCommand):
    name = "echo"
    description = "Print arguments separated by spaces"

    async def run(self, context, args, stdin=None):
        if args and args[0] == '-n':
            context.write(' '.join(args[1:]))
        else:
            context.writeln(' '.join(args))
        return 0


class CatCommand(ShellCommand):
    name = "cat"
    description = "Print piped input or file contents"

    async def run(self, context, args, stdin=None):
        if stdin is not None:
            context.write(stdin)
            return 0

        if not args:
            context.writeln("cat: missing file operand")
            return 1

        had_error = False
        for path in args:
            try:
                context.write(await context.fs.read_file(context.resolve_path(path)))
            except FileSystemException as e:
                context.writeln(f"cat: {path}: {e.message}")
                had_error = True

        return 1 if had_error else 0


class PwdCommand(ShellCommand):
    name = "pwd"
    description = "Print the working directory"

    async def run(self, context, args, stdin=None):
        context.writeln(context.cwd)
        return 0


class CdCommand(ShellCommand):
    name = "cd"
    description = "Change the working directory"

    async def run(self, context, args, stdin=None):
        target = args[0] if args else '/'
        path = context.resolve_path(target)

        try:
            stat = await context.fs.stat(path)
        except FileSystemException:
            context.writeln(f"cd: no such file or directory: {target}")
            return 1

        if not stat.is_directory:
            context.writeln(f"cd: not a directory: {target}")
            return 1

        context.cwd = path
        context.env['PWD'] = path
        return 0


class LsCommand(ShellCommand):
    name = "ls"
    description = "List directory contents"

    async def run(self, context, args, stdin=None):
        target = args[0] if args else '.'
        path = context.resolve_path(target)

        try:
            stat = await context.fs.stat(path)
            if not stat.is_directory:
                context.writeln(PathResolver.basename(path))
                return 0

            for entry in await context.fs.readdir(path):
                entry_stat = await context.fs.stat(PathResolver.join(path, entry))
                context.writeln(f"{entry}/" if entry_stat.is_directory else entry)

        except FileSystemException:
            context.writeln(f"ls: cannot access '{target}': No such file or directory")
            return 2

        return 0


class MkdirCommand(ShellCommand):
    name = "mkdir"
    description = "Create directories (-p: with parents)"

    async def run(self, context, args, stdin=None):
        flags, paths = split_flags(args)
        if not paths:
            context.writeln("mkdir: missing operand")
            return 1

        had_error = False
        for path in paths:
            try:
                await context.fs.mkdir(
                    context.resolve_path(path),
                    parents='p' in flags
                )
            except FileSystemException as e:
                context.writeln(f"mkdir: cannot create directory '{path}': {e.message}")
                had_error = True

        return 1 if had_error else 0


class TouchCommand(ShellCommand):
    name = "touch"
    description = "Create empty files or update their times"

    async def run(self, context, args, stdin=None):
        if not args:
            context.writeln("touch: missing file operand")
            return 1

        now = time.time()
        had_error = False

        for path in args:
            resolved = context.resolve_path(path)
            try:
                if await context.fs.exists(resolved):
                    await context.fs.utimes(resolved, now, now)
                else:
                    await context.fs.write_file(resolved, '')
            except FileSystemException as e:
                context.writeln(f"touch: cannot touch '{path}': {e.message}")
                had_error = True

        return 1 if had_error else 0


class RmCommand(ShellCommand):
    name = "rm"
    description = "Remove files (-r: directories, -f: ignore missing)"

    async def run(self, context, args, stdin=None):
        flags, paths = split_flags(args)
        recursive = 'r' in flags or 'R' in flags
        forced = 'f' in flags

        if not paths:
            if forced:
                return 0
            context.writeln("rm: missing operand")
            return 1

        had_error = False
        for path in paths:
            resolved = context.resolve_path(path)

            try:
                stat = await context.fs.stat(resolved)
            except FileSystemException:
                if not forced:
                    context.writeln(f"rm: cannot remove '{path}': No such file or directory")
                    had_error = True
                continue

            if stat.is_directory:
                if not recursive:
                    context.writeln(f"rm: cannot remove '{path}': Is a directory")
                    had_error = True
                elif not await self._remove_tree(context, resolved):
                    had_error = True
                continue

            try:
                await context.fs.unlink(resolved)
            except FileSystemException as e:
                context.writeln(f"rm: cannot remove '{path}': {e.message}")
                had_error = True

        return 1 if had_error else 0

    async def _remove_tree(self, context: CommandContext, path: str) -> bool:
        try:
            for entry in await context.fs.readdir(path):
                child = PathResolver.join(path, entry)
                if (await context.fs.stat(child)).is_directory:
                    if not await self._remove_tree(context, child):
                        return False
                else:
                    await context.fs.unlink(child)
            await context.fs.rmdir(path)
        except FileSystemException as e:
            context.writeln(f"rm: cannot remove '{e.path or path}': {e.message}")
            return False
        return True


class CpCommand(ShellCommand):
    name = "cp"
    description = "Copy a file or directory tree"

    async def run(self, context, args, stdin=None):
        _, operands = split_flags(args)
        if len(operands) != 2:
            context.writeln("cp: missing destination file operand after 'source_file'")
            context.writeln("Usage: cp SOURCE DEST")
            return 1

        source_arg, dest_arg = operands
        source = context.resolve_path(source_arg)
        dest = context.resolve_path(dest_arg)

        if dest == source:
            context.writeln(f"cp: '{source_arg}' and '{dest_arg}' are the same file")
            return 1
        if dest.startswith(source.rstrip('/') + '/'):
            context.writeln(f"cp: cannot copy '{source_arg}' into itself, '{dest_arg}'")
            return 1

        return 0 if await self._copy(context, source, dest, source_arg, dest_arg) else 1

    async def _copy(
        self,
        context: CommandContext,
        source: str,
        dest: str,
        source_arg: str,
        dest_arg: str
    ) -> bool:
        fs = context.fs

        try:
            source_stat = await fs.stat(source)
        except FileSystemException:
            context.writeln(f"cp: cannot stat '{source_arg}': No such file or directory")
            return False

        dest_stat = None
        if await fs.exists(dest):
            dest_stat = await fs.stat(dest)

        if source_stat.is_file:
            if dest_stat is not None and dest_stat.is_directory:
                dest = PathResolver.join(dest, PathResolver.basename(source))
            try:
                await fs.write_file(dest, await fs.read_file(source, encoding=None))
            except FileSystemException as e:
                context.writeln(f"cp: error copying file '{source_arg}': {e.message}")
                return False
            return True

        if dest_stat is not None and dest_stat.is_file:
            context.writeln(
                f"cp: cannot overwrite non-directory '{dest_arg}' "
                f"with directory '{source_arg}'"
            )
            return False

        if dest_stat is not None:
            dest = PathResolver.join(dest, PathResolver.basename(source))

        try:
            if not await fs.exists(dest):
                await fs.mkdir(dest)
            entries = await fs.readdir(source)
        except FileSystemException as e:
            context.writeln(f"cp: error copying directory '{source_arg}': {e.message}")
            return False

        for entry in entries:
            copied = await self._copy(
                context,
                PathResolver.join(source, entry),
                PathResolver.join(dest, entry),
                f"{source_arg}/{entry}",
                f"{dest_arg}/{entry}",
            )
            if not copied:
                return False

        return True


class MvCommand(ShellCommand):
    name = "mv"
    description = "Move or rename a file or directory"

    async def run(self, context, args, stdin=None):
        if len(args) != 2:
            context.writeln("mv: missing destination file operand after 'source_file'")
            context.writeln("Usage: mv SOURCE DEST")
            return 1

        source = context.resolve_path(args[0])
        dest = context.resolve_path(args[1])

        try:
            if await context.fs.exists(dest) and (await context.fs.stat(dest)).is_directory:
                dest = PathResolver.join(dest, PathResolver.basename(source))
            await context.fs.rename(source, dest)
        except FileSystemException as e:
            context.writeln(f"mv: cannot move '{args[0]}' to '{args[1]}': {e.message}")
            return 1

        return 0


class HistoryCommand(ShellCommand):
    name = "history"
    description = "Show command history (-c: clear it)"

    async def run(self, context, args, stdin=None):
        session = context.session

        if args and args[0] == '-c':
            session.clear_history()
            context.writeln("Command history cleared.")
            return 0

        if not session.history:
            context.writeln("No history yet.")
            return 0

        for number, line in enumerate(session.history, start=1):
            context.writeln(f"{number:4d}  {line}")
        return 0


class EnvCommand(ShellCommand):
    name = "env"
    description = "Print environment variables"

    async def run(self, context, args, stdin=None):
        for key in sorted(context.env):
            context.writeln(f"{key}={context.env[key]}")
        return 0


class ExportCommand(ShellCommand):
    name = "export"
    description = "Set environment variables (NAME=value)"

    async def run(self, context, args, stdin=None):
        if not args:
            for key in sorted(context.env):
                context.writeln(f"export {key}={context.env[key]}")
            return 0

        had_error = False
        for arg in args:
            name, sep, value = arg.partition('=')
            if not VARIABLE_NAME_RE.match(name):
                context.writeln(f"export: '{arg}': not a valid identifier")
                had_error = True
                continue
            if sep:
                context.session.set_variable(name, value)
            else:
                context.session.set_variable(name, context.session.get_variable(name))

        return 1 if had_error else 0


class TrueCommand(ShellCommand):
    name = "true"
    description = "Do nothing, successfully"

    async def run(self, context, args, stdin=None):
        return 0


class FalseCommand(ShellCommand):
    name = "false"
    description = "Do nothing, unsuccessfully"

    async def run(self, context, args, stdin=None):
        return 1


class SleepCommand(ShellCommand):
    """Wait N seconds. Ctrl-C ends the wait with status 130."""

    name = "sleep"
    description = "Wait for a number of seconds"

    async def run(self, context, args, stdin=None):
        if not args:
            raise CommandRuntimeError(self.name, "missing operand")

        try:
            seconds = float(args[0])
        except ValueError:
            seconds = -1.0
        if not seconds >= 0:
            raise CommandRuntimeError(
                self.name,
                f"invalid time interval '{args[0]}'"
            )

        try:
            await asyncio.wait_for(context.cancelled.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return 0
        return 130

    def cancel(self, context: CommandContext) -> None:
        context.cancelled.set()


class ExitCommand(ShellCommand):
    name = "exit"
    description = "Leave the shell"

    async def run(self, context, args, stdin=None):
        status = context.session.last_exit_status
        if args:
            try:
                status = int(args[0])
            except ValueError:
                context.writeln(f"exit: {args[0]}: numeric argument required")
                status = 2

        context.request_exit()
        return status


DEFAULT_COMMANDS: List[type[ShellCommand]] = [
    EchoCommand,
    CatCommand,
    PwdCommand,
    CdCommand,
    LsCommand,
    MkdirCommand,
    TouchCommand,
    RmCommand,
    CpCommand,
    MvCommand,
    HistoryCommand,
    EnvCommand,
    ExportCommand,
    TrueCommand,
    FalseCommand,
    SleepCommand,
    ExitCommand,
]


def create_default_registry(registry: Optional[CommandRegistry] = None) -> CommandRegistry:
    """
    Build a registry holding the default command catalog.

    `move` is registered as an alias of `mv`.
    """
    if registry is None:
        registry = CommandRegistry()

    for command_class in DEFAULT_COMMANDS:
        registry.register(command_class())

    registry.register(registry.get('mv'), name='move')
    return registry
