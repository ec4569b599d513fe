"""
QRx Shell Module

The interactive driver: reads lines, runs them through the parser and
the executor, and handles background jobs and Ctrl-C.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import signal
from typing import Optional

from .builtins import create_default_registry
from .context import EvalFrame, ForegroundLine
from .executor import AstExecutor
from .output import OutputSink, TerminalSink
from .parser import CommandParser
from .registry import CommandRegistry
from qrx.core.config_loader import Config, get_config
from qrx.core.session import Session
from qrx.filesystem.vfs import FileSystemInterface, VirtualFileSystem
from qrx.logger import get_logger


STATUS_INTERRUPTED = 130


class DetachableSink(OutputSink):
    """Forwards writes until detached, then drops them."""

    def __init__(self, target: OutputSink):
        self._target: Optional[OutputSink] = target

    def write(self, text: str) -> None:
        if self._target is not None:
            self._target.write(text)

    def clear(self) -> None:
        if self._target is not None:
            self._target.clear()

    def detach(self) -> None:
        self._target = None


class Shell:
    """
    QRx Interactive Shell.

    Provides:
    - Line evaluation (run_line) and scripts (run_script)
    - The interactive loop (run)
    - Background jobs
    - Command history
    - Ctrl-C handling for the foreground command

    Example:
        >>> shell = create_shell()
        >>> await shell.run_line("echo hello | cat")
        hello
        0
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        fs: Optional[FileSystemInterface] = None,
        registry: Optional[CommandRegistry] = None,
        terminal: Optional[OutputSink] = None,
        config: Optional[Config] = None,
        parser: Optional[CommandParser] = None
    ):
        self._config = config or get_config()
        self._logger = get_logger('shell')

        shell_config = self._config.shell
        self._session = session or Session(history_size=shell_config.history_size)

        if fs is None:
            vfs = VirtualFileSystem(
                max_file_size=self._config.filesystem.max_file_size,
                standard_dirs=self._config.filesystem.standard_dirs
            )
            vfs.initialize()
            fs = vfs
        self._fs = fs

        self._registry = registry if registry is not None else create_default_registry()
        self._terminal = terminal or TerminalSink()
        self._parser = parser or CommandParser()
        self._executor = AstExecutor(
            self._session,
            self._fs,
            self._registry,
            parser=self._parser,
            override_dir=shell_config.override_dir,
            job_ack_format=shell_config.job_ack_format
        )

        self._interrupt: Optional[asyncio.Event] = None
        self._abandoned: set[asyncio.Task] = set()
        self._running = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def fs(self) -> FileSystemInterface:
        return self._fs

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    @property
    def executor(self) -> AstExecutor:
        return self._executor

    @property
    def parser(self) -> CommandParser:
        return self._parser

    @property
    def terminal(self) -> OutputSink:
        return self._terminal

    @property
    def config(self) -> Config:
        return self._config

    @property
    def prompt(self) -> str:
        shell_config = self._config.shell
        return f"{shell_config.prompt_user}@{shell_config.prompt_host}:{self._session.cwd}$ "

    async def run_line(self, line: str, record_history: bool = True) -> int:
        """
        Evaluate one line of input against the terminal.

        A non-cooperative Ctrl-C stops waiting for the line and returns
        130. The abandoned work keeps running with its output dropped and
        can no longer take the Ctrl-C slot.

        Args:
            line: Input line
            record_history: Append the line to the session history

        Returns:
            Exit status of the last statement
        """
        if record_history:
            self._session.add_history(line)

        nodes = self._parser.parse(line)
        if not nodes:
            return self._session.last_exit_status

        sink = DetachableSink(self._terminal)
        foreground = ForegroundLine()
        frame = EvalFrame(sink=sink, terminal=self._terminal, line=foreground)

        interrupt = asyncio.Event()
        self._interrupt = interrupt

        statements = asyncio.create_task(self._executor.run_statements(nodes, frame))
        interrupted = asyncio.create_task(interrupt.wait())

        try:
            await asyncio.wait(
                {statements, interrupted},
                return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            interrupted.cancel()
            self._interrupt = None

        if statements.done():
            return statements.result()

        sink.detach()
        foreground.detach()
        self._abandoned.add(statements)
        statements.add_done_callback(self._abandoned.discard)

        self._session.current_cancellable = None
        self._session.last_exit_status = STATUS_INTERRUPTED
        self._logger.info("Abandoned foreground statement", context={'line': line})
        return STATUS_INTERRUPTED

    def cancel_current(self) -> bool:
        """
        Handle Ctrl-C.

        Calls the cancel hook of the foreground command if it has one.
        Otherwise prints ^C and stops waiting for the current line.

        Returns:
            True if a cooperative cancel hook was called
        """
        handle = self._session.current_cancellable
        if handle is not None and handle.cancel():
            self._logger.info("Cancelled command", context={'command': handle.name})
            return True

        self._terminal.writeln('^C')
        if self._interrupt is not None:
            self._interrupt.set()
        elif self._running:
            self._terminal.write(self.prompt)
        return False

    async def run_script(self, script: str) -> int:
        """
        Run a script (multiple lines).

        Blank lines and lines starting with '#' are skipped.

        Returns:
            Last exit code
        """
        status = self._session.last_exit_status

        for line in script.splitlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            status = await self.run_line(line, record_history=False)
            if self._session.exit_requested:
                break

        return status

    async def wait_for_jobs(self) -> None:
        """Wait until every background job has finished."""
        while self._executor.jobs:
            await asyncio.gather(*self._executor.jobs)

    async def run(self) -> int:
        """
        Run the interactive shell.

        This is the main REPL loop. Input is read on a worker thread so
        background jobs keep running while the prompt waits.

        Returns:
            Exit status of the last line
        """
        loop = asyncio.get_running_loop()
        self._running = True
        status = 0

        sigint_installed = self._install_sigint_handler(loop)

        welcome = self._config.shell.welcome_message
        if welcome:
            self._terminal.writeln(welcome)

        try:
            while self._running and not self._session.exit_requested:
                try:
                    line = await asyncio.to_thread(input, self.prompt)
                except EOFError:
                    self._terminal.writeln()
                    break

                status = await self.run_line(line)
        finally:
            if sigint_installed:
                loop.remove_signal_handler(signal.SIGINT)
            self._running = False

        return status

    def stop(self) -> None:
        """Stop the shell after the current line."""
        self._running = False

    def _install_sigint_handler(self, loop: asyncio.AbstractEventLoop) -> bool:
        try:
            loop.add_signal_handler(signal.SIGINT, self.cancel_current)
        except (NotImplementedError, RuntimeError) as e:
            self._logger.debug("SIGINT handler not installed", context={'error': str(e)})
            return False
        return True


def create_shell(
    config: Optional[Config] = None,
    terminal: Optional[OutputSink] = None,
    registry: Optional[CommandRegistry] = None
) -> Shell:
    """Factory function to create a shell with a fresh session and filesystem."""
    return Shell(config=config, terminal=terminal, registry=registry)
