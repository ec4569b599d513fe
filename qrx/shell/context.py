"""
Evaluation Context Module

State that travels down the evaluation call chain instead of living in
shared mutable fields:
- EvalFrame: where output goes and what scope the evaluation runs in
- CommandContext: the view of the shell a running command gets
- ForegroundLine: whether the shell is still waiting for a line
- CancelHandle: the foreground invocation a Ctrl-C can reach

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import Optional, Any, Tuple, FrozenSet, TYPE_CHECKING

from .output import OutputSink, NullSink

if TYPE_CHECKING:
    from qrx.core.session import Session
    from qrx.filesystem.vfs import FileSystemInterface
    from .registry import CommandRegistry, ShellCommand


class ForegroundLine:
    """
    One interactive line the shell is waiting for.

    Once the shell gives up on the line, the commands it still runs can no
    longer become the Ctrl-C target.
    """

    def __init__(self):
        self._attached = True

    @property
    def attached(self) -> bool:
        return self._attached

    def detach(self) -> None:
        self._attached = False


@dataclass(frozen=True)
class EvalFrame:
    """
    Immutable evaluation scope.

    Attributes:
        sink: Receives statement output and diagnostics at this level
        terminal: The user's terminal (for commands such as clear)
        background: Evaluating inside a detached job
        positional: Arguments bound to $1..$9 inside an override script
        overrides: Override scripts currently running on this chain
        line: The interactive line this evaluation belongs to, if any
    """
    sink: OutputSink = field(default_factory=NullSink)
    terminal: OutputSink = field(default_factory=NullSink)
    background: bool = False
    positional: Optional[Tuple[str, ...]] = None
    overrides: FrozenSet[str] = frozenset()
    line: Optional[ForegroundLine] = None

    @property
    def foreground(self) -> bool:
        """Commands run here may take the Ctrl-C slot."""
        if self.background:
            return False
        return self.line is None or self.line.attached

    def derive(self, **changes: Any) -> 'EvalFrame':
        """Copy of this frame with some fields replaced."""
        return replace(self, **changes)


class CommandContext:
    """
    What a command sees while it runs.

    Output written here is captured privately for this one invocation;
    the executor decides where it goes afterwards.
    """

    def __init__(
        self,
        name: str,
        session: 'Session',
        fs: 'FileSystemInterface',
        registry: 'CommandRegistry',
        sink: OutputSink,
        terminal: OutputSink
    ):
        self._name = name
        self._session = session
        self._fs = fs
        self._registry = registry
        self._sink = sink
        self._terminal = terminal
        self._cancelled = asyncio.Event()

    @property
    def name(self) -> str:
        """Name the command was invoked as."""
        return self._name

    @property
    def sink(self) -> OutputSink:
        """The private capture buffer of this invocation."""
        return self._sink

    def write(self, text: str) -> None:
        self._sink.write(text)

    def writeln(self, text: str = "") -> None:
        self._sink.writeln(text)

    @property
    def session(self) -> 'Session':
        return self._session

    @property
    def cwd(self) -> str:
        return self._session.cwd

    @cwd.setter
    def cwd(self, value: str) -> None:
        self._session.cwd = value

    @property
    def env(self) -> dict[str, str]:
        return self._session.env

    @property
    def fs(self) -> 'FileSystemInterface':
        return self._fs

    @property
    def registry(self) -> 'CommandRegistry':
        return self._registry

    @property
    def terminal(self) -> OutputSink:
        return self._terminal

    @property
    def cancelled(self) -> asyncio.Event:
        """Set when the user cancels this invocation cooperatively."""
        return self._cancelled

    def resolve_path(self, path: str) -> str:
        return self._session.resolve_path(path)

    def request_exit(self) -> None:
        """Ask the interactive driver to stop after the current line."""
        self._session.exit_requested = True


@dataclass(eq=False)
class CancelHandle:
    """
    The foreground invocation currently eligible for cancellation.

    A command opts into cooperative cancellation by defining
    cancel(context); otherwise the handle can only be abandoned. `parent`
    is the handle of the command this one runs inside (an override
    script running its lines), if any.
    """
    name: str
    context: CommandContext
    command: Optional['ShellCommand'] = None
    parent: Optional['CancelHandle'] = None

    @property
    def cooperative(self) -> bool:
        return callable(getattr(self.command, 'cancel', None))

    def cancel(self) -> bool:
        """
        Invoke the command's cancel hook and mark every enclosing
        invocation as cancelled.

        Returns:
            True if a hook was called, False if the command has none
        """
        if not self.cooperative:
            return False
        self.command.cancel(self.context)

        parent = self.parent
        while parent is not None:
            parent.context.cancelled.set()
            parent = parent.parent
        return True
