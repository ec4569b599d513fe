"""
Session State

Process-wide state of one shell session: working directory, environment,
last exit status, history, the foreground cancel slot and the job counter.

The executor is the only writer while a statement is being evaluated.
Background jobs run detached and may race with later foreground
statements on these fields; there is no job table to coordinate them.

Author: YSNRFD
Version: 1.0.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, List, TYPE_CHECKING

from qrx.filesystem.path_resolver import PathResolver

if TYPE_CHECKING:
    from qrx.shell.context import CancelHandle


@dataclass
class Session:
    """
    Mutable state shared by every statement of a shell session.

    Example:
        >>> session = Session()
        >>> session.set_variable('NAME', 'qrx')
        >>> session.get_variable('NAME')
        'qrx'
        >>> session.get_variable('UNSET')
        ''
    """

    cwd: str = '/'
    env: dict[str, str] = field(default_factory=dict)
    last_exit_status: int = 0
    history: List[str] = field(default_factory=list)
    current_cancellable: Optional['CancelHandle'] = None
    job_counter: int = 0
    history_size: int = 1000
    exit_requested: bool = False

    def get_variable(self, name: str) -> str:
        """Look up an environment variable; unset names expand to ''."""
        return self.env.get(name, '')

    def set_variable(self, name: str, value: str) -> None:
        self.env[name] = value

    def unset_variable(self, name: str) -> None:
        self.env.pop(name, None)

    def resolve_path(self, path: str) -> str:
        """Resolve a path against the current working directory."""
        return PathResolver.resolve(path, self.cwd)

    def add_history(self, line: str) -> None:
        """Record a submitted line, keeping at most history_size entries."""
        if not line.strip():
            return
        self.history.append(line)
        if self.history_size > 0 and len(self.history) > self.history_size:
            del self.history[:len(self.history) - self.history_size]

    def clear_history(self) -> None:
        self.history.clear()

    def next_job_id(self) -> int:
        """Allocate the next background job id (monotonic, never reused)."""
        self.job_counter += 1
        return self.job_counter
