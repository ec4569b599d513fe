"""
QRx Shell Package

Parser, AST executor, command dispatch and the interactive driver.
"""

from .ast_nodes import (
    Node,
    Command,
    Pipeline,
    LogicalAnd,
    LogicalOr,
    Group,
    IfStatement,
    ErrorNode,
    Redirection,
    RedirectMode,
    Literal,
    ExecutionResult,
)
from .parser import CommandParser
from .executor import AstExecutor
from .context import EvalFrame, CommandContext, CancelHandle
from .output import OutputSink, TerminalSink, BufferSink, NullSink
from .registry import ShellCommand, CommandRegistry
from .resolver import CommandResolver, OverrideScript
from .builtins import create_default_registry
from .shell import Shell, create_shell

__all__ = [
    "Node",
    "Command",
    "Pipeline",
    "LogicalAnd",
    "LogicalOr",
    "Group",
    "IfStatement",
    "ErrorNode",
    "Redirection",
    "RedirectMode",
    "Literal",
    "ExecutionResult",
    "CommandParser",
    "AstExecutor",
    "EvalFrame",
    "CommandContext",
    "CancelHandle",
    "OutputSink",
    "TerminalSink",
    "BufferSink",
    "NullSink",
    "ShellCommand",
    "CommandRegistry",
    "CommandResolver",
    "OverrideScript",
    "create_default_registry",
    "Shell",
    "create_shell",
]
