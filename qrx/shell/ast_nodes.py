"""
AST Node Module

Syntax tree produced by the parser and consumed by the executor, plus the
result value every evaluation returns.

Each node kind is its own dataclass so the executor can dispatch on the
class. Nodes compare by value.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List


class Literal(str):
    """A word written entirely in single quotes; never expanded."""

    def __repr__(self) -> str:
        return f"Literal({str.__repr__(self)})"


class RedirectMode(Enum):
    """How redirected output reaches its file."""
    OVERWRITE = "overwrite"
    APPEND = "append"


@dataclass
class Redirection:
    """Output redirection attached to a node."""
    mode: RedirectMode
    file: str


@dataclass
class Node:
    """
    Base class for executable nodes.

    Attributes:
        redirection: Where the node's output goes instead of the caller
        background: Run as a detached job (top-level statements only)
    """
    redirection: Optional[Redirection] = field(default=None, kw_only=True)
    background: bool = field(default=False, kw_only=True)


@dataclass
class Command(Node):
    """
    A command name with its argument words. The name may be `VAR=value`.

    `source` is the name word as written, quotes included, when the node
    came from the parser.
    """
    name: str
    args: List[str] = field(default_factory=list)
    source: Optional[str] = field(default=None, compare=False, repr=False)


@dataclass
class Pipeline(Node):
    """`source | target`: source's output is target's input."""
    source: Node
    target: Node


@dataclass
class LogicalAnd(Node):
    left: Node
    right: Node


@dataclass
class LogicalOr(Node):
    left: Node
    right: Node


@dataclass
class Group(Node):
    """A parenthesized statement list. Not a subshell."""
    commands: List[Node] = field(default_factory=list)


@dataclass
class IfStatement(Node):
    condition: Node
    then_branch: List[Node] = field(default_factory=list)
    else_branch: Optional[List[Node]] = None


@dataclass
class ErrorNode:
    """Stands in for a line that has no valid parse."""
    message: str
    redirection: Optional[Redirection] = field(default=None, init=False, repr=False)
    background: bool = field(default=False, init=False, repr=False)


@dataclass
class ExecutionResult:
    """
    Outcome of evaluating a node.

    Status codes:
        0   success
        1   generic failure
        2   parse or serious I/O failure
        127 command not found
        130 interrupted
    """
    stdout: str = ""
    status: int = 0


AnyNode = Node | ErrorNode
