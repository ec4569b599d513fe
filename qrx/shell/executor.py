"""
AST Executor Module

Evaluates parsed statements:
- Commands, with variable expansion and VAR=value assignment
- Pipelines, logical AND/OR, groups and if statements
- Output redirection to the virtual filesystem
- Background jobs
- Command dispatch with private output capture and cancel handles

evaluate() never lets an exception escape. Every failure becomes an exit
status plus a message in the output.

Author: YSNRFD
Version: 1.0.0
"""

import asyncio
import re
from typing import Optional, List, Callable, Awaitable

from .ast_nodes import (
    AnyNode,
    Command,
    Pipeline,
    LogicalAnd,
    LogicalOr,
    Group,
    IfStatement,
    ErrorNode,
    Redirection,
    RedirectMode,
    ExecutionResult,
    Literal,
)
from .context import EvalFrame, CommandContext, CancelHandle
from .lexer import word_segments
from .output import BufferSink
from .parser import CommandParser
from .registry import CommandRegistry
from .resolver import CommandResolver, status_of
from qrx.core.session import Session
from qrx.exceptions import (
    FileSystemException,
    FileNotFoundError,
    CommandNotFoundError,
    RedirectionIOError,
)
from qrx.filesystem.vfs import FileSystemInterface
from qrx.logger import get_logger


ASSIGNMENT_RE = re.compile(r'^([A-Za-z_][A-Za-z0-9_]*)=(.+)', re.DOTALL)

VARIABLE_RE = re.compile(
    r'\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}'   # ${NAME}
    r'|([A-Za-z_][A-Za-z0-9_]*)'           # $NAME
    r'|([?#@])'                            # $? $# $@
    r'|([1-9]))'                           # $1..$9
)

STATUS_NOT_FOUND = 127


class AstExecutor:
    """
    Tree-walking interpreter for the shell grammar.

    Example:
        >>> executor = AstExecutor(session, vfs, registry)
        >>> [node] = CommandParser().parse("echo hi | cat")
        >>> await executor.evaluate(node)
        ExecutionResult(stdout='hi\\n', status=0)
    """

    def __init__(
        self,
        session: Session,
        fs: FileSystemInterface,
        registry: CommandRegistry,
        parser: Optional[CommandParser] = None,
        override_dir: str = '/sys/cmd',
        job_ack_format: str = '[{job_id}]'
    ):
        self._session = session
        self._fs = fs
        self._registry = registry
        self._parser = parser or CommandParser()
        self._resolver = CommandResolver(self, override_dir)
        self._job_ack_format = job_ack_format
        self._jobs: set[asyncio.Task] = set()
        self._logger = get_logger('executor')

        self._handlers: dict[type, Callable[..., Awaitable[ExecutionResult]]] = {
            Command: self._eval_command,
            Pipeline: self._eval_pipeline,
            LogicalAnd: self._eval_logical_and,
            LogicalOr: self._eval_logical_or,
            Group: self._eval_group,
            IfStatement: self._eval_if,
            ErrorNode: self._eval_error,
        }

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
    def parser(self) -> CommandParser:
        return self._parser

    @property
    def resolver(self) -> CommandResolver:
        return self._resolver

    @property
    def jobs(self) -> frozenset[asyncio.Task]:
        """Background jobs that have not finished yet."""
        return frozenset(self._jobs)

    # Evaluation

    async def evaluate(
        self,
        node: AnyNode,
        stdin: Optional[str] = None,
        frame: Optional[EvalFrame] = None
    ) -> ExecutionResult:
        """
        Evaluate one node and record its status in the session.

        Args:
            node: AST node
            stdin: Input from a pipeline, if any
            frame: Evaluation scope; defaults to discarding diagnostics

        Returns:
            The node's output and exit status
        """
        frame = frame or EvalFrame()

        try:
            result = await self._handlers[type(node)](node, stdin, frame)
            if node.redirection is not None:
                result = await self._redirect(node.redirection, result, frame)
        except Exception as e:
            self._logger.exception(
                "Evaluation failed",
                e,
                context={'node': type(node).__name__}
            )
            result = ExecutionResult(f"qrx: {e}\n", 1)

        self._session.last_exit_status = result.status
        return result

    async def run_statements(
        self,
        nodes: List[AnyNode],
        frame: EvalFrame,
        stdin: Optional[str] = None
    ) -> int:
        """
        Run top-level statements in order.

        Foreground output goes to frame.sink. Background statements are
        started and acknowledged without waiting for them.

        Returns:
            Status of the last statement
        """
        status = self._session.last_exit_status

        for node in nodes:
            if node.background:
                self.spawn(node, frame, stdin)
                status = 0
                continue

            result = await self.evaluate(node, stdin, frame)
            if result.stdout:
                frame.sink.write(result.stdout)
            status = result.status

        return status

    def spawn(
        self,
        node: AnyNode,
        frame: EvalFrame,
        stdin: Optional[str] = None
    ) -> int:
        """
        Start a statement as a background job.

        The job's output is dropped unless the node redirects it.

        Returns:
            The job id
        """
        job_id = self._session.next_job_id()
        job_frame = frame.derive(background=True)

        task = asyncio.create_task(
            self._run_job(job_id, node, stdin, job_frame),
            name=f"qrx-job-{job_id}"
        )
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)

        frame.sink.writeln(self._job_ack_format.format(job_id=job_id))
        self._session.last_exit_status = 0
        return job_id

    async def _run_job(
        self,
        job_id: int,
        node: AnyNode,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        self._logger.info("Background job started", context={'job': job_id})
        result = await self.evaluate(node, stdin, frame)
        self._logger.info(
            "Background job finished",
            context={'job': job_id, 'status': result.status}
        )
        return result

    # Variable expansion

    def expand(self, word: str, frame: EvalFrame) -> str:
        """
        Expand $?, $NAME and ${NAME} in a word.

        Inside an override script $1..$9, $# and $@ expand to its
        arguments; elsewhere they are left as written. Single-quoted
        words are returned unchanged.
        """
        if isinstance(word, Literal):
            return word

        def replace(match: re.Match) -> str:
            braced, plain, special, digit = match.groups()

            if special == '?':
                return str(self._session.last_exit_status)

            if special or digit:
                positional = frame.positional
                if positional is None:
                    return match.group(0)
                if special == '#':
                    return str(len(positional))
                if special == '@':
                    return ' '.join(positional)
                index = int(digit) - 1
                return positional[index] if index < len(positional) else ''

            return self._session.get_variable(braced or plain)

        return VARIABLE_RE.sub(replace, word)

    def _assignment_value(self, written: str, frame: EvalFrame) -> str:
        """Remove one level of quotes; single-quoted parts stay unexpanded."""
        return ''.join(
            text if quote == "'" else self.expand(text, frame)
            for quote, text in word_segments(written)
        )

    # Node handlers

    async def _eval_command(
        self,
        node: Command,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        written = node.source if node.source is not None else node.name
        assignment = ASSIGNMENT_RE.match(written)
        if assignment and not node.args:
            name, value = assignment.groups()
            if not isinstance(written, Literal):
                value = self._assignment_value(value, frame)
            self._session.set_variable(name, value)
            self._logger.debug("Assigned variable", context={'name': name})
            return ExecutionResult()

        args = [self.expand(arg, frame) for arg in node.args]
        return await self._dispatch(node.name, args, stdin, frame)

    async def _eval_pipeline(
        self,
        node: Pipeline,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        source = await self.evaluate(node.source, stdin, frame)
        target = await self.evaluate(node.target, source.stdout, frame)
        return ExecutionResult(target.stdout, target.status)

    async def _eval_logical_and(
        self,
        node: LogicalAnd,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        left = await self.evaluate(node.left, stdin, frame)
        if left.status != 0:
            return ExecutionResult(left.stdout, left.status)

        right = await self.evaluate(node.right, stdin, frame)
        return ExecutionResult(left.stdout + right.stdout, right.status)

    async def _eval_logical_or(
        self,
        node: LogicalOr,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        left = await self.evaluate(node.left, stdin, frame)
        if left.status == 0:
            return ExecutionResult(left.stdout, left.status)

        right = await self.evaluate(node.right, stdin, frame)
        return ExecutionResult(left.stdout + right.stdout, right.status)

    async def _eval_group(
        self,
        node: Group,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        output: List[str] = []
        status = 0

        for child in node.commands:
            result = await self.evaluate(child, stdin, frame)
            output.append(result.stdout)
            status = result.status

        return ExecutionResult(''.join(output), status)

    async def _eval_if(
        self,
        node: IfStatement,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        condition = await self.evaluate(node.condition, stdin, frame)

        if condition.status == 0:
            branch = node.then_branch
        elif node.else_branch is not None:
            branch = node.else_branch
        else:
            return ExecutionResult()

        output: List[str] = []
        status = 0

        for child in branch:
            result = await self.evaluate(child, stdin, frame)
            output.append(result.stdout)
            status = result.status
            if status != 0:
                break

        return ExecutionResult(''.join(output), status)

    async def _eval_error(
        self,
        node: ErrorNode,
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        return ExecutionResult(f"parse error: {node.message}\n", 2)

    # Redirection

    async def _redirect(
        self,
        redirection: Redirection,
        result: ExecutionResult,
        frame: EvalFrame
    ) -> ExecutionResult:
        target = self.expand(redirection.file, frame)
        path = self._session.resolve_path(target)

        try:
            if redirection.mode == RedirectMode.APPEND:
                try:
                    existing = await self._fs.read_file(path)
                except FileNotFoundError:
                    existing = ''
                await self._fs.write_file(path, existing + result.stdout)
            else:
                await self._fs.write_file(path, result.stdout)

        except FileSystemException as e:
            error = RedirectionIOError(target, e.message)
            self._logger.warning(
                "Redirection failed",
                context={'path': path, 'error': e.message}
            )
            frame.sink.writeln(error.message)
            return ExecutionResult('', 1)

        return ExecutionResult('', result.status)

    # Dispatch

    async def _dispatch(
        self,
        name: str,
        args: List[str],
        stdin: Optional[str],
        frame: EvalFrame
    ) -> ExecutionResult:
        command = await self._resolver.resolve(name, frame)

        if command is None:
            error = CommandNotFoundError(name)
            self._logger.debug("Command not found", context={'command': name})
            return ExecutionResult(f"{error.message}\n", STATUS_NOT_FOUND)

        sink = BufferSink()
        context = CommandContext(
            name,
            self._session,
            self._fs,
            self._registry,
            sink,
            frame.terminal
        )

        # Background jobs and abandoned lines are never the cancel target.
        handle = None
        previous = self._session.current_cancellable
        if frame.foreground:
            handle = CancelHandle(name, context, command, parent=previous)
            self._session.current_cancellable = handle

        try:
            status = status_of(await command.run(context, args, stdin))
        except Exception as e:
            message = getattr(e, 'message', None) or str(e)
            self._logger.warning(
                "Command failed",
                context={'command': name, 'error': message}
            )
            sink.writeln(f"{name}: {message}")
            status = 1
        finally:
            if handle is not None and self._session.current_cancellable is handle:
                self._session.current_cancellable = previous

        return ExecutionResult(sink.getvalue(), status)
