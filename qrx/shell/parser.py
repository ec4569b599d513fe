"""
Command Parser Module

Parses one line of shell input into a list of top-level AST statements.

Grammar (highest binding first):

    statement_list := statement (';' statement)* (';')?
    statement      := logical_seq ('&')?
    logical_seq    := (if_stmt | pipeline) (('&&' | '||') pipeline)*
    pipeline       := group ('|' group)*
    group          := command (redirect)? | '(' statement_list ')' (redirect)?
    command        := IDENTIFIER (WORD)*
    redirect       := '>>' WORD | '>' WORD
    if_stmt        := 'if' pipeline ';' 'then' statement_list ';'
                      ('else' statement_list ';')? 'fi'

The parser is recursive descent with left-associative loops, so every
input has at most one parse.

Author: YSNRFD
Version: 1.0.0
"""

from contextlib import contextmanager
from typing import Optional, List, Iterator

from .ast_nodes import (
    AnyNode,
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
)
from .lexer import Lexer, Token, TokenType
from qrx.exceptions import ParseError
from qrx.logger import get_logger


KEYWORDS = frozenset({'if', 'then', 'else', 'fi'})

# Keywords that close a statement list rather than start a statement.
CLOSING_KEYWORDS = frozenset({'then', 'else', 'fi'})

# Groups and if statements nested deeper than this are rejected.
MAX_NESTING = 64


class CommandParser:
    """
    Parses shell command lines.

    Handles:
    - Sequences (;) and background statements (&)
    - Logical operators (&&, ||)
    - Pipes (|)
    - Output redirection (>, >>)
    - Groups ( ... )
    - if / then / else / fi
    - Single and double quoted strings

    parse() never raises. A syntax error, including nesting deeper than
    MAX_NESTING, comes back as a single ErrorNode.

    Example:
        >>> parser = CommandParser()
        >>> parser.parse("echo hello | cat > out.txt")
        [Pipeline(source=Command(name='echo', args=['hello']), ...)]
    """

    def __init__(self):
        self._logger = get_logger('parser')
        self._tokens: List[Token] = []
        self._pos = 0
        self._depth = 0

    def parse(self, line: str) -> List[AnyNode]:
        """
        Parse a command line.

        Args:
            line: One line of input, without its newline

        Returns:
            Top-level statements; [] for a blank line, [ErrorNode] on a
            syntax error
        """
        try:
            self._tokens = Lexer(line).tokenize()
            self._pos = 0
            self._depth = 0

            if self._peek().type == TokenType.EOF:
                return []

            statements = self._statement_list()
            self._accept(TokenType.SEMICOLON)

            if self._peek().type != TokenType.EOF:
                raise self._unexpected(self._peek())

            return statements

        except ParseError as e:
            self._logger.debug(
                "Syntax error",
                context={'line': line, 'error': e.message}
            )
            return [ErrorNode(e.message)]

        finally:
            self._tokens = []
            self._pos = 0
            self._depth = 0

    # Token stream helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._peek()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _accept(self, token_type: TokenType) -> Optional[Token]:
        if self._peek().type == token_type:
            return self._advance()
        return None

    def _expect(self, token_type: TokenType) -> Token:
        token = self._peek()
        if token.type != token_type:
            raise self._unexpected(token)
        return self._advance()

    def _at_keyword(self, keyword: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return (
            token.type == TokenType.WORD
            and not token.quoted
            and token.value == keyword
        )

    def _expect_keyword(self, keyword: str) -> Token:
        if not self._at_keyword(keyword):
            raise self._unexpected(self._peek())
        return self._advance()

    def _starts_statement(self, token: Token) -> bool:
        if token.type == TokenType.LPAREN:
            return True
        if token.type != TokenType.WORD:
            return False
        return token.quoted or token.value not in CLOSING_KEYWORDS

    @staticmethod
    def _unexpected(token: Token) -> ParseError:
        if token.type == TokenType.EOF:
            return ParseError(
                f"unexpected end of input at column {token.column}",
                position=token.column - 1
            )
        return ParseError(
            f"unexpected token '{token.value}' at column {token.column}",
            position=token.column - 1
        )

    @contextmanager
    def _nested(self, token: Token) -> Iterator[None]:
        if self._depth >= MAX_NESTING:
            raise ParseError(
                f"nesting too deep at column {token.column}",
                position=token.column - 1
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    @staticmethod
    def _word(token: Token) -> str:
        return Literal(token.value) if token.literal else token.value

    # Productions

    def _statement_list(self) -> List[Node]:
        statements = [self._statement()]

        # A ';' that is not followed by another statement belongs to the
        # caller (trailing ';', or the ';' before then/else/fi/')').
        while (self._peek().type == TokenType.SEMICOLON
               and self._starts_statement(self._peek(1))):
            self._advance()
            statements.append(self._statement())

        return statements

    def _statement(self) -> Node:
        node = self._logical_seq()
        if self._accept(TokenType.BACKGROUND):
            node.background = True
        return node

    def _logical_seq(self) -> Node:
        if self._at_keyword('if'):
            node = self._if_statement()
        else:
            node = self._pipeline()

        while self._peek().type in (TokenType.AND_IF, TokenType.OR_IF):
            operator = self._advance()
            right = self._pipeline()
            if operator.type == TokenType.AND_IF:
                node = LogicalAnd(node, right)
            else:
                node = LogicalOr(node, right)

        return node

    def _pipeline(self) -> Node:
        node = self._group()
        while self._accept(TokenType.PIPE):
            node = Pipeline(node, self._group())
        return node

    def _group(self) -> Node:
        token = self._peek()

        if token.type == TokenType.LPAREN:
            with self._nested(token):
                self._advance()
                commands = self._statement_list()
                self._accept(TokenType.SEMICOLON)
                self._expect(TokenType.RPAREN)
            node: Node = Group(commands)
        elif token.type == TokenType.WORD:
            node = self._command()
        else:
            raise self._unexpected(token)

        node.redirection = self._redirect()
        return node

    def _command(self) -> Command:
        name = self._advance()
        if name.value in KEYWORDS:
            raise self._unexpected(name)

        args = []
        while self._peek().type == TokenType.WORD:
            args.append(self._word(self._advance()))

        return Command(self._word(name), args, source=name.raw)

    def _redirect(self) -> Optional[Redirection]:
        operator = self._accept(TokenType.REDIRECT_APPEND) or \
            self._accept(TokenType.REDIRECT_OUT)
        if operator is None:
            return None

        target = self._expect(TokenType.WORD)
        mode = (
            RedirectMode.APPEND
            if operator.type == TokenType.REDIRECT_APPEND
            else RedirectMode.OVERWRITE
        )
        return Redirection(mode, self._word(target))

    def _if_statement(self) -> IfStatement:
        with self._nested(self._peek()):
            return self._if_body()

    def _if_body(self) -> IfStatement:
        self._expect_keyword('if')
        condition = self._pipeline()
        self._expect(TokenType.SEMICOLON)

        self._expect_keyword('then')
        then_branch = self._statement_list()
        self._expect(TokenType.SEMICOLON)

        else_branch = None
        if self._at_keyword('else'):
            self._advance()
            else_branch = self._statement_list()
            self._expect(TokenType.SEMICOLON)

        self._expect_keyword('fi')
        return IfStatement(condition, then_branch, else_branch)
