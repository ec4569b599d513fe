"""
Shell Lexer Module

Turns one line of shell input into a flat token stream for the parser.

Operators are matched longest first, so '&&' is never read as two
background markers and '>>' is never read as two overwrite redirects.
Quoted and bare segments that touch without whitespace form one word.
There are no escape sequences.

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from qrx.exceptions import ParseError


class TokenType(Enum):
    """Token types produced by the lexer."""
    WORD = "word"
    PIPE = "pipe"
    AND_IF = "and_if"
    OR_IF = "or_if"
    BACKGROUND = "background"
    SEMICOLON = "semicolon"
    LPAREN = "lparen"
    RPAREN = "rparen"
    REDIRECT_OUT = "redirect_out"
    REDIRECT_APPEND = "redirect_append"
    EOF = "eof"


@dataclass
class Token:
    """
    A lexed token.

    `column` is 1-based. For words, `quoted` is set when any segment was
    quoted and `literal` when every segment was single-quoted. `raw` is
    the word as written, quotes included.
    """
    type: TokenType
    value: str
    column: int
    quoted: bool = False
    literal: bool = False
    raw: str = field(default='', compare=False, repr=False)


# Longest operators first.
OPERATORS = [
    ('&&', TokenType.AND_IF),
    ('||', TokenType.OR_IF),
    ('>>', TokenType.REDIRECT_APPEND),
    ('>', TokenType.REDIRECT_OUT),
    ('|', TokenType.PIPE),
    ('&', TokenType.BACKGROUND),
    (';', TokenType.SEMICOLON),
    ('(', TokenType.LPAREN),
    (')', TokenType.RPAREN),
]

# Characters that end a bare word.
METACHARACTERS = frozenset('|&<>;()\'"`')

# Characters with no meaning in the grammar at all.
FORBIDDEN = frozenset('<`')


class Lexer:
    """
    Tokenizer for the shell grammar.

    Example:
        >>> [t.value for t in Lexer('echo "a b"c | cat').tokenize()]
        ['echo', 'a bc', '|', 'cat', '']
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def tokenize(self) -> List[Token]:
        """
        Split the input into tokens, ending with an EOF token.

        Raises:
            ParseError: On an unterminated quote or a forbidden character
        """
        tokens: List[Token] = []
        text = self._text

        while True:
            self._skip_whitespace()
            if self._pos >= len(text):
                tokens.append(Token(TokenType.EOF, '', self._pos + 1))
                return tokens

            char = text[self._pos]

            if char in FORBIDDEN:
                raise ParseError(
                    f"unexpected token '{char}' at column {self._pos + 1}",
                    position=self._pos
                )

            operator = self._match_operator()
            if operator is not None:
                tokens.append(operator)
                continue

            tokens.append(self._read_word())

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _match_operator(self) -> Optional[Token]:
        for symbol, token_type in OPERATORS:
            if self._text.startswith(symbol, self._pos):
                token = Token(token_type, symbol, self._pos + 1)
                self._pos += len(symbol)
                return token
        return None

    def _read_word(self) -> Token:
        """Read adjacent quoted and bare segments as one word."""
        text = self._text
        start = self._pos
        parts: List[str] = []
        quoted = False
        all_single = True

        while self._pos < len(text):
            char = text[self._pos]

            if char in ("'", '"'):
                end = text.find(char, self._pos + 1)
                if end == -1:
                    raise ParseError(
                        f"unterminated quote at column {self._pos + 1}",
                        position=self._pos
                    )
                parts.append(text[self._pos + 1:end])
                quoted = True
                if char == '"':
                    all_single = False
                self._pos = end + 1
                continue

            if char.isspace() or char in METACHARACTERS:
                break

            parts.append(char)
            all_single = False
            self._pos += 1

        return Token(
            TokenType.WORD,
            ''.join(parts),
            start + 1,
            quoted=quoted,
            literal=quoted and all_single,
            raw=text[start:self._pos]
        )


def word_segments(raw: str) -> List[Tuple[Optional[str], str]]:
    """
    Split a word as written into (quote, text) segments.

    quote is "'" or '"' for a quoted segment and None for bare text. The
    word must have come out of the lexer, so its quotes are balanced.

    Example:
        >>> word_segments('x="a b"')
        [(None, 'x='), ('"', 'a b')]
    """
    segments: List[Tuple[Optional[str], str]] = []
    pos = 0

    while pos < len(raw):
        char = raw[pos]
        if char in ("'", '"'):
            end = raw.index(char, pos + 1)
            segments.append((char, raw[pos + 1:end]))
            pos = end + 1
            continue

        end = pos
        while end < len(raw) and raw[end] not in ("'", '"'):
            end += 1
        segments.append((None, raw[pos:end]))
        pos = end

    return segments
