#!/usr/bin/env python3
"""
Parser Tests

Covers the lexer and the recursive descent parser: precedence, quoting,
redirection, if statements and syntax errors.

Author: YSNRFD
Version: 1.0.0
"""

import unittest

from qrx.exceptions import ParseError
from qrx.shell.ast_nodes import (
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
from qrx.shell.lexer import Lexer, TokenType, word_segments
from qrx.shell.parser import CommandParser, MAX_NESTING


class TestLexer(unittest.TestCase):
    """Test tokenization."""

    def test_longest_operator_wins(self):
        """'&&', '||' and '>>' are single tokens."""
        types = [t.type for t in Lexer("a && b || c >> f").tokenize()]
        self.assertEqual(types, [
            TokenType.WORD, TokenType.AND_IF, TokenType.WORD,
            TokenType.OR_IF, TokenType.WORD, TokenType.REDIRECT_APPEND,
            TokenType.WORD, TokenType.EOF,
        ])

    def test_operators_need_no_spaces(self):
        """Operators split words without surrounding whitespace."""
        values = [t.value for t in Lexer("echo a|cat>f").tokenize()]
        self.assertEqual(values, ['echo', 'a', '|', 'cat', '>', 'f', ''])

    def test_adjacent_segments_join(self):
        """Quoted and bare segments touching each other form one word."""
        tokens = Lexer('echo "a b"c\'d\'').tokenize()
        self.assertEqual(tokens[1].value, 'a bcd')
        self.assertTrue(tokens[1].quoted)
        self.assertFalse(tokens[1].literal)

    def test_single_quoted_word_is_literal(self):
        token = Lexer("'$HOME'").tokenize()[0]
        self.assertEqual(token.value, '$HOME')
        self.assertTrue(token.literal)

    def test_raw_keeps_quotes(self):
        token = Lexer('X="a b"').tokenize()[0]
        self.assertEqual(token.value, 'X=a b')
        self.assertEqual(token.raw, 'X="a b"')

    def test_word_segments(self):
        self.assertEqual(
            word_segments("a'$b'\"\"c"),
            [(None, 'a'), ("'", '$b'), ('"', ''), (None, 'c')]
        )

    def test_columns_are_one_based(self):
        tokens = Lexer("ls  -l").tokenize()
        self.assertEqual([t.column for t in tokens], [1, 5, 7])

    def test_unterminated_quote(self):
        with self.assertRaises(ParseError) as cm:
            Lexer("echo 'abc").tokenize()
        self.assertEqual(cm.exception.message, "unterminated quote at column 6")

    def test_input_redirect_is_rejected(self):
        with self.assertRaises(ParseError):
            Lexer("cat < file").tokenize()


class TestParser(unittest.TestCase):
    """Test the grammar."""

    def setUp(self):
        self.parser = CommandParser()

    def test_blank_line(self):
        """Empty and whitespace-only lines have no statements."""
        self.assertEqual(self.parser.parse(""), [])
        self.assertEqual(self.parser.parse("   "), [])

    def test_simple_command(self):
        self.assertEqual(
            self.parser.parse("echo hello world"),
            [Command('echo', ['hello', 'world'])]
        )

    def test_pipeline_is_left_associative(self):
        self.assertEqual(
            self.parser.parse("a | b | c"),
            [Pipeline(Pipeline(Command('a'), Command('b')), Command('c'))]
        )

    def test_logical_operators_share_precedence(self):
        """a && b || c groups as (a && b) || c."""
        self.assertEqual(
            self.parser.parse("a && b || c"),
            [LogicalOr(LogicalAnd(Command('a'), Command('b')), Command('c'))]
        )

    def test_pipe_binds_tighter_than_and(self):
        self.assertEqual(
            self.parser.parse("a | b && c"),
            [LogicalAnd(Pipeline(Command('a'), Command('b')), Command('c'))]
        )

    def test_sequence(self):
        """Statements separated by ';', with an optional trailing ';'."""
        expected = [Command('echo', ['a']), Command('echo', ['b'])]
        self.assertEqual(self.parser.parse("echo a; echo b"), expected)
        self.assertEqual(self.parser.parse("echo a; echo b;"), expected)

    def test_redirection(self):
        [node] = self.parser.parse("echo hi > out.txt")
        self.assertEqual(node.redirection, Redirection(RedirectMode.OVERWRITE, 'out.txt'))

        [node] = self.parser.parse("echo hi >> out.txt")
        self.assertEqual(node.redirection, Redirection(RedirectMode.APPEND, 'out.txt'))

    def test_group_with_redirect_in_pipeline(self):
        [node] = self.parser.parse("(echo a; echo b) > f | cat")
        self.assertIsInstance(node, Pipeline)
        self.assertIsInstance(node.source, Group)
        self.assertEqual(len(node.source.commands), 2)
        self.assertEqual(node.source.redirection.file, 'f')

    def test_background(self):
        nodes = self.parser.parse("sleep 1 &; echo after")
        self.assertEqual(len(nodes), 2)
        self.assertTrue(nodes[0].background)
        self.assertFalse(nodes[1].background)

    def test_if_else(self):
        self.assertEqual(
            self.parser.parse("if true; then echo yes; else echo no; fi"),
            [IfStatement(
                Command('true'),
                [Command('echo', ['yes'])],
                [Command('echo', ['no'])]
            )]
        )

    def test_if_without_else(self):
        [node] = self.parser.parse("if false; then echo a; echo b; fi")
        self.assertIsNone(node.else_branch)
        self.assertEqual(len(node.then_branch), 2)

    def test_if_in_logical_sequence(self):
        [node] = self.parser.parse("if true; then echo a; fi && echo b")
        self.assertIsInstance(node, LogicalAnd)
        self.assertIsInstance(node.left, IfStatement)

    def test_literal_words(self):
        [node] = self.parser.parse("echo '$X' \"$Y\"")
        self.assertIsInstance(node.args[0], Literal)
        self.assertNotIsInstance(node.args[1], Literal)

    def test_repeated_parses_are_identical(self):
        line = "a && b | c || (d; e) > f &; if g; then h; fi"
        self.assertEqual(self.parser.parse(line), self.parser.parse(line))

    def test_quoted_keyword_is_an_argument(self):
        [node] = self.parser.parse("echo 'fi' then")
        self.assertEqual(node.args, ['fi', 'then'])


class TestParseErrors(unittest.TestCase):
    """parse() reports syntax errors as a single ErrorNode."""

    def setUp(self):
        self.parser = CommandParser()

    def assertError(self, line, message):
        self.assertEqual(self.parser.parse(line), [ErrorNode(message)])

    def test_leading_operator(self):
        self.assertError("| cat", "unexpected token '|' at column 1")

    def test_dangling_pipe(self):
        self.assertError("echo hi |", "unexpected end of input at column 10")

    def test_empty_statement(self):
        self.assertError("echo a; ; echo b", "unexpected token ';' at column 9")

    def test_triple_ampersand(self):
        self.assertError("echo &&&", "unexpected token '&' at column 8")

    def test_keyword_as_command(self):
        self.assertError("fi", "unexpected token 'fi' at column 1")

    def test_unclosed_group(self):
        self.assertError("(echo a", "unexpected end of input at column 8")

    def test_missing_fi(self):
        self.assertError("if true; then echo a;", "unexpected end of input at column 22")

    def test_forbidden_character(self):
        self.assertError("echo `date`", "unexpected token '`' at column 6")

    def test_if_alone_is_not_a_command(self):
        [node] = self.parser.parse("if")
        self.assertIsInstance(node, ErrorNode)

    def test_parser_is_reusable_after_error(self):
        self.parser.parse("| broken")
        self.assertEqual(self.parser.parse("echo ok"), [Command('echo', ['ok'])])

    def test_deeply_nested_groups(self):
        line = "(" * 300 + "echo a" + ")" * 300
        self.assertError(line, f"nesting too deep at column {MAX_NESTING + 1}")

    def test_deeply_nested_if(self):
        line = "if true; then " * 100 + "echo a" + "; fi" * 100
        self.assertError(line, f"nesting too deep at column {MAX_NESTING * 14 + 1}")

    def test_nesting_limit_is_inclusive(self):
        line = "(" * MAX_NESTING + "echo a" + ")" * MAX_NESTING
        [node] = self.parser.parse(line)
        for _ in range(MAX_NESTING):
            self.assertIsInstance(node, Group)
            [node] = node.commands
        self.assertEqual(node, Command('echo', ['a']))
        self.assertEqual(self.parser.parse("(echo b)"), [Group([Command('echo', ['b'])])])


if __name__ == '__main__':
    unittest.main()
