"""
Test suite for the nixparse lexer.

Tests cover:
- Punctuation, literals, keywords and identifiers
- Paths, numbers and longest-match operators
- Strings, escapes and nested interpolation
- Comments and newline handling
- Source spans and error reporting

Author: xwest
"""

import os
import sys
import tempfile
import unittest
from typing import List

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from nixparse.lexer import Lexer, lex, tokenize_file, TokenType, LexerError


def kinds(source: str) -> List[TokenType]:
    return [token.type for token in lex(source)]


class TestBasicTokens(unittest.TestCase):
    """Punctuation, literal words, keywords and identifiers."""

    def test_empty_source(self):
        tokens = lex("")

        self.assertEqual(len(tokens), 1)
        self.assertEqual(tokens[0].type, TokenType.EOF)
        self.assertEqual(tokens[0].span.start, tokens[0].span.end)
        self.assertEqual(tokens[0].span.start.line, 1)
        self.assertEqual(tokens[0].span.start.column, 1)

    def test_newlines(self):
        tokens = lex("\n\r\n\n")

        self.assertEqual(
            [token.type for token in tokens],
            [TokenType.NEWLINE, TokenType.NEWLINE, TokenType.NEWLINE, TokenType.EOF]
        )
        self.assertEqual(tokens[1].lexeme, "\r\n")
        self.assertEqual([token.span.start.line for token in tokens], [1, 2, 3, 4])
        self.assertEqual(tokens[-1].span.start.offset, 4)

    def test_punctuation(self):
        self.assertEqual(kinds(";(){}[]"), [
            TokenType.SEMI,
            TokenType.OPEN_PAREN, TokenType.CLOSE_PAREN,
            TokenType.OPEN_CURLY, TokenType.CLOSE_CURLY,
            TokenType.OPEN_BRACKET, TokenType.CLOSE_BRACKET,
            TokenType.EOF,
        ])

    def test_literal_words(self):
        null, true, false, _ = lex("null true false")

        self.assertEqual(null.type, TokenType.NULL)
        self.assertIsNone(null.value)
        self.assertEqual(true.type, TokenType.BOOL)
        self.assertIs(true.value, True)
        self.assertEqual(false.type, TokenType.BOOL)
        self.assertIs(false.value, False)

    def test_keywords(self):
        words = ["let", "in", "rec", "with", "inherit", "assert", "or", "import", "if", "then", "else"]
        tokens = lex(" ".join(words))

        for word, token in zip(words, tokens):
            self.assertEqual(token.type, TokenType.KEYWORD)
            self.assertEqual(token.value, word)
            self.assertTrue(token.is_keyword(word))

    def test_identifiers(self):
        for word in ["builtins", "some-thing", "foldl'", "_private", "x86_64-linux"]:
            tokens = lex(word)
            self.assertEqual(tokens[0].type, TokenType.IDENTIFIER, word)
            self.assertEqual(tokens[0].value, word)
            self.assertEqual(len(tokens), 2)

    def test_keyword_prefix_is_identifier(self):
        token = lex("letter")[0]
        self.assertEqual(token.type, TokenType.IDENTIFIER)
        self.assertFalse(token.is_keyword())


class TestPathsAndNumbers(unittest.TestCase):
    """Path literals and numeric literals."""

    def test_paths(self):
        for source in [
            "/a/b/c",
            "./a/b/c",
            "~/a/b/c",
            "../parent/default.nix",
            "/a/@b/c.xyz/something_else.txt/0000-21.md",
            "./a/@b/c.xyz/something_else.txt/0000-21.md",
        ]:
            tokens = lex(source)
            self.assertEqual(tokens[0].type, TokenType.PATH, source)
            self.assertEqual(tokens[0].value, source)
            self.assertEqual(tokens[1].type, TokenType.EOF)

    def test_escaped_path(self):
        source = "./a\\;/b\\ c/d"
        token = lex(source)[0]

        self.assertEqual(token.type, TokenType.PATH)
        self.assertEqual(token.value, "./a;/b c/d")
        self.assertEqual(token.lexeme, source)
        self.assertEqual(token.span.end.offset, len(source))

    def test_integer(self):
        token = lex("42")[0]
        self.assertEqual(token.type, TokenType.INT)
        self.assertEqual(token.value, 42)

    def test_float(self):
        token = lex("3.14")[0]
        self.assertEqual(token.type, TokenType.FLOAT)
        self.assertAlmostEqual(token.value, 3.14)

    def test_second_period_ends_float(self):
        tokens = lex("1.2.3")

        self.assertEqual(
            [token.type for token in tokens],
            [TokenType.FLOAT, TokenType.PERIOD, TokenType.INT, TokenType.EOF]
        )
        self.assertAlmostEqual(tokens[0].value, 1.2)
        self.assertEqual(tokens[2].value, 3)


class TestOperators(unittest.TestCase):
    """Longest-match operator lexing."""

    def test_operator_table(self):
        cases = {
            "=": TokenType.EQ,
            "==": TokenType.EQ_EQ,
            "!=": TokenType.NOT_EQ,
            "!": TokenType.NOT,
            "<": TokenType.LT,
            "<=": TokenType.LTE,
            ">": TokenType.GT,
            ">=": TokenType.GTE,
            "+": TokenType.ADD,
            "-": TokenType.SUB,
            "*": TokenType.MUL,
            "/": TokenType.DIV,
            "->": TokenType.IMP,
            "//": TokenType.UPDATE,
            "++": TokenType.CONCAT,
            "||": TokenType.OR,
            "&&": TokenType.AND,
            ":": TokenType.COLON,
            "@": TokenType.AT,
            ",": TokenType.COMMA,
            "?": TokenType.HAS,
            "...": TokenType.ELLIPSIS,
            ".": TokenType.PERIOD,
        }

        for source, expected in cases.items():
            self.assertEqual(kinds(source), [expected, TokenType.EOF], source)

    def test_operators_without_spaces(self):
        self.assertEqual(kinds("a++b"), [
            TokenType.IDENTIFIER, TokenType.CONCAT, TokenType.IDENTIFIER, TokenType.EOF
        ])
        self.assertEqual(kinds("x==1"), [
            TokenType.IDENTIFIER, TokenType.EQ_EQ, TokenType.INT, TokenType.EOF
        ])

    def test_update_is_not_a_path(self):
        self.assertEqual(kinds("a // b"), [
            TokenType.IDENTIFIER, TokenType.UPDATE, TokenType.IDENTIFIER, TokenType.EOF
        ])

    def test_operator_classification(self):
        add, colon, _ = lex("+:")
        self.assertTrue(add.is_operator)
        self.assertFalse(colon.is_operator)

    def test_unknown_operator(self):
        for source in ["|", "a & b"]:
            with self.assertRaises(LexerError) as context:
                lex(source)
            self.assertEqual(context.exception.code, "L004")


class TestStrings(unittest.TestCase):
    """String literals, escapes and interpolation."""

    def test_string(self):
        token = lex('"hello world!"')[0]

        self.assertEqual(token.type, TokenType.STRING)
        self.assertEqual(token.value, ("hello world!",))
        self.assertFalse(token.multiline)

    def test_multiline_string(self):
        token = lex("''hello world!''")[0]

        self.assertEqual(token.type, TokenType.STRING)
        self.assertEqual(token.value, ("hello world!",))
        self.assertTrue(token.multiline)

    def test_multiline_string_keeps_layout(self):
        tokens = lex("''\n\thello\n''")

        self.assertEqual([token.type for token in tokens], [TokenType.STRING, TokenType.EOF])
        self.assertEqual(tokens[0].value, ("\n\thello\n",))
        self.assertEqual(tokens[1].span.start.line, 3)

    def test_empty_string(self):
        self.assertEqual(lex('""')[0].value, ("",))

    def test_escapes(self):
        token = lex(r'"a\"b\\c\${d}"')[0]
        self.assertEqual(token.value, ('a"b\\c${d}',))

    def test_interpolation(self):
        token = lex('"a ${b} c"')[0]

        self.assertEqual(len(token.value), 3)
        self.assertEqual(token.value[0], "a ")
        self.assertEqual(token.value[1].type, TokenType.INTERP)
        self.assertEqual(token.value[1].value[0].value, "b")
        self.assertEqual(token.value[2], " c")

    def test_interpolation_at_edges(self):
        token = lex('"${a}${b}"')[0]

        self.assertEqual(len(token.value), 5)
        self.assertEqual(token.value[0], "")
        self.assertEqual(token.value[2], "")
        self.assertEqual(token.value[4], "")

    def test_interpolation_with_braces(self):
        token = lex("${ { a = 1; }.a }")[0]

        self.assertEqual(token.type, TokenType.INTERP)
        self.assertEqual([inner.type for inner in token.value], [
            TokenType.OPEN_CURLY, TokenType.IDENTIFIER, TokenType.EQ, TokenType.INT,
            TokenType.SEMI, TokenType.CLOSE_CURLY, TokenType.PERIOD, TokenType.IDENTIFIER,
        ])

    def test_nested_interpolation(self):
        token = lex('"outer ${"inner ${x}"} done"')[0]

        inner_string = token.value[1].value[0]
        self.assertEqual(inner_string.type, TokenType.STRING)
        self.assertEqual(inner_string.value[0], "inner ")
        self.assertEqual(inner_string.value[1].value[0].value, "x")
        self.assertEqual(token.value[2], " done")

    def test_unterminated_string(self):
        for source in ['"abc', "''abc", '"abc\\']:
            with self.assertRaises(LexerError) as context:
                lex(source)
            self.assertEqual(context.exception.code, "L002", source)
            self.assertEqual(context.exception.location.column, 1)

    def test_unterminated_interpolation(self):
        for source in ["${x", '"${x"', "${ { }"]:
            with self.assertRaises(LexerError) as context:
                lex(source)
            self.assertEqual(context.exception.code, "L003", source)


class TestComments(unittest.TestCase):
    """Line and block comments."""

    def test_line_comment(self):
        comment, newline, identifier, _ = lex("# hello\nx")

        self.assertEqual(comment.type, TokenType.COMMENT)
        self.assertEqual(comment.value, " hello")
        self.assertFalse(comment.multiline)
        self.assertEqual(comment.span.end.offset, 7)
        self.assertEqual(newline.type, TokenType.NEWLINE)
        self.assertEqual(identifier.span.start.line, 2)

    def test_block_comment(self):
        comment, identifier, _ = lex("/* block\ncomment */ x")

        self.assertEqual(comment.type, TokenType.COMMENT)
        self.assertEqual(comment.value, " block\ncomment ")
        self.assertTrue(comment.multiline)
        self.assertTrue(comment.is_trivia)
        self.assertEqual(identifier.span.start.line, 2)
        self.assertEqual(identifier.span.start.column, 12)

    def test_empty_block_comment(self):
        self.assertEqual(lex("/**/")[0].value, "")

    def test_unterminated_block_comment(self):
        with self.assertRaises(LexerError) as context:
            lex("/* never closed")
        self.assertEqual(context.exception.code, "L005")


class TestSpans(unittest.TestCase):
    """Locations, spans and source reconstruction."""

    def test_crlf_counts_as_one_line_break(self):
        tokens = lex("a\r\nb")
        b = tokens[2]

        self.assertEqual(b.span.start.line, 2)
        self.assertEqual(b.span.start.column, 1)
        self.assertEqual(b.span.start.offset, 3)

    def test_peek_leaves_position_alone(self):
        lexer = Lexer("a\r\nb\nc")

        self.assertEqual(lexer._peek(1), "\r\n")
        self.assertEqual(lexer._peek(2), "b")
        self.assertEqual(lexer._peek(4), "c")
        self.assertEqual(lexer._peek(9), "")
        self.assertEqual((lexer.pos, lexer.line, lexer.column), (0, 1, 1))

        lexer._advance()
        lexer._advance()
        self.assertEqual((lexer.pos, lexer.line, lexer.column), (3, 2, 1))
        self.assertEqual(lexer._peek(2), "c")
        self.assertEqual((lexer.pos, lexer.line, lexer.column), (3, 2, 1))

    def test_spans_reconstruct_source(self):
        source = 'let\r\n  x = "a ${b}"; # note\n  y = ./p/q;\nin x ++ [ 1 2.5 ]'
        tokens = lex(source)

        rebuilt = ""
        previous_end = 0
        for token in tokens:
            gap = source[previous_end:token.span.start.offset]
            self.assertEqual(gap.strip(" \t"), "")
            self.assertEqual(source[token.span.start.offset:token.span.end.offset], token.lexeme)
            rebuilt += gap + token.lexeme
            previous_end = token.span.end.offset

        self.assertEqual(rebuilt, source)

    def test_spans_are_ordered(self):
        tokens = lex("{ a = 1;\n  b = [ 2 3 ]; }")

        for token in tokens:
            start, end = token.span.start, token.span.end
            self.assertLessEqual((start.line, start.column), (end.line, end.column))

        for previous, token in zip(tokens, tokens[1:]):
            self.assertLessEqual(previous.span.end.offset, token.span.start.offset)

    def test_filename_propagates(self):
        tokens = lex("x", filename="default.nix")
        self.assertEqual(tokens[0].span.start.filename, "default.nix")
        self.assertEqual(str(tokens[0].span), "default.nix:1:1-1:2")

    def test_tokenize_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "default.nix")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{ a = 1; }\n")

            tokens = tokenize_file(path)

        self.assertEqual(tokens[0].span.start.filename, path)
        self.assertEqual(tokens[-1].type, TokenType.EOF)


class TestUnrecognizedCharacters(unittest.TestCase):
    """Lenient truncation versus strict mode."""

    def test_lenient_truncates_with_warning(self):
        lexer = Lexer("x ^ y")
        tokens = lexer.tokenize()

        self.assertEqual([token.type for token in tokens], [TokenType.IDENTIFIER, TokenType.EOF])
        self.assertEqual(tokens[-1].span.start.offset, 2)
        self.assertTrue(lexer.has_warnings())
        self.assertEqual(lexer.get_diagnostics()[0].code, "L001")

    def test_clean_source_has_no_warnings(self):
        lexer = Lexer("x + y")
        lexer.tokenize()
        self.assertFalse(lexer.has_warnings())

    def test_strict_raises(self):
        with self.assertRaises(LexerError) as context:
            Lexer("x ^ y", strict=True).tokenize()

        self.assertEqual(context.exception.code, "L001")
        self.assertEqual(context.exception.location.column, 3)
        self.assertIn("ERROR", str(context.exception))

    def test_truncation_inside_interpolation(self):
        with self.assertRaises(LexerError) as context:
            lex("${ ^ }")
        self.assertEqual(context.exception.code, "L003")

    def test_tokenize_resets_state(self):
        lexer = Lexer("a ^")
        first = lexer.tokenize()
        second = lexer.tokenize()

        self.assertEqual(first, second)
        self.assertEqual(len(lexer.warnings), 1)


if __name__ == '__main__':
    unittest.main()
