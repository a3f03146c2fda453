"""
Tests for the dict/JSON form of tokens and AST nodes.

Author: xwest
"""

import json
import os
import sys
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from nixparse import lex, parse
from nixparse.lexer import TokenType, SourceLocation, SourceSpan
from nixparse.parser import Int, OperatorKind, ASTNodeType
from nixparse.serialize import to_dict, from_dict, to_json, from_json


class TestSerialize(unittest.TestCase):
    """Persisted form of tokens and trees."""

    def test_location_fields(self):
        location = SourceLocation("a.nix", 2, 3, 10)
        data = to_dict(location)

        self.assertEqual(data, {
            "_type": "SourceLocation",
            "filename": "a.nix",
            "line": 2,
            "column": 3,
            "offset": 10,
        })
        self.assertEqual(from_dict(data), location)

    def test_token_keeps_kind_payload_and_span(self):
        token = lex("42")[0]
        data = to_dict(token)

        self.assertEqual(data["type"], {"_type": "TokenType", "name": "INT"})
        self.assertEqual(data["value"], 42)
        self.assertEqual(data["span"]["end"]["offset"], 2)
        self.assertEqual(from_dict(data), token)

    def test_string_token_payload(self):
        token = lex('"a ${b} c"')[0]
        restored = from_json(to_json(token))

        self.assertEqual(restored, token)
        self.assertIsInstance(restored.value, tuple)
        self.assertEqual(restored.value[1].type, TokenType.INTERP)
        self.assertIsInstance(restored.value[1].value, tuple)

    def test_node_dict_shape(self):
        node = parse("7").value.value.value
        data = to_dict(node)

        self.assertEqual(data["_type"], "Int")
        self.assertEqual(data["value"], 7)
        self.assertNotIn("node_type", data)

        restored = from_dict(data)
        self.assertIsInstance(restored, Int)
        self.assertEqual(restored.node_type, ASTNodeType.INT)
        self.assertEqual(restored, node)

    def test_tree_round_trip(self):
        source = 'let f = { a ? 1, ... }@args: a + args.b or 2; in [ (f {}) "x${toString 3}" ./p ]'
        root = parse(source)

        restored = from_json(to_json(root, indent=2))

        self.assertEqual(restored, root)
        self.assertEqual(
            restored.value.value.value.bindings[0].value.value.value.body.value.op.kind,
            OperatorKind.ADD
        )

    def test_json_is_plain(self):
        text = to_json(parse("{ inherit a; b = null; }"))
        data = json.loads(text)

        self.assertEqual(data["_type"], "Root")
        self.assertEqual(data["value"]["_type"], "Expr")

    def test_spans_differ_means_not_equal(self):
        self.assertNotEqual(parse("x"), parse(" x"))

    def test_unknown_values(self):
        with self.assertRaises(TypeError):
            to_dict(object())

        with self.assertRaises(ValueError):
            from_dict({"_type": "Nope"})

    def test_span_round_trip(self):
        start = SourceLocation("<string>", 1, 1, 0)
        end = SourceLocation("<string>", 1, 4, 3)
        span = SourceSpan(start, end)

        self.assertEqual(from_json(to_json(span)), span)


if __name__ == '__main__':
    unittest.main()
