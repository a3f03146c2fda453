"""
Serialization of tokens and AST nodes to JSON-compatible dicts.

The persisted form keeps kind, payload and source span of every token and
node, so ``from_dict(to_dict(x)) == x`` for anything the lexer or parser
produces.

Author: xwest
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from .lexer.tokens import Token, TokenType, SourceLocation, SourceSpan
from .parser.ast_nodes import ASTNode, OperatorKind, ModifierAction


ENUM_TYPES: Dict[str, Type[Enum]] = {
    "TokenType": TokenType,
    "OperatorKind": OperatorKind,
    "ModifierAction": ModifierAction,
}


def _node_classes() -> Dict[str, Type[ASTNode]]:
    classes = {}
    pending: List[Type[ASTNode]] = [ASTNode]
    while pending:
        cls = pending.pop()
        for subclass in cls.__subclasses__():
            classes[subclass.__name__] = subclass
            pending.append(subclass)
    return classes


def to_dict(obj: Any) -> Any:
    """Recursively serialize a token, node, or span to JSON-compatible data."""
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [to_dict(item) for item in obj]
    if isinstance(obj, Enum):
        return {"_type": type(obj).__name__, "name": obj.name}
    if isinstance(obj, SourceLocation):
        return {
            "_type": "SourceLocation",
            "filename": obj.filename,
            "line": obj.line,
            "column": obj.column,
            "offset": obj.offset,
        }
    if isinstance(obj, SourceSpan):
        return {
            "_type": "SourceSpan",
            "start": to_dict(obj.start),
            "end": to_dict(obj.end),
        }
    if isinstance(obj, Token):
        return {
            "_type": "Token",
            "type": to_dict(obj.type),
            "lexeme": obj.lexeme,
            "value": to_dict(obj.value),
            "span": to_dict(obj.span),
            "multiline": obj.multiline,
        }
    if isinstance(obj, ASTNode):
        # node_type is implied by the class
        data = {"_type": type(obj).__name__}
        for key, value in vars(obj).items():
            if key != "node_type":
                data[key] = to_dict(value)
        return data
    raise TypeError(f"Cannot serialize object of type {type(obj).__name__}")


def from_dict(data: Any) -> Any:
    """Rebuild tokens, nodes and spans from the output of to_dict."""
    if isinstance(data, list):
        return [from_dict(item) for item in data]
    if not isinstance(data, dict):
        return data

    kind = data.get("_type")

    if kind in ENUM_TYPES:
        return ENUM_TYPES[kind][data["name"]]
    if kind == "SourceLocation":
        return SourceLocation(data["filename"], data["line"], data["column"], data["offset"])
    if kind == "SourceSpan":
        return SourceSpan(from_dict(data["start"]), from_dict(data["end"]))
    if kind == "Token":
        value = from_dict(data["value"])
        # Interpolation and string payloads are tuples
        if isinstance(value, list):
            value = tuple(value)
        return Token(
            from_dict(data["type"]),
            data["lexeme"],
            value,
            from_dict(data["span"]),
            data["multiline"],
        )

    node_classes = _node_classes()
    if kind in node_classes:
        fields = {key: from_dict(value) for key, value in data.items() if key != "_type"}
        return node_classes[kind](**fields)

    raise ValueError(f"Unknown serialized type: {kind!r}")


def to_json(obj: Any, indent: Optional[int] = None) -> str:
    """Serialize a token list or node to a JSON string."""
    return json.dumps(to_dict(obj), indent=indent)


def from_json(text: str) -> Any:
    """Inverse of to_json."""
    return from_dict(json.loads(text))
