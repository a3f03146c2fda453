"""
nixparse Parser Package

Implements a recursive descent parser with precedence climbing for
Nix-style expressions. Produces ASTs with full source span information
and comments attached to the nodes they describe.

Key Features:
- Precedence climbing with a fixed left-to-right tie-break
- Function application by juxtaposition
- Attribute sets vs destructured function patterns by bounded lookahead
- Independent sub-parses for string interpolation
- Comment attachment for formatters
- Structured diagnostics with codes and suggestions

Author: xwest
"""

from .ast_nodes import *
from .parser import Parser, Precedence, parse, parse_file
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser", "Precedence", "parse", "parse_file",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor", "OperatorKind", "ModifierAction",
    "walk",
    "Root", "Comment", "Expr", "BinaryExpr", "UnaryExpr", "SubExpr", "Modifier",
    "Operator", "Conditional", "LetIn", "Import",
    "Identifier", "Null", "Int", "Float", "Bool", "Path", "String", "Interp",
    "Attrs", "Attr", "AttrBinding", "InheritBinding", "ListLiteral",
    "Fn", "FnParams", "NamedParams", "DestructuredParams", "FnParam", "FnCall",

    # Error handling
    "ParseError",
]
