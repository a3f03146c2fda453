"""
Abstract Syntax Tree node definitions for nixparse.

Defines the node types produced by the parser. Every node carries the
SourceSpan it was parsed from and supports the visitor pattern. Nodes hold
no parent references; a tree is owned by whoever asked for the parse.

Node attribute names match their constructor parameters, which is what
``nixparse.serialize`` relies on to rebuild trees.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Any, Union, Iterator
from enum import Enum

from ..lexer.tokens import SourceSpan


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    ROOT = "Root"
    COMMENT = "Comment"

    # Expression structure
    EXPR = "Expr"
    BINARY_EXPR = "BinaryExpr"
    UNARY_EXPR = "UnaryExpr"
    SUB_EXPR = "SubExpr"
    MODIFIER = "Modifier"
    OPERATOR = "Operator"

    # Keyword forms
    CONDITIONAL = "Conditional"
    LET_IN = "LetIn"
    IMPORT = "Import"

    # Literals
    IDENTIFIER = "Identifier"
    NULL = "Null"
    INT = "Int"
    FLOAT = "Float"
    BOOL = "Bool"
    PATH = "Path"
    STRING = "String"
    INTERP = "Interp"

    # Collections
    ATTRS = "Attrs"
    ATTR_BINDING = "AttrBinding"
    INHERIT_BINDING = "InheritBinding"
    LIST = "List"

    # Functions
    FN = "Fn"
    NAMED_PARAMS = "NamedParams"
    DESTRUCTURED_PARAMS = "DestructuredParams"
    FN_PARAM = "FnParam"
    FN_CALL = "FnCall"


class OperatorKind(Enum):
    """Operators that can appear in BinaryExpr and UnaryExpr nodes."""
    HAS = "?"
    EQ = "="
    EQ_EQ = "=="
    NOT_EQ = "!="
    NOT = "!"
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    IMP = "->"
    UPDATE = "//"
    CONCAT = "++"
    OR = "||"
    AND = "&&"
    PERIOD = "."
    FALLBACK = "or"


class ModifierAction(Enum):
    """Prefix forms that scope or guard the expression that follows."""
    WITH = "with"
    ASSERT = "assert"


class ASTVisitor(ABC):
    """Abstract visitor interface for traversing AST nodes."""

    @abstractmethod
    def visit(self, node: 'ASTNode') -> Any:
        """Visit a generic AST node."""
        pass


class ASTNode(ABC):
    """Base class for all AST nodes."""

    def __init__(self, node_type: ASTNodeType, span: SourceSpan):
        self.node_type = node_type
        self.span = span

    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    @abstractmethod
    def children(self) -> List['ASTNode']:
        """Get all child nodes."""
        pass

    def __str__(self) -> str:
        return f"{self.node_type.value}@{self.span}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(span={self.span})"

    def __eq__(self, other) -> bool:
        """Structural equality, spans included."""
        if type(self) is not type(other):
            return False
        return vars(self) == vars(other)

    __hash__ = None


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Yield node and all of its descendants in depth-first order."""
    yield node
    for child in node.children():
        yield from walk(child)


# ============================================================================
# Top-level and trivia
# ============================================================================

class Root(ASTNode):
    """Root AST node wrapping the single top-level expression."""
    value: 'Expr'

    def __init__(self, value: 'Expr', span: SourceSpan):
        super().__init__(ASTNodeType.ROOT, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value]


class Comment(ASTNode):
    """A # line comment or /* block */ comment, without its delimiters."""
    value: str
    multiline: bool

    def __init__(self, value: str, multiline: bool, span: SourceSpan):
        super().__init__(ASTNodeType.COMMENT, span)
        self.value = value
        self.multiline = multiline

    def children(self) -> List[ASTNode]:
        return []


# ============================================================================
# Expression structure
# ============================================================================

class Operator(ASTNode):
    """Operator marker with its own span."""
    kind: OperatorKind

    def __init__(self, kind: OperatorKind, span: SourceSpan):
        super().__init__(ASTNodeType.OPERATOR, span)
        self.kind = kind

    def children(self) -> List[ASTNode]:
        return []


class Expr(ASTNode):
    """A complete expression: one operand or a resolved operator tree."""
    value: Union['SubExpr', 'BinaryExpr']

    def __init__(self, value: Union['SubExpr', 'BinaryExpr'], span: SourceSpan):
        super().__init__(ASTNodeType.EXPR, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value]


class BinaryExpr(ASTNode):
    """
    Binary operation.

    Associativity is already resolved in the shape of the tree, so
    consumers never need precedence information.
    """
    op: Operator
    left: Union['SubExpr', 'BinaryExpr']
    right: Union['SubExpr', 'BinaryExpr']

    def __init__(self, op: Operator, left: Union['SubExpr', 'BinaryExpr'],
                 right: Union['SubExpr', 'BinaryExpr'], span: SourceSpan):
        super().__init__(ASTNodeType.BINARY_EXPR, span)
        self.op = op
        self.left = left
        self.right = right

    def children(self) -> List[ASTNode]:
        return [self.left, self.op, self.right]


class UnaryExpr(ASTNode):
    """Prefix ! or - applied to a sub-expression."""
    op: Operator
    value: 'SubExpr'

    def __init__(self, op: Operator, value: 'SubExpr', span: SourceSpan):
        super().__init__(ASTNodeType.UNARY_EXPR, span)
        self.op = op
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.op, self.value]


class Modifier(ASTNode):
    """A leading ``with E;`` or ``assert E;``."""
    action: ModifierAction
    value: Expr

    def __init__(self, action: ModifierAction, value: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.MODIFIER, span)
        self.action = action
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value]


class SubExpr(ASTNode):
    """
    A single operand together with its modifiers and surrounding comments.

    The span covers the modifiers and the operand. Leading and trailing
    comments sit outside of it.
    """
    value: ASTNode
    modifiers: List[Modifier]
    leading_comments: List[Comment]
    trailing_comments: List[Comment]

    def __init__(self, value: ASTNode, span: SourceSpan,
                 modifiers: Optional[List[Modifier]] = None,
                 leading_comments: Optional[List[Comment]] = None,
                 trailing_comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.SUB_EXPR, span)
        self.value = value
        self.modifiers = modifiers or []
        self.leading_comments = leading_comments or []
        self.trailing_comments = trailing_comments or []

    def children(self) -> List[ASTNode]:
        return self.modifiers + self.leading_comments + [self.value] + self.trailing_comments


# ============================================================================
# Keyword forms
# ============================================================================

class Conditional(ASTNode):
    """if ... then ... else ..."""
    condition: Expr
    then_branch: Expr
    else_branch: Expr

    def __init__(self, condition: Expr, then_branch: Expr, else_branch: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.CONDITIONAL, span)
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch

    def children(self) -> List[ASTNode]:
        return [self.condition, self.then_branch, self.else_branch]


class LetIn(ASTNode):
    """let BINDINGS in BODY"""
    bindings: List['Attr']
    body: Expr

    def __init__(self, bindings: List['Attr'], body: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.LET_IN, span)
        self.bindings = bindings
        self.body = body

    def children(self) -> List[ASTNode]:
        return list(self.bindings) + [self.body]


class Import(ASTNode):
    """import EXPR"""
    value: Expr

    def __init__(self, value: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.IMPORT, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value]


# ============================================================================
# Literals
# ============================================================================

class Null(ASTNode):
    """null"""

    def __init__(self, span: SourceSpan):
        super().__init__(ASTNodeType.NULL, span)

    def children(self) -> List[ASTNode]:
        return []


class Int(ASTNode):
    """Integer literal."""
    value: int

    def __init__(self, value: int, span: SourceSpan):
        super().__init__(ASTNodeType.INT, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []


class Float(ASTNode):
    """Float literal."""
    value: float

    def __init__(self, value: float, span: SourceSpan):
        super().__init__(ASTNodeType.FLOAT, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []


class Bool(ASTNode):
    """true or false"""
    value: bool

    def __init__(self, value: bool, span: SourceSpan):
        super().__init__(ASTNodeType.BOOL, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []


class Path(ASTNode):
    """Path literal with escapes already resolved."""
    value: str

    def __init__(self, value: str, span: SourceSpan):
        super().__init__(ASTNodeType.PATH, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return []


class Interp(ASTNode):
    """A ${...} interpolation."""
    value: Expr

    def __init__(self, value: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.INTERP, span)
        self.value = value

    def children(self) -> List[ASTNode]:
        return [self.value]


class String(ASTNode):
    """
    String literal.

    ``value`` alternates text fragments and Interp nodes, and always starts
    and ends with a text fragment (possibly empty).
    """
    value: List[Union[str, Interp]]
    multiline: bool

    def __init__(self, value: List[Union[str, Interp]], multiline: bool, span: SourceSpan):
        super().__init__(ASTNodeType.STRING, span)
        self.value = value
        self.multiline = multiline

    @property
    def interpolations(self) -> List[Interp]:
        return [part for part in self.value if isinstance(part, Interp)]

    def children(self) -> List[ASTNode]:
        return self.interpolations


class Identifier(ASTNode):
    """
    Dotted attribute path such as ``pkgs.lib."x".${y}``.

    Each segment is a plain name, a String, or an Interp.
    """
    value: List[Union[str, String, Interp]]
    comments: List[Comment]

    def __init__(self, value: List[Union[str, String, Interp]], span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.IDENTIFIER, span)
        self.value = value
        self.comments = comments or []

    @property
    def name(self) -> str:
        """The path joined with dots. Non-name segments render as ${...}."""
        return ".".join(part if isinstance(part, str) else "${...}" for part in self.value)

    def children(self) -> List[ASTNode]:
        return self.comments + [part for part in self.value if isinstance(part, ASTNode)]


# ============================================================================
# Collections
# ============================================================================

class Attr(ASTNode):
    """Base class for the two kinds of binding in attrs and let blocks."""
    comments: List[Comment]


class AttrBinding(Attr):
    """NAME = EXPR;"""
    name: Identifier
    value: Expr

    def __init__(self, name: Identifier, value: Expr, span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.ATTR_BINDING, span)
        self.name = name
        self.value = value
        self.comments = comments or []

    def children(self) -> List[ASTNode]:
        return self.comments + [self.name, self.value]


class InheritBinding(Attr):
    """inherit [ (SOURCE) ] NAME...;"""
    source: Optional[Expr]
    names: List[Identifier]

    def __init__(self, source: Optional[Expr], names: List[Identifier], span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.INHERIT_BINDING, span)
        self.source = source
        self.names = names
        self.comments = comments or []

    def children(self) -> List[ASTNode]:
        nodes: List[ASTNode] = list(self.comments)
        if self.source is not None:
            nodes.append(self.source)
        return nodes + list(self.names)


class Attrs(ASTNode):
    """
    Attribute set.

    ``comments`` only holds comments of an empty set; otherwise trailing
    comments belong to the last binding.
    """
    value: List[Attr]
    recursive: bool
    comments: List[Comment]

    def __init__(self, value: List[Attr], recursive: bool, span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.ATTRS, span)
        self.value = value
        self.recursive = recursive
        self.comments = comments or []

    def children(self) -> List[ASTNode]:
        return list(self.value) + self.comments


class ListLiteral(ASTNode):
    """[ a b c ]"""
    value: List[Expr]
    comments: List[Comment]

    def __init__(self, value: List[Expr], span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.LIST, span)
        self.value = value
        self.comments = comments or []

    def children(self) -> List[ASTNode]:
        return list(self.value) + self.comments


# ============================================================================
# Functions
# ============================================================================

class FnParam(ASTNode):
    """One named parameter of a destructured pattern."""
    name: Identifier
    default: Optional[Expr]
    comments: List[Comment]

    def __init__(self, name: Identifier, default: Optional[Expr], span: SourceSpan,
                 comments: Optional[List[Comment]] = None):
        super().__init__(ASTNodeType.FN_PARAM, span)
        self.name = name
        self.default = default
        self.comments = comments or []

    def children(self) -> List[ASTNode]:
        nodes: List[ASTNode] = self.comments + [self.name]
        if self.default is not None:
            nodes.append(self.default)
        return nodes


class FnParams(ASTNode):
    """Base class for function parameter forms."""
    pass


class NamedParams(FnParams):
    """A single bare parameter: ``x: ...``"""
    name: Identifier

    def __init__(self, name: Identifier, span: SourceSpan):
        super().__init__(ASTNodeType.NAMED_PARAMS, span)
        self.name = name

    def children(self) -> List[ASTNode]:
        return [self.name]


class DestructuredParams(FnParams):
    """
    A destructured pattern: ``{ a, b ? 1, ... } @ args: ...``

    The whole-argument alias is stored in ``alias`` whether it was written
    before or after the braces.
    """
    params: List[FnParam]
    extra: bool
    alias: Optional[Identifier]

    def __init__(self, params: List[FnParam], extra: bool, alias: Optional[Identifier],
                 span: SourceSpan):
        super().__init__(ASTNodeType.DESTRUCTURED_PARAMS, span)
        self.params = params
        self.extra = extra
        self.alias = alias

    def children(self) -> List[ASTNode]:
        nodes: List[ASTNode] = list(self.params)
        if self.alias is not None:
            nodes.append(self.alias)
        return nodes


class Fn(ASTNode):
    """Function literal."""
    params: FnParams
    body: Expr

    def __init__(self, params: FnParams, body: Expr, span: SourceSpan):
        super().__init__(ASTNodeType.FN, span)
        self.params = params
        self.body = body

    def children(self) -> List[ASTNode]:
        return [self.params, self.body]


class FnCall(ASTNode):
    """Function application by juxtaposition: ``f a b``."""
    callee: ASTNode
    args: List[Expr]

    def __init__(self, callee: ASTNode, args: List[Expr], span: SourceSpan):
        super().__init__(ASTNodeType.FN_CALL, span)
        self.callee = callee
        self.args = args

    def children(self) -> List[ASTNode]:
        return [self.callee] + list(self.args)

