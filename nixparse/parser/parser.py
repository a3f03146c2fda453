"""
nixparse Recursive Descent Parser

Parses the token stream produced by the lexer into an AST. Operands are
parsed by recursive descent; binary operators are combined by a single
precedence-climbing loop whose tie-break rule fixes the shape of
equal-precedence chains (see Parser._parse_expr).

Interpolations are parsed by a fresh Parser over the interpolation's own
token tuple, so nested parses never share a cursor with the outer one.

Author: xwest
"""

from typing import List, Optional, Sequence
from enum import IntEnum

from ..lexer.tokens import Token, TokenType, SourceLocation, SourceSpan
from .ast_nodes import *
from .errors import (
    ParseError, create_unexpected_token_error, create_unexpected_eof_error,
    create_invalid_expression_error, create_malformed_params_error
)


class Precedence(IntEnum):
    """Binary operator levels. Lower values bind tighter."""
    NONE = 0            # = (only reachable in malformed input)
    SELECT = 1          # . and the fallback `or`
    HAS = 4             # ?
    CONCAT = 5          # ++
    FACTOR = 6          # * /
    TERM = 7            # + -
    UPDATE = 9          # //
    COMPARISON = 10     # < <= > >=
    EQUALITY = 11       # == !=
    AND = 12            # &&
    OR = 13             # || ->


BINARY_PRECEDENCE = {
    TokenType.EQ: Precedence.NONE,
    TokenType.PERIOD: Precedence.SELECT,
    TokenType.HAS: Precedence.HAS,
    TokenType.CONCAT: Precedence.CONCAT,
    TokenType.MUL: Precedence.FACTOR,
    TokenType.DIV: Precedence.FACTOR,
    TokenType.ADD: Precedence.TERM,
    TokenType.SUB: Precedence.TERM,
    TokenType.UPDATE: Precedence.UPDATE,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.LTE: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.GTE: Precedence.COMPARISON,
    TokenType.EQ_EQ: Precedence.EQUALITY,
    TokenType.NOT_EQ: Precedence.EQUALITY,
    TokenType.AND: Precedence.AND,
    TokenType.OR: Precedence.OR,
    TokenType.IMP: Precedence.OR,
}

OPERATOR_KINDS = {
    TokenType.HAS: OperatorKind.HAS,
    TokenType.EQ: OperatorKind.EQ,
    TokenType.EQ_EQ: OperatorKind.EQ_EQ,
    TokenType.NOT_EQ: OperatorKind.NOT_EQ,
    TokenType.NOT: OperatorKind.NOT,
    TokenType.LT: OperatorKind.LT,
    TokenType.LTE: OperatorKind.LTE,
    TokenType.GT: OperatorKind.GT,
    TokenType.GTE: OperatorKind.GTE,
    TokenType.ADD: OperatorKind.ADD,
    TokenType.SUB: OperatorKind.SUB,
    TokenType.MUL: OperatorKind.MUL,
    TokenType.DIV: OperatorKind.DIV,
    TokenType.IMP: OperatorKind.IMP,
    TokenType.UPDATE: OperatorKind.UPDATE,
    TokenType.CONCAT: OperatorKind.CONCAT,
    TokenType.OR: OperatorKind.OR,
    TokenType.AND: OperatorKind.AND,
    TokenType.PERIOD: OperatorKind.PERIOD,
}

# Tokens that end a run of juxtaposed call arguments
CALL_TERMINATORS = frozenset({
    TokenType.EOF,
    TokenType.COMMA,
    TokenType.SEMI,
    TokenType.CLOSE_CURLY,
    TokenType.CLOSE_BRACKET,
    TokenType.CLOSE_PAREN,
})

# The only keyword that can open a call argument
ARGUMENT_KEYWORDS = frozenset({"rec"})

MODIFIER_KEYWORDS = {
    "with": ModifierAction.WITH,
    "assert": ModifierAction.ASSERT,
}


class Parser:
    """
    Recursive descent parser for Nix-style expressions.

    Works over the complete token list with unlimited lookahead. Parsing
    stops at the first error; there is no partial tree.
    """

    def __init__(self, tokens: Sequence[Token]):
        """
        Initialize parser with a list of tokens.

        Args:
            tokens: Tokens from the lexer. A trailing EOF token is optional.
        """
        self.tokens = list(tokens)
        self.current = 0

    def parse(self) -> Root:
        """
        Parse the tokens as a single top-level expression.

        Returns:
            Root node wrapping the expression

        Raises:
            ParseError: If the tokens do not form exactly one expression
        """
        self.current = 0

        expr = self._parse_expr()

        self._skip_trivia()
        if not self._check(TokenType.EOF):
            raise create_unexpected_token_error("end of input", self._peek())

        return Root(expr, expr.span)

    # ========================================================================
    # Expressions
    # ========================================================================

    def _parse_expr(self, in_call: bool = False, in_list: bool = False) -> Expr:
        """
        Parse an expression by precedence climbing.

        A new operator whose precedence is strictly greater (looser) than
        the one tracked so far grows the tree at the root. Otherwise it
        takes over the right operand of the most recently built node, which
        is how ``1 + 2 * 3`` nests the multiplication. Call arguments and
        list elements are single operands and never take operators.
        """
        root = self._parse_sub_expr(in_call, in_list)

        if in_call or in_list:
            return Expr(root, root.span)

        last: Optional[BinaryExpr] = None
        current = Precedence.NONE
        # Path from root down to last; only these nodes can have stale ends
        spine: List[BinaryExpr] = []

        while True:
            op = self._peek_past_trivia()

            if op.is_keyword("or"):
                kind = OperatorKind.FALLBACK
                precedence = Precedence.SELECT
            elif op.type in BINARY_PRECEDENCE:
                kind = OPERATOR_KINDS[op.type]
                precedence = BINARY_PRECEDENCE[op.type]
            else:
                break

            self._skip_trivia()
            self._advance()

            operator = Operator(kind, op.span)
            right = self._parse_sub_expr()

            if last is None or (kind != OperatorKind.FALLBACK and precedence > current):
                self._settle_spans(spine)
                last = BinaryExpr(operator, root, right, SourceSpan(root.span.start, right.span.end))
                root = last
                spine = [last]
            else:
                node = BinaryExpr(operator, last.right, right,
                                  SourceSpan(last.right.span.start, right.span.end))
                last.right = node
                last = node
                spine.append(last)

            current = precedence

        self._settle_spans(spine)

        return Expr(root, root.span)

    def _settle_spans(self, spine: List[BinaryExpr]):
        """Stretch every node on the spine to end where its deepest node ends."""
        if not spine:
            return
        end = spine[-1].span.end
        for node in spine:
            node.span = SourceSpan(node.span.start, end)

    def _parse_sub_expr(self, in_call: bool = False, in_list: bool = False) -> SubExpr:
        """
        Parse one operand with its modifiers and comments.

        A callable operand (parenthesized expression, identifier, or
        import) followed by more operands becomes a function call, except
        inside call arguments and list elements.
        """
        modifiers: List[Modifier] = []
        leading_comments: List[Comment] = []

        # Modifiers and comments may interleave in any order
        while True:
            found_modifiers = self._parse_modifiers()
            found_comments = self._parse_comments()
            if not found_modifiers and not found_comments:
                break
            modifiers += found_modifiers
            leading_comments += found_comments

        token = self._peek()
        start = modifiers[0].span.start if modifiers else token.span.start

        if token.type == TokenType.NOT:
            value = self._parse_unary(in_call, in_list)
            end = value.span.end
        elif token.type == TokenType.SUB:
            value = self._parse_negation(in_call, in_list)
            end = value.span.end
        elif token.type == TokenType.OPEN_PAREN:
            self._advance()
            value = self._parse_expr()
            self._skip_newlines()
            end = self._consume(TokenType.CLOSE_PAREN, "')'").span.end
        else:
            value = self._parse_primary()
            end = value.span.end

        args: List[Expr] = []
        if not in_call and not in_list and isinstance(value, (Expr, Identifier, Import)):
            while True:
                if self._ends_call(self._peek_past_trivia()):
                    break
                args.append(self._parse_expr(in_call=True))

        trailing_comments = self._parse_comments()

        if args:
            value = FnCall(value, args, SourceSpan(token.span.start, args[-1].span.end))
            end = value.span.end

        return SubExpr(value, SourceSpan(start, end), modifiers, leading_comments, trailing_comments)

    def _ends_call(self, token: Token) -> bool:
        if token.type == TokenType.KEYWORD:
            return token.value not in ARGUMENT_KEYWORDS
        return token.type in CALL_TERMINATORS or token.is_operator

    def _parse_unary(self, in_call: bool, in_list: bool) -> UnaryExpr:
        """Parse !E, where E is a full operand including any call."""
        op_token = self._advance()
        operand = self._parse_sub_expr(in_call, in_list)
        return UnaryExpr(
            Operator(OPERATOR_KINDS[op_token.type], op_token.span),
            operand,
            SourceSpan(op_token.span.start, operand.span.end)
        )

    def _parse_negation(self, in_call: bool, in_list: bool) -> ASTNode:
        """Fold - into a numeric literal, otherwise build a unary minus."""
        minus = self._peek()
        number = self._peek(1)

        if number.type == TokenType.INT:
            self._advance()
            self._advance()
            return Int(-number.value, SourceSpan(minus.span.start, number.span.end))

        if number.type == TokenType.FLOAT:
            self._advance()
            self._advance()
            return Float(-number.value, SourceSpan(minus.span.start, number.span.end))

        return self._parse_unary(in_call, in_list)

    def _parse_primary(self) -> ASTNode:
        """Parse a literal, collection, function, identifier or keyword form."""
        token = self._peek()

        if token.type == TokenType.INT:
            self._advance()
            return Int(token.value, token.span)

        if token.type == TokenType.FLOAT:
            self._advance()
            return Float(token.value, token.span)

        if token.type == TokenType.BOOL:
            self._advance()
            return Bool(token.value, token.span)

        if token.type == TokenType.NULL:
            self._advance()
            return Null(token.span)

        if token.type == TokenType.PATH:
            self._advance()
            return Path(token.value, token.span)

        if token.type == TokenType.STRING:
            return self._parse_string()

        if token.type == TokenType.INTERP:
            return self._parse_interp()

        if token.type == TokenType.OPEN_BRACKET:
            return self._parse_list()

        if token.type == TokenType.OPEN_CURLY:
            fn = self._try_parse_function()
            return fn if fn is not None else self._parse_attrs()

        if token.type == TokenType.IDENTIFIER:
            fn = self._try_parse_function()
            return fn if fn is not None else self._parse_identifier()

        if token.type == TokenType.KEYWORD:
            return self._parse_keyword()

        if token.type == TokenType.EOF:
            raise create_unexpected_eof_error("an expression", token)

        raise create_invalid_expression_error(
            f"{token.type.name} cannot start an expression", token
        )

    # ========================================================================
    # Keyword forms
    # ========================================================================

    def _parse_keyword(self) -> ASTNode:
        """Parse let/import/if/rec."""
        token = self._peek()

        if token.value == "let":
            return self._parse_let_in()

        if token.value == "import":
            self._advance()
            value = self._parse_expr(in_call=True)
            return Import(value, SourceSpan(token.span.start, value.span.end))

        if token.value == "if":
            return self._parse_conditional()

        if token.value == "rec":
            self._advance()
            attrs = self._parse_attrs()
            attrs.recursive = True
            attrs.span = SourceSpan(token.span.start, attrs.span.end)
            return attrs

        raise create_invalid_expression_error(
            f"keyword '{token.value}' cannot start an expression", token
        )

    def _parse_let_in(self) -> LetIn:
        let_token = self._advance()
        bindings: List[Attr] = []

        while True:
            self._skip_newlines()
            next_token = self._peek_past_trivia()

            if next_token.is_keyword("in"):
                comments = self._parse_comments()
                if bindings:
                    bindings[-1].comments.extend(comments)
                break

            if next_token.type == TokenType.EOF:
                raise create_unexpected_eof_error("keyword 'in'", next_token)

            bindings.append(self._parse_attr())

        self._consume_keyword("in")
        body = self._parse_expr()

        return LetIn(bindings, body, SourceSpan(let_token.span.start, body.span.end))

    def _parse_conditional(self) -> Conditional:
        if_token = self._advance()

        self._skip_newlines()
        condition = self._parse_expr()
        self._skip_newlines()
        self._consume_keyword("then")

        self._skip_newlines()
        then_branch = self._parse_expr()
        self._skip_newlines()
        self._consume_keyword("else")

        self._skip_newlines()
        else_branch = self._parse_expr()

        return Conditional(
            condition, then_branch, else_branch,
            SourceSpan(if_token.span.start, else_branch.span.end)
        )

    def _parse_modifiers(self) -> List[Modifier]:
        """Parse any number of leading ``with E;`` / ``assert E;``."""
        modifiers: List[Modifier] = []

        while True:
            self._skip_newlines()
            token = self._peek()

            if token.type != TokenType.KEYWORD or token.value not in MODIFIER_KEYWORDS:
                break

            self._advance()
            value = self._parse_expr()
            self._skip_newlines()
            semi = self._consume(TokenType.SEMI, "';'")

            modifiers.append(Modifier(
                MODIFIER_KEYWORDS[token.value], value,
                SourceSpan(token.span.start, semi.span.end)
            ))

        return modifiers

    def _parse_comments(self) -> List[Comment]:
        """Collect consecutive comments, skipping newlines between them."""
        comments: List[Comment] = []

        while True:
            self._skip_newlines()
            token = self._peek()

            if token.type != TokenType.COMMENT:
                break

            self._advance()
            comments.append(Comment(token.value, token.multiline, token.span))

        return comments

    # ========================================================================
    # Literals
    # ========================================================================

    def _parse_string(self) -> String:
        token = self._advance()
        parts = [
            part if isinstance(part, str) else self._parse_interp_token(part)
            for part in token.value
        ]
        return String(parts, token.multiline, token.span)

    def _parse_interp(self) -> Interp:
        return self._parse_interp_token(self._advance())

    def _parse_interp_token(self, token: Token) -> Interp:
        """Parse an interpolation's inner tokens with an independent parser."""
        eof = self._eof_at(token.span.end)
        root = Parser(list(token.value) + [eof]).parse()
        return Interp(root.value, token.span)

    def _parse_identifier(self) -> Identifier:
        """Parse a dotted attribute path of names, strings and interpolations."""
        start = self._peek().span.start
        parts = []

        while True:
            token = self._peek()

            if token.type == TokenType.IDENTIFIER:
                self._advance()
                parts.append(token.value)
                end = token.span.end
            elif token.type == TokenType.STRING:
                string = self._parse_string()
                parts.append(string)
                end = string.span.end
            elif token.type == TokenType.INTERP:
                interp = self._parse_interp()
                parts.append(interp)
                end = interp.span.end
            else:
                raise create_unexpected_token_error("an attribute name", token)

            if not self._check(TokenType.PERIOD):
                break

            self._advance()

        return Identifier(parts, SourceSpan(start, end))

    # ========================================================================
    # Collections
    # ========================================================================

    def _parse_list(self) -> ListLiteral:
        open_bracket = self._advance()
        items: List[Expr] = []
        comments: List[Comment] = []

        while True:
            self._skip_newlines()
            next_token = self._peek_past_trivia()

            if next_token.type == TokenType.CLOSE_BRACKET:
                comments = self._parse_comments()
                if items:
                    items[-1].value.trailing_comments.extend(comments)
                    comments = []
                break

            if next_token.type == TokenType.EOF:
                raise create_unexpected_eof_error("']'", next_token)

            item = self._parse_expr(in_list=True)

            if items:
                previous = items[-1].value
                if previous.trailing_comments:
                    # A comment after one element introduces the next one
                    item.value.leading_comments = previous.trailing_comments + item.value.leading_comments
                    previous.trailing_comments = []

            items.append(item)

        close_bracket = self._consume(TokenType.CLOSE_BRACKET, "']'")

        return ListLiteral(items, SourceSpan(open_bracket.span.start, close_bracket.span.end), comments)

    def _parse_attrs(self) -> Attrs:
        open_curly = self._advance()
        bindings: List[Attr] = []
        comments: List[Comment] = []

        while True:
            self._skip_newlines()
            next_token = self._peek_past_trivia()

            if next_token.type == TokenType.CLOSE_CURLY:
                comments = self._parse_comments()
                if bindings:
                    bindings[-1].comments.extend(comments)
                    comments = []
                break

            if next_token.type == TokenType.EOF:
                raise create_unexpected_eof_error("'}'", next_token)

            bindings.append(self._parse_attr())

        close_curly = self._consume(TokenType.CLOSE_CURLY, "'}'")

        return Attrs(bindings, False, SourceSpan(open_curly.span.start, close_curly.span.end), comments)

    def _parse_attr(self) -> Attr:
        """Parse ``NAME = EXPR;`` or ``inherit [ (EXPR) ] NAME...;``."""
        comments = self._parse_comments()
        token = self._peek()

        if token.is_keyword("inherit"):
            self._advance()

            source = None
            if self._check(TokenType.OPEN_PAREN):
                self._advance()
                source = self._parse_expr()
                self._skip_newlines()
                self._consume(TokenType.CLOSE_PAREN, "')'")

            names: List[Identifier] = []
            while True:
                name_comments = self._parse_comments()

                if self._check(TokenType.SEMI):
                    comments.extend(name_comments)
                    break

                name = self._parse_identifier()
                name.comments = name_comments
                names.append(name)

            semi = self._advance()

            return InheritBinding(source, names, SourceSpan(token.span.start, semi.span.end), comments)

        name = self._parse_identifier()
        comments.extend(self._parse_comments())

        self._skip_newlines()
        self._consume(TokenType.EQ, "'='")

        value = self._parse_expr()

        self._skip_newlines()
        semi = self._consume(TokenType.SEMI, "';'")

        return AttrBinding(name, value, SourceSpan(name.span.start, semi.span.end), comments)

    # ========================================================================
    # Functions
    # ========================================================================

    def _try_parse_function(self) -> Optional[Fn]:
        """
        Parse a function literal if one starts here, else return None.

        Looks ahead without consuming: ``x:`` is a named parameter,
        ``{ ... }:`` / ``{ ... } @ x:`` / ``x @ { ... }:`` are destructured
        patterns. Anything else leaves the cursor untouched.
        """
        token = self._peek()
        following = self._peek(1)

        if token.type == TokenType.IDENTIFIER and following.type == TokenType.COLON:
            name = self._parse_identifier()
            self._advance()  # Skip colon
            body = self._parse_expr()
            return Fn(NamedParams(name, name.span), body, SourceSpan(name.span.start, body.span.end))

        if token.type == TokenType.IDENTIFIER and following.type == TokenType.AT:
            after = self._pattern_end(self.current + 2)
            if after is None or self._token_at(after).type != TokenType.COLON:
                raise create_malformed_params_error(
                    "an alias must be followed by a { ... } pattern and ':'", following
                )
            alias = self._parse_identifier()
            self._advance()  # Skip @
            return self._parse_destructured_function(alias)

        if token.type == TokenType.OPEN_CURLY:
            after = self._pattern_end(self.current)
            if after is not None and self._token_at(after).type in (TokenType.COLON, TokenType.AT):
                return self._parse_destructured_function(None)

        return None

    def _pattern_end(self, index: int) -> Optional[int]:
        """Index just past the brace group opening at index, or None."""
        if self._token_at(index).type != TokenType.OPEN_CURLY:
            return None

        depth = 0
        index += 1
        while index < len(self.tokens):
            token_type = self.tokens[index].type
            if token_type == TokenType.OPEN_CURLY:
                depth += 1
            elif token_type == TokenType.CLOSE_CURLY:
                depth -= 1
            index += 1
            if depth == -1:
                return index

        return None

    def _parse_destructured_function(self, alias: Optional[Identifier]) -> Fn:
        open_curly = self._advance()
        params: List[FnParam] = []
        extra = False

        while True:
            comments = self._parse_comments()
            token = self._peek()

            if token.type == TokenType.CLOSE_CURLY:
                if params:
                    params[-1].comments.extend(comments)
                break

            if token.type == TokenType.ELLIPSIS:
                self._advance()
                extra = True
                trailing = self._parse_comments()
                if params:
                    params[-1].comments.extend(comments + trailing)
                if not self._check(TokenType.CLOSE_CURLY):
                    raise create_malformed_params_error("'...' must come last", self._peek())
                break

            if token.type != TokenType.IDENTIFIER:
                raise create_malformed_params_error(
                    f"expected a parameter name, found {token.type.name}", token
                )

            name = self._parse_identifier()
            default = None
            if self._check(TokenType.HAS):
                self._advance()
                default = self._parse_expr()

            end = default.span.end if default is not None else name.span.end
            param = FnParam(name, default, SourceSpan(name.span.start, end), comments)
            params.append(param)

            param.comments.extend(self._parse_comments())
            separator = self._peek()

            if separator.type == TokenType.COMMA:
                self._advance()
            elif separator.type != TokenType.CLOSE_CURLY:
                raise create_malformed_params_error(
                    f"expected ',' or '}}' after parameter, found {separator.type.name}", separator
                )

        close_curly = self._consume(TokenType.CLOSE_CURLY, "'}'")

        if self._check(TokenType.AT):
            at = self._advance()
            if alias is not None:
                raise create_malformed_params_error("a pattern can only have one alias", at)
            alias = self._parse_identifier()
            span = SourceSpan(open_curly.span.start, alias.span.end)
        elif alias is not None:
            span = SourceSpan(alias.span.start, close_curly.span.end)
        else:
            span = SourceSpan(open_curly.span.start, close_curly.span.end)

        self._consume(TokenType.COLON, "':'")
        body = self._parse_expr()

        params_node = DestructuredParams(params, extra, alias, span)
        return Fn(params_node, body, SourceSpan(span.start, body.span.end))

    # ========================================================================
    # Token helpers
    # ========================================================================

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token matches type without consuming."""
        return self._peek().type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._peek()
        if self.current < len(self.tokens):
            self.current += 1
        return token

    def _peek(self, offset: int = 0) -> Token:
        """Return the token offset positions ahead without consuming."""
        return self._token_at(self.current + offset)

    def _token_at(self, index: int) -> Token:
        if index < len(self.tokens):
            return self.tokens[index]
        # Return EOF token if past end
        if self.tokens:
            return self._eof_at(self.tokens[-1].span.end)
        return self._eof_at(SourceLocation("<string>", 1, 1, 0))

    def _eof_at(self, location: SourceLocation) -> Token:
        return Token(TokenType.EOF, "", None, SourceSpan(location, location))

    def _peek_past_trivia(self) -> Token:
        """Return the next token that is not a newline or comment."""
        index = self.current
        while index < len(self.tokens) and self.tokens[index].is_trivia:
            index += 1
        return self._token_at(index)

    def _skip_newlines(self):
        while self._check(TokenType.NEWLINE):
            self._advance()

    def _skip_trivia(self):
        while self._peek().is_trivia:
            self._advance()

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type or raise error."""
        if self._check(token_type):
            return self._advance()

        raise create_unexpected_token_error(token_type, self._peek(), display=expected)

    def _consume_keyword(self, word: str) -> Token:
        """Consume a specific keyword or raise error."""
        if self._peek().is_keyword(word):
            return self._advance()

        raise create_unexpected_token_error(f"keyword '{word}'", self._peek())


def parse(source: str, filename: str = "<string>", strict: bool = False) -> Root:
    """
    Convenience function to parse a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting
        strict: Raise on unrecognized characters instead of truncating

    Returns:
        Root AST

    Raises:
        LexerError: If lexing fails
        ParseError: If parsing fails
    """
    from ..lexer import Lexer

    tokens = Lexer(source, filename, strict=strict).tokenize()
    return Parser(tokens).parse()


def parse_file(filepath: str, strict: bool = False) -> Root:
    """
    Convenience function to parse a UTF-8 source file.

    Args:
        filepath: Path to source file
        strict: Raise on unrecognized characters instead of truncating

    Returns:
        Root AST

    Raises:
        LexerError: If lexing fails
        ParseError: If parsing fails
        IOError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()

    return parse(source, filepath, strict=strict)
