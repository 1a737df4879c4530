"""Builds expression trees from a token sequence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from parlang.expression import (
    BinaryExpression,
    BlockExpression,
    CallExpression,
    Expression,
    FunctionExpression,
    FunctionParameter,
    InstructionType,
    RootExpression,
    UnaryExpression,
)
from parlang.tokens import Token, TokenFilter, TokenSubtype, TokenType

_FilterLike = Union[TokenType, TokenFilter]

_OPERATORS = {
    TokenType.PLUS: InstructionType.ADD,
    TokenType.MINUS: InstructionType.SUBTRACT,
    TokenType.STAR: InstructionType.MULTIPLY,
    TokenType.SLASH: InstructionType.DIVIDE,
}

_AUTO_END_TYPES = frozenset(
    {
        InstructionType.IF,
        InstructionType.WHILE,
        InstructionType.BLOCK,
        InstructionType.FUNCTION,
    }
)

_NEEDS_BODY_TYPES = frozenset(
    {InstructionType.IF, InstructionType.WHILE, InstructionType.FUNCTION}
)


@dataclass(frozen=True)
class SyntaxIssue:
    """A syntax problem found while building the tree."""

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


class _ParseError(Exception):
    """Raised internally when the current statement cannot be parsed."""


def _as_filter(item: _FilterLike) -> TokenFilter:
    return item if isinstance(item, TokenFilter) else TokenFilter(item)


class AstBuilder:
    """Parses tokens into top-level expressions, collecting syntax issues."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        self._index = 0
        self._line = 0
        self.errors: List[SyntaxIssue] = []
        self.expressions: List[Expression] = []

    # Token reading

    def _has_next(self) -> bool:
        return self._index < len(self._tokens)

    def _next(self) -> Token:
        if not self._has_next():
            raise _ParseError("Attempted to read a token when there are no more tokens!")
        token = self._tokens[self._index]
        self._line = token.line
        self._index += 1
        return token

    def _peek(self) -> Token:
        if not self._has_next():
            raise _ParseError("Attempted to peek a token when there are no more tokens!")
        return self._tokens[self._index]

    def _match(self, *filters: _FilterLike) -> bool:
        """True if the next token matches any filter; False at end of input."""
        if not self._has_next():
            return False
        if not filters:
            return True
        token = self._peek()
        return any(_as_filter(item).match(token) for item in filters)

    # Building

    def _parse_leading_expression(self) -> Optional[Expression]:
        if self._match(TokenType.IDENTIFIER):
            token = self._next()
            return RootExpression(InstructionType.GET_IDENTIFIER, token.line, token)
        if self._match(TokenType.LITERAL):
            token = self._next()
            return RootExpression(InstructionType.GET_LITERAL, token.line, token)
        if self._match(TokenType.LEFT_BRACE):
            return self._parse_block()
        if self._match(TokenType.IF, TokenType.WHILE):
            loop = self._match(TokenType.WHILE)
            self._next()

            if not self._match(TokenType.LEFT_PAREN):
                raise _ParseError(f"Expected '(' after 'if'. Got: '{self._peek().raw}'")
            self._next()

            condition = self._parse_expression((TokenType.RIGHT_PAREN,))
            if condition is None:
                raise _ParseError("Expected condition in if statement!")

            if not self._match(TokenType.RIGHT_PAREN):
                raise _ParseError(
                    "Expected ')' after condition in if statement. "
                    f"Got: '{self._peek().raw}'"
                )
            self._next()

            kind = InstructionType.WHILE if loop else InstructionType.IF
            return UnaryExpression(kind, self._line, condition)
        if self._match(TokenType.PRINT):
            self._next()
            output = self._parse_expression((TokenType.SEMICOLON,))
            if output is None:
                raise _ParseError("Expected an expression to print!")
            return UnaryExpression(InstructionType.PRINT, self._line, output)

        raise _ParseError(
            "Could not parse line: No valid starting expression for token "
            f"'{self._peek().raw}'"
        )

    def _parse_compound_expression(
        self, prev: Expression, end_on: Sequence[_FilterLike]
    ) -> Optional[Expression]:
        token_type = self._peek().type

        if token_type in _OPERATORS:
            kind = _OPERATORS[token_type]
        elif token_type is TokenType.IDENTIFIER:
            # A declaration: a type identifier followed by a name.
            if prev.type is not InstructionType.GET_IDENTIFIER:
                raise _ParseError(
                    "Expected type identifier before declaration. Previous "
                    f"Expression: '{prev}', Current Token: '{self._peek().raw}'"
                )
            name = self._next()
            name_expr = RootExpression(InstructionType.GET_LITERAL, self._line, name)
            declare = BinaryExpression(InstructionType.DECLARE, self._line, prev, name_expr)

            if not self._match(TokenType.EQUALS):
                if self._match(TokenType.LEFT_PAREN):
                    return self._parse_function(declare)
                return declare

            prev = declare
            kind = InstructionType.SET
        elif token_type is TokenType.EQUALS:
            kind = InstructionType.SET
            prev.type = InstructionType.REFERENCE_IDENTIFIER
        elif token_type is TokenType.LEFT_PAREN:
            self._next()
            if prev.type is not InstructionType.GET_IDENTIFIER or not isinstance(
                prev, RootExpression
            ):
                raise _ParseError(
                    "Cannot call a function without an identifier. Got "
                    f"'{prev}' as previous instead of identifier"
                )
            return self._parse_call(prev, end_on)
        else:
            raise _ParseError(
                "Could not parse line: No matching instruction type for token "
                f"'{self._peek().raw}'"
            )

        self._next()  # the operator itself

        right = self._extend_expression(None, end_on)
        if right is None:
            raise _ParseError(
                "Could not parse line: Binary expression "
                f"('{self._peek().raw}') has no right operand"
            )

        return BinaryExpression(kind, self._line, prev, right)

    def _parse_call(
        self, callee: RootExpression, end_on: Sequence[_FilterLike]
    ) -> Optional[Expression]:
        call = CallExpression(self._line, [callee])

        while not self._match(TokenType.RIGHT_PAREN):
            arg = self._parse_expression((TokenType.COMMA, TokenType.RIGHT_PAREN))
            if arg is None:
                break
            if self._match(TokenType.COMMA):
                self._next()
            call.expressions.append(arg)

        self._next()  # ')'

        if not self._match(*end_on):
            return self._extend_expression(call, end_on)
        return call

    def _parse_block(self) -> Optional[BlockExpression]:
        block = BlockExpression(self._line)
        self._next()  # '{'

        while not self._match(TokenType.RIGHT_BRACE):
            expr = self._parse_expression((TokenType.SEMICOLON,))
            if expr is None:
                break
            if self._match(TokenType.SEMICOLON):
                self._next()
            block.expressions.append(expr)

        self._next()  # '}'

        return block if block.expressions else None

    def _parse_function_parameter(self) -> FunctionParameter:
        if not self._match(TokenType.IDENTIFIER):
            got = self._next()
            raise _ParseError(
                f"Expected parameter type, but got {got.raw} (type {got.type.name})!"
            )
        param_type = self._next().raw

        if not self._match(TokenType.IDENTIFIER):
            got = self._next()
            raise _ParseError(
                f"Expected parameter name, but got {got.raw} (type {got.type.name})!"
            )
        name = self._next().raw

        return FunctionParameter(param_type, name)

    def _parse_function(self, declaration: BinaryExpression) -> FunctionExpression:
        self._next()  # '('

        left, right = declaration.left, declaration.right
        assert isinstance(left, RootExpression) and isinstance(right, RootExpression)
        func = FunctionExpression(right.token.raw, left.token.raw, declaration.line_number)

        while not self._match(TokenType.RIGHT_PAREN):
            func.params.append(self._parse_function_parameter())
            if self._match(TokenType.COMMA):
                self._next()

        self._next()  # ')'
        return func

    def _extend_expression(
        self, prev: Optional[Expression], end_on: Sequence[_FilterLike]
    ) -> Optional[Expression]:
        if self._match(*end_on):
            return None

        if prev is None:
            prev = self._parse_leading_expression()
            if prev is None:
                return None

        if prev.type not in _AUTO_END_TYPES and not self._match(*end_on) and self._has_next():
            return self._parse_compound_expression(prev, end_on)
        return prev

    def _parse_expression(self, end_on: Sequence[_FilterLike]) -> Optional[Expression]:
        try:
            return self._extend_expression(None, end_on)
        except _ParseError as error:
            self._syntax_error(str(error))
            return None

    def _post_process(self, expressions: List[Expression]) -> None:
        index = 0
        while index < len(expressions):
            expr = expressions[index]

            if expr.type in _NEEDS_BODY_TYPES:
                if index == len(expressions) - 1:
                    self._syntax_error(
                        "Cannot have an if/while/function statement as the final expression!"
                    )
                    return

                following = expressions[index + 1]
                if following.type is InstructionType.BLOCK and isinstance(
                    following, BlockExpression
                ):
                    block = following
                else:
                    block = BlockExpression(following.line_number, [following])
                    expressions[index + 1] = block

                self._post_process(block.expressions)

                if expr.type is InstructionType.WHILE:
                    # Jump back to re-evaluate the loop condition.
                    distance = -block.count_instructions() - expr.count_instructions()
                    token = Token(
                        TokenType.LITERAL,
                        TokenSubtype.INTEGER,
                        str(distance),
                        expr.line_number,
                    )
                    block.expressions.append(
                        RootExpression(InstructionType.GOTO, expr.line_number, token)
                    )

            if expr.type is InstructionType.FUNCTION and isinstance(expr, FunctionExpression):
                expr.body = expressions.pop(index + 1)

            index += 1

    def _syntax_error(self, message: str) -> None:
        self.errors.append(SyntaxIssue(self._line, message))
        # Skip the rest of the statement.
        while self._has_next() and not self._match(TokenType.SEMICOLON):
            self._next()

    def build(self) -> List[Expression]:
        """Parse all tokens; return the top-level expressions."""
        while self._has_next():
            expr = self._parse_expression((TokenType.SEMICOLON,))
            if expr is not None:
                self.expressions.append(expr)
            if self._match(TokenType.SEMICOLON):
                self._next()

        self._post_process(self.expressions)
        return self.expressions


def build_ast(tokens: Iterable[Token]) -> Tuple[List[Expression], List[SyntaxIssue]]:
    """Build the expression tree for ``tokens``; return expressions and issues."""
    builder = AstBuilder(tokens)
    builder.build()
    return builder.expressions, builder.errors