"""Expression tree nodes, their dependency graph and bytecode output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, auto
from typing import Dict, Iterable, List, Optional

from parlang.tokens import Token


class InstructionType(IntEnum):
    """Instruction kinds; the integer value is written into bytecode."""

    GET_LITERAL = 0
    GET_IDENTIFIER = auto()
    REFERENCE_IDENTIFIER = auto()
    DECLARE = auto()
    SET = auto()
    ADD = auto()
    SUBTRACT = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    PRINT = auto()
    IF = auto()
    WHILE = auto()
    GOTO = auto()
    BLOCK = auto()
    FUNCTION = auto()
    CALL = auto()


class ExprDependent:
    """An expression that depends on another, with the argument slot it fills."""

    def __init__(self, expr: "Expression", arg_index: Optional[int] = None) -> None:
        self.expr = expr
        self.arg_index = arg_index

    def __str__(self) -> str:
        text = str(self.expr.id)
        if self.arg_index is not None:
            text += f".{self.arg_index}"
        return text

    def __repr__(self) -> str:
        return f"ExprDependent({self})"


def add_dependency(
    expr: "Expression", depends_on: "Expression", arg_index: Optional[int] = None
) -> None:
    """Record that ``expr`` depends on ``depends_on``, filling slot ``arg_index``."""
    expr.dependencies.append(depends_on)
    depends_on.dependents.append(ExprDependent(expr, arg_index))


class Expression:
    """Base node: a single instruction with dependency links."""

    def __init__(self, type: InstructionType, line_number: int) -> None:
        self.type = type
        self.line_number = line_number
        self.id = -1
        self.dependencies: List[Expression] = []
        self.dependents: List[ExprDependent] = []
        self.dependent_redirect: Optional[Expression] = None

    def __str__(self) -> str:
        return f"({self.id}){self.type.name}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"

    def to_bytecode(self) -> str:
        """Return this instruction's bytecode line."""
        dependents = ",".join(str(dep) for dep in self.dependents)
        return f"{len(self.dependencies)} {dependents} {int(self.type)}"

    def with_subexpressions(self) -> List["Expression"]:
        """Return this expression and its subexpressions in execution order."""
        return [self]

    def link_internally(self) -> None:
        """Link internal subexpressions with each other."""

    def number_expressions(self, start: int) -> int:
        """Assign bytecode line ids starting at ``start``; return the next id."""
        self.id = start
        return start + 1

    def count_instructions(self) -> int:
        """Number of bytecode instructions this expression emits."""
        return 1


class RootExpression(Expression):
    """A leaf expression holding a single token."""

    def __init__(self, type: InstructionType, line_number: int, token: Token) -> None:
        super().__init__(type, line_number)
        self.token = token

    def __str__(self) -> str:
        return f"{Expression.__str__(self)}({self.token.raw})"

    def to_bytecode(self) -> str:
        return f"{Expression.to_bytecode(self)} {self.token.raw}"


class UnaryExpression(Expression):
    """An expression with a single operand."""

    def __init__(self, type: InstructionType, line_number: int, root: Expression) -> None:
        super().__init__(type, line_number)
        self.root = root

    def __str__(self) -> str:
        return f"{Expression.__str__(self)}({self.root})"

    def to_bytecode(self) -> str:
        return f"{self.root.to_bytecode()}\n{Expression.to_bytecode(self)}"

    def with_subexpressions(self) -> List[Expression]:
        return [*self.root.with_subexpressions(), self]

    def link_internally(self) -> None:
        add_dependency(self, self.root, 0)

    def number_expressions(self, start: int) -> int:
        start = self.root.number_expressions(start)
        return Expression.number_expressions(self, start)

    def count_instructions(self) -> int:
        return 1 + self.root.count_instructions()


class BinaryExpression(Expression):
    """An expression with a left and right operand."""

    def __init__(
        self, type: InstructionType, line_number: int, left: Expression, right: Expression
    ) -> None:
        super().__init__(type, line_number)
        self.left = left
        self.right = right

    def __str__(self) -> str:
        return f"{Expression.__str__(self)}({self.left}, {self.right})"

    def to_bytecode(self) -> str:
        return "\n".join(
            (self.left.to_bytecode(), self.right.to_bytecode(), Expression.to_bytecode(self))
        )

    def with_subexpressions(self) -> List[Expression]:
        return [
            *self.left.with_subexpressions(),
            *self.right.with_subexpressions(),
            self,
        ]

    def link_internally(self) -> None:
        add_dependency(self, self.left, 0)
        add_dependency(self, self.right, 1)

    def number_expressions(self, start: int) -> int:
        start = self.left.number_expressions(start)
        start = self.right.number_expressions(start)
        return Expression.number_expressions(self, start)

    def count_instructions(self) -> int:
        return 1 + self.left.count_instructions() + self.right.count_instructions()


class BlockExpression(Expression):
    """A sequence of expressions; internal links are made by the graph linker."""

    def __init__(self, line_number: int = 0, expressions: Iterable[Expression] = ()) -> None:
        super().__init__(InstructionType.BLOCK, line_number)
        self.expressions: List[Expression] = list(expressions)

    def __str__(self) -> str:
        body = "".join(f"\t{expr}\n" for expr in self.expressions)
        return f"{Expression.__str__(self)} {{\n{body}}}"

    def to_bytecode(self) -> str:
        header = f"{Expression.to_bytecode(self)} {self.count_instructions() - 1}"
        return "\n".join([header, *(expr.to_bytecode() for expr in self.expressions)])

    def with_subexpressions(self) -> List[Expression]:
        result: List[Expression] = [self]
        for expr in self.expressions:
            result.extend(expr.with_subexpressions())
        return result

    def number_expressions(self, start: int) -> int:
        self.id = start
        start += 1
        for expr in self.expressions:
            start = expr.number_expressions(start)
        return start

    def count_instructions(self) -> int:
        return 1 + sum(expr.count_instructions() for expr in self.expressions)


@dataclass
class FunctionParameter:
    """A declared function parameter."""

    type: str
    name: str


def _stringify_uses(uses: Dict[str, List[Expression]]) -> str:
    parts = [f"{len(uses)} "]
    for key, exprs in uses.items():
        parts.append(f"{key} {len(exprs)} ")
        parts.extend(f"{expr.id} " for expr in exprs)
    return "".join(parts)


def _stringify_writes(writes: Dict[str, Expression]) -> str:
    parts = [f"{len(writes)} "]
    parts.extend(f"{key} {expr.id} " for key, expr in writes.items())
    return "".join(parts)


class FunctionExpression(Expression):
    """A function declaration with parameters, a body and resource usage maps."""

    def __init__(
        self, name: str = "unnamed_func", return_type: str = "void", line_number: int = 0
    ) -> None:
        super().__init__(InstructionType.FUNCTION, line_number)
        self.name = name
        self.return_type = return_type
        self.params: List[FunctionParameter] = []
        self.body: Optional[Expression] = None
        self.first_uses: Dict[str, List[Expression]] = {}
        self.first_writes: Dict[str, Expression] = {}
        self.last_uses: Dict[str, List[Expression]] = {}
        self.last_writes: Dict[str, Expression] = {}

    def _require_body(self) -> Expression:
        if self.body is None:
            raise ValueError(f"Function '{self.name}' has no body")
        return self.body

    def __str__(self) -> str:
        params = ", ".join(f"{p.type} {p.name}" for p in self.params)
        return (
            f"{Expression.__str__(self)} {self.return_type} {self.name}({params}) {{\n"
            f"\t{self.body}\n}}"
        )

    def to_bytecode(self) -> str:
        body = self._require_body()
        header = f"{Expression.to_bytecode(self)} {self.return_type} {self.name} "
        header += f"{len(self.params)} "
        header += "".join(f"{p.type} {p.name} " for p in self.params)
        header += _stringify_uses(self.first_uses)
        header += _stringify_writes(self.first_writes)
        header += _stringify_uses(self.last_uses)
        header += _stringify_writes(self.last_writes)
        return f"{header[:-1]}\n{body.to_bytecode()}"

    def with_subexpressions(self) -> List[Expression]:
        return [self, *self._require_body().with_subexpressions()]

    def link_internally(self) -> None:
        add_dependency(self._require_body(), self)

    def number_expressions(self, start: int) -> int:
        body = self._require_body()
        self.id = start
        return body.number_expressions(start + 1)

    def count_instructions(self) -> int:
        return 1 + self._require_body().count_instructions()


class CallExpression(BlockExpression):
    """A function call; the first expression is the function's identifier."""

    def __init__(self, line_number: int = -1, expressions: Iterable[Expression] = ()) -> None:
        super().__init__(line_number, expressions)
        self.type = InstructionType.CALL

    def __str__(self) -> str:
        args = ", ".join(str(expr) for expr in self.expressions)
        return f"{Expression.__str__(self)}({args})"

    def to_bytecode(self) -> str:
        return "\n".join(
            [*(expr.to_bytecode() for expr in self.expressions), Expression.to_bytecode(self)]
        )

    def with_subexpressions(self) -> List[Expression]:
        result: List[Expression] = []
        for expr in self.expressions:
            result.extend(expr.with_subexpressions())
        result.append(self)
        return result

    def link_internally(self) -> None:
        for index, expr in enumerate(self.expressions):
            add_dependency(self, expr, index)

    def number_expressions(self, start: int) -> int:
        for expr in self.expressions:
            start = expr.number_expressions(start)
        self.id = start
        return start + 1

    def function_name(self) -> str:
        """Name of the called function."""
        name_expr = self.expressions[0]
        if not isinstance(name_expr, RootExpression):
            raise ValueError("Call has no function identifier")
        return name_expr.token.raw