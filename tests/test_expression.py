import pytest

from parlang.expression import (
    BinaryExpression,
    BlockExpression,
    CallExpression,
    ExprDependent,
    Expression,
    FunctionExpression,
    FunctionParameter,
    InstructionType,
    RootExpression,
    UnaryExpression,
    add_dependency,
)
from parlang.tokens import Token, TokenSubtype, TokenType


def lit(raw, line=1):
    return RootExpression(
        InstructionType.GET_LITERAL, line, Token(TokenType.LITERAL, TokenSubtype.INTEGER, raw, line)
    )


def ident(raw, line=1):
    return RootExpression(
        InstructionType.GET_IDENTIFIER, line, Token(TokenType.IDENTIFIER, None, raw, line)
    )


def test_add_dependency_links_both_sides():
    a = lit("1")
    b = lit("2")
    add_dependency(a, b, 3)
    assert a.dependencies == [b]
    assert b.dependents[0].expr is a
    assert b.dependents[0].arg_index == 3


def test_expr_dependent_string_with_and_without_index():
    e = lit("1")
    e.id = 4
    assert str(ExprDependent(e)) == "4"
    assert str(ExprDependent(e, 2)) == "4.2"


def test_base_expression_defaults():
    e = Expression(InstructionType.PRINT, 5)
    assert e.id == -1
    assert e.count_instructions() == 1
    assert e.with_subexpressions() == [e]
    assert e.number_expressions(7) == 8
    assert e.id == 7


def test_root_string_and_bytecode():
    e = lit("5")
    e.number_expressions(3)
    assert str(e) == "(3)GET_LITERAL(5)"
    assert e.to_bytecode() == f"0  {int(InstructionType.GET_LITERAL)} 5"


def test_unary_numbering_and_linking():
    root = lit("1")
    u = UnaryExpression(InstructionType.PRINT, 1, root)
    assert u.number_expressions(0) == 2
    assert (root.id, u.id) == (0, 1)
    u.link_internally()
    assert u.dependencies == [root]
    assert str(root.dependents[0]) == "1.0"
    assert u.count_instructions() == 2
    assert u.with_subexpressions() == [root, u]


def test_binary_bytecode_after_link():
    left, right = lit("1"), lit("2")
    b = BinaryExpression(InstructionType.ADD, 1, left, right)
    assert b.number_expressions(0) == 3
    b.link_internally()
    assert b.to_bytecode().split("\n") == [
        f"0 2.0 {int(InstructionType.GET_LITERAL)} 1",
        f"0 2.1 {int(InstructionType.GET_LITERAL)} 2",
        f"2  {int(InstructionType.ADD)}",
    ]
    assert str(b) == "(2)ADD((0)GET_LITERAL(1), (1)GET_LITERAL(2))"


def test_block_header_counts_inner_instructions():
    inner = BinaryExpression(InstructionType.ADD, 1, lit("1"), lit("2"))
    block = BlockExpression(1, [inner, lit("3")])
    block.number_expressions(0)
    lines = block.to_bytecode().split("\n")
    assert lines[0] == f"0  {int(InstructionType.BLOCK)} {block.count_instructions() - 1}"
    assert len(lines) == block.count_instructions()


def test_empty_block_bytecode_is_single_line():
    block = BlockExpression(2)
    block.number_expressions(0)
    assert block.to_bytecode() == f"0  {int(InstructionType.BLOCK)} 0"
    assert block.type is InstructionType.BLOCK


def test_ids_follow_execution_order():
    inner = UnaryExpression(InstructionType.PRINT, 1, BinaryExpression(
        InstructionType.MULTIPLY, 1, lit("2"), lit("3")))
    call = CallExpression(1, [ident("f"), lit("4")])
    tree = BlockExpression(1, [inner, call, BlockExpression(1, [lit("5")])])
    total = tree.number_expressions(0)
    ids = [e.id for e in tree.with_subexpressions()]
    assert ids == list(range(total))
    assert total == tree.count_instructions()


def test_function_bytecode_header():
    f = FunctionExpression("main", "void", 1)
    f.params = [FunctionParameter("int", "a")]
    body_literal = lit("1")
    f.body = BlockExpression(1, [body_literal])
    assert f.number_expressions(0) == 3
    f.first_uses = {"x": [body_literal]}
    f.first_writes = {"x": body_literal}
    header, *rest = f.to_bytecode().split("\n")
    assert header == f"0  {int(InstructionType.FUNCTION)} void main 1 int a 1 x 1 2 1 x 2 0 0"
    assert "\n".join(rest) == f.body.to_bytecode()


def test_function_link_makes_body_depend_on_function():
    f = FunctionExpression("main", "int", 1)
    f.body = BlockExpression(1, [lit("1")])
    f.link_internally()
    assert f.body.dependencies == [f]
    assert f.dependents[0].expr is f.body
    assert f.dependents[0].arg_index is None
    assert f.with_subexpressions()[0] is f


def test_function_without_body_raises():
    f = FunctionExpression()
    with pytest.raises(ValueError):
        f.to_bytecode()
    with pytest.raises(ValueError):
        f.number_expressions(0)


def test_function_string_lists_parameters():
    f = FunctionExpression("main", "int", 1)
    f.params = [FunctionParameter("int", "a"), FunctionParameter("string", "b")]
    f.body = BlockExpression(1)
    f.number_expressions(0)
    assert str(f).startswith("(0)FUNCTION int main(int a, string b) {\n")


def test_call_numbers_arguments_first():
    name, arg = ident("main"), lit("3")
    call = CallExpression(1, [name, arg])
    assert call.number_expressions(0) == 3
    assert (name.id, arg.id, call.id) == (0, 1, 2)
    assert call.function_name() == "main"
    assert str(call) == "(2)CALL((0)GET_IDENTIFIER(main), (1)GET_LITERAL(3))"
    assert call.type is InstructionType.CALL


def test_call_linking_and_bytecode():
    name, arg = ident("main"), lit("3")
    call = CallExpression(1, [name, arg])
    call.number_expressions(0)
    call.link_internally()
    assert call.dependencies == [name, arg]
    lines = call.to_bytecode().split("\n")
    assert lines[-1] == f"2  {int(InstructionType.CALL)}"
    assert lines[0] == f"0 2.0 {int(InstructionType.GET_IDENTIFIER)} main"
    assert call.with_subexpressions() == [name, arg, call]