# parlang

`parlang` parses programs in a small C-like language and writes them out as
bytecode. The language is compiled into a dependency graph, so that independent
instructions can later run in parallel. The package takes a sequence of tokens,
builds an expression tree from it and writes that tree as line-oriented
bytecode.

## Installation

```
pip install .
```

## The language

```
int count = 10;
while (count) {
    print count;
    count = count - 1;
}

void greet(string name) { print "hi " + name; }
greet("you");
```

Statements end with `;`. The language has:

- literals: integers, strings and `true`/`false`
- the operators `+ - * /`
- declarations, such as `int a;` or `int a = 1;`
- assignment, such as `a = a + 1;`
- `if (...)` and `while (...)`, whose body is either a block or a single statement
- function declarations with typed parameters, and function calls
- `print`

## Modules

- `parlang.tokens` defines `TokenType`, `TokenSubtype`, the frozen dataclass
  `Token(type, subtype, raw, line)`, and `TokenFilter`. `TokenFilter.match(token)`
  compares the token's type and, if the filter has one, its subtype.
- `parlang.expression` holds the expression tree: `Expression`,
  `RootExpression`, `UnaryExpression`, `BinaryExpression`, `BlockExpression`,
  `FunctionExpression` with its `FunctionParameter` list, and `CallExpression`.
  It also has `InstructionType`, `ExprDependent` and `add_dependency`. Every node
  provides:
  - `number_expressions(start)`, which gives each node its bytecode line id and
    returns the next free id;
  - `count_instructions()`;
  - `with_subexpressions()`, which returns the node and its subexpressions in
    execution order;
  - `link_internally()`, which records dependencies between a node and its own
    operands;
  - `to_bytecode()`.
- `parlang.ast_builder` has `AstBuilder`, the `build_ast(tokens)` shortcut and
  `SyntaxIssue`, which holds a line number and a message.
  `build_ast` returns a pair `(expressions, errors)`.

## Example

This builds the tree for `print 1 + 2;`, numbers its nodes, links them and
writes the bytecode:

```python
from parlang.tokens import Token, TokenType, TokenSubtype
from parlang.ast_builder import build_ast

tokens = [
    Token(TokenType.PRINT, None, "print", 1),
    Token(TokenType.LITERAL, TokenSubtype.INTEGER, "1", 1),
    Token(TokenType.PLUS, None, "+", 1),
    Token(TokenType.LITERAL, TokenSubtype.INTEGER, "2", 1),
    Token(TokenType.SEMICOLON, None, ";", 1),
]

expressions, errors = build_ast(tokens)
assert not errors

next_id = 0
for expr in expressions:
    next_id = expr.number_expressions(next_id)

for expr in expressions:
    for sub in expr.with_subexpressions():
        sub.link_internally()

print("\n".join(expr.to_bytecode() for expr in expressions))
```

## Building the tree

The builder works on one statement at a time.

- After an `if`, a `while` or a function declaration, the statement that follows
  becomes its body. If that statement is not already a block, the builder wraps
  it in a `BlockExpression`.
- The builder moves a function's body into `FunctionExpression.body`.
- At the end of each `while` body the builder adds a `GOTO` instruction. The
  jump distance is negative, so that execution goes back and tests the
  condition again.

A parse error does not stop the build. The builder records a `SyntaxIssue`,
skips to the next `;` and goes on. When the build is finished, every problem
it found is in `AstBuilder.errors`, or in the second item returned by
`build_ast`.

## Bytecode

Each instruction is written on its own line, in this form:

```
<dependency count> <dependents> <instruction type> [operands...]
```

- `<dependents>` is a comma-separated list of expression ids. An id can carry an
  argument index, as in `3.1`.
- `<instruction type>` is the integer value of the `InstructionType`.
- A root expression adds its raw token as an operand.
- A block adds the number of instructions it contains.
- A function adds its return type, its name and its parameters. After those come
  four resource tables: `first_uses`, `first_writes`, `last_uses` and
  `last_writes`.

## What this package does not do

- It has no tokenizer. You build `Token` objects yourself.
- It does not link statements across blocks into a whole-program graph, and it
  does not fill the four resource tables of a `FunctionExpression`. They are
  written as empty unless you fill them yourself.
- It has no interpreter that runs bytecode.
- It has no command-line program.

## Tests

```
pip install .[test]
pytest
```