"""Tokens, expression trees, an AST builder and bytecode output for a small dependency-graph language."""

__version__ = "0.1.0"
__all__ = ["tokens", "expression", "ast_builder"]