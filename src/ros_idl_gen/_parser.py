"""Shared LALR parser built from the ``idl.lark`` grammar."""

from lark import Lark

IDL_PARSER = Lark.open(
    "idl.lark",
    rel_to=__file__,
    parser="lalr",
    lexer="contextual",
    start=["declaration", "type_spec", "array_literal"],
)
