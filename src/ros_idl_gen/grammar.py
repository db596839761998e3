"""Type, member and constant grammar for single declaration lines."""

import re
from typing import Any

from lark import Token, Transformer, Tree
from lark.exceptions import LarkError, VisitError

from ros_idl_gen import literals
from ros_idl_gen._parser import IDL_PARSER
from ros_idl_gen.exceptions import GrammarError, IdlError, InvalidValueError, StructuralError
from ros_idl_gen.models import (
    Array,
    BasicType,
    BoundedSequence,
    Constant,
    ConstantType,
    GenericString,
    InterfaceKind,
    Member,
    MemberType,
    NamedType,
    NamespacedType,
    NestableType,
    Sequence,
    is_primitive,
)

_MEMBER_NAME_PATTERN = re.compile(r"[a-z](?:[a-z0-9]|_(?!_))*(?<!_)")
_CONSTANT_NAME_PATTERN = re.compile(r"[A-Z](?:[A-Z0-9]|_(?!_))*")
_NAMESPACES = {kind.value for kind in InterfaceKind}

# (type, name, tail) where tail is ("constant" | "default", raw value text) or None
_RawDeclaration = tuple[MemberType, str, tuple[str, str] | None]


class DeclarationTransformer(Transformer[Token, Any]):
    """Transforms Lark parse trees into type model values."""

    def declaration(self, items: list[Any]) -> _RawDeclaration:
        member_type, name = items[0], str(items[1])
        tail = items[2] if len(items) > 2 else None
        return member_type, name, tail

    def constant_tail(self, items: list[Token]) -> tuple[str, str]:
        return ("constant", str(items[0]))

    def default_tail(self, items: list[Token]) -> tuple[str, str]:
        return ("default", str(items[0]))

    def type_spec(self, items: list[Any]) -> MemberType:
        """Combine the base type with its optional string bound and array suffix."""
        base_type = items[0]
        string_bound = None
        array_spec = None
        for item in items[1:]:
            if isinstance(item, int):
                string_bound = item
            else:
                array_spec = item

        if string_bound is not None:
            if not isinstance(base_type, GenericString):
                raise GrammarError(f"only string types can be bounded, got '{base_type}<='")
            base_type = GenericString(wide=base_type.wide, upper_bound=string_bound)

        if array_spec is None:
            return base_type
        kind, size = array_spec
        if kind == "fixed":
            return Array(base_type, size)
        if kind == "bounded":
            return BoundedSequence(base_type, size)
        return Sequence(base_type)

    def local_type(self, items: list[Token]) -> NestableType:
        """A bare identifier is a primitive if it is a keyword, a named type otherwise."""
        name = str(items[0])
        if name == "string":
            return GenericString()
        if name == "wstring":
            return GenericString(wide=True)
        try:
            return BasicType(name)
        except ValueError:
            return NamedType(name)

    def package_type(self, items: list[Token]) -> NamespacedType:
        return NamespacedType(str(items[0]), InterfaceKind.MSG.value, str(items[1]))

    def namespaced_type(self, items: list[Token]) -> NamespacedType:
        package, namespace, name = (str(item) for item in items)
        if namespace not in _NAMESPACES:
            raise GrammarError(
                f"unknown namespace '{namespace}' in '{package}/{namespace}/{name}', "
                f"expected one of {', '.join(sorted(_NAMESPACES))}"
            )
        return NamespacedType(package, namespace, name)

    def string_bound(self, items: list[Token]) -> int:
        return int(items[0])

    def unbounded_array(self, items: list[Any]) -> tuple[str, int | None]:  # noqa: ARG002
        return ("unbounded", None)

    def fixed_array(self, items: list[Token]) -> tuple[str, int]:
        return ("fixed", int(items[0]))

    def bounded_array(self, items: list[Token]) -> tuple[str, int]:
        return ("bounded", int(items[0]))


_transformer = DeclarationTransformer()


def _parse(text: str, start: str) -> Any:
    try:
        tree: Tree[Token] = IDL_PARSER.parse(text, start=start)
        return _transformer.transform(tree)
    except VisitError as e:
        # Errors raised by the transformer callbacks arrive wrapped
        if isinstance(e.orig_exc, IdlError):
            e.orig_exc.text = text
            raise e.orig_exc from None
        raise
    except LarkError as e:
        raise GrammarError(f"invalid declaration: {e}".strip(), text=text) from e


def strip_comment(line: str) -> str:
    """Remove a trailing ``#`` comment that is not inside a quoted string."""
    quote = None
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
        elif char == "\\" and quote:
            escaped = True
        elif quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "#":
            return line[:index]
    return line


def parse_type(text: str) -> MemberType:
    """Parse a type specifier such as ``int32``, ``string<=5`` or ``pkg/Msg[<=3]``."""
    return _parse(text.strip(), "type_spec")


def _nestable_default(value_type: NestableType, text: str) -> list[str]:
    if not is_primitive(value_type):
        raise StructuralError(f"default values are not allowed for non-primitive type '{value_type}'")
    return [literals.parse_primitive(value_type, text)]


def _array_default(member_type: Array | Sequence | BoundedSequence, text: str) -> list[str]:
    value_type = member_type.value_type
    if not is_primitive(value_type):
        raise StructuralError(f"default values are not allowed for non-primitive type '{member_type}'")
    values = literals.parse_array(value_type, text)

    if isinstance(member_type, Array) and len(values) != member_type.size:
        raise InvalidValueError(
            text, member_type, f"expected {member_type.size} elements, got {len(values)}"
        )
    if isinstance(member_type, BoundedSequence) and len(values) > member_type.max_size:
        raise InvalidValueError(
            text, member_type, f"expected at most {member_type.max_size} elements, got {len(values)}"
        )
    return values


def validate_default(member_type: MemberType, text: str) -> list[str]:
    """Parse a default value for ``member_type`` and enforce its arity."""
    if isinstance(member_type, (Array, Sequence, BoundedSequence)):
        return _array_default(member_type, text)
    return _nestable_default(member_type, text)


def _check_constant_type(member_type: MemberType) -> ConstantType:
    value_type = member_type.value_type if isinstance(member_type, Array) else member_type
    if isinstance(member_type, (Sequence, BoundedSequence)) or not is_primitive(value_type):
        raise GrammarError(
            f"constants must use primitive types or fixed-size primitive arrays, got '{member_type}'"
        )
    if isinstance(value_type, GenericString) and value_type.is_bounded:
        raise GrammarError(f"constants cannot use bounded string type '{value_type}'")
    return member_type  # type: ignore[return-value]


def _check_name(name: str, *, constant: bool) -> str:
    pattern = _CONSTANT_NAME_PATTERN if constant else _MEMBER_NAME_PATTERN
    if not pattern.fullmatch(name):
        kind = "constant" if constant else "member"
        raise GrammarError(f"invalid {kind} name '{name}'")
    return name


def _build(line: str, raw: _RawDeclaration) -> Member | Constant:
    member_type, name, tail = raw
    try:
        if tail is not None and tail[0] == "constant":
            constant_type = _check_constant_type(member_type)
            _check_name(name, constant=True)
            return Constant(name=name, type=constant_type, value=validate_default(constant_type, tail[1]))

        _check_name(name, constant=False)
        default = validate_default(member_type, tail[1]) if tail is not None else None
        return Member(name=name, type=member_type, default=default)
    except IdlError as e:
        # Attach the whole line, the parsers only know the value text
        e.text = line
        raise


def parse_declaration(line: str) -> Member | Constant:
    """Parse one declaration line into a :class:`Member` or :class:`Constant`.

    The line is a constant when ``=`` directly follows the name. Trailing
    comments are ignored.
    """
    cleaned = strip_comment(line).strip()
    if not cleaned:
        raise GrammarError("empty declaration", text=line)
    return _build(line, _parse(cleaned, "declaration"))


def parse_member(line: str) -> Member:
    """Parse ``<type> <name> [<default>]``."""
    result = parse_declaration(line)
    if not isinstance(result, Member):
        raise GrammarError("expected a member declaration, got a constant", text=line)
    return result


def parse_constant(line: str) -> Constant:
    """Parse ``<type> <NAME>=<value>``."""
    result = parse_declaration(line)
    if not isinstance(result, Constant):
        raise GrammarError("expected a constant declaration with '=' and a value", text=line)
    return result
