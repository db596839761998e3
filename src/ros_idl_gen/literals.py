"""Literal parsers for default and constant values.

Every parser takes the raw literal text and returns the canonical textual value,
or raises :class:`InvalidValueError`. Nothing here knows about declarations.
"""

import re

from lark.exceptions import LarkError

from ros_idl_gen._parser import IDL_PARSER
from ros_idl_gen.exceptions import InvalidValueError
from ros_idl_gen.models import BasicType, GenericString, PrimitiveType

# Inclusive value ranges of the integer types; byte and char are octets
INTEGER_RANGES: dict[BasicType, tuple[int, int]] = {
    BasicType.BYTE: (0, 2**8 - 1),
    BasicType.CHAR: (0, 2**8 - 1),
    BasicType.INT8: (-(2**7), 2**7 - 1),
    BasicType.UINT8: (0, 2**8 - 1),
    BasicType.INT16: (-(2**15), 2**15 - 1),
    BasicType.UINT16: (0, 2**16 - 1),
    BasicType.INT32: (-(2**31), 2**31 - 1),
    BasicType.UINT32: (0, 2**32 - 1),
    BasicType.INT64: (-(2**63), 2**63 - 1),
    BasicType.UINT64: (0, 2**64 - 1),
}

_BOOLEAN_VALUES = {"true": "true", "false": "false"}

_INTEGER_PATTERN = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+|[0-9]+)")
_PREFIXED_INTEGER_PATTERN = re.compile(r"[+-]?0[xXbBoO]")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_QUOTED_PATTERN = re.compile(r"\"((?:[^\"\\]|\\.)*)\"|'((?:[^'\\]|\\.)*)'", flags=re.DOTALL)

_ESCAPE_MAP = {
    "'": "'",
    '"': '"',
    "\\": "\\",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}
_ESCAPE_PATTERN = re.compile(
    r"\\(?:([0-7]{1,3})|x([0-9a-fA-F]{2})|u([0-9a-fA-F]{4})|U([0-9a-fA-F]{8})|(.))",
    flags=re.DOTALL,
)


def _replace_escape(match: re.Match[str]) -> str:
    octal, hex_byte, unicode_4, unicode_8, other = match.groups()
    if octal is not None:
        return chr(int(octal, 8))
    if hex_byte is not None:
        return chr(int(hex_byte, 16))
    if unicode_4 is not None or unicode_8 is not None:
        return chr(int(unicode_4 or unicode_8, 16))
    return _ESCAPE_MAP.get(other, match.group(0))


def unescape_string(s: str) -> str:
    """Process escape sequences in string literals.

    Handles:
    - Standard C-style escapes (\\n, \\t, \\r, etc.) and quote escapes
    - Octal escapes (\\012)
    - Hex escapes (\\x10)
    - Unicode escapes (\\u1010, \\U0002F804)

    Unknown escapes are kept verbatim.
    """
    return _ESCAPE_PATTERN.sub(_replace_escape, s)


def parse_bool(text: str) -> str:
    """Parse ``true``/``false`` (any case)."""
    value = _BOOLEAN_VALUES.get(text.strip().lower())
    if value is None:
        raise InvalidValueError(text, BasicType.BOOL)
    return value


def parse_integer(text: str, basic_type: BasicType) -> str:
    """Parse an integer literal and check it fits ``basic_type``."""
    literal = text.strip()
    if not _INTEGER_PATTERN.fullmatch(literal):
        raise InvalidValueError(text, basic_type)

    value = int(literal, 0) if _PREFIXED_INTEGER_PATTERN.match(literal) else int(literal, 10)
    lower, upper = INTEGER_RANGES[basic_type]
    if not lower <= value <= upper:
        raise InvalidValueError(text, basic_type, f"out of range [{lower}, {upper}]")
    return str(value)


def parse_float(text: str, basic_type: BasicType = BasicType.FLOAT64) -> str:
    literal = text.strip()
    if not _FLOAT_PATTERN.fullmatch(literal):
        raise InvalidValueError(text, basic_type)
    return literal


def parse_basic(basic_type: BasicType, text: str) -> str:
    """Dispatch to the literal parser of a basic type."""
    if basic_type is BasicType.BOOL:
        return parse_bool(text)
    if basic_type.is_float:
        return parse_float(text, basic_type)
    return parse_integer(text, basic_type)


def parse_string(text: str, string_type: GenericString | None = None, *, quoted: bool = False) -> str:
    """Parse a string literal and return the decoded content.

    Single and double quoted forms are unescaped. Unless ``quoted`` is set, text
    that does not start with a quote is taken verbatim. A bounded string fails
    when the decoded content is longer than its bound.
    """
    string_type = string_type or GenericString()
    literal = text.strip()

    if literal[:1] in ("'", '"'):
        match = _QUOTED_PATTERN.fullmatch(literal)
        if match is None:
            raise InvalidValueError(text, string_type, "unterminated string literal")
        content = match.group(1) if match.group(1) is not None else match.group(2)
        value = unescape_string(content)
    elif quoted:
        raise InvalidValueError(text, string_type, "expected a quoted string")
    else:
        value = literal

    if string_type.upper_bound is not None and len(value) > string_type.upper_bound:
        raise InvalidValueError(
            text,
            string_type,
            f"length {len(value)} exceeds the upper bound {string_type.upper_bound}",
        )
    return value


def parse_primitive(value_type: PrimitiveType, text: str) -> str:
    """Parse a single literal of any primitive type."""
    if isinstance(value_type, GenericString):
        return parse_string(text, value_type)
    return parse_basic(value_type, text)


def parse_array(value_type: PrimitiveType, text: str) -> list[str]:
    """Parse a bracketed, comma separated array literal, e.g. ``[1, 2, 3]``.

    Each element is parsed with the literal parser of ``value_type``. Arity is
    left to the caller.
    """
    try:
        tree = IDL_PARSER.parse(text.strip(), start="array_literal")
    except LarkError as e:
        raise InvalidValueError(text, f"{value_type}[]", "expected an array literal like [a, b]") from e

    values = []
    for token in tree.children:
        element = str(token)
        if token.type == "QUOTED_STRING" and not isinstance(value_type, GenericString):
            raise InvalidValueError(element, value_type)
        values.append(parse_primitive(value_type, element))
    return values
