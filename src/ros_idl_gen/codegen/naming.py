"""Identifier transliteration for generated artifact names."""

import keyword
import re

# Word boundaries: lower->upper ("aB"), digit->upper ("3D") and the end of an
# acronym ("HTTPServer" splits before "Server")
_BOUNDARY_PATTERN = re.compile(r"(?<=[a-z])(?=[A-Z])|(?<=[0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def camel_to_snake(name: str) -> str:
    """Convert a PascalCase declaration name to its lower snake case symbol stem.

    >>> camel_to_snake("TestHoge")
    'test_hoge'
    >>> camel_to_snake("HTTPServer")
    'http_server'
    >>> camel_to_snake("Int32MultiArray")
    'int32_multi_array'
    """
    return _BOUNDARY_PATTERN.sub("_", name).lower()


def python_identifier(name: str) -> str:
    """Return ``name`` usable as a Python attribute (keywords get a trailing underscore)."""
    if keyword.iskeyword(name):
        return f"{name}_"
    return name
