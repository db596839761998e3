"""ROS interface definition compiler.

Parses ``.msg``, ``.srv`` and ``.action`` definitions into a typed model and
generates Python dataclass modules from it.

    from ros_idl_gen import parse_message_string, generate_package
"""

from .codegen import Layout, camel_to_snake, generate, generate_package
from .compiler import CompileConfig, CompileOutput, compile_packages
from .dialects import (
    fix_newlines,
    parse_action_file,
    parse_action_string,
    parse_interface_file,
    parse_message_file,
    parse_message_string,
    parse_service_file,
    parse_service_string,
)
from .exceptions import (
    CompileError,
    DuplicateError,
    GrammarError,
    IdlError,
    InvalidValueError,
    StructuralError,
)
from .grammar import parse_constant, parse_declaration, parse_member, parse_type
from .models import (
    Action,
    Array,
    BasicType,
    BoundedSequence,
    Constant,
    GenericString,
    InterfaceKind,
    Member,
    Message,
    NamedType,
    NamespacedType,
    Package,
    Sequence,
    Service,
)

__version__ = "0.1.0"

__all__ = [
    "Action",
    "Array",
    "BasicType",
    "BoundedSequence",
    "CompileConfig",
    "CompileError",
    "CompileOutput",
    "Constant",
    "DuplicateError",
    "GenericString",
    "GrammarError",
    "IdlError",
    "InterfaceKind",
    "InvalidValueError",
    "Layout",
    "Member",
    "Message",
    "NamedType",
    "NamespacedType",
    "Package",
    "Sequence",
    "Service",
    "StructuralError",
    "camel_to_snake",
    "compile_packages",
    "fix_newlines",
    "generate",
    "generate_package",
    "parse_action_file",
    "parse_action_string",
    "parse_constant",
    "parse_declaration",
    "parse_interface_file",
    "parse_member",
    "parse_message_file",
    "parse_message_string",
    "parse_service_file",
    "parse_service_string",
    "parse_type",
]
