"""Data models for ROS interface definitions (msg, srv, action)."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

from ros_idl_gen.exceptions import StructuralError


class BasicType(str, Enum):
    """Fixed-width primitive type names.

    Width and signedness are part of the name and never inferred from values.
    """

    BOOL = "bool"
    BYTE = "byte"
    CHAR = "char"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"

    @property
    def is_integer(self) -> bool:
        return self not in (BasicType.BOOL, BasicType.FLOAT32, BasicType.FLOAT64)

    @property
    def is_float(self) -> bool:
        return self in (BasicType.FLOAT32, BasicType.FLOAT64)

    def __str__(self) -> str:
        return self.value


STRING_TYPE_NAMES = ("string", "wstring")

# Set of all primitive keywords accepted by the type grammar
PRIMITIVE_TYPE_NAMES = frozenset({member.value for member in BasicType} | set(STRING_TYPE_NAMES))


@dataclass(frozen=True)
class GenericString:
    """A narrow (``string``) or wide (``wstring``) string, optionally bounded."""

    wide: bool = False
    upper_bound: int | None = None

    @property
    def is_bounded(self) -> bool:
        return self.upper_bound is not None

    def __str__(self) -> str:
        result = "wstring" if self.wide else "string"
        if self.upper_bound is not None:
            result += f"<={self.upper_bound}"
        return result


@dataclass(frozen=True)
class NamedType:
    """A bare type reference (e.g. ``Point``) whose package is left to the consumer."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class NamespacedType:
    """A qualified type reference (e.g. ``geometry_msgs/msg/Point``)."""

    package: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.package}/{self.namespace}/{self.name}"


PrimitiveType = BasicType | GenericString
NestableType = BasicType | GenericString | NamedType | NamespacedType


def is_primitive(value_type: NestableType) -> bool:
    """Check whether a nestable type is a primitive (basic or string) type."""
    return isinstance(value_type, (BasicType, GenericString))


@dataclass(frozen=True)
class Array:
    """Fixed-size array, e.g. ``int16[3]``."""

    value_type: NestableType
    size: int

    def __str__(self) -> str:
        return f"{self.value_type}[{self.size}]"


@dataclass(frozen=True)
class Sequence:
    """Unbounded sequence, e.g. ``int32[]``."""

    value_type: NestableType

    def __str__(self) -> str:
        return f"{self.value_type}[]"


@dataclass(frozen=True)
class BoundedSequence:
    """Sequence with a maximum element count, e.g. ``int32[<=5]``."""

    value_type: NestableType
    max_size: int

    def __str__(self) -> str:
        return f"{self.value_type}[<={self.max_size}]"


MemberType = NestableType | Array | Sequence | BoundedSequence
ConstantType = BasicType | GenericString | Array

ARRAY_TYPES = (Array, Sequence, BoundedSequence)


def element_type(member_type: MemberType) -> NestableType:
    """Return the element type of an array-like type, or the type itself."""
    if isinstance(member_type, ARRAY_TYPES):
        return member_type.value_type
    return member_type


def _format_value(value_type: MemberType, values: list[str]) -> str:
    inner = element_type(value_type)
    if isinstance(inner, GenericString):
        rendered = [repr(v) for v in values]
    else:
        rendered = list(values)
    if isinstance(value_type, ARRAY_TYPES):
        return "[" + ", ".join(rendered) + "]"
    return rendered[0]


@dataclass(frozen=True)
class Member:
    """A field of a message, with an optional default value."""

    name: str
    type: MemberType
    default: list[str] | None = None

    def __str__(self) -> str:
        result = f"{self.type} {self.name}"
        if self.default is not None:
            result += f" {_format_value(self.type, self.default)}"
        return result


@dataclass(frozen=True)
class Constant:
    """A constant definition of a message."""

    name: str
    type: ConstantType
    value: list[str]

    def __str__(self) -> str:
        return f"{self.type} {self.name}={_format_value(self.type, self.value)}"


class InterfaceKind(str, Enum):
    """The three interface dialects and their section layout."""

    MSG = "msg"
    SRV = "srv"
    ACTION = "action"

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @property
    def section_suffixes(self) -> tuple[str, ...]:
        """Name suffixes of the messages a file of this kind is split into."""
        return _SECTION_SUFFIXES[self]

    @property
    def separator_count(self) -> int:
        return len(self.section_suffixes) - 1


_SECTION_SUFFIXES = {
    InterfaceKind.MSG: ("",),
    InterfaceKind.SRV: ("_Request", "_Response"),
    InterfaceKind.ACTION: ("_Goal", "_Result", "_Feedback"),
}


@dataclass
class Message:
    """A message definition: ordered members plus constants."""

    package: str
    name: str
    members: list[Member] = field(default_factory=list)
    constants: list[Constant] = field(default_factory=list)

    def __post_init__(self) -> None:
        all_names = [item.name for item in self.members] + [item.name for item in self.constants]
        if len(all_names) != len(set(all_names)):
            duplicates = {name for name in all_names if all_names.count(name) > 1}
            raise StructuralError(
                f"Duplicate member/constant names in {self.name}: {', '.join(sorted(duplicates))}"
            )

    def __str__(self) -> str:
        """Return the definition text, constants first then members."""
        lines = [str(item) for item in self.constants]
        lines.extend(str(item) for item in self.members)
        return "\n".join(lines)


@dataclass
class Service:
    """A service definition (request and response)."""

    package: str
    name: str
    request: Message
    response: Message

    def __str__(self) -> str:
        return "\n".join([str(self.request), "---", str(self.response)])


# Well-known types referenced by the derived action artifacts
GOAL_ID_TYPE = NamespacedType("unique_identifier_msgs", "msg", "UUID")
TIME_TYPE = NamespacedType("builtin_interfaces", "msg", "Time")


def _goal_id_member() -> Member:
    return Member(name="goal_id", type=GOAL_ID_TYPE)


@dataclass
class Action:
    """An action definition (goal, result, feedback) and its derived artifacts."""

    package: str
    name: str
    goal: Message
    result: Message
    feedback: Message

    def _own_type(self, suffix: str) -> NamespacedType:
        return NamespacedType(self.package, InterfaceKind.ACTION.value, f"{self.name}{suffix}")

    def send_goal_service(self) -> Service:
        """Return the ``{action}_SendGoal`` service used to submit a goal."""
        common = f"{self.name}_SendGoal"
        request = Message(
            package=self.package,
            name=f"{common}_Request",
            members=[_goal_id_member(), Member(name="goal", type=self._own_type("_Goal"))],
        )
        response = Message(
            package=self.package,
            name=f"{common}_Response",
            members=[
                Member(name="accepted", type=BasicType.BOOL),
                Member(name="stamp", type=TIME_TYPE),
            ],
        )
        return Service(package=self.package, name=common, request=request, response=response)

    def get_result_service(self) -> Service:
        """Return the ``{action}_GetResult`` service used to fetch a result."""
        common = f"{self.name}_GetResult"
        request = Message(
            package=self.package,
            name=f"{common}_Request",
            members=[_goal_id_member()],
        )
        response = Message(
            package=self.package,
            name=f"{common}_Response",
            members=[
                Member(name="status", type=BasicType.INT8),
                Member(name="result", type=self._own_type("_Result")),
            ],
        )
        return Service(package=self.package, name=common, request=request, response=response)

    def feedback_message(self) -> Message:
        """Return the ``{action}_FeedbackMessage`` published with each feedback."""
        return Message(
            package=self.package,
            name=f"{self.name}_FeedbackMessage",
            members=[_goal_id_member(), Member(name="feedback", type=self._own_type("_Feedback"))],
        )

    def __str__(self) -> str:
        return "\n".join([str(self.goal), "---", str(self.result), "---", str(self.feedback)])


@dataclass
class Package:
    """All interfaces of one package, each list ordered by name."""

    name: str
    messages: list[Message] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    # Schema files relative to the prefix share directory, e.g. "pkg/msg/Foo.msg"
    share_suffixes: list[PurePosixPath] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.messages.sort(key=lambda item: item.name)
        self.services.sort(key=lambda item: item.name)
        self.actions.sort(key=lambda item: item.name)

    @property
    def is_empty(self) -> bool:
        return not (self.messages or self.services or self.actions)

    def declaration_names(self) -> list[tuple[InterfaceKind, str]]:
        """Return every declaration as (kind, name), in output order."""
        names = [(InterfaceKind.MSG, msg.name) for msg in self.messages]
        names.extend((InterfaceKind.SRV, srv.name) for srv in self.services)
        names.extend((InterfaceKind.ACTION, action.name) for action in self.actions)
        return names
