"""Tests for Python source generation."""

import dataclasses
import importlib
from pathlib import PurePosixPath

import pytest

from ros_idl_gen import (
    BasicType,
    DuplicateError,
    GenericString,
    Layout,
    Package,
    generate,
    generate_package,
    parse_message_string,
)
from ros_idl_gen.codegen import generate_single_file
from ros_idl_gen.codegen.generator import GENERATED_HEADER, PackageGenerator, python_literal


def write_sources(directory, sources):
    for relative_path, text in sources.items():
        path = directory / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


class TestPackageLayout:
    """Test the source text of one module per namespace."""

    def test_module_paths(self, msgs_package):
        """Test one module per non-empty namespace plus the package init."""
        sources = generate_package(msgs_package)
        assert list(sources) == [
            PurePosixPath("test_msgs/__init__.py"),
            PurePosixPath("test_msgs/msg.py"),
            PurePosixPath("test_msgs/srv.py"),
            PurePosixPath("test_msgs/action.py"),
        ]
        assert sources[PurePosixPath("test_msgs/__init__.py")] == f'"""{GENERATED_HEADER}"""\n'

    def test_empty_namespaces_are_skipped(self, dependency_packages):
        """Test that a package of messages only has no srv or action module."""
        sources = generate_package(dependency_packages[0])
        assert sorted(str(path) for path in sources) == [
            "unique_identifier_msgs/__init__.py",
            "unique_identifier_msgs/msg.py",
        ]

    def test_message_fields(self, msgs_package):
        """Test field declarations and their order."""
        source = generate_package(msgs_package)[PurePosixPath("test_msgs/msg.py")]

        assert "@dataclass\nclass Point:" in source
        assert "_type: ClassVar[str] = 'test_msgs/msg/Point'" in source
        assert 'x: float = _field(default=0.0, metadata={"idl_type": \'float64\'})' in source
        assert source.index("    x: float") < source.index("    y: float") < source.index("    z: float")

    def test_nested_message_fields(self, msgs_package):
        """Test that sequences of messages default to an empty list."""
        source = generate_package(msgs_package)[PurePosixPath("test_msgs/msg.py")]

        assert "points: list[Point] = _field(default_factory=_builtins.list" in source
        assert "label: str = _field(default='polygon'" in source

    def test_constants_and_keywords(self, msgs_package):
        """Test class level constants and renamed keyword fields."""
        source = generate_package(msgs_package)[PurePosixPath("test_msgs/msg.py")]

        assert "AAA: ClassVar[int] = 30" in source
        assert "PAIR: ClassVar[tuple[int, ...]] = (1, 2)" in source
        assert "FLAG: ClassVar[bool] = True" in source
        assert "from_: int = _field(default=0" in source

    def test_service_bindings(self, msgs_package):
        """Test that a service binds its request and response classes."""
        source = generate_package(msgs_package)[PurePosixPath("test_msgs/srv.py")]

        assert "class AddTwoInts_Request:" in source
        assert "class AddTwoInts_Response:" in source
        assert "class AddTwoInts:\n" in source
        assert "    Request = AddTwoInts_Request\n" in source
        assert "    Response = AddTwoInts_Response\n" in source

    def test_action_imports(self, msgs_package):
        """Test that derived action types import the packages they reference."""
        source = generate_package(msgs_package)[PurePosixPath("test_msgs/action.py")]

        assert "import builtin_interfaces.msg\nimport unique_identifier_msgs.msg\n" in source
        assert "goal_id: unique_identifier_msgs.msg.UUID" in source
        assert "goal: Fibonacci_Goal = _field(default_factory=lambda: Fibonacci_Goal()" in source
        assert "    SendGoal = Fibonacci_SendGoal\n" in source
        assert "    FeedbackMessage = Fibonacci_FeedbackMessage\n" in source

    def test_without_comments(self, msgs_package):
        """Test that docstrings can be switched off."""
        source = generate_package(msgs_package, comments=False)[PurePosixPath("test_msgs/msg.py")]

        assert "Message test_msgs/msg/Point." not in source
        assert source.startswith(f'"""{GENERATED_HEADER}"""')

    def test_generation_is_deterministic(self, msgs_package):
        """Test that the same package always renders the same text."""
        assert generate_package(msgs_package) == generate_package(msgs_package)


def test_declaration_layout_paths(msgs_package):
    """Test one module per declaration with a re-exporting namespace init."""
    sources = generate_package(msgs_package, Layout.DECLARATION)

    assert PurePosixPath("test_msgs/msg/_point.py") in sources
    assert PurePosixPath("test_msgs/msg/_polygon.py") in sources
    assert PurePosixPath("test_msgs/srv/_add_two_ints.py") in sources
    assert PurePosixPath("test_msgs/action/_fibonacci.py") in sources

    init = sources[PurePosixPath("test_msgs/msg/__init__.py")]
    assert "from ._point import Point\n" in init
    assert "__all__ = ['Constants', 'Point', 'Polygon']" in init


def test_declaration_layout_cross_module_reference(msgs_package):
    """Test that a message defined in a sibling module is referenced by its package path."""
    source = generate_package(msgs_package, Layout.DECLARATION)[PurePosixPath("test_msgs/msg/_polygon.py")]

    assert "import test_msgs.msg\n" in source
    assert "points: list[test_msgs.msg.Point]" in source


def test_single_file(msgs_package, dependency_packages):
    """Test that the single layout nests every package in one module."""
    sources = generate([msgs_package, *dependency_packages], Layout.SINGLE)

    assert list(sources) == [PurePosixPath("interfaces.py")]
    source = sources[PurePosixPath("interfaces.py")]
    assert "class test_msgs:\n" in source
    assert "    class msg:\n" in source
    assert "points: list[test_msgs.msg.Point]" in source
    assert "        Fibonacci.Goal = Fibonacci_Goal\n" in source
    assert "\nimport test_msgs" not in source
    assert "\nimport unique_identifier_msgs" not in source


def test_single_file_empty_package():
    """Test that a package without interfaces still renders a valid class body."""
    source = generate_single_file([Package(name="empty")], comments=False)[PurePosixPath("interfaces.py")]
    assert "class empty:\n    pass\n" in source


def test_single_layout_delegates(msgs_package):
    """Test that generate_package with the single layout writes one module."""
    assert list(generate_package(msgs_package, Layout.SINGLE)) == [PurePosixPath("interfaces.py")]


def test_declaration_module_collision():
    """Test that two names with the same snake case module stem are rejected."""
    package = Package(
        name="web_msgs",
        messages=[
            parse_message_string("web_msgs", "HTTPServer", "int32 port\n"),
            parse_message_string("web_msgs", "HttpServer", "int32 port\n"),
        ],
    )

    with pytest.raises(DuplicateError, match="multiple 'web_msgs/msg/_http_server.py' declaration modules found"):
        generate_package(package, Layout.DECLARATION)
    assert PurePosixPath("web_msgs/msg.py") in generate_package(package)


@pytest.mark.parametrize(
    ("value_type", "value", "expected"),
    [
        (BasicType.INT32, "7", "7"),
        (BasicType.BOOL, "true", "True"),
        (BasicType.BOOL, "false", "False"),
        (BasicType.FLOAT64, "1.5", "1.5"),
        (BasicType.FLOAT32, "1", "1.0"),
        (BasicType.FLOAT64, "inf", "_builtins.float('inf')"),
        (BasicType.FLOAT64, "-inf", "_builtins.float('-inf')"),
        (GenericString(), "it's", '"it\'s"'),
    ],
)
def test_python_literal(value_type, value, expected):
    """Test rendering of canonical values as Python expressions."""
    assert python_literal(value_type, value) == expected


def test_annotation_of_arrays(msgs_package):
    """Test fixed arrays map to tuples and sequences to lists."""
    source = generate_package(msgs_package)[PurePosixPath("test_msgs/msg.py")]

    assert "arr: tuple[int, ...] = _field(default=(1, 2, 3)" in source
    assert "seq: list[int] = _field(default_factory=lambda: [4, 5]" in source
    assert "flags: tuple[bool, ...] = _field(default=(False,) * 2" in source


def test_package_generator_modules(msgs_package):
    """Test that the package init comes first and carries no declarations."""
    modules = PackageGenerator(msgs_package).modules()

    assert modules[0].path == PurePosixPath("test_msgs/__init__.py")
    assert modules[0].declarations == []
    assert [module.kind.value for module in modules[1:]] == ["msg", "srv", "action"]


@pytest.mark.parametrize("layout", [Layout.PACKAGE, Layout.DECLARATION])
class TestImportGenerated:
    """Test that the generated modules import and behave like dataclasses."""

    @pytest.fixture
    def modules(self, layout, import_dir, msgs_package, dependency_packages):
        write_sources(import_dir, generate([msgs_package, *dependency_packages], layout))
        return {
            "msg": importlib.import_module("test_msgs.msg"),
            "srv": importlib.import_module("test_msgs.srv"),
            "action": importlib.import_module("test_msgs.action"),
        }

    def test_message_defaults(self, modules):
        """Test zero values and the type name."""
        point = modules["msg"].Point()

        assert (point.x, point.y, point.z) == (0.0, 0.0, 0.0)
        assert point._type == "test_msgs/msg/Point"
        assert [f.name for f in dataclasses.fields(point)] == ["x", "y", "z"]
        assert dataclasses.fields(point)[0].metadata["idl_type"] == "float64"

    def test_nested_messages(self, modules):
        """Test that message sequences are empty lists of the referenced class."""
        msg = modules["msg"]
        polygon = msg.Polygon(points=[msg.Point(x=1.0)])

        assert polygon.label == "polygon"
        assert polygon.points[0].x == 1.0
        assert msg.Polygon().points == []

    def test_constants(self, modules):
        """Test constants are class attributes and not fields."""
        constants = modules["msg"].Constants

        assert constants.AAA == 30
        assert constants.NAME == "hi"
        assert constants.PAIR == (1, 2)
        assert constants.FLAG is True
        assert constants.RATIO == 1.5
        assert [f.name for f in dataclasses.fields(constants)] == ["value", "arr", "seq", "flags", "label", "from_"]

    def test_member_defaults(self, modules):
        """Test default values of primitive members."""
        first = modules["msg"].Constants()

        assert first.value == 7
        assert first.arr == (1, 2, 3)
        assert first.seq == [4, 5]
        assert first.flags == (False, False)
        assert first.label == "x"
        assert first.from_ == 0

        first.seq.append(6)
        assert modules["msg"].Constants().seq == [4, 5]

    def test_service(self, modules):
        """Test the service namespace class."""
        service = modules["srv"].AddTwoInts

        assert service._type == "test_msgs/srv/AddTwoInts"
        assert service.Request(a=1, b=2).b == 2
        assert service.Response().sum == 0

    def test_action(self, modules):
        """Test the action namespace class and its derived types."""
        action = modules["action"]
        fibonacci = action.Fibonacci

        request = fibonacci.SendGoal.Request()
        assert isinstance(request.goal, action.Fibonacci_Goal)
        assert request.goal_id.uuid == (0,) * 16
        assert fibonacci.SendGoal.Response().stamp.nanosec == 0
        assert fibonacci.GetResult.Response().status == 0
        assert fibonacci.FeedbackMessage().feedback.sequence == []
        assert fibonacci.Goal is action.Fibonacci_Goal


def test_import_single_file(import_dir, msgs_package, dependency_packages):
    """Test that the single module imports and resolves qualified references."""
    write_sources(import_dir, generate([msgs_package, *dependency_packages], Layout.SINGLE))
    interfaces = importlib.import_module("interfaces")

    polygon = interfaces.test_msgs.msg.Polygon(points=[interfaces.test_msgs.msg.Point(y=2.0)])
    assert polygon.points[0].y == 2.0
    assert interfaces.test_msgs.msg.Constants().seq == [4, 5]

    fibonacci = interfaces.test_msgs.action.Fibonacci
    request = fibonacci.SendGoal.Request()
    assert isinstance(request.goal, fibonacci.Goal)
    assert request.goal_id.uuid == (0,) * 16
    assert fibonacci.SendGoal.Response().stamp.sec == 0


@pytest.mark.parametrize("layout", list(Layout))
def test_members_named_like_builtins(import_dir, layout):
    """Test that members named after builtins do not break later defaults."""
    text = "int32[] list\nint32[] other\nfloat64 float\nfloat64 big 1e400\nfloat64 small -1e400\n"
    package = Package(name="shadow_msgs", messages=[parse_message_string("shadow_msgs", "Foo", text)])
    write_sources(import_dir, generate([package], layout))

    if layout is Layout.SINGLE:
        foo = importlib.import_module("interfaces").shadow_msgs.msg.Foo()
    else:
        foo = importlib.import_module("shadow_msgs.msg").Foo()

    assert foo.list == []
    assert foo.other == []
    assert foo.float == 0.0
    assert foo.big == float("inf")
    assert foo.small == float("-inf")
