"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from ros_idl_gen import Package, parse_action_string, parse_message_string, parse_service_string
from tests.fixtures.interfaces import (
    ADD_TWO_INTS_SRV,
    CONSTANTS_MSG,
    DEPENDENCY_FILES,
    FIBONACCI_ACTION,
    POINT_MSG,
    POLYGON_MSG,
    TEST_MSGS_FILES,
    TIME_MSG,
    UUID_MSG,
    write_package,
)

PrefixFactory = Callable[..., Path]


@pytest.fixture
def make_prefix(tmp_path) -> PrefixFactory:
    """Return a factory creating install prefixes below ``tmp_path``."""

    def factory(name: str = "install", packages: dict[str, dict[str, str]] | None = None) -> Path:
        prefix = tmp_path / name
        prefix.mkdir(parents=True, exist_ok=True)
        for package, files in (packages or {}).items():
            write_package(prefix, package, files)
        return prefix

    return factory


@pytest.fixture
def install_prefix(make_prefix) -> Path:
    """Install prefix holding test_msgs and the packages its action depends on."""
    return make_prefix(packages={"test_msgs": TEST_MSGS_FILES, **DEPENDENCY_FILES})


@pytest.fixture
def msgs_package() -> Package:
    """The test_msgs package parsed from strings."""
    return Package(
        name="test_msgs",
        messages=[
            parse_message_string("test_msgs", "Polygon", POLYGON_MSG),
            parse_message_string("test_msgs", "Point", POINT_MSG),
            parse_message_string("test_msgs", "Constants", CONSTANTS_MSG),
        ],
        services=[parse_service_string("test_msgs", "AddTwoInts", ADD_TWO_INTS_SRV)],
        actions=[parse_action_string("test_msgs", "Fibonacci", FIBONACCI_ACTION)],
    )


@pytest.fixture
def dependency_packages() -> list[Package]:
    """Packages referenced by the derived action types."""
    return [
        Package(
            name="unique_identifier_msgs",
            messages=[parse_message_string("unique_identifier_msgs", "UUID", UUID_MSG)],
        ),
        Package(
            name="builtin_interfaces",
            messages=[parse_message_string("builtin_interfaces", "Time", TIME_MSG)],
        ),
    ]


@pytest.fixture
def import_dir(tmp_path, monkeypatch) -> Path:
    """Directory on ``sys.path`` for importing generated modules.

    Generated modules are dropped from ``sys.modules`` afterwards so every test
    imports its own output.
    """
    directory = tmp_path / "generated"
    directory.mkdir()
    monkeypatch.syspath_prepend(str(directory))
    yield directory
    for name, module in list(sys.modules.items()):
        if str(getattr(module, "__file__", None) or "").startswith(str(directory)):
            del sys.modules[name]
