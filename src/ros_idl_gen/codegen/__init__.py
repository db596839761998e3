"""Python code generation for interface packages."""

from .generator import Layout, PackageGenerator, generate, generate_package, generate_single_file
from .naming import camel_to_snake, python_identifier

__all__ = [
    "Layout",
    "PackageGenerator",
    "camel_to_snake",
    "generate",
    "generate_package",
    "generate_single_file",
    "python_identifier",
]
