"""Python source generation for parsed interface packages.

Every message becomes a ``@dataclass`` whose fields keep the definition order.
Services and actions become plain namespace classes binding their request/response
(or goal/result/feedback and derived) message classes.

The module tree mirrors ``package -> {msg,srv,action} -> type``:

- ``Layout.PACKAGE``: ``pkg/msg.py``, ``pkg/srv.py``, ``pkg/action.py``
- ``Layout.DECLARATION``: ``pkg/msg/_point.py`` per declaration plus a
  ``pkg/msg/__init__.py`` re-exporting the classes
- ``Layout.SINGLE``: one module holding every package as nested namespace classes
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

from ros_idl_gen.codegen.code_writer import CodeWriter
from ros_idl_gen.codegen.naming import camel_to_snake, python_identifier
from ros_idl_gen.exceptions import DuplicateError
from ros_idl_gen.models import (
    Action,
    Array,
    BasicType,
    BoundedSequence,
    Constant,
    GenericString,
    InterfaceKind,
    Member,
    MemberType,
    Message,
    NamedType,
    NamespacedType,
    NestableType,
    Package,
    PrimitiveType,
    Sequence,
    Service,
    element_type,
    is_primitive,
)

GENERATED_HEADER = "Generated by ros-idl-gen. Do not edit."
SINGLE_FILE_NAME = "interfaces.py"


class Layout(str, Enum):
    PACKAGE = "package"
    DECLARATION = "declaration"
    SINGLE = "single"


PYTHON_TYPES: dict[BasicType, str] = {
    BasicType.BOOL: "bool",
    BasicType.BYTE: "int",
    BasicType.CHAR: "int",
    BasicType.FLOAT32: "float",
    BasicType.FLOAT64: "float",
    BasicType.INT8: "int",
    BasicType.UINT8: "int",
    BasicType.INT16: "int",
    BasicType.UINT16: "int",
    BasicType.INT32: "int",
    BasicType.UINT32: "int",
    BasicType.INT64: "int",
    BasicType.UINT64: "int",
}

_ZERO_VALUES = {"bool": "False", "int": "0", "float": "0.0", "str": '""'}


@dataclass
class FieldDeclaration:
    name: str
    annotation: str
    idl_type: str
    default: str | None = None
    default_factory: str | None = None

    def render(self) -> str:
        if self.default_factory is not None:
            value = f"default_factory={self.default_factory}"
        else:
            value = f"default={self.default}"
        return f'{self.name}: {self.annotation} = _field({value}, metadata={{"idl_type": {self.idl_type!r}}})'


@dataclass
class ConstantDeclaration:
    name: str
    annotation: str
    value: str

    def render(self) -> str:
        return f"{self.name}: ClassVar[{self.annotation}] = {self.value}"


@dataclass
class MessageDeclaration:
    name: str
    type_name: str
    fields: list[FieldDeclaration] = field(default_factory=list)
    constants: list[ConstantDeclaration] = field(default_factory=list)


@dataclass
class InterfaceDeclaration:
    """Namespace class of a service or an action."""

    name: str
    type_name: str
    # (attribute, class name) pairs, e.g. ("Request", "AddTwoInts_Request")
    bindings: list[tuple[str, str]] = field(default_factory=list)


Declaration = MessageDeclaration | InterfaceDeclaration


@dataclass
class ModuleDeclaration:
    path: PurePosixPath
    kind: InterfaceKind | None
    declarations: list[Declaration] = field(default_factory=list)
    imports: set[str] = field(default_factory=set)
    # Re-exports of a namespace package: (relative module, names)
    exports: list[tuple[str, list[str]]] = field(default_factory=list)


@dataclass
class _Scope:
    """Reference resolution context of the module being generated."""

    package: str
    namespace: str
    local_names: set[str]
    qualified_only: bool = False
    imports: set[str] = field(default_factory=set)

    def reference(self, ref: NamedType | NamespacedType) -> str:
        # A bare name refers to a message of the current package
        if isinstance(ref, NamedType):
            ref = NamespacedType(self.package, InterfaceKind.MSG.value, ref.name)

        is_local = (ref.package, ref.namespace) == (self.package, self.namespace)
        if not self.qualified_only and is_local and ref.name in self.local_names:
            return ref.name

        module = f"{ref.package}.{ref.namespace}"
        if not self.qualified_only:
            self.imports.add(module)
        return f"{module}.{ref.name}"


def python_literal(value_type: PrimitiveType, value: str) -> str:
    """Render a canonical literal value as a Python expression."""
    if isinstance(value_type, GenericString):
        return repr(value)
    if value_type is BasicType.BOOL:
        return "True" if value == "true" else "False"
    if value_type.is_float:
        number = float(value)
        return repr(number) if math.isfinite(number) else f"_builtins.float({str(number)!r})"
    return value


def _tuple_literal(values: list[str]) -> str:
    if len(values) == 1:
        return f"({values[0]},)"
    return f"({', '.join(values)})"


class PackageGenerator:
    """Builds the module declarations of one package and renders them."""

    def __init__(self, package: Package, layout: Layout = Layout.PACKAGE, *, comments: bool = True) -> None:
        self.package = package
        self.layout = layout
        self.comments = comments

    # Type mapping

    def _scalar_annotation(self, value_type: NestableType, scope: _Scope) -> str:
        if isinstance(value_type, BasicType):
            return PYTHON_TYPES[value_type]
        if isinstance(value_type, GenericString):
            return "str"
        return scope.reference(value_type)

    def annotation(self, member_type: MemberType, scope: _Scope) -> str:
        """Map a member type to its Python annotation."""
        inner = self._scalar_annotation(element_type(member_type), scope)
        if isinstance(member_type, Array):
            return f"tuple[{inner}, ...]"
        if isinstance(member_type, (Sequence, BoundedSequence)):
            return f"list[{inner}]"
        return inner

    def _field(self, member: Member, scope: _Scope) -> FieldDeclaration:
        member_type = member.type
        inner = element_type(member_type)
        declaration = FieldDeclaration(
            name=python_identifier(member.name),
            annotation=self.annotation(member_type, scope),
            idl_type=str(member_type),
        )

        if not is_primitive(inner):
            constructor = scope.reference(inner)  # type: ignore[arg-type]
            if isinstance(member_type, Array):
                declaration.default_factory = (
                    f"lambda: tuple({constructor}() for _ in range({member_type.size}))"
                )
            elif isinstance(member_type, (Sequence, BoundedSequence)):
                declaration.default_factory = "_builtins.list"
            else:
                declaration.default_factory = f"lambda: {constructor}()"
            return declaration

        values = None
        if member.default is not None:
            values = [python_literal(inner, value) for value in member.default]  # type: ignore[arg-type]
        zero = _ZERO_VALUES[self._scalar_annotation(inner, scope)]

        if isinstance(member_type, Array):
            declaration.default = _tuple_literal(values) if values is not None else f"({zero},) * {member_type.size}"
        elif isinstance(member_type, (Sequence, BoundedSequence)):
            declaration.default_factory = f"lambda: [{', '.join(values)}]" if values else "_builtins.list"
        else:
            declaration.default = values[0] if values is not None else zero
        return declaration

    def _constant(self, constant: Constant, scope: _Scope) -> ConstantDeclaration:
        inner = element_type(constant.type)
        values = [python_literal(inner, value) for value in constant.value]  # type: ignore[arg-type]
        value = _tuple_literal(values) if isinstance(constant.type, Array) else values[0]
        return ConstantDeclaration(
            name=constant.name,
            annotation=self.annotation(constant.type, scope),
            value=value,
        )

    def message_declaration(self, message: Message, scope: _Scope) -> MessageDeclaration:
        return MessageDeclaration(
            name=message.name,
            type_name=f"{message.package}/{scope.namespace}/{message.name}",
            fields=[self._field(member, scope) for member in message.members],
            constants=[self._constant(constant, scope) for constant in message.constants],
        )

    def _service_declarations(self, service: Service, scope: _Scope) -> list[Declaration]:
        return [
            self.message_declaration(service.request, scope),
            self.message_declaration(service.response, scope),
            InterfaceDeclaration(
                name=service.name,
                type_name=f"{service.package}/{scope.namespace}/{service.name}",
                bindings=[("Request", service.request.name), ("Response", service.response.name)],
            ),
        ]

    def _action_declarations(self, action: Action, scope: _Scope) -> list[Declaration]:
        send_goal = action.send_goal_service()
        get_result = action.get_result_service()
        feedback_message = action.feedback_message()

        declarations: list[Declaration] = [
            self.message_declaration(action.goal, scope),
            self.message_declaration(action.result, scope),
            self.message_declaration(action.feedback, scope),
        ]
        declarations.extend(self._service_declarations(send_goal, scope))
        declarations.extend(self._service_declarations(get_result, scope))
        declarations.append(self.message_declaration(feedback_message, scope))
        declarations.append(
            InterfaceDeclaration(
                name=action.name,
                type_name=f"{action.package}/{scope.namespace}/{action.name}",
                bindings=[
                    ("Goal", action.goal.name),
                    ("Result", action.result.name),
                    ("Feedback", action.feedback.name),
                    ("SendGoal", send_goal.name),
                    ("GetResult", get_result.name),
                    ("FeedbackMessage", feedback_message.name),
                ],
            )
        )
        return declarations

    # Module tree

    def _interfaces(self, kind: InterfaceKind) -> list[Message | Service | Action]:
        if kind is InterfaceKind.MSG:
            return list(self.package.messages)
        if kind is InterfaceKind.SRV:
            return list(self.package.services)
        return list(self.package.actions)

    def _declarations(
        self, kind: InterfaceKind, interfaces: Iterable[Message | Service | Action], scope: _Scope
    ) -> list[Declaration]:
        declarations: list[Declaration] = []
        for interface in interfaces:
            if isinstance(interface, Action):
                declarations.extend(self._action_declarations(interface, scope))
            elif isinstance(interface, Service):
                declarations.extend(self._service_declarations(interface, scope))
            else:
                declarations.append(self.message_declaration(interface, scope))
        return declarations

    def _scope(self, kind: InterfaceKind, interfaces: list[Message | Service | Action]) -> _Scope:
        local_names: set[str] = set()
        for interface in interfaces:
            local_names.add(interface.name)
            if isinstance(interface, Service):
                local_names.update((interface.request.name, interface.response.name))
            elif isinstance(interface, Action):
                local_names.update((interface.goal.name, interface.result.name, interface.feedback.name))
                for service in (interface.send_goal_service(), interface.get_result_service()):
                    local_names.update((service.name, service.request.name, service.response.name))
                local_names.add(interface.feedback_message().name)
        return _Scope(
            package=self.package.name,
            namespace=kind.value,
            local_names=local_names,
            qualified_only=self.layout is Layout.SINGLE,
        )

    def _namespace_module(self, kind: InterfaceKind, path: PurePosixPath, interfaces: list) -> ModuleDeclaration:
        scope = self._scope(kind, interfaces)
        declarations = self._declarations(kind, interfaces, scope)
        return ModuleDeclaration(path=path, kind=kind, declarations=declarations, imports=scope.imports)

    def modules(self) -> list[ModuleDeclaration]:
        """Return the module declarations of the package, ``__init__`` first."""
        root = PurePosixPath(self.package.name)
        modules = [ModuleDeclaration(path=root / "__init__.py", kind=None)]

        for kind in InterfaceKind:
            interfaces = self._interfaces(kind)
            if not interfaces:
                continue

            if self.layout is Layout.DECLARATION:
                init = ModuleDeclaration(path=root / kind.value / "__init__.py", kind=kind)
                stems: set[str] = set()
                for interface in interfaces:
                    stem = f"_{camel_to_snake(interface.name)}"
                    if stem in stems:
                        # e.g. HTTPServer and HttpServer
                        raise DuplicateError("declaration module", str(root / kind.value / f"{stem}.py"))
                    stems.add(stem)
                    module = self._namespace_module(kind, root / kind.value / f"{stem}.py", [interface])
                    init.exports.append((stem, [declaration.name for declaration in module.declarations]))
                    modules.append(module)
                modules.append(init)
            else:
                modules.append(self._namespace_module(kind, root / f"{kind.value}.py", interfaces))
        return modules

    # Rendering

    def render_declaration(self, code: CodeWriter, declaration: Declaration) -> None:
        if isinstance(declaration, MessageDeclaration):
            code.append("@dataclass")
            with code.indent(f"class {declaration.name}:"):
                code.docstring(f"Message {declaration.type_name}.")
                code.append(f"_type: ClassVar[str] = {declaration.type_name!r}")
                for constant in declaration.constants:
                    code.append(constant.render())
                if declaration.fields:
                    code.blank()
                for member in declaration.fields:
                    code.append(member.render())
            return

        with code.indent(f"class {declaration.name}:"):
            code.docstring(f"Interface {declaration.type_name}.")
            code.append(f"_type: ClassVar[str] = {declaration.type_name!r}")
            if self.layout is not Layout.SINGLE:
                for attribute, target in declaration.bindings:
                    code.append(f"{attribute} = {target}")

        if self.layout is Layout.SINGLE:
            # A nested class body cannot see its siblings, bind from the enclosing body
            for attribute, target in declaration.bindings:
                code.append(f"{declaration.name}.{attribute} = {target}")

    def _render_header(self, code: CodeWriter, module: ModuleDeclaration) -> None:
        code.append(f'"""{GENERATED_HEADER}"""')
        if not module.declarations:
            return
        code.blank()
        code.append("from __future__ import annotations")
        code.blank()
        code.append("import builtins as _builtins")
        code.append("from dataclasses import dataclass")
        code.append("from dataclasses import field as _field")
        code.append("from typing import ClassVar")
        if module.imports:
            code.blank()
            code.extend([f"import {name}" for name in sorted(module.imports)])

    def render_module(self, module: ModuleDeclaration) -> str:
        code = CodeWriter(comments=self.comments)
        self._render_header(code, module)

        if module.exports:
            code.blank()
            names: list[str] = []
            for stem, exported in module.exports:
                code.append(f"from .{stem} import {', '.join(exported)}")
                names.extend(exported)
            code.blank()
            code.append(f"__all__ = {sorted(names)!r}")

        for declaration in module.declarations:
            code.blank(2)
            self.render_declaration(code, declaration)
        return code.get_code()

    def generate(self) -> dict[PurePosixPath, str]:
        """Render every module of the package, keyed by relative path."""
        return {module.path: self.render_module(module) for module in self.modules()}


def generate_package(
    package: Package, layout: Layout = Layout.PACKAGE, *, comments: bool = True
) -> dict[PurePosixPath, str]:
    """Generate the Python module tree of one package."""
    if layout is Layout.SINGLE:
        return generate_single_file([package], comments=comments)
    return PackageGenerator(package, layout, comments=comments).generate()


def generate_single_file(
    packages: list[Package], *, comments: bool = True, file_name: str = SINGLE_FILE_NAME
) -> dict[PurePosixPath, str]:
    """Generate one module holding every package as nested namespace classes.

    References are always qualified (``pkg.msg.Name``) so they resolve against
    the top-level package classes of the same module.
    """
    code = CodeWriter(comments=comments)
    code.append(f'"""{GENERATED_HEADER}"""')
    code.blank()
    code.append("from __future__ import annotations")
    code.blank()
    code.append("import builtins as _builtins")
    code.append("from dataclasses import dataclass")
    code.append("from dataclasses import field as _field")
    code.append("from typing import ClassVar")

    for package in packages:
        generator = PackageGenerator(package, Layout.SINGLE, comments=comments)
        code.blank(2)
        with code.indent(f"class {package.name}:"):
            code.docstring(f"Package {package.name}.")
            if package.is_empty:
                code.append("pass")
            for kind in InterfaceKind:
                interfaces = generator._interfaces(kind)
                if not interfaces:
                    continue
                scope = generator._scope(kind, interfaces)
                code.blank()
                with code.indent(f"class {kind.value}:"):
                    for index, declaration in enumerate(generator._declarations(kind, interfaces, scope)):
                        if index:
                            code.blank()
                        generator.render_declaration(code, declaration)
    return {PurePosixPath(file_name): code.get_code()}


def generate(
    packages: list[Package], layout: Layout = Layout.PACKAGE, *, comments: bool = True
) -> dict[PurePosixPath, str]:
    """Generate the module tree of several packages."""
    if layout is Layout.SINGLE:
        return generate_single_file(packages, comments=comments)

    outputs: dict[PurePosixPath, str] = {}
    for package in packages:
        outputs.update(generate_package(package, layout, comments=comments))
    return outputs
