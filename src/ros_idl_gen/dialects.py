"""Message, service and action file parsing."""

from pathlib import Path

from ros_idl_gen.exceptions import IdlError, StructuralError
from ros_idl_gen.grammar import parse_declaration, strip_comment
from ros_idl_gen.models import Action, Constant, InterfaceKind, Member, Message, Service

SECTION_SEPARATOR = "---"


def fix_newlines(text: str) -> str:
    """Normalize line endings to ``\\n`` and make sure the text ends with one."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if not text.endswith("\n"):
        text += "\n"
    return text


def _parse_lines(lines: list[tuple[int, str]], package: str, name: str) -> Message:
    members: list[Member] = []
    constants: list[Constant] = []

    for line_number, line in lines:
        if not strip_comment(line).strip():
            continue
        try:
            item = parse_declaration(line)
        except IdlError as e:
            if e.line is None:
                e.line = line_number
            raise
        if isinstance(item, Constant):
            constants.append(item)
        else:
            members.append(item)

    return Message(package=package, name=name, members=members, constants=constants)


def split_sections(kind: InterfaceKind, text: str) -> list[list[tuple[int, str]]]:
    """Split definition text into the sections of ``kind``.

    Returns one list of (line number, line) per section. Raises
    :class:`StructuralError` unless the text has exactly the number of ``---``
    separator lines the dialect requires.
    """
    sections: list[list[tuple[int, str]]] = [[]]
    for line_number, line in enumerate(fix_newlines(text).splitlines(), start=1):
        if line.strip() == SECTION_SEPARATOR:
            sections.append([])
        else:
            sections[-1].append((line_number, line))

    found = len(sections) - 1
    if found != kind.separator_count:
        raise StructuralError(
            f"{kind.value} definition must have exactly {kind.separator_count} "
            f"'{SECTION_SEPARATOR}' separator(s), found {found}"
        )
    return sections


def _parse_sections(kind: InterfaceKind, package: str, name: str, text: str) -> list[Message]:
    sections = split_sections(kind, text)
    return [
        _parse_lines(section, package, f"{name}{suffix}")
        for section, suffix in zip(sections, kind.section_suffixes, strict=True)
    ]


def parse_message_string(package: str, name: str, text: str) -> Message:
    """Parse a message definition from a string.

    Args:
        package: Package the message belongs to (e.g. "geometry_msgs")
        name: Message name (e.g. "Point")
        text: The message definition

    Returns:
        Parsed Message, members and constants in source order
    """
    (message,) = _parse_sections(InterfaceKind.MSG, package, name, text)
    return message


def parse_service_string(package: str, name: str, text: str) -> Service:
    """Parse a service definition: request, ``---``, response."""
    request, response = _parse_sections(InterfaceKind.SRV, package, name, text)
    return Service(package=package, name=name, request=request, response=response)


def parse_action_string(package: str, name: str, text: str) -> Action:
    """Parse an action definition: goal, ``---``, result, ``---``, feedback."""
    goal, result, feedback = _parse_sections(InterfaceKind.ACTION, package, name, text)
    return Action(package=package, name=name, goal=goal, result=result, feedback=feedback)


_STRING_PARSERS = {
    InterfaceKind.MSG: parse_message_string,
    InterfaceKind.SRV: parse_service_string,
    InterfaceKind.ACTION: parse_action_string,
}


def interface_kind(path: Path) -> InterfaceKind:
    """Return the dialect of a file from its suffix."""
    for kind in InterfaceKind:
        if path.suffix == kind.suffix:
            return kind
    raise StructuralError(f"unknown interface file type '{path.suffix}'", path=path)


def _read_definition(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise IdlError(f"file is not valid UTF-8: {e.reason} at byte {e.start}", path=path) from e


def _parse_file(kind: InterfaceKind, package: str, path: Path) -> Message | Service | Action:
    try:
        return _STRING_PARSERS[kind](package, path.stem, _read_definition(path))
    except IdlError as e:
        e.path = path
        raise


def parse_interface_file(package: str, file_path: str | Path) -> Message | Service | Action:
    """Parse a ``.msg``, ``.srv`` or ``.action`` file.

    The declaration name is the file stem. Any error raised carries the file path.
    """
    path = Path(file_path)
    return _parse_file(interface_kind(path), package, path)


def parse_message_file(package: str, file_path: str | Path) -> Message:
    return _parse_file(InterfaceKind.MSG, package, Path(file_path))  # type: ignore[return-value]


def parse_service_file(package: str, file_path: str | Path) -> Service:
    return _parse_file(InterfaceKind.SRV, package, Path(file_path))  # type: ignore[return-value]


def parse_action_file(package: str, file_path: str | Path) -> Action:
    return _parse_file(InterfaceKind.ACTION, package, Path(file_path))  # type: ignore[return-value]
