import textwrap
from collections.abc import Generator
from contextlib import contextmanager


class CodeWriter:
    """Line buffer for generated modules with indentation tracking."""

    def __init__(self, *, comments: bool) -> None:
        self._lines: list[str] = []
        self._level = 0
        self._indentation = "    "
        self._comments = comments

    def append(self, lines: str | None) -> None:
        if lines is None:
            return

        for line in lines.splitlines():
            if line.strip():
                self._lines.append(textwrap.indent(line, self._indentation * self._level))

    def extend(self, lines: list[str]) -> None:
        for line in lines:
            self.append(line)

    def blank(self, count: int = 1) -> None:
        """Adds empty lines, never more than ``count`` in a row."""
        if not self._lines:
            return
        trailing = 0
        for line in reversed(self._lines):
            if line:
                break
            trailing += 1
        self._lines.extend([""] * max(count - trailing, 0))

    def docstring(self, text: str | None) -> None:
        """Adds a one-line docstring unless comments are disabled."""
        if self._comments is False or text is None:
            return
        self._lines.append(f'{self._indentation * self._level}"""{text}"""')

    @contextmanager
    def indent(self, lines: str | None) -> Generator["CodeWriter", None, None]:
        if lines is not None:
            self.append(lines)
        self._level += 1
        try:
            yield self
        finally:
            self._level -= 1

    def get_code(self) -> str:
        """Return the code with a single trailing newline."""
        return "\n".join(self._lines).rstrip("\n") + "\n"
