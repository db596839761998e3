from pathlib import Path


class IdlError(Exception):
    """Base class of every error raised while compiling interface definitions.

    ``text`` is the raw offending input, ``path`` and ``line`` locate it. The file
    level parsers fill in ``path``/``line`` while the error propagates.
    """

    def __init__(
        self,
        reason: str,
        *,
        text: str | None = None,
        path: Path | str | None = None,
        line: int | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.text = text
        self.path = Path(path) if path is not None else None
        self.line = line

    def __str__(self) -> str:
        location = ""
        if self.path is not None:
            location = f"{self.path}"
            if self.line is not None:
                location += f":{self.line}"
            location += ": "
        elif self.line is not None:
            location = f"line {self.line}: "
        message = f"{location}{self.reason}"
        if self.text is not None:
            message += f" (in {self.text!r})"
        return message


class GrammarError(IdlError):
    """A declaration line does not match the type/member/constant grammar."""


class InvalidValueError(IdlError, ValueError):
    """A default or constant value does not parse for, or does not fit, its type."""

    def __init__(self, value: str, value_type: object, detail: str | None = None) -> None:
        reason = f"cannot parse value {value!r} for type '{value_type}'"
        if detail:
            reason += f": {detail}"
        super().__init__(reason, text=value)
        self.value_type = value_type


class StructuralError(IdlError, ValueError):
    """The layout of a definition is invalid (separators, defaults, duplicate names)."""


class DuplicateError(IdlError):
    def __init__(self, kind: str, name: str, *, sources: list[str] | None = None) -> None:
        reason = f"multiple '{name}' {kind}s found"
        if sources:
            reason += f" ({', '.join(sources)})"
        super().__init__(reason)
        self.name = name


class CompileError(IdlError):
    """Several files failed to parse; ``errors`` holds every failure."""

    def __init__(self, errors: list[IdlError]) -> None:
        lines = [f"{len(errors)} interface file(s) failed to parse:"]
        lines.extend(f"  {error}" for error in errors)
        super().__init__("\n".join(lines))
        self.errors = errors
