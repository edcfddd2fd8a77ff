"""
Structured editing of dotenv files.

A parsed file keeps every line in order so that rendering an untouched
file reproduces it exactly. Overrides are applied per key:

1. an active ``KEY=value`` line is rewritten in place,
2. otherwise a commented placeholder (``# KEY=value``) is activated in place,
3. otherwise the key is appended, optionally under a ``# Section`` header.
"""
import re
from dataclasses import dataclass
from typing import Mapping, Optional

_ASSIGNMENT = re.compile(
    r"^(?P<indent>\s*)(?P<comment>#\s*)?(?P<export>export\s+)?"
    r"(?P<key>[A-Za-z_][A-Za-z0-9_.]*)\s*=\s*(?P<value>.*)$"
)
_NEEDS_QUOTES = re.compile(r"[\s#\"'$`\\]")


@dataclass
class EnvLine:
    """One line of a dotenv file."""
    raw: str
    key: Optional[str] = None
    value: Optional[str] = None
    commented: bool = False

    @property
    def is_assignment(self) -> bool:
        return self.key is not None and not self.commented

    @property
    def is_placeholder(self) -> bool:
        return self.key is not None and self.commented


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        inner = value[1:-1]
        if value[0] == '"':
            inner = inner.replace('\\"', '"').replace("\\\\", "\\")
        return inner
    # Unquoted values may carry a trailing inline comment
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def quote_value(value: str) -> str:
    """Quote a value for output when it contains shell-significant characters."""
    if value == "" or not _NEEDS_QUOTES.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_line(raw: str) -> EnvLine:
    match = _ASSIGNMENT.match(raw)
    if not match:
        return EnvLine(raw=raw)
    return EnvLine(
        raw=raw,
        key=match.group("key"),
        value=_unquote(match.group("value")),
        commented=match.group("comment") is not None,
    )


class EnvFile:
    """An ordered, editable view of a dotenv file."""

    def __init__(self, lines: Optional[list[EnvLine]] = None, trailing_newline: bool = True):
        self.lines: list[EnvLine] = lines or []
        self.trailing_newline = trailing_newline

    @classmethod
    def parse(cls, text: str) -> "EnvFile":
        if text == "":
            return cls([], trailing_newline=True)
        trailing = text.endswith("\n")
        body = text[:-1] if trailing else text
        return cls([parse_line(raw) for raw in body.split("\n")], trailing_newline=trailing)

    def keys(self) -> list[str]:
        return [line.key for line in self.lines if line.is_assignment]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        # Later assignments win, as with dotenv loaders
        value = default
        for line in self.lines:
            if line.is_assignment and line.key == key:
                value = line.value
        return value

    def __contains__(self, key: str) -> bool:
        return any(line.is_assignment and line.key == key for line in self.lines)

    def as_dict(self) -> dict[str, str]:
        return {line.key: line.value for line in self.lines if line.is_assignment}

    def set(self, key: str, value: str, section: Optional[str] = None) -> None:
        """Set ``key`` to ``value``, keeping its position when it already exists."""
        rendered = f"{key}={quote_value(value)}"

        for line in self.lines:
            if line.is_assignment and line.key == key:
                if line.value != value:
                    line.raw = rendered
                    line.value = value
                return

        for line in self.lines:
            if line.is_placeholder and line.key == key:
                line.raw = rendered
                line.value = value
                line.commented = False
                return

        self._append(EnvLine(raw=rendered, key=key, value=value), section)

    def update(self, values: Mapping[str, str], section: Optional[str] = None) -> None:
        for key, value in values.items():
            self.set(key, value, section=section)

    def _append(self, line: EnvLine, section: Optional[str]) -> None:
        if section:
            header = f"# {section}"
            index = self._section_end(header)
            if index is None:
                if self.lines and self.lines[-1].raw.strip():
                    self.lines.append(EnvLine(raw=""))
                self.lines.append(EnvLine(raw=header))
                self.lines.append(line)
            else:
                self.lines.insert(index, line)
            return
        self.lines.append(line)

    def _section_end(self, header: str) -> Optional[int]:
        """Index right after the last line of the block opened by ``header``."""
        start = None
        for i, line in enumerate(self.lines):
            if line.raw.strip() == header:
                start = i
                break
        if start is None:
            return None
        end = start + 1
        while end < len(self.lines) and self.lines[end].raw.strip():
            end += 1
        return end

    def render(self) -> str:
        text = "\n".join(line.raw for line in self.lines)
        if self.trailing_newline and self.lines:
            text += "\n"
        return text


def merge_env_text(text: str, values: Mapping[str, str], section: Optional[str] = None) -> str:
    """Apply ``values`` to dotenv ``text`` and return the rendered result."""
    env = EnvFile.parse(text)
    env.update(values, section=section)
    return env.render()

