"""Parser for the line-oriented `config.txt` format.

    -- comment
    key = value
    some_flag
    list_name
    [
    entry one
    entry two
    ]

Every blob merges into the same maps; a key (assignment or list name) may only
be defined once across all blobs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rom_builder.framework.errors import (
    DuplicateKeyError,
    MalformedAssignmentError,
    MalformedListError,
)

COMMENT_PREFIX = "--"
LIST_OPEN = "["
LIST_CLOSE = "]"


@dataclass
class ParsedConfig:
    values: dict[str, str] = field(default_factory=dict)
    lists: dict[str, list[str]] = field(default_factory=dict)
    flags: set[str] = field(default_factory=set)
    sources: list[str] = field(default_factory=list)

    def _check_new_key(self, key: str, *, source: str, line: int) -> None:
        if key in self.values or key in self.lists:
            raise DuplicateKeyError(key, source=source, line=line)

    def add_value(self, key: str, value: str, *, source: str, line: int) -> None:
        self._check_new_key(key, source=source, line=line)
        self.values[key] = value

    def add_list(self, name: str, items: list[str], *, source: str, line: int) -> None:
        self._check_new_key(name, source=source, line=line)
        self.lists[name] = items


def parse_blob(text: str, *, source: str = "<config>", into: ParsedConfig | None = None) -> ParsedConfig:
    """Parse one blob into `into` (or a fresh ParsedConfig) and return it."""

    parsed = into if into is not None else ParsedConfig()
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        lineno = i + 1
        peek = lines[i + 1] if i + 1 < len(lines) else None

        if line.startswith(COMMENT_PREFIX):
            i += 1
            continue

        if "=" in line:
            parts = line.split("=")
            if len(parts) != 2:
                raise MalformedAssignmentError(
                    f"Malformed assignment (expected exactly one '='): {line.strip()!r}",
                    source=source,
                    line=lineno,
                )
            parsed.add_value(parts[0].strip(), parts[1].strip(), source=source, line=lineno)
            i += 1
            continue

        if peek is not None and peek.strip() == LIST_OPEN:
            name = line.strip()
            if not name:
                raise MalformedListError("List is missing a name", source=source, line=lineno)
            items: list[str] = []
            i += 2
            while True:
                if i >= len(lines):
                    raise MalformedListError(
                        f"List '{name}' is missing its closing '{LIST_CLOSE}'",
                        source=source,
                        line=lineno,
                    )
                entry = lines[i].strip()
                if entry == LIST_CLOSE:
                    break
                items.append(entry)
                i += 1
            parsed.add_list(name, items, source=source, line=lineno)
            i += 1
            continue

        token = line.strip()
        if token:
            parsed.flags.add(token)
        i += 1

    parsed.sources.append(source)
    return parsed


def parse_config(*blobs: str | tuple[str, str]) -> ParsedConfig:
    """
    Parse one or more blobs into a single ParsedConfig.

    A blob is either raw text or a `(source_name, text)` pair; the source name
    only appears in error messages.
    """

    parsed = ParsedConfig()
    for index, blob in enumerate(blobs):
        if isinstance(blob, tuple):
            source, text = blob
        else:
            source, text = f"<blob {index + 1}>", blob
        parse_blob(text, source=source, into=parsed)
    return parsed
