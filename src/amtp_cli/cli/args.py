"""Command-line tokenizer for the amtp CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Sequence

FlagValue = str | bool


@dataclass(frozen=True)
class Invocation:
    command: str = ""
    positional: list[str] = field(default_factory=list)
    flags: dict[str, FlagValue] = field(default_factory=dict)

    def flag_text(self, name: str) -> str | None:
        """Return a flag's string value; a bare boolean flag has none."""
        value = self.flags.get(name)
        return value if isinstance(value, str) else None


def parse_command_line(
    argv: Sequence[str],
    *,
    boolean_flags: AbstractSet[str] = frozenset(),
) -> Invocation:
    """Split ``argv`` (without the program name) into command, positionals and flags.

    ``--key value`` stores ``value`` when the next token is not itself a flag,
    otherwise ``--key`` is stored as ``True``. Flags named in ``boolean_flags``
    never take a value.
    """
    tokens = list(argv)
    command = tokens[0] if tokens else ""
    positional: list[str] = []
    flags: dict[str, FlagValue] = {}

    index = 1
    while index < len(tokens):
        token = tokens[index]
        if token.startswith("--"):
            key = token[2:]
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if key not in boolean_flags and following and not following.startswith("--"):
                flags[key] = following
                index += 1
            else:
                flags[key] = True
        else:
            positional.append(token)
        index += 1

    return Invocation(command=command, positional=positional, flags=flags)
