"""Declarative command table.

Each command name maps to a ``CommandDescriptor`` describing the HTTP method,
the path template, and where each argument goes on the wire. The table ships
as ``service.json`` next to this module and is loaded once into a read-only
mapping; tests and callers may inject their own table instead.
"""

from __future__ import annotations

import json
import string
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import quote

from ..errors import UnknownCommandError, ValidationError

API_ROOTS = {
    "rest": "/rest/v{version}",
    "bulk": "/bulk/v{version}",
    "asset": "/rest/asset/v{version}",
}

BODY_FORMATS = ("json", "form", "multipart")


class Placement(str, Enum):
    """Where an argument is placed in the outgoing request."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"
    FILE = "file"


@dataclass(frozen=True)
class CommandDescriptor:
    """Immutable description of one API command."""

    name: str
    http_method: str
    path_template: str
    api: str = "rest"
    body_format: str = "json"
    parameters: Mapping[str, Placement] = field(default_factory=lambda: MappingProxyType({}))
    default_placement: Placement = Placement.QUERY

    @property
    def is_bulk(self) -> bool:
        return self.api == "bulk"

    @property
    def path_parameters(self) -> tuple[str, ...]:
        return tuple(
            name for _, name, _, _ in string.Formatter().parse(self.path_template) if name
        )

    def placement_for(self, argument: str) -> Placement:
        if argument in self.path_parameters:
            return Placement.PATH
        return self.parameters.get(argument, self.default_placement)

    def root(self, version: int) -> str:
        return API_ROOTS[self.api].format(version=version)

    def render_path(self, args: Mapping[str, Any], version: int) -> str:
        """Interpolate path parameters into the template.

        Raises:
            ValidationError: If a path parameter is missing from ``args``
        """
        missing = [p for p in self.path_parameters if args.get(p) in (None, "")]
        if missing:
            raise ValidationError.from_problems(
                [f"Command {self.name!r} requires path parameter {p!r}" for p in missing]
            )
        # Each value fills exactly one path segment.
        values = {p: quote(str(args[p]), safe="") for p in self.path_parameters}
        return self.root(version) + self.path_template.format(**values)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "CommandDescriptor":
        method = data["method"].upper()
        api = data.get("api", "rest")
        body_format = data.get("bodyFormat", "json")
        if api not in API_ROOTS:
            raise ValueError(f"Command {name!r}: unknown api root {api!r}")
        if body_format not in BODY_FORMATS:
            raise ValueError(f"Command {name!r}: unknown body format {body_format!r}")

        default = data.get("additionalParameters")
        if default is None:
            default = "body" if method in ("POST", "PUT", "PATCH") else "query"

        return cls(
            name=name,
            http_method=method,
            path_template=data["path"],
            api=api,
            body_format=body_format,
            parameters=MappingProxyType(
                {k: Placement(v) for k, v in data.get("parameters", {}).items()}
            ),
            default_placement=Placement(default),
        )


CommandTable = Mapping[str, CommandDescriptor]


def load_command_table(source: dict[str, Any] | str | Path | None = None) -> CommandTable:
    """Load a command table into a read-only mapping.

    Args:
        source: Parsed table, path to a JSON file, or None for the bundled
            ``service.json``
    """
    if source is None:
        raw = json.loads(resources.files(__package__).joinpath("service.json").read_text("utf-8"))
    elif isinstance(source, (str, Path)):
        raw = json.loads(Path(source).read_text(encoding="utf-8"))
    else:
        raw = source

    commands = raw.get("commands", raw)
    return MappingProxyType(
        {name: CommandDescriptor.from_dict(name, spec) for name, spec in commands.items()}
    )


def lookup(table: CommandTable, name: str) -> CommandDescriptor:
    try:
        return table[name]
    except KeyError:
        raise UnknownCommandError(name) from None
