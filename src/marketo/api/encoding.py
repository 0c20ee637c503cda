"""Request building and parameter encoding.

The generic builder flattens arguments the way most HTTP stacks do, with
indexed brackets for sequences (``id[0]=1&id[1]=2``). Marketo instead wants
repeated bare keys (``id=1&id=2``) and silently ignores the bracketed form on
several endpoints, so ``repeat_array_keys`` rewrites the built request's
parameter pairs. It works on the structured request, never on the URL text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, BinaryIO, Iterable, Mapping
from urllib.parse import urlencode

from .commands import CommandDescriptor, Placement

Pair = tuple[str, str]

_INDEXED_KEY = re.compile(r"^(?P<key>[^\[\]]+)\[\d+\]$")


@dataclass(frozen=True)
class FilePart:
    """A file destined for a multipart upload."""

    filename: str
    content: bytes | BinaryIO
    content_type: str = "text/plain"


@dataclass(frozen=True)
class PreparedRequest:
    """Structured, transport-independent request model."""

    method: str
    path: str
    query: tuple[Pair, ...] = ()
    body_format: str = "json"
    json_body: Mapping[str, Any] | None = None
    form: tuple[Pair, ...] = ()
    files: Mapping[str, FilePart] | None = None

    def content(self) -> bytes | None:
        """Serialized body for JSON and urlencoded requests."""
        if self.body_format == "json":
            if self.json_body is None:
                return None
            return json.dumps(self.json_body, default=_json_default).encode("utf-8")
        if self.body_format == "form":
            return urlencode(self.form).encode("ascii") if self.form else None
        return None

    def headers(self) -> dict[str, str]:
        if self.body_format == "json":
            return {"Content-Type": "application/json"}
        if self.body_format == "form":
            return {"Content-Type": "application/x-www-form-urlencoded"}
        # multipart boundary is set by the transport
        return {}

    def multipart_data(self) -> dict[str, str | list[str]]:
        data: dict[str, str | list[str]] = {}
        for key, value in self.form:
            if key in data:
                existing = data[key]
                data[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
            else:
                data[key] = value
        return data


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def flatten(key: str, value: Any) -> list[Pair]:
    """Default encoding: nested structures become bracketed keys."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        pairs: list[Pair] = []
        for sub_key, sub_value in value.items():
            pairs.extend(flatten(f"{key}[{sub_key}]", sub_value))
        return pairs
    if isinstance(value, (list, tuple, set, frozenset)):
        pairs = []
        for index, item in enumerate(value):
            pairs.extend(flatten(f"{key}[{index}]", item))
        return pairs
    return [(key, encode_scalar(value))]


def encode_pairs(args: Mapping[str, Any]) -> tuple[Pair, ...]:
    pairs: list[Pair] = []
    for key, value in args.items():
        pairs.extend(flatten(key, value))
    return tuple(pairs)


def build_request(
    descriptor: CommandDescriptor,
    args: Mapping[str, Any],
    version: int = 1,
) -> PreparedRequest:
    """Route each argument to its placement and build the request model.

    Raises:
        ValidationError: If a path parameter is missing
    """
    path = descriptor.render_path(args, version)

    query: dict[str, Any] = {}
    body: dict[str, Any] = {}
    files: dict[str, FilePart] = {}

    for name, value in args.items():
        placement = descriptor.placement_for(name)
        if placement is Placement.PATH or value is None:
            continue
        if placement is Placement.QUERY:
            query[name] = value
        elif placement is Placement.FILE:
            files[name] = value if isinstance(value, FilePart) else FilePart(name, value)
        else:
            body[name] = value

    if descriptor.body_format == "json":
        return PreparedRequest(
            method=descriptor.http_method,
            path=path,
            query=encode_pairs(query),
            body_format="json",
            json_body=body or None,
        )

    return PreparedRequest(
        method=descriptor.http_method,
        path=path,
        query=encode_pairs(query),
        body_format=descriptor.body_format,
        form=encode_pairs(body),
        files=files or None,
    )


def _repeat_keys(pairs: Iterable[Pair]) -> tuple[Pair, ...]:
    fixed = []
    for key, value in pairs:
        match = _INDEXED_KEY.match(key)
        fixed.append((match.group("key") if match else key, value))
    return tuple(fixed)


def repeat_array_keys(request: PreparedRequest) -> PreparedRequest:
    """Rewrite ``key[N]=v`` pairs to ``key=v`` in query and form parameters."""
    return replace(request, query=_repeat_keys(request.query), form=_repeat_keys(request.form))


def id_list(values: Any) -> list[Any]:
    """Normalize one id or an iterable of ids to a list; strings count as one id."""
    if isinstance(values, (int, str)):
        return [values]
    return list(values)
