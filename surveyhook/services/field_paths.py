"""
Field path grammar and resolver - the shared primitive under every provider adapter.

A field path addresses one value inside a JSON payload:

    form_response.answers[3]                       dotted + indexed
    data.fields[type=HIDDEN_FIELDS&label=email].value   conditional array match

Paths are parsed once into an ordered tuple of segments and then resolved
against a payload. Resolution never raises: any miss returns NOT_FOUND.
"""
import json
import logging
import re
from functools import lru_cache
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"^([^\[\]]*)((?:\[[^\[\]]*\])+)$")
_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")
_INDEX_RE = re.compile(r"^[0-9]+$")


class _NotFound:
    """Sentinel for an unresolvable path. Distinct from JSON null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


class KeySegment(BaseModel):
    """Plain mapping lookup: `name`."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["key"] = "key"
    name: str


class IndexSegment(BaseModel):
    """Mapping lookup then array index: `name[3]`. Empty name indexes the current value."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["index"] = "index"
    name: str
    index: int


class ConditionalSegment(BaseModel):
    """Mapping lookup then first array element matching every `key=value` pair."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["conditional"] = "conditional"
    name: str
    conditions: tuple[tuple[str, str], ...]


Segment = Union[KeySegment, IndexSegment, ConditionalSegment]


def is_found(value: Any) -> bool:
    return value is not NOT_FOUND


def _split_dotted(path: str) -> list[str]:
    """Split on dots that are not inside brackets (condition values may contain dots)."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in path:
        if ch == "[":
            depth += 1
        elif ch == "]" and depth:
            depth -= 1
        if ch == "." and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def _parse_conditions(body: str) -> tuple[tuple[str, str], ...]:
    pairs = []
    for clause in body.split("&"):
        key, _, value = clause.partition("=")
        pairs.append((key, value))
    return tuple(pairs)


def _parse_segment(raw: str) -> list[Segment]:
    match = _SEGMENT_RE.match(raw)
    if not match:
        return [KeySegment(name=raw)]

    name, brackets = match.group(1), match.group(2)
    parsed: list[Segment] = []
    for position, body in enumerate(_BRACKET_RE.findall(brackets)):
        owner = name if position == 0 else ""
        if "=" in body:
            parsed.append(ConditionalSegment(name=owner, conditions=_parse_conditions(body)))
        elif _INDEX_RE.match(body):
            parsed.append(IndexSegment(name=owner, index=int(body)))
        else:
            # Neither an index nor a condition: the brackets are part of the key
            return [KeySegment(name=raw)]
    return parsed


@lru_cache(maxsize=2048)
def parse_path(path: str) -> tuple[Segment, ...]:
    """Parse a field path into segments. An empty path addresses the root."""
    if path == "":
        return ()
    segments: list[Segment] = []
    for raw in _split_dotted(path):
        segments.extend(_parse_segment(raw))
    return tuple(segments)


def _lookup(current: Any, name: str) -> Any:
    if name == "":
        return current
    if isinstance(current, dict) and name in current:
        return current[name]
    return NOT_FOUND


def _as_text(value: Any) -> str | None:
    """String form used for condition equality. Containers never match."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return None
    return json.dumps(value)


def _matches(element: Any, conditions: tuple[tuple[str, str], ...]) -> bool:
    if not isinstance(element, dict):
        return False
    for key, expected in conditions:
        if key not in element or _as_text(element[key]) != expected:
            return False
    return True


def _step(current: Any, segment: Segment) -> Any:
    if isinstance(segment, KeySegment):
        # An empty name only continues brackets (`a[1][0]`); as a dotted part (`a..b`) it is a miss
        if segment.name == "":
            return NOT_FOUND
        return _lookup(current, segment.name)

    container = _lookup(current, segment.name)
    if not isinstance(container, list):
        return NOT_FOUND

    if isinstance(segment, IndexSegment):
        if segment.index < len(container):
            return container[segment.index]
        return NOT_FOUND

    for element in container:
        if _matches(element, segment.conditions):
            return element
    return NOT_FOUND


def resolve_segments(root: Any, segments: tuple[Segment, ...]) -> Any:
    current = root
    for segment in segments:
        current = _step(current, segment)
        if current is NOT_FOUND:
            return NOT_FOUND
    return current


def resolve(root: Any, path: str) -> Any:
    """
    Resolve `path` against `root`.

    Returns the addressed value (which may be JSON null) or NOT_FOUND.
    Never raises for a missing or mistyped path.
    """
    if not isinstance(path, str):
        return NOT_FOUND
    value = resolve_segments(root, parse_path(path))
    if value is NOT_FOUND:
        logger.debug("Path did not resolve: %s", path)
    return value


def child_key_path(prefix: str, key: str) -> str:
    """Path of `key` under `prefix` (dotted join)."""
    return f"{prefix}.{key}" if prefix else key


def child_index_path(prefix: str, index: int) -> str:
    """Path of element `index` of the array at `prefix`."""
    return f"{prefix}[{index}]"
