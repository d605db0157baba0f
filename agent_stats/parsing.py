"""Decoding of TeamCity REST responses into snapshot types.

Two response shapes are understood, in either of the formats the server
negotiates through the Accept header:

    XML:
        <builds count="3" href="/app/rest/buildQueue">...</builds>
        <agents count="2">
            <agent id="1" enabled="true" connected="true"><build id="7"/></agent>
            <agent id="2" enabled="true" connected="false"/>
        </agents>

    JSON:
        {"count": 3, "build": [...]}
        {"count": 2, "agent": [{"id": 1, "enabled": true, "connected": true, "build": {...}}]}

Only the presence of a ``build`` entry on an agent matters, never its content.
"""

import json
import xml.etree.ElementTree as ET
from typing import Any, Literal

from .exceptions import DecodeError
from .models import AgentSnapshot, FleetSnapshot, QueueSnapshot

ResponseFormat = Literal["xml", "json"]

RESPONSE_FORMATS: tuple[ResponseFormat, ...] = ("xml", "json")

QUEUE_ROOT = "builds"
AGENTS_ROOT = "agents"

_TRUE_VALUES = {"true", "1"}


def parse_queue(body: str | bytes, fmt: ResponseFormat = "xml") -> QueueSnapshot:
    """Decode a build queue response.

    Args:
        body: Raw response body
        fmt: Response format ('xml' or 'json')

    Returns:
        QueueSnapshot with the server-reported queue size

    Raises:
        DecodeError: If the body is malformed or has no usable count
    """
    if fmt == "json":
        data = _load_json(body, "build queue")
        return QueueSnapshot(queued_count=_json_count(data, "build queue"))

    root = _load_xml(body, QUEUE_ROOT)
    return QueueSnapshot(queued_count=_xml_count(root))


def parse_fleet(body: str | bytes, fmt: ResponseFormat = "xml") -> FleetSnapshot:
    """Decode an agent list response.

    Args:
        body: Raw response body
        fmt: Response format ('xml' or 'json')

    Returns:
        FleetSnapshot with the server count and the agents in response order

    Raises:
        DecodeError: If the body is malformed or has no usable count
    """
    if fmt == "json":
        data = _load_json(body, "agents")
        entries = data.get("agent") or []
        if not isinstance(entries, list):
            raise DecodeError("agents response: 'agent' is not a list")
        agents = tuple(_json_agent(entry) for entry in entries)
        return FleetSnapshot(total_count=_json_count(data, "agents"), agents=agents)

    root = _load_xml(body, AGENTS_ROOT)
    agents = tuple(
        AgentSnapshot(
            enabled=_xml_bool(el.get("enabled")),
            connected=_xml_bool(el.get("connected")),
            has_active_build=el.find("build") is not None,
        )
        for el in root.findall("agent")
    )
    return FleetSnapshot(total_count=_xml_count(root), agents=agents)


def _load_xml(body: str | bytes, expected_root: str) -> ET.Element:
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise DecodeError(f"invalid XML in {expected_root} response: {e}") from e
    if root.tag != expected_root:
        raise DecodeError(
            f"unexpected root element <{root.tag}>, expected <{expected_root}>"
        )
    return root


def _xml_count(root: ET.Element) -> int:
    raw = root.get("count")
    if raw is None:
        raise DecodeError(f"<{root.tag}> has no count attribute")
    try:
        count = int(raw.strip())
    except ValueError as e:
        raise DecodeError(f"<{root.tag}> count is not an integer: {raw!r}") from e
    if count < 0:
        raise DecodeError(f"<{root.tag}> count is negative: {count}")
    return count


def _xml_bool(raw: str | None) -> bool:
    return raw is not None and raw.strip().lower() in _TRUE_VALUES


def _load_json(body: str | bytes, what: str) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"invalid JSON in {what} response: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError(f"{what} response is not a JSON object")
    return data


def _json_count(data: dict[str, Any], what: str) -> int:
    count = data.get("count")
    # bool is an int subclass; reject it explicitly
    if not isinstance(count, int) or isinstance(count, bool):
        raise DecodeError(f"{what} response has no integer count: {count!r}")
    if count < 0:
        raise DecodeError(f"{what} response count is negative: {count}")
    return count


def _json_agent(entry: Any) -> AgentSnapshot:
    if not isinstance(entry, dict):
        raise DecodeError(f"agent entry is not an object: {entry!r}")
    return AgentSnapshot(
        enabled=_json_bool(entry.get("enabled")),
        connected=_json_bool(entry.get("connected")),
        has_active_build=entry.get("build") is not None,
    )


def _json_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return value is True
