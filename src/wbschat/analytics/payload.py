"""
Payload Extractor - Visualization Directives in Model Answers.

The analysis answer may end with sentinel directives:

    [CHART:bar]
    [CHART_DATA:{"labels":["A","B"],"values":[1,2]}]
    [MINDMAP_DATA:{"name":"root","children":[...]}]

Chart data is flat, so a lazy regex finds its end. Mindmap data nests, so its
end is found with a balanced brace scan. Every recognised directive is removed
from the text shown to the user, whether or not its payload parsed.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from wbschat.analytics.results import ChartType
from wbschat.analytics.scanner import find_balanced

logger = structlog.get_logger(__name__)

CHART_TYPE_PATTERN = re.compile(r"\[CHART:([a-z0-9_\- ]+)\]", re.IGNORECASE)
CHART_DATA_PATTERN = re.compile(
    r"\[CHART_DATA:\s*(\{[\s\S]*?\}|\[[\s\S]*?\])\s*\]"
)
MINDMAP_MARKER = "[MINDMAP_DATA:"

CHART_TYPE_ALIASES = {
    "bar": ChartType.BAR,
    "bar2d": ChartType.BAR,
    "bar3d": ChartType.BAR3D,
    "bar3": ChartType.BAR3D,
    "3dbar": ChartType.BAR3D,
    "3d": ChartType.BAR3D,
    "line": ChartType.LINE,
    "pie": ChartType.PIE,
    "area": ChartType.AREA,
    "mind": ChartType.MINDMAP,
    "mindmap": ChartType.MINDMAP,
}

_SEPARATORS = re.compile(r"[-_\s]")
_SUFFIX = re.compile(r"(chart|graph)$")


@dataclass(frozen=True)
class ExtractedPayload:
    """Answer text with its visualization directives split out."""

    content: str
    chart_type: Optional[ChartType] = None
    chart_data: Optional[list[Any]] = None
    mindmap_data: Optional[dict[str, Any]] = None


def normalize_chart_type(token: str) -> Optional[ChartType]:
    """Map a free-form chart token such as ``bar-chart`` or ``3D_bar`` to a ChartType."""
    key = _SUFFIX.sub("", _SEPARATORS.sub("", token.lower()))
    return CHART_TYPE_ALIASES.get(key)


def normalize_chart_data(raw: str) -> Optional[list[Any]]:
    """
    Parse a chart payload.

    ``{"labels": [...], "values": [...]}`` becomes a list of ``{name, value}``
    pairs cut to the shorter of the two arrays. A JSON array is returned as is.
    Anything else is dropped.
    """
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.debug("chart_data_unparseable", payload=raw[:200])
        return None

    if isinstance(parsed, list):
        return parsed
    if (
        isinstance(parsed, dict)
        and isinstance(parsed.get("labels"), list)
        and isinstance(parsed.get("values"), list)
    ):
        return [
            {"name": label, "value": value}
            for label, value in zip(parsed["labels"], parsed["values"])
        ]
    return None


def _extract_mindmap(text: str) -> tuple[str, Optional[dict[str, Any]]]:
    data = None
    pieces = []
    pos = 0

    while (marker := text.find(MINDMAP_MARKER, pos)) != -1:
        pieces.append(text[pos:marker])
        start = marker + len(MINDMAP_MARKER)
        while start < len(text) and text[start].isspace():
            start += 1

        end = find_balanced(text, start) if start < len(text) else None
        if end is None:
            if start < len(text) and text[start] != "{":
                # no payload at all: drop the directive up to its bracket
                close = text.find("]", start)
                pos = len(text) if close == -1 else close + 1
            else:
                logger.debug("mindmap_data_unterminated", offset=marker)
                pos = len(text)
            continue

        payload = text[start:end]
        if data is None:
            try:
                parsed = json.loads(payload)
                if isinstance(parsed, dict):
                    data = parsed
            except ValueError:
                logger.debug("mindmap_data_unparseable", payload=payload[:200])

        pos = end
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos < len(text) and text[pos] == "]":
            pos += 1

    pieces.append(text[pos:])
    return "".join(pieces), data


def extract(response_text: str) -> ExtractedPayload:
    """
    Split visualization directives out of an answer.

    Args:
        response_text: Raw analysis answer

    Returns:
        ExtractedPayload with the cleaned, stripped content. Text without any
        directive is returned unchanged with every structured field None.
    """
    has_mindmap = MINDMAP_MARKER in response_text
    has_chart = bool(
        CHART_TYPE_PATTERN.search(response_text)
        or CHART_DATA_PATTERN.search(response_text)
    )
    if not has_mindmap and not has_chart:
        return ExtractedPayload(content=response_text)

    text, mindmap_data = _extract_mindmap(response_text)

    chart_type = None
    if m := CHART_TYPE_PATTERN.search(text):
        chart_type = normalize_chart_type(m.group(1))

    chart_data = None
    if m := CHART_DATA_PATTERN.search(text):
        chart_data = normalize_chart_data(m.group(1))

    content = CHART_DATA_PATTERN.sub("", CHART_TYPE_PATTERN.sub("", text)).strip()

    return ExtractedPayload(
        content=content,
        chart_type=chart_type,
        chart_data=chart_data,
        mindmap_data=mindmap_data,
    )
