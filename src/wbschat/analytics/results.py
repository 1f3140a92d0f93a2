"""
Results Processor - Response Assembly.

This module defines the response returned for every chat message and the
serialised form the UI consumes.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Optional


class ChartType(str, Enum):
    """Supported visualization types."""

    BAR = "bar"
    BAR3D = "bar3d"
    LINE = "line"
    PIE = "pie"
    AREA = "area"
    MINDMAP = "mindmap"


_CAMEL = {
    "chart_type": "chartType",
    "chart_data": "chartData",
    "mindmap_data": "mindmapData",
    "total_count": "totalCount",
    "displayed_count": "displayedCount",
}


@dataclass(frozen=True)
class PipelineResponse:
    """Answer to one chat message."""

    content: str
    sql: Optional[str] = None
    chart_type: Optional[ChartType] = None
    chart_data: Optional[list[Any]] = None
    mindmap_data: Optional[dict[str, Any]] = None
    total_count: Optional[int] = None
    displayed_count: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise with camelCase keys, leaving out unset fields."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            out[_CAMEL.get(f.name, f.name)] = value
        return out


def truncation_note(total_count: Optional[int], displayed_count: Optional[int]) -> str:
    """Note appended to the answer when only part of the matching rows was shown."""
    if total_count is None or displayed_count is None:
        return ""
    if total_count <= displayed_count:
        return ""
    return f"\n\n_Showing {displayed_count:,} of {total_count:,} matching rows._"
