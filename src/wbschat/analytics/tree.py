"""
Tree Synthesizer - Mindmaps from Flat Query Rows.

When the user asked for a tree but the model did not return one, the rows of
the executed query are turned into a mindmap. Rows that carry a WBS level
(LEVEL1..LEVEL4) are linked through their parent ids; any other rows become a
single flat level under a generic root.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)

MAX_LEVEL = 4
MAX_FLAT_CHILDREN = 10
WBS_ROOT_NAME = "WBS"
FLAT_ROOT_NAME = "Data structure"

# keys a row needs at least one of to become a node
NODE_KEYS = (
    "name",
    "title",
    "code",
    "progress",
    "status",
    "assignee",
    "assigneeName",
    "endDate",
    "end_date",
)


@dataclass
class MindmapNode:
    """One node of a mindmap."""

    name: str
    children: list["MindmapNode"] = field(default_factory=list)
    progress: Optional[Any] = None
    assignee: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name}
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        for key, value in (
            ("progress", self.progress),
            ("assignee", self.assignee),
            ("endDate", self.end_date),
            ("status", self.status),
        ):
            if value is not None:
                out[key] = value
        return out


def parse_level(value: Any) -> Optional[int]:
    """Level number from ``LEVEL2``, ``2`` or ``"2"``, None when unrecognised."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        level = value
    elif isinstance(value, str):
        v = value.strip().upper()
        if v.startswith("LEVEL"):
            v = v[len("LEVEL") :]
        if not v.isdigit():
            return None
        level = int(v)
    else:
        return None
    return level if 1 <= level <= MAX_LEVEL else None


def _assignee(row: dict[str, Any]) -> Optional[str]:
    if row.get("assigneeName") is not None:
        return str(row["assigneeName"])
    assignee = row.get("assignee")
    if isinstance(assignee, dict):
        name = assignee.get("name")
        return str(name) if name is not None else None
    if isinstance(assignee, str):
        return assignee
    return None


def _end_date(row: dict[str, Any]) -> Optional[str]:
    value = row.get("endDate", row.get("end_date"))
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, str):
        return value
    return None


def _label(row: dict[str, Any], index: int) -> str:
    for key in ("name", "title", "code"):
        if row.get(key) not in (None, ""):
            return str(row[key])
    return f"Item {index}"


def _node(row: dict[str, Any], index: int) -> MindmapNode:
    status = row.get("status")
    return MindmapNode(
        name=_label(row, index),
        progress=row.get("progress"),
        assignee=_assignee(row),
        end_date=_end_date(row),
        status=str(status) if status is not None else None,
    )


def _parent_id(row: dict[str, Any]) -> Any:
    return row.get("parentId", row.get("parent_id"))


def _same_id(a: Any, b: Any) -> bool:
    return a is not None and b is not None and str(a) == str(b)


class TreeSynthesizer:
    """Builds a MindmapNode tree out of query rows."""

    def synthesize(self, rows: list[dict[str, Any]]) -> Optional[MindmapNode]:
        """
        Build a tree from rows.

        Args:
            rows: Rows of the executed query

        Returns:
            Root node, or None when there is nothing to build from: no rows,
            or no row carrying any of NODE_KEYS
        """
        if not rows or not rows[0]:
            return None

        first = rows[0]
        if any(k in first for k in ("level", "name", "code")):
            if (root := self._leveled(rows)) is not None:
                return root
            logger.debug("mindmap_no_level1_rows", rows=len(rows))

        return self._flat(rows)

    def _leveled(self, rows: list[dict[str, Any]]) -> Optional[MindmapNode]:
        levels: dict[int, list[dict[str, Any]]] = {
            n: [] for n in range(1, MAX_LEVEL + 1)
        }
        for row in rows:
            if (level := parse_level(row.get("level"))) is not None:
                levels[level].append(row)

        if not levels[1]:
            return None

        def build(row: dict[str, Any], level: int, index: int) -> MindmapNode:
            node = _node(row, index)
            if level < MAX_LEVEL:
                children = [
                    c for c in levels[level + 1] if _same_id(_parent_id(c), row.get("id"))
                ]
                node.children = [
                    build(c, level + 1, i) for i, c in enumerate(children, start=1)
                ]
            return node

        tops = [build(r, 1, i) for i, r in enumerate(levels[1], start=1)]
        if len(tops) == 1:
            return tops[0]
        return MindmapNode(name=WBS_ROOT_NAME, children=tops)

    def _flat(self, rows: list[dict[str, Any]]) -> Optional[MindmapNode]:
        rows = rows[:MAX_FLAT_CHILDREN]
        if not any(k in row for row in rows for k in NODE_KEYS):
            return None
        return MindmapNode(
            name=FLAT_ROOT_NAME,
            children=[
                _node(row, i)
                for i, row in enumerate(rows, start=1)
            ],
        )
