#
#  Copyright (C) 2017-2025 Dremio Corporation
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
#
from dataclasses import dataclass, field
from typing import Iterable, Tuple


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    description: str
    values: Tuple[str, ...] = ()

    def render(self) -> str:
        t = f"{self.type} ({', '.join(self.values)})" if self.values else self.type
        return f'| "{self.name}" | {t} | {self.description} |'


@dataclass(frozen=True)
class Table:
    name: str
    description: str
    columns: Tuple[Column, ...]
    keywords: Tuple[str, ...] = field(default_factory=tuple)

    def render(self) -> str:
        lines = [
            f"## {self.name}",
            self.description,
            "",
            "| column | type | description |",
            "|--------|------|-------------|",
        ]
        lines.extend(c.render() for c in self.columns)
        return "\n".join(lines) + "\n"


_TIMESTAMPS = (
    Column("createdAt", "datetime", "Creation time"),
    Column("updatedAt", "datetime", "Last modification time"),
)

_WORK_STATUS = (
    "PENDING",
    "IN_PROGRESS",
    "HOLDING",
    "DELAYED",
    "COMPLETED",
    "CANCELLED",
)

TABLES = {
    t.name: t
    for t in (
        Table(
            "users",
            "Users and team members",
            (
                Column("id", "uuid", "Primary key"),
                Column("email", "string", "E-mail address (unique)"),
                Column("name", "string?", "Display name"),
                Column("role", "enum", "System role", ("ADMIN", "USER", "GUEST")),
                *_TIMESTAMPS,
            ),
            ("사용자", "유저", "user", "멤버", "member", "팀원", "담당자", "assignee", "직원"),
        ),
        Table(
            "projects",
            "Projects",
            (
                Column("id", "uuid", "Primary key"),
                Column("name", "string", "Project name"),
                Column("description", "string?", "Description"),
                Column(
                    "status",
                    "enum",
                    "Project status",
                    ("PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED"),
                ),
                Column("startDate", "datetime?", "Start date"),
                Column("endDate", "datetime?", "End date"),
                Column("progress", "int", "Progress (0-100)"),
                Column("ownerId", "uuid", "Owner (FK -> users.id)"),
                *_TIMESTAMPS,
            ),
            ("프로젝트", "project", "사업", "진행률", "시작일", "종료일"),
        ),
        Table(
            "tasks",
            "Kanban tasks",
            (
                Column("id", "uuid", "Primary key"),
                Column("title", "string", "Task title"),
                Column("description", "string?", "Description"),
                Column("status", "enum", "Task status", _WORK_STATUS),
                Column("priority", "enum", "Priority", ("LOW", "MEDIUM", "HIGH")),
                Column("startDate", "datetime?", "Start date"),
                Column("dueDate", "datetime?", "Due date"),
                Column("completedAt", "datetime?", "Completion time"),
                Column("order", "int", "Position on the kanban board"),
                Column("isAiGenerated", "boolean", "Created through the assistant"),
                Column("projectId", "uuid", "Project (FK -> projects.id)"),
                Column("assigneeId", "uuid?", "Main assignee (FK -> users.id)"),
                Column("creatorId", "uuid", "Creator (FK -> users.id)"),
                *_TIMESTAMPS,
            ),
            ("태스크", "task", "업무", "할일", "작업", "칸반", "kanban", "대기", "지연"),
        ),
        Table(
            "task_assignees",
            "Task to user assignment (many to many)",
            (
                Column("id", "uuid", "Primary key"),
                Column("taskId", "uuid", "Task (FK -> tasks.id)"),
                Column("userId", "uuid", "User (FK -> users.id)"),
                Column("assignedAt", "datetime", "Assignment time"),
            ),
            ("태스크담당자", "업무담당", "배정", "할당", "assigned"),
        ),
        Table(
            "requirements",
            "Requirements checklist",
            (
                Column("id", "uuid", "Primary key"),
                Column("code", "string?", "Requirement code (REQ-001)"),
                Column("title", "string", "Title"),
                Column("description", "string?", "Description"),
                Column(
                    "status",
                    "enum",
                    "Status",
                    ("DRAFT", "APPROVED", "REJECTED", "IMPLEMENTED"),
                ),
                Column(
                    "priority",
                    "enum",
                    "MoSCoW priority",
                    ("MUST", "SHOULD", "COULD", "WONT"),
                ),
                Column("dueDate", "datetime?", "Due date"),
                Column("isDelayed", "boolean", "Delayed flag"),
                Column("projectId", "uuid", "Project (FK -> projects.id)"),
                Column("assigneeId", "uuid?", "Assignee (FK -> users.id)"),
                *_TIMESTAMPS,
            ),
            ("요구사항", "requirement", "협조요청", "MoSCoW", "우선순위"),
        ),
        Table(
            "issues",
            "Issue tracker",
            (
                Column("id", "uuid", "Primary key"),
                Column("code", "string?", "Issue code (ISS-001)"),
                Column("title", "string", "Title"),
                Column("description", "string?", "Description"),
                Column(
                    "status",
                    "enum",
                    "Status",
                    ("OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED", "WONT_FIX"),
                ),
                Column(
                    "priority", "enum", "Priority", ("CRITICAL", "HIGH", "MEDIUM", "LOW")
                ),
                Column(
                    "category",
                    "enum",
                    "Category",
                    ("BUG", "IMPROVEMENT", "QUESTION", "FEATURE", "DOCUMENTATION", "OTHER"),
                ),
                Column("dueDate", "datetime?", "Target resolution date"),
                Column("isDelayed", "boolean", "Delayed flag"),
                Column("projectId", "uuid", "Project (FK -> projects.id)"),
                Column("reporterId", "uuid?", "Reporter (FK -> users.id)"),
                Column("assigneeId", "uuid?", "Assignee (FK -> users.id)"),
                *_TIMESTAMPS,
            ),
            ("이슈", "issue", "버그", "bug", "문제", "결함", "개선"),
        ),
        Table(
            "wbs_items",
            "WBS items, a self referencing hierarchy. Assignees live in wbs_assignees,"
            " there is no assigneeId column.",
            (
                Column("id", "uuid", "Primary key"),
                Column("code", "string", "WBS code (1, 1.1, 1.1.1)"),
                Column("name", "string", "Item name"),
                Column(
                    "level",
                    "enum",
                    "Hierarchy level",
                    ("LEVEL1", "LEVEL2", "LEVEL3", "LEVEL4"),
                ),
                Column("order", "int", "Position within the level"),
                Column("status", "enum", "Status", _WORK_STATUS),
                Column("progress", "int", "Progress (0-100)"),
                Column("startDate", "datetime?", "Planned start"),
                Column("endDate", "datetime?", "Planned end"),
                Column("weight", "int", "Weight used for progress roll-up"),
                Column(
                    "parentId",
                    "uuid?",
                    "Parent item (FK -> wbs_items.id), NULL for LEVEL1",
                ),
                Column("projectId", "uuid", "Project (FK -> projects.id)"),
                *_TIMESTAMPS,
            ),
            (
                "WBS",
                "작업분류",
                "대분류",
                "중분류",
                "소분류",
                "단위업무",
                "가중치",
                "마인드맵",
                "mindmap",
                "트리",
                "tree",
                "hierarchy",
            ),
        ),
        Table(
            "wbs_assignees",
            "WBS item to user assignment (many to many)",
            (
                Column("id", "uuid", "Primary key"),
                Column("wbsItemId", "uuid", "WBS item (FK -> wbs_items.id)"),
                Column("userId", "uuid", "User (FK -> users.id)"),
                Column("assignedAt", "datetime", "Assignment time"),
            ),
            ("WBS담당자", "WBS배정", "WBS할당"),
        ),
        Table(
            "holidays",
            "Calendar: holidays and personal schedules",
            (
                Column("id", "uuid", "Primary key"),
                Column("title", "string", "Title"),
                Column("date", "datetime", "Date or start date (the column is 'date')"),
                Column("endDate", "datetime?", "End date for ranges"),
                Column(
                    "type",
                    "enum",
                    "Kind of entry",
                    (
                        "COMPANY_HOLIDAY",
                        "TEAM_OFFSITE",
                        "PERSONAL_LEAVE",
                        "PERSONAL_SCHEDULE",
                        "MEETING",
                        "DEADLINE",
                        "OTHER",
                    ),
                ),
                Column("isAllDay", "boolean", "All day entry"),
                Column("projectId", "uuid", "Project (FK -> projects.id)"),
                Column("userId", "uuid?", "Owner of a personal entry"),
                *_TIMESTAMPS,
            ),
            ("일정", "휴무", "휴가", "휴일", "holiday", "미팅", "데드라인", "캘린더"),
        ),
    )
}

# always sent, every other table references them
ALWAYS_INCLUDED = ("users", "projects")

RELATIONSHIPS = """## Relationships
- projects N:1 -> users (ownerId)
- tasks, requirements, issues, wbs_items, holidays N:1 -> projects (projectId)
- tasks N:M -> users through task_assignees
- wbs_items self reference: parentId -> wbs_items.id (NULL means LEVEL1)
- wbs_items N:M -> users through wbs_assignees
- mindmap / tree queries on wbs_items use id, code, name, level, parentId, status, progress
"""


def render(names: Iterable[str]) -> str:
    """Markdown schema section for the named tables, unknown names are skipped."""
    parts = ["# Database schema", ""]
    parts.extend(TABLES[n].render() for n in names if n in TABLES)
    parts.append(RELATIONSHIPS)
    return "\n".join(parts)
