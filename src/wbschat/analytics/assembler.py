"""
Prompt Assembler - Schema Grounding for SQL Generation.

Builds the prompts sent to the generation backend: the SQL prompt with the
relevant part of the schema and the calling context, and the analysis prompt
with the executed statement and its rows.
"""

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional

import structlog
from rapidfuzz import fuzz

from wbschat.config import schema
from wbschat.config.prompts import CONVERSATIONAL_PROMPT, PromptConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Who is asking, in which project, and when."""

    user_id: Optional[str] = None
    project_id: Optional[str] = None
    today: date = field(default_factory=date.today)


@dataclass(frozen=True)
class AssembledPrompt:
    prompt: str
    system_prompt: str


class PromptAssembler:
    """
    Prompt builder for both generation calls.

    Tables are picked by fuzzy matching the message against per-table keyword
    lists. users and projects are always sent; when nothing else matches the
    whole schema is sent.
    """

    def __init__(
        self,
        match_threshold: float = 0.85,
        tables: Optional[Mapping[str, schema.Table]] = None,
    ):
        """
        Initialize the assembler.

        Args:
            match_threshold: Minimum keyword similarity (0-1) for a table to be sent
            tables: Table metadata, defaults to the built-in schema
        """
        self.match_threshold = match_threshold
        self.tables = tables if tables is not None else schema.TABLES

    def select_tables(self, message: str) -> list[str]:
        """
        Pick the tables relevant to a message.

        Args:
            message: The user's message

        Returns:
            Table names in schema order
        """
        text = message.lower()
        matched = []
        for name, table in self.tables.items():
            if name in schema.ALWAYS_INCLUDED:
                continue
            scores = [
                fuzz.partial_ratio(kw.lower(), text) / 100.0 for kw in table.keywords
            ]
            if scores and max(scores) >= self.match_threshold:
                matched.append(name)

        if not matched:
            logger.debug("no_table_matched", message_length=len(message))
            return list(self.tables)

        keep = set(matched) | set(schema.ALWAYS_INCLUDED)
        selected = [n for n in self.tables if n in keep]
        logger.debug("tables_selected", tables=selected)
        return selected

    def context_section(self, context: RequestContext) -> str:
        lines = ["## Context", f"- Today: {context.today.isoformat()}"]
        if context.user_id:
            lines.append(f"- Current user id: `{context.user_id}`")

        if context.project_id:
            lines.append(f"- Current project id: `{context.project_id}`")
            lines.append(
                "Filter project tables with "
                f"`\"projectId\" = '{context.project_id}'`."
            )
        else:
            lines.append(
                "**Note**: no project is selected. Queries run over all projects."
            )
        return "\n".join(lines)

    def build_sql_prompt(
        self,
        message: str,
        context: RequestContext,
        prompts: PromptConfig,
    ) -> AssembledPrompt:
        """
        Build the SQL generation prompt.

        Args:
            message: The user's message
            context: Calling context
            prompts: System prompts for this request

        Returns:
            AssembledPrompt
        """
        prompt = "\n\n".join(
            [
                schema.render(self.select_tables(message)),
                self.context_section(context),
                f"## User question\n{message}",
                "Write the SQL statement for the question above.",
            ]
        )
        return AssembledPrompt(prompt=prompt, system_prompt=prompts.sql_prompt)

    def build_analysis_prompt(
        self,
        message: str,
        sql: str,
        rows: list[dict[str, Any]],
        prompts: PromptConfig,
        total_count: Optional[int] = None,
    ) -> AssembledPrompt:
        """
        Build the prompt that explains query results.

        Args:
            message: The user's message
            sql: The executed statement
            rows: Rows it returned
            prompts: System prompts for this request
            total_count: Number of matching rows, when known

        Returns:
            AssembledPrompt
        """
        parts = [
            f"## User question\n{message}",
            f"## Executed SQL\n```sql\n{sql}\n```",
            "## Result (JSON)\n```json\n"
            f"{json.dumps(rows, indent=2, ensure_ascii=False, default=str)}\n```",
        ]
        if total_count is not None and total_count > len(rows):
            parts.append(
                f"Only {len(rows)} of {total_count} matching rows are shown above."
            )
        parts.append(
            "Explain the result to the user. Suggest a chart type and data when a"
            " visualization helps."
        )
        return AssembledPrompt(
            prompt="\n\n".join(parts), system_prompt=prompts.analysis_system_prompt
        )

    def build_conversational_prompt(
        self, message: str, prompts: PromptConfig
    ) -> AssembledPrompt:
        return AssembledPrompt(
            prompt=CONVERSATIONAL_PROMPT.format(message=message),
            system_prompt=prompts.analysis_system_prompt,
        )
