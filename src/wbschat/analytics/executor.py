"""
Query Executor - Running Approved Statements.

Executes a statement that passed the safety gate. For read statements a
counting variant without LIMIT, OFFSET or ORDER BY is derived with sqlglot so
the answer can say how many rows matched in total.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import structlog
from sqlglot import exp, parse_one
from sqlglot.errors import ParseError, TokenError

logger = structlog.get_logger(__name__)

ExecuteQuery = Callable[[str], Awaitable[list[dict[str, Any]]]]

DIALECT = "postgres"

READ_EXPRESSIONS = (exp.Select, exp.Union, exp.Intersect, exp.Except)
WRITE_EXPRESSIONS = (exp.Insert, exp.Update, exp.Delete)

_WRITE_KEYWORDS = re.compile(r"\b(INSERT|UPDATE|DELETE)\b", re.IGNORECASE)


@dataclass
class ExecutionResult:
    """Rows of an executed statement and, for reads, the row counts."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    total_count: Optional[int] = None
    displayed_count: Optional[int] = None


def _parse(sql: str) -> Optional[exp.Expression]:
    try:
        return parse_one(sql, read=DIALECT)
    except (ParseError, TokenError) as e:
        logger.debug("sql_parse_failed", error=str(e))
        return None


def is_read_statement(sql: str) -> bool:
    """True for SELECT statements and CTEs that do not modify data."""
    if (ast := _parse(sql)) is not None:
        return isinstance(ast, READ_EXPRESSIONS) and ast.find(*WRITE_EXPRESSIONS) is None

    head = sql.lstrip().upper()
    return head.startswith(("SELECT", "WITH")) and not _WRITE_KEYWORDS.search(sql)


def derive_count_sql(sql: str) -> Optional[str]:
    """
    Build ``SELECT COUNT(*) AS total FROM (<sql>) AS counted`` for a read statement.

    LIMIT, OFFSET and ORDER BY are dropped from the inner query. Returns None
    when the statement cannot be parsed or is not a read.
    """
    ast = _parse(sql)
    if ast is None or not isinstance(ast, READ_EXPRESSIONS):
        return None

    inner = ast.copy()
    for arg in ("limit", "offset", "order"):
        inner.set(arg, None)

    return (
        exp.select("COUNT(*) AS total")
        .from_(inner.subquery("counted"))
        .sql(dialect=DIALECT)
    )


class QueryExecutor:
    """
    Runs validated statements through an ``execute_query`` callable.

    The callable takes one SQL string and returns the rows as dictionaries.
    Errors of the statement itself propagate to the caller; a failing count
    only leaves ``total_count`` unset.
    """

    def __init__(self, execute_query: ExecuteQuery):
        self.execute_query = execute_query

    async def execute(self, sql: str) -> ExecutionResult:
        """
        Execute a statement.

        Args:
            sql: Statement that passed validation

        Returns:
            ExecutionResult
        """
        rows = list(await self.execute_query(sql) or [])
        logger.info("query_executed", rows=len(rows))

        if not is_read_statement(sql):
            return ExecutionResult(rows=rows)

        return ExecutionResult(
            rows=rows,
            total_count=await self._count(sql),
            displayed_count=len(rows),
        )

    async def _count(self, sql: str) -> Optional[int]:
        if (count_sql := derive_count_sql(sql)) is None:
            return None

        try:
            result = await self.execute_query(count_sql)
        except Exception as e:
            logger.warning("count_query_failed", error=str(e), sql=count_sql)
            return None

        if not result:
            return None
        row = result[0]
        value = row.get("total", next(iter(row.values()), None))
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("count_query_unexpected_result", value=value)
            return None
