"""
Safety Gate Component - SQL Policy Checks.

This module decides whether a generated SQL statement may run against the
project database. The checks are pure text rules: nothing is parsed, executed
or rewritten, and the first failing rule decides the verdict.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

DEFAULT_WRITABLE_TABLES = (
    "tasks",
    "requirements",
    "issues",
    "wbs_items",
    "holidays",
    "task_assignees",
)

DEFAULT_IDENTIFYING_COLUMNS = ("id", "name", "code", "title")

ALLOWED_PREFIXES = ("SELECT", "INSERT", "UPDATE", "WITH")

FORBIDDEN_PATTERNS = [
    (re.compile(r"\bDELETE\b"), "DELETE"),
    (re.compile(r"\bDROP\b"), "DROP"),
    (re.compile(r"\bTRUNCATE\b"), "TRUNCATE"),
    (re.compile(r"\bALTER\b"), "ALTER"),
    (
        re.compile(
            r"\bCREATE\s+(TABLE|INDEX|DATABASE|SCHEMA|VIEW|FUNCTION|TRIGGER)\b"
        ),
        "CREATE",
    ),
    (re.compile(r"\bGRANT\b"), "GRANT"),
    (re.compile(r"\bREVOKE\b"), "REVOKE"),
    (re.compile(r"\bEXEC\b"), "EXEC"),
    (re.compile(r"\bEXECUTE\b"), "EXECUTE"),
    (re.compile(r"\bCOPY\b"), "COPY"),
    (re.compile(r"\bPG_"), "PG_"),
    (re.compile(r"\\\\"), "\\\\"),
]

_CTE_BODY = re.compile(r"\b(SELECT|INSERT|UPDATE)\b")
_INSERT_TARGET = re.compile(r"\bINSERT\s+INTO\s+\"?(\w+)\"?")
_UPDATE_TARGET = re.compile(r"\bUPDATE\s+\"?(\w+)\"?")
_UPDATE = re.compile(r"\bUPDATE\b")
_WHERE = re.compile(r"\bWHERE\b")
_RETURNING = re.compile(r"\bRETURNING\b")
_INTO = re.compile(r"\bINTO\b")
_FROM = re.compile(r"\bFROM\b")
_TRAILING_STATEMENT = re.compile(r";\s*\S")


@dataclass(frozen=True)
class Verdict:
    """Outcome of validating one candidate statement."""

    valid: bool
    reason: Optional[str] = None
    rule: Optional[str] = None  # name of the rule that rejected the statement


APPROVED = Verdict(valid=True)


def _own_where(text: str, start: int) -> Optional[int]:
    # index just past the WHERE of the statement starting at ``start``; a WHERE
    # nested in a SET subquery sits deeper and is not the statement's filter
    depth = 0
    in_literal = False
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "'":
            in_literal = not in_literal
        elif in_literal:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return None
        elif ch == ";":
            return None
        elif depth == 0 and (m := _WHERE.match(text, i)):
            return m.end()
    return None


def _where_clause(text: str, start: int) -> str:
    # the clause ends at a parenthesis that closes an enclosing CTE, at a
    # statement terminator, or at RETURNING
    depth = 0
    in_literal = False
    end = len(text)
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "'":
            in_literal = not in_literal
        elif in_literal:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                end = i
                break
        elif ch == ";":
            end = i
            break

    clause = text[start:end]
    if m := _RETURNING.search(clause):
        clause = clause[: m.start()]
    return clause


class SQLSafetyValidator:
    """
    Policy engine for generated SQL.

    Rules, in the order they are applied:
    1. Statement must start with SELECT, INSERT, UPDATE or WITH
    2. A WITH statement must contain SELECT, INSERT or UPDATE
    3. No forbidden keyword (DELETE, DROP, ALTER, GRANT, ...)
    4. INSERT and UPDATE may only target writable tables
    5. UPDATE needs its own WHERE clause, not one of a subquery, on an
       identifying column
    6. No SELECT ... INTO
    7. A single statement only: more than one ";", or any text after a single
       ";", is rejected
    """

    def __init__(
        self,
        writable_tables: Optional[Iterable[str]] = None,
        identifying_columns: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the validator.

        Args:
            writable_tables: Tables INSERT and UPDATE may target
            identifying_columns: Columns an UPDATE filter must reference
        """
        self.writable_tables = frozenset(
            t.upper() for t in (writable_tables or DEFAULT_WRITABLE_TABLES)
        )
        columns = [
            re.escape(c.upper())
            for c in (identifying_columns or DEFAULT_IDENTIFYING_COLUMNS)
        ]
        # whole-word match, tighter than a substring test: "projectId" does not
        # count as "id"
        self._identifying = re.compile(rf"\b({'|'.join(columns)})\b")
        self._identifying_names = ", ".join(
            c.lower() for c in (identifying_columns or DEFAULT_IDENTIFYING_COLUMNS)
        )

    def validate(self, sql: str) -> Verdict:
        """
        Classify a candidate statement.

        Args:
            sql: Candidate SQL statement

        Returns:
            Verdict, valid only when every rule passes
        """
        upper = sql.upper().strip()

        for rule in (
            self._check_statement_kind,
            self._check_cte,
            self._check_forbidden,
            self._check_tables,
            self._check_update_filter,
            self._check_select_into,
        ):
            if (verdict := rule(upper)) is not None:
                return verdict

        return self._check_single_statement(sql)

    def _check_statement_kind(self, upper: str) -> Optional[Verdict]:
        if not upper.startswith(ALLOWED_PREFIXES):
            return Verdict(
                False,
                "Only SELECT, INSERT and UPDATE statements are allowed.",
                "statement_kind",
            )
        return None

    def _check_cte(self, upper: str) -> Optional[Verdict]:
        if upper.startswith("WITH") and not _CTE_BODY.search(upper):
            return Verdict(
                False,
                "WITH clause does not contain a SELECT, INSERT or UPDATE.",
                "cte_body",
            )
        return None

    def _check_forbidden(self, upper: str) -> Optional[Verdict]:
        for pattern, name in FORBIDDEN_PATTERNS:
            if pattern.search(upper):
                return Verdict(
                    False, f"Forbidden keyword found: {name}", "forbidden_keyword"
                )
        return None

    def _check_tables(self, upper: str) -> Optional[Verdict]:
        for kind, pattern in (("INSERT", _INSERT_TARGET), ("UPDATE", _UPDATE_TARGET)):
            for match in pattern.finditer(upper):
                table = match.group(1)
                if table not in self.writable_tables:
                    return Verdict(
                        False,
                        f"{kind} on table {table.lower()} is not allowed.",
                        "table_allowlist",
                    )
        return None

    def _check_update_filter(self, upper: str) -> Optional[Verdict]:
        for update in _UPDATE.finditer(upper):
            where = _own_where(upper, update.end())
            if where is None:
                return Verdict(
                    False,
                    "UPDATE without a WHERE clause is not allowed.",
                    "update_where",
                )
            if not self._identifying.search(_where_clause(upper, where)):
                return Verdict(
                    False,
                    "UPDATE must filter on an identifying column "
                    f"({self._identifying_names}).",
                    "update_identifier",
                )
        return None

    def _check_select_into(self, upper: str) -> Optional[Verdict]:
        if not upper.startswith("SELECT"):
            return None
        if into := _INTO.search(upper):
            frm = _FROM.search(upper)
            if into.start() < (frm.start() if frm else len(upper)):
                return Verdict(False, "SELECT INTO is not allowed.", "select_into")
        return None

    def _check_single_statement(self, sql: str) -> Verdict:
        if sql.count(";") > 1 or _TRAILING_STATEMENT.search(sql):
            return Verdict(
                False, "Multiple statements are not allowed.", "single_statement"
            )
        return APPROVED


_default = SQLSafetyValidator()


def validate(sql: str) -> Verdict:
    """Validate with the default writable tables and identifying columns."""
    return _default.validate(sql)
