"""
SQL extraction from raw generation output.
"""

from typing import Optional

NO_SQL_SENTINEL = "no_sql"

_OPEN_FENCES = ("```sql", "```")
_CLOSE_FENCE = "```"


def extract_sql(raw: Optional[str]) -> Optional[str]:
    """
    Turn a raw model answer into a candidate statement.

    Args:
        raw: Text returned by the generation backend

    Returns:
        The trimmed SQL, or None when the answer signals that no query is
        needed (NO_SQL anywhere, any case) or nothing is left after removing
        the code fences
    """
    if raw is None:
        return None

    sql = raw.strip()
    if NO_SQL_SENTINEL in sql.lower():
        return None

    for fence in _OPEN_FENCES:
        if sql[: len(fence)].lower() == fence:
            sql = sql[len(fence) :]
            break
    if sql.endswith(_CLOSE_FENCE):
        sql = sql[: -len(_CLOSE_FENCE)]

    return sql.strip() or None
