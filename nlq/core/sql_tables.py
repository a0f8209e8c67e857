from __future__ import annotations

import logging
from typing import Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

logger = logging.getLogger(__name__)

# The backend quotes identifiers with double quotes
DEFAULT_DIALECT = "postgres"


def referenced_tables(sql: Optional[str], dialect: str = DEFAULT_DIALECT) -> list[str]:
    """Unqualified table names referenced by the SQL, in first-seen order.

    Returns an empty list when the SQL is empty or does not parse.
    """
    if not sql or not sql.strip():
        return []
    try:
        statements = sqlglot.parse(sql.strip().rstrip(";"), read=dialect)
    except SqlglotError as e:
        logger.debug("Could not parse generated SQL: %s", e)
        return []

    tables: list[str] = []
    for parsed in statements:
        if parsed is None:
            continue
        for t in parsed.find_all(exp.Table):
            if t.name and t.name not in tables:
                tables.append(t.name)
    return tables
