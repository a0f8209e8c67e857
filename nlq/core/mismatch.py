from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class MismatchSuggestion:
    message: str
    suggested_query: str
    table_name: str


def suggested_query_for(table: str) -> str:
    return f"Show all records from the {table} table"


def detect_mismatch(query_text: str, sql: Optional[str], tables: Iterable[str]) -> Optional[MismatchSuggestion]:
    """
    Flag a question that names a known table while the generated SQL never
    references that table as a quoted identifier.

    Plain case-insensitive substring checks; the first table in catalog order
    wins. False positives and negatives are expected.
    """
    if not sql or not query_text:
        return None

    lower_query = query_text.lower().strip()
    lower_sql = sql.lower()
    for table in tables:
        name = table.lower()
        if name in lower_query and f'"{name}"' not in lower_sql:
            return MismatchSuggestion(
                message=f'The query asked for data related to "{table}", but the SQL used a different table.',
                suggested_query=suggested_query_for(table),
                table_name=table,
            )
    return None
