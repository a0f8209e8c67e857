from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1)


class QueryEnvelope(BaseModel):
    """Top-level fields of a query reply. The tabular part stays untyped."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sql: Optional[str] = None
    data: Any = None
    available_tables: Optional[List[str]] = Field(default=None, alias="availableTables")
    status: Any = None
    timestamp: Any = None
    error: Optional[str] = None

    @field_validator("available_tables", mode="before")
    @classmethod
    def _keep_table_names(cls, value: Any) -> Optional[List[str]]:
        # Debug-only field; irregular entries must not fail the whole reply
        if not isinstance(value, (list, tuple)):
            return None
        return [v for v in value if isinstance(v, str)]


class TablesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Older backends nest the list under "data"
    tables: Optional[List[Any]] = None
    data: Optional[Dict[str, Any]] = None


class ExamplesResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    basic_queries: List[Any] = Field(default_factory=list)
    complex_queries: List[Any] = Field(default_factory=list)


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status: str = "unknown"
    database: Optional[str] = None
    table_count: Optional[int] = Field(default=None, alias="tableCount")
    metabase: Optional[str] = None
