from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from nlq.client.http_client import NLQClient, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogReference:
    """Known table names and example questions. Replaced, never mutated."""

    tables: Tuple[str, ...] = ()
    examples: Tuple[str, ...] = ()


EMPTY_CATALOG = CatalogReference()


def _strings(values: Iterable[Any]) -> Tuple[str, ...]:
    """Keep non-empty strings, drop duplicates, preserve order."""
    out: list[str] = []
    for v in values or []:
        if isinstance(v, str) and v.strip() and v not in out:
            out.append(v)
    return tuple(out)


def _load_tables(client: NLQClient) -> Tuple[str, ...]:
    resp = client.fetch_tables()
    nested = resp.data.get("tables") if resp.data else None
    if not isinstance(nested, list):
        nested = None
    return _strings(nested if nested is not None else resp.tables or [])


def _load_examples(client: NLQClient) -> Tuple[str, ...]:
    resp = client.fetch_examples()
    return _strings([*resp.basic_queries, *resp.complex_queries])


def load_catalog(client: NLQClient) -> CatalogReference:
    """
    Fetch tables and example questions concurrently.

    A failed fetch leaves its field empty and is logged; it never blocks the
    other fetch and never propagates to the caller.
    """
    fetchers = {"tables": _load_tables, "examples": _load_examples}
    loaded: dict[str, Tuple[str, ...]] = {}

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = {name: pool.submit(fn, client) for name, fn in fetchers.items()}
        for name, future in futures.items():
            try:
                loaded[name] = future.result()
            except TransportError as e:
                logger.warning("Failed to load catalog %s: %s", name, e)
                loaded[name] = ()
            except Exception:
                logger.warning("Failed to load catalog %s", name, exc_info=True)
                loaded[name] = ()

    catalog = CatalogReference(tables=loaded["tables"], examples=loaded["examples"])
    logger.info("Catalog loaded: tables=%s examples=%s", len(catalog.tables), len(catalog.examples))
    return catalog
