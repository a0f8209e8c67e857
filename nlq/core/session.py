from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple

from nlq.client.http_client import QUERY_FAILED_MESSAGE, NLQClient, QueryReply, TransportError
from nlq.core.catalog import EMPTY_CATALOG, CatalogReference, load_catalog
from nlq.core.mismatch import MismatchSuggestion, detect_mismatch
from nlq.core.normalizer import Grid, GridStatus, normalize

logger = logging.getLogger(__name__)

EMPTY_QUERY_MESSAGE = "Please enter a query"


class Lifecycle(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class QueryValidationError(ValueError):
    pass


def validate_query_text(text: Optional[str]) -> str:
    """Return the trimmed query text or raise QueryValidationError if blank."""
    query = (text or "").strip()
    if not query:
        raise QueryValidationError(EMPTY_QUERY_MESSAGE)
    return query


@dataclass(frozen=True)
class QueryResult:
    sql: Optional[str]
    grid: Optional[Grid]
    grid_status: GridStatus
    available_tables: Optional[Tuple[str, ...]]
    raw_payload: Any

    @classmethod
    def from_reply(cls, reply: QueryReply) -> "QueryResult":
        normalized = normalize(reply.payload)
        tables = reply.envelope.available_tables
        return cls(
            sql=reply.envelope.sql,
            grid=normalized.grid,
            grid_status=normalized.status,
            available_tables=tuple(tables) if tables is not None else None,
            raw_payload=reply.payload,
        )


@dataclass(frozen=True)
class SessionState:
    """
    One widget's query session.

    ``response`` is set only when SUCCEEDED and ``error_message`` only when
    FAILED; both are None while SUBMITTING.
    """

    query_text: str = ""
    lifecycle: Lifecycle = Lifecycle.IDLE
    response: Optional[QueryResult] = None
    error_message: Optional[str] = None


class QuerySessionController:
    """
    Owns the query session of a single widget mount.

    Every submit takes a sequence number; a reply is applied only if no newer
    submit has started since, so a slow stale request cannot overwrite the
    state of a newer one. In-flight requests are never cancelled.
    """

    def __init__(self, client: NLQClient, catalog: Optional[CatalogReference] = None):
        self.client = client
        self.catalog = catalog or EMPTY_CATALOG
        self._state = SessionState()
        self._lock = threading.Lock()
        self._seq = 0

    @classmethod
    def mount(cls, client: NLQClient) -> "QuerySessionController":
        """Create a controller and load the catalog once."""
        return cls(client, catalog=load_catalog(client))

    # -----------------------------
    # State access
    # -----------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def query_text(self) -> str:
        return self._state.query_text

    @property
    def lifecycle(self) -> Lifecycle:
        return self._state.lifecycle

    @property
    def response(self) -> Optional[QueryResult]:
        return self._state.response

    @property
    def error_message(self) -> Optional[str]:
        return self._state.error_message

    @property
    def loading(self) -> bool:
        return self._state.lifecycle is Lifecycle.SUBMITTING

    def _update(self, **changes) -> None:
        with self._lock:
            self._state = replace(self._state, **changes)

    # -----------------------------
    # Operations
    # -----------------------------
    def set_query_text(self, text: str) -> None:
        self._update(query_text=text)

    def refresh_catalog(self) -> CatalogReference:
        self.catalog = load_catalog(self.client)
        return self.catalog

    def select_example(self, text: str) -> None:
        """Put an example in the input and clear any error. Does not submit."""
        self._update(query_text=text)
        self.dismiss_error()

    def dismiss_error(self) -> None:
        with self._lock:
            if self._state.lifecycle is Lifecycle.FAILED:
                self._state = replace(self._state, lifecycle=Lifecycle.IDLE, error_message=None)

    def submit(self, text: Optional[str] = None) -> Lifecycle:
        """
        Submit ``text`` (or the live query text) to the backend.

        Blank input fails immediately without a request. Otherwise exactly one
        request is sent and the session ends SUCCEEDED or FAILED, unless a
        newer submit started in the meantime.
        """
        candidate = self._state.query_text if text is None else text
        try:
            query = validate_query_text(candidate)
        except QueryValidationError as e:
            with self._lock:
                self._seq += 1
                self._state = replace(
                    self._state, lifecycle=Lifecycle.FAILED, response=None, error_message=str(e)
                )
            logger.info("Rejected blank query")
            return Lifecycle.FAILED

        with self._lock:
            self._seq += 1
            seq = self._seq
            self._state = replace(
                self._state, lifecycle=Lifecycle.SUBMITTING, response=None, error_message=None
            )
        logger.info("Query #%s submitted", seq)

        try:
            reply = self.client.post_query(query)
            result = QueryResult.from_reply(reply)
        except TransportError as e:
            self._finish(seq, lifecycle=Lifecycle.FAILED, error_message=e.message)
            return self.lifecycle
        except Exception:
            logger.error("Query #%s failed unexpectedly", seq, exc_info=True)
            self._finish(seq, lifecycle=Lifecycle.FAILED, error_message=QUERY_FAILED_MESSAGE)
            return self.lifecycle

        self._finish(seq, lifecycle=Lifecycle.SUCCEEDED, response=result)
        return self.lifecycle

    def _finish(self, seq: int, **changes) -> bool:
        with self._lock:
            if seq != self._seq:
                logger.debug("Dropping stale reply for query #%s (latest is #%s)", seq, self._seq)
                return False
            self._state = replace(self._state, **{"response": None, "error_message": None, **changes})
        logger.info("Query #%s finished: %s", seq, changes["lifecycle"].value)
        return True

    def retry_with_suggestion(self, text: str) -> Lifecycle:
        self._update(query_text=text)
        return self.submit(text)

    def handle_key(self, key: str, *, ctrl: bool = False) -> bool:
        """Ctrl+Enter in the query field submits. Returns True if handled."""
        if key == "Enter" and ctrl:
            self.submit()
            return True
        return False

    def mismatch_suggestion(self) -> Optional[MismatchSuggestion]:
        """
        Suggest a corrective query when the backend answered but its payload
        could not be turned into a grid. Recomputed from the current state.
        """
        state = self._state
        if state.lifecycle is not Lifecycle.SUCCEEDED or state.response is None:
            return None
        if state.response.grid_status is not GridStatus.MALFORMED:
            return None
        return detect_mismatch(state.query_text, state.response.sql, self.catalog.tables)
