from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from nlq.client.schemas import (
    ExamplesResponse,
    HealthResponse,
    QueryEnvelope,
    QueryRequest,
    TablesResponse,
)
from nlq.config import WidgetConfig, get_widget_config

logger = logging.getLogger(__name__)

QUERY_FAILED_MESSAGE = "Failed to process query"


class TransportError(RuntimeError):
    """Backend call failed: network error, non-2xx, bad body or an ``error`` field."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class CatalogLoadError(TransportError):
    pass


@dataclass(frozen=True)
class QueryReply:
    envelope: QueryEnvelope
    payload: Dict[str, Any]


def _error_field(body: Any) -> Optional[str]:
    """Return the backend-reported error, or None when the body carries none."""
    if not isinstance(body, dict) or body.get("error") is None:
        return None
    err = body["error"]
    return str(err) if err != "" else QUERY_FAILED_MESSAGE


class NLQClient:
    """Thin requests-based client for the NLQ backend endpoints."""

    QUERY_PATH = "/api/nlq"
    TABLES_PATH = "/api/nlq/tables"
    EXAMPLES_PATH = "/api/nlq/examples"
    HEALTH_PATH = "/api/nlq/health"

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout_s: float = 120.0,
        catalog_timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self.catalog_timeout_s = catalog_timeout_s
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Optional[WidgetConfig] = None, **kwargs) -> "NLQClient":
        cfg = cfg or get_widget_config()
        return cls(
            cfg.api_url,
            token=cfg.api_token,
            timeout_s=cfg.timeout_s,
            catalog_timeout_s=cfg.catalog_timeout_s,
            **kwargs,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_json(self, path: str, error_cls: type = CatalogLoadError) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, headers=self._headers(), timeout=self.catalog_timeout_s)
            r.raise_for_status()
            return r.json()
        except requests.HTTPError as e:
            status_code = getattr(e.response, "status_code", None)
            raise error_cls(f"GET {path} failed: {e}", status_code=status_code) from e
        except (requests.RequestException, ValueError) as e:
            raise error_cls(f"GET {path} failed: {e}") from e

    def fetch_tables(self) -> TablesResponse:
        body = self._get_json(self.TABLES_PATH)
        try:
            return TablesResponse.model_validate(body)
        except ValidationError as e:
            raise CatalogLoadError(f"Unexpected tables payload: {e}", payload=body) from e

    def fetch_examples(self) -> ExamplesResponse:
        body = self._get_json(self.EXAMPLES_PATH)
        try:
            return ExamplesResponse.model_validate(body)
        except ValidationError as e:
            raise CatalogLoadError(f"Unexpected examples payload: {e}", payload=body) from e

    def health(self) -> HealthResponse:
        return HealthResponse.model_validate(self._get_json(self.HEALTH_PATH, TransportError))

    def post_query(self, text: str) -> QueryReply:
        """
        POST the question and return the decoded reply.
        Raises TransportError for anything the widget should show as a failure.
        """
        req = QueryRequest(query=text)
        url = f"{self.base_url}{self.QUERY_PATH}"
        logger.info("Submitting query to %s", url)
        try:
            r = self.session.post(
                url,
                json=req.model_dump(),
                headers=self._headers(),
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.error("Backend request failed: %s", e, exc_info=True)
            raise TransportError(f"Backend unreachable: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if not r.ok:
            message = _error_field(body) or QUERY_FAILED_MESSAGE
            logger.warning("Backend returned HTTP %s: %s", r.status_code, message)
            raise TransportError(message, status_code=r.status_code, payload=body)

        if not isinstance(body, dict):
            logger.warning("Backend returned a non-object body (HTTP %s)", r.status_code)
            raise TransportError(QUERY_FAILED_MESSAGE, status_code=r.status_code, payload=body)

        message = _error_field(body)
        if message is not None:
            logger.warning("Backend reported an error: %s", message)
            raise TransportError(message, status_code=r.status_code, payload=body)

        try:
            envelope = QueryEnvelope.model_validate(body)
        except ValidationError as e:
            logger.warning("Unexpected query envelope: %s", e)
            raise TransportError(QUERY_FAILED_MESSAGE, status_code=r.status_code, payload=body) from e

        logger.debug("Query reply status=%s sql=%s", envelope.status, envelope.sql)
        return QueryReply(envelope=envelope, payload=body)
