from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import requests

from nlq.client.http_client import NLQClient

BASE_URL = "http://nlq.test"


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self._text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._text is not None:
            raise ValueError("not json")
        return self._body

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


Handler = Callable[..., FakeResponse]


class FakeSession:
    """Stands in for requests.Session; routes by (method, path)."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def route(self, method: str, path: str, reply: Any) -> None:
        self.routes[(method, path)] = reply

    def _dispatch(self, method: str, url: str, **kwargs) -> FakeResponse:
        path = url[len(BASE_URL):]
        with self._lock:
            self.calls.append({"method": method, "path": path, **kwargs})
        reply = self.routes.get((method, path))
        if reply is None:
            return FakeResponse(404, {"error": "not found"})
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(**kwargs)
        return reply

    def get(self, url: str, **kwargs) -> FakeResponse:
        return self._dispatch("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> FakeResponse:
        return self._dispatch("POST", url, **kwargs)

    def posts(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == "POST"]


def query_body(rows: Any, cols: Any, sql: str = 'SELECT * FROM "employee"', **extra) -> Dict[str, Any]:
    body = {
        "sql": sql,
        "data": {"data": {"rows": rows, "cols": cols}},
        "status": "success",
        "timestamp": 1700000000000,
    }
    body.update(extra)
    return body


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def client(fake_session: FakeSession) -> NLQClient:
    return NLQClient(BASE_URL, session=fake_session)


@pytest.fixture()
def catalog_routes(fake_session: FakeSession) -> FakeSession:
    fake_session.route("GET", "/api/nlq/tables", FakeResponse(200, {"tables": ["EMPLOYEE", "DEPARTMENT"]}))
    fake_session.route(
        "GET",
        "/api/nlq/examples",
        FakeResponse(200, {"basic_queries": ["List all regions"], "complex_queries": ["Show employees with their job titles"]}),
    )
    return fake_session
