import threading

import requests

from nlq.core.catalog import CatalogReference, load_catalog

from conftest import FakeResponse


def test_loads_tables_and_examples(client, catalog_routes):
    catalog = load_catalog(client)
    assert catalog == CatalogReference(
        tables=("EMPLOYEE", "DEPARTMENT"),
        examples=("List all regions", "Show employees with their job titles"),
    )


def test_nested_tables_payload(client, fake_session):
    fake_session.route("GET", "/api/nlq/tables", FakeResponse(200, {"data": {"tables": ["REGION", "COUNTRY"]}}))
    fake_session.route("GET", "/api/nlq/examples", FakeResponse(200, {}))
    catalog = load_catalog(client)
    assert catalog.tables == ("REGION", "COUNTRY")
    assert catalog.examples == ()


def test_entries_are_cleaned(client, fake_session):
    fake_session.route("GET", "/api/nlq/tables", FakeResponse(200, {"tables": ["JOB", 42, "", "JOB", None, "TASK"]}))
    fake_session.route("GET", "/api/nlq/examples", FakeResponse(200, {"basic_queries": ["a", "a"], "complex_queries": ["b"]}))
    catalog = load_catalog(client)
    assert catalog.tables == ("JOB", "TASK")
    assert catalog.examples == ("a", "b")


def test_tables_failure_does_not_block_examples(client, catalog_routes, caplog):
    catalog_routes.route("GET", "/api/nlq/tables", FakeResponse(500, {"error": "db down"}))
    catalog = load_catalog(client)
    assert catalog.tables == ()
    assert catalog.examples == ("List all regions", "Show employees with their job titles")
    assert "Failed to load catalog tables" in caplog.text


def test_examples_failure_does_not_block_tables(client, catalog_routes):
    catalog_routes.route("GET", "/api/nlq/examples", requests.ConnectionError("refused"))
    catalog = load_catalog(client)
    assert catalog.tables == ("EMPLOYEE", "DEPARTMENT")
    assert catalog.examples == ()


def test_bad_shapes_yield_empty_fields(client, fake_session):
    fake_session.route("GET", "/api/nlq/tables", FakeResponse(200, ["not", "an", "object"]))
    fake_session.route("GET", "/api/nlq/examples", FakeResponse(200, {"basic_queries": "nope"}))
    assert load_catalog(client) == CatalogReference()


def test_fetches_run_concurrently(client, fake_session):
    barrier = threading.Barrier(2, timeout=5)

    def tables(**kwargs):
        barrier.wait()
        return FakeResponse(200, {"tables": ["JOB"]})

    def examples(**kwargs):
        barrier.wait()
        return FakeResponse(200, {"basic_queries": ["List all jobs"]})

    fake_session.route("GET", "/api/nlq/tables", tables)
    fake_session.route("GET", "/api/nlq/examples", examples)
    catalog = load_catalog(client)
    assert catalog.tables == ("JOB",)
    assert catalog.examples == ("List all jobs",)


def test_empty_nested_tables_win_over_top_level(client, fake_session):
    fake_session.route("GET", "/api/nlq/tables", FakeResponse(200, {"data": {"tables": []}, "tables": ["JOB"]}))
    fake_session.route("GET", "/api/nlq/examples", FakeResponse(200, {}))
    assert load_catalog(client).tables == ()
