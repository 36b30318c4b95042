"""
Tests for the HTTP transport
"""

import json
import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from graph_sql.api.app import create_app
from graph_sql.config import Settings
from graph_sql.database.connection import reset_database


@pytest.fixture
def bakery_file(tmp_path: Path) -> Path:
    path = tmp_path / "api.db"
    with sqlite3.connect(path) as conn:
        conn.executescript(
            """
            CREATE TABLE cake(id INTEGER PRIMARY KEY, name TEXT NOT NULL, price REAL);
            CREATE TABLE fruit(
              id INTEGER PRIMARY KEY,
              name TEXT NOT NULL,
              cake_id INTEGER NOT NULL REFERENCES cake(id)
            );
            INSERT INTO cake(name, price) VALUES ('Fudge', 25.99), ('Lemon', 24.75);
            INSERT INTO fruit(name, cake_id) VALUES ('Strawberry', 1);
            """
        )
    return path


def make_client(path: Path, **overrides) -> TestClient:
    app_settings = Settings(excluded_tables=[], **overrides)
    return TestClient(create_app(database_url=f"sqlite:///{path}", app_settings=app_settings))


@pytest.fixture
def client(bakery_file: Path) -> Generator[TestClient, None, None]:
    with make_client(bakery_file) as test_client:
        yield test_client
    reset_database()


class TestGraphQLEndpoint:
    """POST /graphql"""

    def test_query(self, client):
        response = client.post(
            "/graphql",
            json={"query": "{ cake { list(input: {page: 1, limit: 10}) { id name price } } }"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "data": {
                "cake": {
                    "list": [
                        {"id": 1, "name": "Fudge", "price": 25.99},
                        {"id": 2, "name": "Lemon", "price": 24.75},
                    ]
                }
            }
        }

    def test_variables_and_operation_name(self, client):
        response = client.post(
            "/graphql",
            json={
                "query": """
                    query Other { cake { __typename } }
                    query Fruit($id: Int!) {
                      fruit { view(input: {id: $id}) { name cake { name } } }
                    }
                """,
                "variables": {"id": 1},
                "operationName": "Fruit",
            },
        )

        assert response.json() == {
            "data": {"fruit": {"view": {"name": "Strawberry", "cake": {"name": "Fudge"}}}}
        }

    def test_mutation_error_reported_with_code(self, client):
        response = client.post(
            "/graphql",
            json={"query": "mutation { update_cake(id: 99, input: {price: 1.0}) { id } }"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"] == {"update_cake": None}
        assert body["errors"][0]["extensions"]["code"] == "NOT_FOUND"

    def test_request_id_header(self, client):
        response = client.post(
            "/graphql",
            json={"query": "{ cake { __typename } }"},
            headers={"X-Request-ID": "req-123"},
        )

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_reaches_logs(self, bakery_file, capsys):
        """Test that log lines written while serving a request carry its id."""
        with make_client(bakery_file) as test_client:
            test_client.post(
                "/graphql",
                json={"query": "{ cake { missing } }"},
                headers={"X-Request-ID": "req-456"},
            )
        reset_database()

        lines = [
            json.loads(line)
            for line in capsys.readouterr().out.splitlines()
            if line.startswith("{")
        ]
        rejected = [line for line in lines if line["event"] == "Rejected invalid query"]
        assert rejected[0]["request_id"] == "req-456"

    def test_empty_query_rejected(self, client):
        response = client.post("/graphql", json={"query": ""})

        assert response.status_code == 422


class TestSchemaEndpoints:
    def test_schema_sdl(self, client):
        response = client.get("/schema")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "type cake_node {" in response.text

    def test_reload_disabled_by_default(self, client):
        assert client.post("/schema/reload").status_code in (404, 405)

    def test_reload_when_enabled(self, bakery_file):
        with make_client(bakery_file, enable_schema_reload=True) as client:
            with sqlite3.connect(bakery_file) as conn:
                conn.execute("CREATE TABLE note(id INTEGER PRIMARY KEY, body TEXT)")

            response = client.post("/schema/reload")

            assert response.status_code == 200
            assert response.json()["version"] == 2
            assert "note" in response.json()["tables"]
            assert "type note_node {" in client.get("/schema").text
        reset_database()

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["schema_version"] == 1
