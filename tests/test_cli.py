"""
Tests for the command line
"""

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from graph_sql import __version__
from graph_sql.cli import cli


@pytest.fixture
def database_file(tmp_path: Path) -> Path:
    path = tmp_path / "cli.db"
    with sqlite3.connect(path) as conn:
        conn.executescript(
            """
            CREATE TABLE author(id INTEGER PRIMARY KEY, name TEXT NOT NULL);
            CREATE TABLE book(
              id INTEGER PRIMARY KEY,
              title TEXT NOT NULL,
              author_id INTEGER REFERENCES author(id)
            );
            """
        )
    return path


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_introspect_prints_sdl(database_file):
    result = CliRunner().invoke(cli, ["introspect", "--database-url", f"sqlite:///{database_file}"])

    assert result.exit_code == 0, result.output
    assert "type book_node {" in result.output
    assert "author: author_node" in result.output


def test_introspect_writes_file(database_file, tmp_path):
    output = tmp_path / "schema.graphql"

    result = CliRunner().invoke(
        cli,
        ["introspect", "--database-url", f"sqlite:///{database_file}", "--output", str(output)],
    )

    assert result.exit_code == 0, result.output
    sdl = output.read_text(encoding="utf-8")
    assert "type Query {" in sdl
    assert "insert_book(input: insert_book_input!): book_node" in sdl


def test_introspect_reports_invalid_schema(tmp_path):
    empty = tmp_path / "empty.db"
    sqlite3.connect(empty).close()

    result = CliRunner().invoke(cli, ["introspect", "--database-url", f"sqlite:///{empty}"])

    assert result.exit_code == 1


def test_serve_passes_options_to_uvicorn(database_file):
    """Test that serve builds the app for the given database and runs uvicorn."""
    with patch("graph_sql.cli.uvicorn.run") as run:
        result = CliRunner().invoke(
            cli,
            [
                "serve",
                "--host",
                "127.0.0.1",
                "--port",
                "9001",
                "--database-url",
                f"sqlite:///{database_file}",
            ],
        )

    assert result.exit_code == 0, result.output
    run.assert_called_once()
    _, kwargs = run.call_args
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9001
    assert kwargs["log_level"] == "info"
