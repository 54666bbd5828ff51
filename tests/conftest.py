"""Shared pytest fixtures for test modules."""

import sqlite3
from collections.abc import Generator

import pytest

from sandlot_scoring.db.connection import create_connection


@pytest.fixture
def conn() -> Generator[sqlite3.Connection]:
    connection = create_connection(":memory:")
    yield connection
    connection.close()
