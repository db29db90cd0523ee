"""Shared test fixtures and configuration."""

from datetime import datetime, timezone
import os

import pytest

from query_pipeline.config import get_settings


# Complete test environment that overrides every host setting
TEST_ENV = {
    "QUERY_PIPELINE_LOG_LEVEL": "debug",
    "QUERY_PIPELINE_JSON_LOGS": "false",
    "QUERY_PIPELINE_SERVICE_NAME": "query-pipeline-tests",
    "QUERY_PIPELINE_DEBOUNCE_TIMEOUT_MS": "150",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset host settings to test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def people():
    """Nested records covering strings, numbers, nulls, lists and dates."""
    return [
        {
            "id": 1,
            "name": "Alice",
            "age": 34,
            "active": True,
            "address": {"city": "Lisbon", "zip": "1000"},
            "tags": ["admin", "ops"],
            "joined": datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        },
        {
            "id": 2,
            "name": "Bob",
            "age": 25,
            "active": False,
            "address": {"city": "Porto", "zip": None},
            "tags": ["dev"],
            "joined": datetime(2022, 1, 1, tzinfo=timezone.utc),
        },
        {
            "id": 3,
            "name": "Carol",
            "age": None,
            "active": True,
            "address": None,
            "tags": [],
            "joined": None,
        },
        {
            "id": 4,
            "name": "Dave",
            "age": 41,
            "active": True,
            "address": {"city": "Lisbon"},
            "tags": ["dev", "ops"],
        },
    ]


@pytest.fixture
def ids():
    """Return the ``id`` of each record, in order."""

    def _ids(records):
        return [record["id"] for record in records]

    return _ids
