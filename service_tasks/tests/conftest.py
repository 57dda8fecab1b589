"""
Fixtures for tasks service tests.
"""

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from service_tasks.app.config import TasksConfig
from service_tasks.app.main import TasksService
from service_tasks.tests.fakes import FakeTaskStore


@pytest.fixture
def config():
    """Tasks configuration that never touches the environment's database."""
    return TasksConfig(log_level="warning", db_host="db.invalid")


@pytest.fixture
def store():
    return FakeTaskStore()


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def service(config, store, registry):
    """TasksService wired to the in-memory store."""
    return TasksService(config=config, store=store, registry=registry)


@pytest.fixture
def client(service):
    """Test client; entering it runs the startup hooks."""
    with TestClient(service.app) as test_client:
        yield test_client
