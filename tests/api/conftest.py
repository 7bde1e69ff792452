"""Pytest fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from policygraph.api import dependencies
from policygraph.api.main import create_app
from policygraph.editor import PolicyEditor


@pytest.fixture
def editor(loan_graph):
    """Editor session over the loan policy."""
    return PolicyEditor(loan_graph)


@pytest.fixture
def client(editor):
    """Create a test client bound to the editor fixture."""
    app = create_app()
    app.dependency_overrides[dependencies.get_editor] = lambda: editor

    with TestClient(app) as test_client:
        yield test_client

    dependencies.reset_editor()
