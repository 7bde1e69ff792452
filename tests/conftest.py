"""Pytest configuration and shared fixtures."""

import pytest

from policygraph.config import PolicyGraphSettings, set_settings
from policygraph.models import Edge, Node, NodeType, PolicyGraph, Position


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Start each test from default settings, ignoring the environment."""
    for name in PolicyGraphSettings.model_fields:
        monkeypatch.delenv(f"POLICYGRAPH_{name.upper()}", raising=False)
    set_settings(None)
    yield
    set_settings(None)


@pytest.fixture
def loan_graph():
    """A small complete policy: one input routing to two leaves.

    age --(age >= 18)--> adult --(income > 50000)--> approve
                               --(income <= 50000)--> review
    age --(age < 18)--> deny
    """
    nodes = [
        Node(id="age", label="age", type=NodeType.INPUT, position=Position(x=0, y=0)),
        Node(id="adult", label="income", type=NodeType.CONDITION),
        Node(id="approve", label="approve", type=NodeType.LEAF),
        Node(id="review", label="review", type=NodeType.LEAF),
        Node(id="deny", label="deny", type=NodeType.LEAF),
    ]
    edges = [
        Edge(
            id="e1",
            source="age",
            target="adult",
            label="age >= 18",
            condition={"variable": "age", "op": ">=", "value": "18"},
        ),
        Edge(
            id="e2",
            source="age",
            target="deny",
            label="age < 18",
            condition={"variable": "age", "op": "<", "value": "18"},
            output="deny",
        ),
        Edge(
            id="e3",
            source="adult",
            target="approve",
            label="income > 50000",
            condition={"variable": "income", "op": ">", "value": "50000"},
            output="approve",
        ),
        Edge(
            id="e4",
            source="adult",
            target="review",
            label="income <= 50000",
            condition={"variable": "income", "op": "<=", "value": "50000"},
            output="review",
        ),
    ]
    return PolicyGraph(nodes, edges)
