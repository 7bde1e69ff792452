"""Policy graph models.

This module exports the graph data model:
- PolicyGraph: Owner of the node and edge collections
- Node, NodeType, Position: Graph nodes
- Edge, Condition: Connections between nodes and their routing conditions
"""

from policygraph.models.edge import SUPPORTED_OPS, Condition, Edge
from policygraph.models.graph import PolicyGraph
from policygraph.models.nodes import Node, NodeType, Position

__all__ = [
    "PolicyGraph",
    "Node",
    "NodeType",
    "Position",
    "Edge",
    "Condition",
    "SUPPORTED_OPS",
]
