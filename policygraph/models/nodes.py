"""Node models for the policy graph."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NodeType(str, Enum):
    """Role of a node in a policy graph."""

    INPUT = "input"
    CONDITION = "condition"
    LEAF = "leaf"


class Position(BaseModel):
    """Layout hint for the canvas. Opaque to the core."""

    x: float
    y: float


class Node(BaseModel):
    """A policy graph node.

    Leaf nodes are terminal outcomes and are never the source of an edge.
    """

    id: str = Field(..., description="Unique, stable node ID")
    label: str = Field(
        "", description="Display name, variable name or output value"
    )
    type: Optional[NodeType] = None

    # Reserved for future condition expressions
    expr: Optional[str] = None

    position: Optional[Position] = None

    @property
    def is_leaf(self) -> bool:
        return self.type == NodeType.LEAF
