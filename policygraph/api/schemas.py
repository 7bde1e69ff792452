"""Request and response schemas for API endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from policygraph.models import Condition, Edge, Node, NodeType, Position
from policygraph.workflow import DraftState, EdgeDraft

# =============================================================================
# Request Schemas
# =============================================================================


class NodeCreate(BaseModel):
    """Request schema for creating a node."""

    label: str
    type: Optional[NodeType] = NodeType.CONDITION
    position: Optional[Position] = None
    id: Optional[str] = Field(None, description="Allocated when omitted")
    expr: Optional[str] = None


class NodeUpdate(BaseModel):
    """Request schema for updating a node."""

    label: Optional[str] = None
    expr: Optional[str] = None
    position: Optional[Position] = None


class ConnectRequest(BaseModel):
    """Request schema for a plain edge between two nodes."""

    source: str
    target: str
    label: Optional[str] = None


class SelectionDelete(BaseModel):
    """Request schema for deleting several nodes and edges."""

    node_ids: List[str] = Field(default_factory=list)
    edge_ids: List[str] = Field(default_factory=list)


class DraftStart(BaseModel):
    """Request schema for starting an edge draft."""

    source: str


class DraftPropose(BaseModel):
    """Request schema for proposing a draft target and condition.

    Omit ``target`` to propose a new leaf.
    """

    target: Optional[str] = None
    condition: Optional[Condition] = None
    output: Optional[str] = None
    position: Optional[Position] = None


class DraftText(BaseModel):
    """Request schema for text typed into the draft's value field."""

    text: str


class ImportRequest(BaseModel):
    """Request schema for importing a JSON document."""

    text: str


# =============================================================================
# Response Schemas
# =============================================================================


class GraphResponse(BaseModel):
    """Current nodes and edges."""

    nodes: List[Node]
    edges: List[Edge]


class DraftResponse(BaseModel):
    """Workflow state and the open draft, if any."""

    state: DraftState
    draft: Optional[EdgeDraft] = None


class ValidationReport(BaseModel):
    """Export readiness summary."""

    invalid_nodes: List[str]
    roots: List[str]
    json_ready: bool
    dot_ready: bool
