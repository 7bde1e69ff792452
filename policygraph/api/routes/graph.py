"""Graph router - node and edge mutations."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from policygraph.api.dependencies import get_editor
from policygraph.api.schemas import (
    ConnectRequest,
    GraphResponse,
    NodeCreate,
    NodeUpdate,
    SelectionDelete,
)
from policygraph.editor import PolicyEditor
from policygraph.models import Condition, Edge, Node

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=GraphResponse)
async def get_graph(editor: PolicyEditor = Depends(get_editor)) -> GraphResponse:
    """Get all nodes and edges."""
    return GraphResponse(nodes=editor.nodes, edges=editor.edges)


@router.post("/nodes", response_model=Node, status_code=status.HTTP_201_CREATED)
async def create_node(
    request: NodeCreate,
    editor: PolicyEditor = Depends(get_editor),
) -> Node:
    """Create a node."""
    return editor.add_node(
        request.label,
        type=request.type,
        position=request.position,
        node_id=request.id,
        expr=request.expr,
    )


@router.patch("/nodes/{node_id}", response_model=Node)
async def update_node(
    node_id: str,
    request: NodeUpdate,
    editor: PolicyEditor = Depends(get_editor),
) -> Node:
    """Update a node's label, expr or position."""
    changes = request.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    return editor.update_node(node_id, **changes)


@router.delete("/nodes/{node_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_node(
    node_id: str,
    editor: PolicyEditor = Depends(get_editor),
) -> None:
    """Delete a node and its edges. Deleting an unknown node is a no-op."""
    editor.remove_node(node_id)


@router.post("/edges", response_model=Edge, status_code=status.HTTP_201_CREATED)
async def connect_nodes(
    request: ConnectRequest,
    editor: PolicyEditor = Depends(get_editor),
) -> Edge:
    """Connect two nodes with an unconditioned edge."""
    return editor.connect_nodes(request.source, request.target, request.label)


@router.put("/edges/{edge_id}/condition", response_model=Edge)
async def update_edge_condition(
    edge_id: str,
    condition: Condition,
    editor: PolicyEditor = Depends(get_editor),
) -> Edge:
    """Change an edge's condition."""
    return editor.update_edge_condition(edge_id, condition)


@router.delete("/edges/{edge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_edge(
    edge_id: str,
    editor: PolicyEditor = Depends(get_editor),
) -> None:
    """Delete an edge. Deleting an unknown edge is a no-op."""
    editor.remove_edge(edge_id)


@router.post("/selection/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_selection(
    request: SelectionDelete,
    editor: PolicyEditor = Depends(get_editor),
) -> None:
    """Delete several nodes and edges."""
    logger.info(
        f"Deleting selection: nodes={len(request.node_ids)}, "
        f"edges={len(request.edge_ids)}"
    )
    editor.remove_selection(request.node_ids, request.edge_ids)
