"""Export router - validation, export and import."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from policygraph.api.dependencies import get_editor
from policygraph.api.schemas import GraphResponse, ImportRequest, ValidationReport
from policygraph.editor import PolicyEditor

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/validate", response_model=ValidationReport)
async def validate(editor: PolicyEditor = Depends(get_editor)) -> ValidationReport:
    """Report nodes that cannot reach a leaf, and the root nodes."""
    invalid = editor.validate_graph_for_export()
    roots = editor.find_roots()
    return ValidationReport(
        invalid_nodes=invalid,
        roots=roots,
        json_ready=not invalid,
        dot_ready=not invalid and len(roots) == 1,
    )


@router.get("/roots", response_model=List[str])
async def roots(editor: PolicyEditor = Depends(get_editor)) -> List[str]:
    """List nodes with no incoming edges."""
    return editor.find_roots()


@router.get("/json", response_class=PlainTextResponse)
async def export_json(editor: PolicyEditor = Depends(get_editor)) -> str:
    """Export the graph as JSON after the completeness check."""
    return editor.request_export_json()


@router.get("/dot", response_class=PlainTextResponse)
async def export_dot(editor: PolicyEditor = Depends(get_editor)) -> str:
    """Export the graph as DOT after completeness and single-root checks."""
    return editor.request_export_dot()


@router.post("/import", response_model=GraphResponse)
async def import_json(
    request: ImportRequest,
    editor: PolicyEditor = Depends(get_editor),
) -> GraphResponse:
    """Replace the graph with a JSON document."""
    editor.import_json(request.text)
    return GraphResponse(nodes=editor.nodes, edges=editor.edges)
