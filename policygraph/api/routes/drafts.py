"""Drafts router - the edge draft workflow."""

from fastapi import APIRouter, Depends

from policygraph.api.dependencies import get_editor
from policygraph.api.schemas import DraftPropose, DraftResponse, DraftStart, DraftText
from policygraph.editor import PolicyEditor
from policygraph.models import Edge

router = APIRouter()


def _draft_response(editor: PolicyEditor) -> DraftResponse:
    return DraftResponse(state=editor.draft_state, draft=editor.draft)


@router.get("", response_model=DraftResponse)
async def get_draft(editor: PolicyEditor = Depends(get_editor)) -> DraftResponse:
    """Get the open draft."""
    return _draft_response(editor)


@router.post("/start", response_model=DraftResponse)
async def start_draft(
    request: DraftStart,
    editor: PolicyEditor = Depends(get_editor),
) -> DraftResponse:
    """Open a draft from a source node."""
    editor.start_draft(request.source)
    return _draft_response(editor)


@router.post("/propose", response_model=DraftResponse)
async def propose_draft(
    request: DraftPropose,
    editor: PolicyEditor = Depends(get_editor),
) -> DraftResponse:
    """Attach a target (or a new leaf) and a condition to the draft."""
    editor.propose_draft(
        request.target,
        request.condition,
        output=request.output,
        position=request.position,
    )
    return _draft_response(editor)


@router.post("/condition-text", response_model=DraftResponse)
async def type_condition(
    request: DraftText,
    editor: PolicyEditor = Depends(get_editor),
) -> DraftResponse:
    """Apply text typed into the draft's value field."""
    editor.type_condition(request.text)
    return _draft_response(editor)


@router.post("/commit", response_model=Edge)
async def commit_draft(editor: PolicyEditor = Depends(get_editor)) -> Edge:
    """Commit the draft. Conflicts answer 409 and leave the draft pending."""
    return editor.commit_draft()


@router.post("/replace", response_model=Edge)
async def replace_conflicts_and_commit(
    editor: PolicyEditor = Depends(get_editor),
) -> Edge:
    """Delete the conflicting sibling edges and commit the draft."""
    return editor.replace_conflicts_and_commit()


@router.post("/cancel", response_model=DraftResponse)
async def cancel_draft(editor: PolicyEditor = Depends(get_editor)) -> DraftResponse:
    """Discard the draft."""
    editor.cancel_draft()
    return _draft_response(editor)
