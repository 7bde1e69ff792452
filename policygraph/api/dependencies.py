"""FastAPI dependencies.

One PolicyEditor per process: the editing session is single-user and
in-memory, and is lost on restart unless exported.
"""

import logging
from typing import Optional

from policygraph.editor import PolicyEditor

logger = logging.getLogger(__name__)

_editor: Optional[PolicyEditor] = None


def get_editor() -> PolicyEditor:
    """Get the PolicyEditor singleton."""
    global _editor
    if _editor is None:
        _editor = PolicyEditor()
        logger.info("PolicyEditor session created")
    return _editor


def reset_editor() -> None:
    """Drop the current session."""
    global _editor
    _editor = None
    logger.debug("PolicyEditor session reset")
