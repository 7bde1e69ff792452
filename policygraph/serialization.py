"""JSON interchange and DOT export for policy graphs."""

import json
import logging
import re
from typing import List, Optional, Sequence, Tuple

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from policygraph.config import get_settings
from policygraph.exceptions import ParseError
from policygraph.models import Edge, Node

logger = logging.getLogger(__name__)

_DOT_ID = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|-?(?:\d+(?:\.\d*)?|\.\d+)")

# Reserved words, matched case-insensitively
_DOT_KEYWORDS = frozenset({"node", "edge", "graph", "digraph", "subgraph", "strict"})


class PolicyDocument(BaseModel):
    """Shape of the JSON interchange format."""

    nodes: List[Node]
    edges: List[Edge] = Field(default_factory=list)

    @field_validator("edges", mode="before")
    @classmethod
    def _null_edges(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def _unique_ids(self) -> "PolicyDocument":
        for kind, items in (("node", self.nodes), ("edge", self.edges)):
            seen = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {kind} ID '{item.id}'")
                seen.add(item.id)
        return self


def export_json(
    nodes: Sequence[Node], edges: Sequence[Edge], indent: Optional[int] = None
) -> str:
    """Encode the graph as pretty-printed JSON.

    Fields that are unset (None) are omitted; everything else, including
    node positions, is kept so the text round-trips through import_json.
    """
    if indent is None:
        indent = get_settings().json_indent
    document = PolicyDocument(nodes=list(nodes), edges=list(edges))
    payload = document.model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, indent=indent, ensure_ascii=False) + "\n"


def import_json(text: str) -> Tuple[List[Node], List[Edge]]:
    """Decode JSON interchange text into nodes and edges.

    All-or-nothing: callers replace their graph with the result.

    Raises:
        ParseError: On invalid JSON, a missing ``nodes`` field, or entries
            that do not match the node/edge shape.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning(f"Import failed: invalid JSON: {e}")
        raise ParseError(f"Invalid JSON: {e}") from e

    if not isinstance(payload, dict) or payload.get("nodes") is None:
        logger.warning("Import failed: missing 'nodes' field")
        raise ParseError("JSON document has no 'nodes' field")

    try:
        document = PolicyDocument.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Import failed: {e.error_count()} invalid entries")
        raise ParseError(f"Invalid policy graph document: {e}") from e

    return document.nodes, document.edges


def escape(s: Optional[str]) -> str:
    """Escape backslashes, then double quotes, for a quoted DOT attribute."""
    return (s or "").replace("\\", "\\\\").replace('"', '\\"')


def _dot_id(node_id: str) -> str:
    if _DOT_ID.fullmatch(node_id) and node_id.lower() not in _DOT_KEYWORDS:
        return node_id
    return f'"{escape(node_id)}"'


def export_dot(
    nodes: Sequence[Node], edges: Sequence[Edge], graph_name: Optional[str] = None
) -> str:
    """Render the graph in the textual graph-description (DOT) format.

    Write-only; there is no importer for this format. IDs that are not
    plain identifiers or numerals are quoted.
    """
    graph_name = graph_name or get_settings().dot_graph_name
    lines = [f"digraph {graph_name} {{"]
    for node in nodes:
        node_type = node.type.value if node.type else ""
        lines.append(
            f'  {_dot_id(node.id)} [label="{escape(node.label)}", type="{node_type}"];'
        )
    for edge in edges:
        attrs = f' [label="{escape(edge.label)}"]' if edge.label else ""
        lines.append(f"  {_dot_id(edge.source)} -> {_dot_id(edge.target)}{attrs};")
    lines.append("}")
    return "\n".join(lines) + "\n"
