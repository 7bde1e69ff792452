"""API routers."""

from policygraph.api.routes.drafts import router as drafts_router
from policygraph.api.routes.export import router as export_router
from policygraph.api.routes.graph import router as graph_router

__all__ = ["drafts_router", "export_router", "graph_router"]
