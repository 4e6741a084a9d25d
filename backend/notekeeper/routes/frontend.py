"""
Notekeeper Backend — Single-Page Client Serving
=================================================

What:  Serves the built frontend (index.html + assets) in production mode.
How:   A catch-all GET route: existing files under the dist directory are
       returned as-is, every other path gets index.html so the client-side
       router can resolve it. Paths under /api are never rewritten.
When:  Registered last, and only when settings.environment == "production".
"""

import logging
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from notekeeper.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def build_frontend_router(dist_dir: str) -> APIRouter:
    root = Path(dist_dir).resolve()
    index = root / "index.html"
    router = APIRouter(include_in_schema=False)

    @router.get("/{full_path:path}")
    async def serve_frontend(full_path: str) -> FileResponse:
        if full_path == "api" or full_path.startswith("api/"):
            raise NotFoundError(resource="endpoint", resource_id=f"/{full_path}")

        candidate = (root / full_path).resolve()
        # Path traversal guard: only files inside the dist directory
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(path=str(candidate))

        if not index.is_file():
            raise NotFoundError(resource="page", resource_id=f"/{full_path}")
        return FileResponse(path=str(index), headers={"Cache-Control": "no-cache"})

    logger.info("Serving frontend from %s", root)
    return router
