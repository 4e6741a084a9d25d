"""
Notekeeper Backend — Frontend Serving Tests
=============================================
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from notekeeper.main import register_exception_handlers
from notekeeper.routes.frontend import build_frontend_router


@pytest.fixture
def dist_dir(tmp_path):
    (tmp_path / "index.html").write_text("<html>notes</html>")
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "app.js").write_text("console.log('notes')")
    return tmp_path


def _client(dist_dir) -> AsyncClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(build_frontend_router(str(dist_dir)))
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestFrontendRouter:

    @pytest.mark.asyncio
    async def test_serves_existing_asset(self, dist_dir):
        async with _client(dist_dir) as client:
            response = await client.get("/assets/app.js")
        assert response.status_code == 200
        assert "console.log" in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/", "/notes/123", "/create"])
    async def test_unknown_paths_fall_back_to_index(self, dist_dir, path):
        async with _client(dist_dir) as client:
            response = await client.get(path)
        assert response.status_code == 200
        assert response.text == "<html>notes</html>"

    @pytest.mark.asyncio
    async def test_api_paths_are_not_rewritten(self, dist_dir):
        async with _client(dist_dir) as client:
            response = await client.get("/api/unknown")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
