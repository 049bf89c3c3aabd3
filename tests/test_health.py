# tests/test_health.py
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from round_intake.api.v1.endpoints.system import get_public_config
from round_intake.core.settings import Settings
from round_intake.main import health_check, root


@pytest.mark.asyncio
async def test_health_check_reports_ok() -> None:
    assert await health_check() == {"status": "ok"}


@pytest.mark.asyncio
async def test_root_describes_the_service() -> None:
    data = await root()
    assert data["docs"] == "/docs"
    assert data["name"] == "Round Intake"


@pytest.mark.asyncio
async def test_public_config_lists_folders(test_settings: Settings) -> None:
    data: dict[str, Any] = await get_public_config(test_settings)

    assert data["intake"]["folders"] == ["failed", "processed", "unauthorized"]
    assert data["intake"]["auto_register_servers"] is True


@pytest.mark.asyncio
async def test_root_responds_over_asgi(app: FastAPI) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/")
        health = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["redoc"] == "/redoc"
    assert health.json() == {"status": "ok"}
