from __future__ import annotations

import pytest
from httpx import ASGITransport

from fake_service import FakeTaskService
from taskboard.board import TaskBoard
from taskboard.config import ClientConfig


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def service() -> FakeTaskService:
    svc = FakeTaskService()
    svc.add_user("ada@example.com")
    svc.add_user("linus@example.com")
    return svc


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_url="http://test", timeout=5.0)


@pytest.fixture
async def board(service: FakeTaskService, config: ClientConfig):
    b = TaskBoard(config, transport=ASGITransport(app=service.app))
    try:
        yield b
    finally:
        await b.aclose()

