from pathlib import Path
from typing import AsyncGenerator, Callable

import httpx
import pytest

from mockwarp.config import settings
from mockwarp.engine.models import RequestContext
from mockwarp.main import app


@pytest.fixture
def mocks_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "mocks"
    root.mkdir()
    monkeypatch.setattr(settings, "mocks_dir", str(root))
    return root


@pytest.fixture
def write_mock(mocks_dir: Path) -> Callable[[str, str], Path]:
    """Writes a mock definition at '<mocks_dir>/<relative path>' and returns its path."""

    def _write(relative_path: str, content: str) -> Path:
        mock_file = mocks_dir / relative_path
        mock_file.parent.mkdir(parents=True, exist_ok=True)
        mock_file.write_text(content, encoding="utf-8")
        return mock_file

    return _write


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(
        method="get",
        path="/users/42",
        protocol="http",
        httpVersion="1.1",
        query={"id": "42", "tag": ["a", "b"]},
        headers={"user-agent": "pytest", "x-trace": "abc"},
        body={"name": "Ada"},
    )


@pytest.fixture
async def async_client(mocks_dir: Path) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
