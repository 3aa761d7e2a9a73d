"""Shared test fixtures."""

import asyncio
import json
from typing import Any, List, Optional

import pytest

from uc_intg_apod.config import Config
from uc_intg_apod.previews import PREVIEW_JSON


class FakeResponse:
    def __init__(self, status: int = 200, body: Any = None, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        self._body = body

    async def text(self) -> str:
        await asyncio.sleep(0)
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8")
        if isinstance(self._body, str):
            return self._body
        return json.dumps(self._body)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeSession:
    """Stands in for aiohttp.ClientSession, answering from a queue."""

    def __init__(self, responses: List[Any]) -> None:
        self.closed = False
        self.requests: List[dict] = []
        self._responses = list(responses)

    def get(self, url: str, params: Optional[dict] = None):
        self.requests.append({"url": url, "params": dict(params or {})})
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def preview_payload() -> dict:
    return json.loads(PREVIEW_JSON)


@pytest.fixture
def config(tmp_path) -> Config:
    config = Config(str(tmp_path / "config.json"))
    config.update({"api_key": "test-key"})
    return config
