from __future__ import annotations

import io
from typing import Any, Callable, Dict, List

import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from backend.app.config import get_settings
from backend.app.main import app

CONFIG_VARS = (
    "HUGGINGFACE_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "QLOO_API_KEY",
    "QLOO_API_URL",
    "QLOO_LOCATION",
    "CAPTION_MODEL",
    "VIBE_MODEL",
    "MOVIE_SUMMARY_MODEL",
    "MOVIE_ANALYSIS_MODELS",
    "REQUEST_TIMEOUT_SECONDS",
    "MOVIE_RATING_JITTER",
    "MOVIE_RATING_SEED",
    "MAX_UPLOAD_MB",
)


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text or str(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HUGGINGFACE_API_KEY", "hf-test-key")
    monkeypatch.setenv("MOVIE_RATING_SEED", "7")


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def outbound_calls(monkeypatch: pytest.MonkeyPatch) -> List[Dict[str, Any]]:
    """Every outbound HTTP call fails as if the network were down; calls are recorded."""
    calls: List[Dict[str, Any]] = []

    def fail(method: str) -> Callable[..., Any]:
        def _call(url, *args, **kwargs):
            calls.append({"method": method, "url": url, **kwargs})
            raise requests.ConnectionError(f"network disabled for {url}")

        return _call

    monkeypatch.setattr(requests, "post", fail("POST"))
    monkeypatch.setattr(requests, "get", fail("GET"))
    return calls


@pytest.fixture()
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), color=(170, 160, 150)).save(buf, "PNG")
    return buf.getvalue()
