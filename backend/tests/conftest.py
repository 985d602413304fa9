import json

import httpx
import pytest
import pytest_asyncio

from snaplist.core.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Some tests mutate env vars and clear the settings cache. Ensure we don't leak
    # a cached Settings instance (e.g. with a different API key) across tests.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_analysis(labels=None, objects=None, texts=None):
    """Build a VisionAnalysis from plain tuples/strings.

    labels: [(description, score)], objects: [name] or [(name, score)], texts: [content]
    """
    from snaplist.services.ai.vision.contracts import VisionAnalysis

    return VisionAnalysis(
        labels=[{"description": d, "score": s} for d, s in (labels or [])],
        objects=[
            {"name": o, "score": 0.9} if isinstance(o, str) else {"name": o[0], "score": o[1]}
            for o in (objects or [])
        ],
        texts=[{"description": t} for t in (texts or [])],
    )


def annotate_reply(labels=None, objects=None, texts=None, **extra) -> dict:
    """Build an images:annotate reply body the way the vision service sends it."""
    result: dict = {}
    if labels is not None:
        result["labelAnnotations"] = [
            {"mid": f"/m/{i}", "description": d, "score": s, "topicality": s} for i, (d, s) in enumerate(labels)
        ]
    if objects is not None:
        result["localizedObjectAnnotations"] = [{"mid": f"/m/o{i}", "name": n, "score": 0.8} for i, n in enumerate(objects)]
    if texts is not None:
        result["textAnnotations"] = [{"locale": "en", "description": t} for t in texts]
    result.update(extra)
    return {"responses": [result]}


def listing_reply(fields: dict, *, fenced: bool = False) -> str:
    text = json.dumps(fields)
    if fenced:
        return f"```json\n{text}\n```"
    return text


def openai_reply(content: str, **usage) -> dict:
    return {
        "id": "chatcmpl-test",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": usage.get("prompt_tokens", 120), "completion_tokens": usage.get("completion_tokens", 80)},
    }


class FakeVisionClient:
    """Vision client stand-in: returns a fixed analysis or raises a fixed error."""

    def __init__(self, analysis=None, error: Exception | None = None):
        self.analysis = analysis if analysis is not None else make_analysis()
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def analyze(self, image_data: str, api_key: str):
        self.calls.append((image_data, api_key))
        if self.error is not None:
            raise self.error
        return self.analysis


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_handler)


@pytest.fixture
def make_client():
    """Factory for in-process API clients with an injected pipeline."""
    from snaplist.api.v1.listings import get_listing_pipeline
    from snaplist.main import app

    def _make(pipeline=None, *, raise_app_exceptions: bool = True) -> httpx.AsyncClient:
        if pipeline is not None:
            app.dependency_overrides[get_listing_pipeline] = lambda: pipeline
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(make_client):
    async with make_client() as c:
        yield c
