# tests/conftest.py
import base64
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from threat_relay.main import app, get_relay
from threat_relay.schemas import ImagePayload, TextResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


def gemini_response(*texts):
    """Shape of a google-genai GenerateContentResponse with one candidate."""
    parts = [SimpleNamespace(text=t) for t in texts]
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeGenaiClient:
    def __init__(self, response=None, error=None):
        self.models = FakeModels(response=response, error=error)


class FakeRelay:
    def __init__(self, result):
        self.result = result
        self.payloads = []

    def analyse(self, payload: ImagePayload):
        self.payloads.append(payload)
        return self.result


@pytest.fixture
def payload():
    return ImagePayload(imageURL=DATA_URL)


@pytest.fixture
def make_client():
    def _make(result=None):
        relay = FakeRelay(result if result is not None else TextResult(text="An empty office."))
        app.dependency_overrides[get_relay] = lambda: relay
        return TestClient(app), relay

    yield _make
    app.dependency_overrides.clear()
