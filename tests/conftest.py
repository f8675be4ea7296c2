"""Shared fixtures for relay and asset cache worker tests."""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from asset_cache_worker.infrastructure.cache_storage import InMemoryCacheStorage
from asset_cache_worker.infrastructure.data_models import AssetRequest, AssetResponse
from gemini_relay.app.config import RelaySettings
from gemini_relay.infrastructure.data_models import UpstreamError

DEFAULT_KEY = "default-server-key-123"
POOL_KEY_1 = "pooled-key-number-one"


def make_event(
    body: Any = None,
    method: str = "POST",
    query: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build an API Gateway v1 style event."""
    if body is not None and not isinstance(body, str):
        body = json.dumps(body)
    return {
        "httpMethod": method,
        "body": body,
        "headers": {"content-type": "application/json"},
        "queryStringParameters": query,
        "isBase64Encoded": False,
    }


def gemini_payload(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def response_body(response: dict[str, Any]) -> dict[str, Any]:
    return json.loads(response["body"])


@pytest.fixture
def settings():
    """Relay settings with one pooled key and no real delays."""
    return RelaySettings(
        default_api_key=DEFAULT_KEY,
        key_pool={"API_KEY_1": POOL_KEY_1},
        max_attempts=3,
        backoff_base_seconds=1.0,
    )


@pytest.fixture
def upstream():
    """A mocked GeminiClient; set `generate.side_effect` per test."""
    client = MagicMock()
    client.generate.return_value = gemini_payload("Hello from Gemini")
    return client


@pytest.fixture
def client_factory(upstream):
    """Factory that records the api key it was built with."""
    factory = MagicMock(return_value=upstream)
    return factory


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def valid_body():
    return {
        "contents": [{"role": "user", "parts": [{"text": "Hi"}]}],
        "model": "gemini-2.5-flash",
    }


def rate_limited() -> UpstreamError:
    return UpstreamError("Resource has been exhausted", status_code=429)


@pytest.fixture
def storage():
    return InMemoryCacheStorage()


@pytest.fixture
def network():
    """A mocked network fetch that answers 200 with a body derived from the URL."""

    def _respond(request: AssetRequest) -> AssetResponse:
        return AssetResponse(
            status=200,
            headers={"Content-Type": "text/plain"},
            body=f"body of {request.url}".encode(),
        )

    return MagicMock(side_effect=_respond)
