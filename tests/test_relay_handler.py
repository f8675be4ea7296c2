"""Tests for the Lambda entry point and the local FastAPI server."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from conftest import gemini_payload, make_event, response_body
from gemini_relay.app.config import config
from gemini_relay.fast_api_server import app
from gemini_relay.relay_handler import lambda_handler


@pytest.fixture
def relay_env(monkeypatch):
    monkeypatch.delenv("RELAY_PARAMETER_SOURCE", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "server-key-abcdef")
    monkeypatch.setenv("RELAY_BACKOFF_BASE_SECONDS", "0")
    config.reset()
    yield
    config.reset()


class TestLambdaHandler:
    def test_unexpected_error_becomes_500(self):
        with patch("gemini_relay.relay_handler.process", side_effect=RuntimeError("kaboom")):
            response = lambda_handler(make_event({}), None)

        assert response["statusCode"] == 500
        assert response_body(response) == {"error": "Internal Server Error during processing."}

    def test_end_to_end_with_env_configuration(self, relay_env):
        upstream_resp = MagicMock(spec=requests.Response)
        upstream_resp.status_code = 200
        upstream_resp.ok = True
        upstream_resp.json.return_value = gemini_payload("relayed")
        body = {"contents": [{"parts": [{"text": "Hi"}]}], "model": "gemini-2.5-flash"}

        with patch("gemini_relay.infrastructure.gemini_manager.requests.Session") as mock_session:
            mock_session.return_value.post.return_value = upstream_resp
            response = lambda_handler(make_event(body), None)

        assert response["statusCode"] == 200
        assert response_body(response) == {"responseText": "relayed"}
        headers = mock_session.return_value.post.call_args.kwargs["headers"]
        assert headers["x-goog-api-key"] == "server-key-abcdef"


class TestFastApiServer:
    @pytest.fixture
    def client(self):
        return TestClient(app)

    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"ok": True}

    def test_get_is_rejected(self, client):
        response = client.get("/api/generate")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}

    def test_post_is_forwarded_as_lambda_event(self, client):
        lambda_response = {
            "statusCode": 200,
            "body": json.dumps({"responseText": "hi"}),
            "headers": {"Content-Type": "application/json"},
            "isBase64Encoded": False,
        }
        with patch(
            "gemini_relay.fast_api_server.lambda_handler", return_value=lambda_response
        ) as mock_handler:
            response = client.post(
                "/api/generate?keySelection=API_KEY_1", json={"contents": [], "model": "m"}
            )

        assert response.status_code == 200
        assert response.json() == {"responseText": "hi"}
        event = mock_handler.call_args.args[0]
        assert event["httpMethod"] == "POST"
        assert event["queryStringParameters"] == {"keySelection": "API_KEY_1"}
        assert json.loads(event["body"]) == {"contents": [], "model": "m"}
