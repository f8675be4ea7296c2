"""Tests for turning Lambda events into relay requests."""

import base64
import json

import pytest

from conftest import make_event
from gemini_relay.app.process_event import get_http_method, parse_relay_request
from gemini_relay.infrastructure.data_models import RequestValidationError

CONTENTS = [{"role": "user", "parts": [{"text": "Hi"}]}]


def parse(event, require_model=True):
    return parse_relay_request(event, default_model="fallback-model", require_model=require_model)


class TestGetHttpMethod:
    def test_v1_event(self):
        assert get_http_method({"httpMethod": "post"}) == "POST"

    def test_v2_event(self):
        assert get_http_method({"requestContext": {"http": {"method": "GET"}}}) == "GET"

    def test_missing_method(self):
        assert get_http_method({}) == ""


class TestParseRelayRequest:
    def test_reads_body_fields(self):
        event = make_event(
            {
                "contents": CONTENTS,
                "model": "gemini-2.5-flash",
                "keySelection": "Custom",
                "customKey": "user-key-1234567",
                "systemInstruction": {"parts": [{"text": "Be brief"}]},
                "unknownField": 1,
            }
        )

        request = parse(event)

        assert request.contents == CONTENTS
        assert request.model == "gemini-2.5-flash"
        assert request.key_selection == "Custom"
        assert request.custom_key == "user-key-1234567"
        assert request.extra_fields == {"systemInstruction": {"parts": [{"text": "Be brief"}]}}

    def test_body_wins_over_query(self):
        event = make_event(
            {"contents": CONTENTS, "model": "body-model", "keySelection": "API_KEY_1"},
            query={"model": "query-model", "keySelection": "API_KEY_2"},
        )

        request = parse(event)

        assert request.model == "body-model"
        assert request.key_selection == "API_KEY_1"

    def test_model_from_query(self):
        request = parse(make_event({"contents": CONTENTS}, query={"model": "query-model"}))

        assert request.model == "query-model"

    def test_default_model_when_not_required(self):
        request = parse(make_event({"contents": CONTENTS}), require_model=False)

        assert request.model == "fallback-model"

    def test_base64_body(self):
        raw = json.dumps({"contents": CONTENTS, "model": "m"}).encode()
        event = make_event(base64.b64encode(raw).decode())
        event["isBase64Encoded"] = True

        assert parse(event).model == "m"

    def test_bytes_body(self):
        event = make_event()
        event["body"] = json.dumps({"contents": CONTENTS, "model": "m"}).encode()

        assert parse(event).contents == CONTENTS

    @pytest.mark.parametrize("body", [None, "", "[1, 2]", "not json", '"text"'])
    def test_invalid_bodies(self, body):
        with pytest.raises(RequestValidationError, match="Invalid JSON"):
            parse(make_event(body))

    @pytest.mark.parametrize(
        "body",
        [
            {"model": "m"},
            {"contents": [], "model": "m"},
            {"contents": "Hi", "model": "m"},
            {"contents": CONTENTS},
            {"contents": CONTENTS, "model": ""},
        ],
    )
    def test_incomplete_bodies(self, body):
        with pytest.raises(RequestValidationError, match="Missing 'contents' or 'model'"):
            parse(make_event(body))

    def test_non_string_model(self):
        with pytest.raises(RequestValidationError, match="must be a string"):
            parse(make_event({"contents": CONTENTS, "model": 7}))

    @pytest.mark.parametrize(
        "field, value",
        [
            ("keySelection", 2),
            ("keySelection", False),
            ("keySelection", ["API_KEY_1"]),
            ("customKey", 12345678901),
            ("customKey", {"key": "x"}),
        ],
    )
    def test_non_string_key_fields(self, field, value):
        body = {"contents": CONTENTS, "model": "m", "keySelection": "Custom", field: value}

        with pytest.raises(RequestValidationError, match=f"'{field}' must be a string"):
            parse(make_event(body))

    def test_null_key_fields_fall_back_to_query(self):
        event = make_event(
            {"contents": CONTENTS, "model": "m", "keySelection": None},
            query={"keySelection": "API_KEY_2"},
        )

        assert parse(event).key_selection == "API_KEY_2"

    @pytest.mark.parametrize(
        "model",
        ["gemini-pro?alt=sse", "gemini-pro#frag", "../../v1/files", "models/gemini-pro", "a b"],
    )
    def test_model_must_be_one_path_segment(self, model):
        with pytest.raises(RequestValidationError, match="Invalid 'model' identifier"):
            parse(make_event({"contents": CONTENTS, "model": model}))

    def test_query_model_is_validated(self):
        event = make_event({"contents": CONTENTS}, query={"model": "m:streamGenerateContent?x"})

        with pytest.raises(RequestValidationError, match="Invalid 'model' identifier"):
            parse(event)
