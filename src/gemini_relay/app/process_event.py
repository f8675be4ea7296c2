import base64
import json
import re
from typing import Any

from gemini_relay.infrastructure.data_models import RelayRequest, RequestValidationError

# generateContent fields forwarded to the upstream alongside `contents`
PASSTHROUGH_FIELDS = ("systemInstruction", "generationConfig", "safetySettings", "tools")

# Model ids are a single URL path segment, e.g. gemini-2.5-flash
MODEL_PATTERN = re.compile(r"[\w.\-]+")


def get_http_method(event: dict[str, Any]) -> str:
    """Return the request method for API Gateway v1 and v2 style events."""
    method = event.get("httpMethod")
    if not method:
        method = event.get("requestContext", {}).get("http", {}).get("method", "")
    return str(method).upper()


def _decode_body(event: dict[str, Any]) -> Any:
    """Decode the event body into a JSON value."""
    body_raw = event.get("body")

    # Possibly pre-parsed during testing
    if isinstance(body_raw, dict):
        return body_raw

    if body_raw is None or body_raw == "" or body_raw == b"":
        raise RequestValidationError("Invalid JSON format in request body.")

    try:
        if event.get("isBase64Encoded") and isinstance(body_raw, str):
            body_raw = base64.b64decode(body_raw)
        if isinstance(body_raw, bytes):
            body_raw = body_raw.decode("utf-8")
        return json.loads(body_raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise RequestValidationError("Invalid JSON format in request body.") from e


def parse_relay_request(
    event: dict[str, Any], *, default_model: str, require_model: bool = True
) -> RelayRequest:
    """
    Build a RelayRequest from a Lambda proxy event.

    Body fields win over query string parameters. When `require_model` is
    False a missing model falls back to `default_model`.

    Raises:
        RequestValidationError: If the body is not a JSON object, lacks contents/model,
            or carries a field of the wrong type.
    """
    body = _decode_body(event)
    if not isinstance(body, dict):
        raise RequestValidationError("Invalid JSON format in request body.")

    query: dict[str, Any] = event.get("queryStringParameters") or {}

    contents = body.get("contents")
    model = body.get("model") or body.get("selectedModel") or query.get("model")
    if not model and not require_model:
        model = default_model

    if not isinstance(contents, list) or not contents or not model:
        raise RequestValidationError("Missing 'contents' or 'model' in payload.")
    if not isinstance(model, str):
        raise RequestValidationError("'model' must be a string.")
    if not MODEL_PATTERN.fullmatch(model):
        raise RequestValidationError("Invalid 'model' identifier.")

    for name in ("keySelection", "customKey"):
        if body.get(name) is not None and not isinstance(body[name], str):
            raise RequestValidationError(f"'{name}' must be a string.")

    return RelayRequest(
        contents=contents,
        model=model,
        key_selection=body.get("keySelection") or query.get("keySelection"),
        custom_key=body.get("customKey") or query.get("customKey"),
        extra_fields={k: body[k] for k in PASSTHROUGH_FIELDS if body.get(k) is not None},
    )
