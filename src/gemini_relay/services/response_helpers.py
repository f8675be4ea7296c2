import json
from typing import Any


def create_response(
    status_code: int,
    body: dict[str, Any],
    content_type: str = "application/json",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Create a standard HTTP response.

    Args:
        status_code (int): HTTP status code.
        body (dict): JSON-serializable response body.
        content_type (str, optional): Content-Type header. Defaults to "application/json".
        headers (dict[str, str] | None, optional): Additional headers. Defaults to None.

    Returns:
        dict: API Gateway-compatible response dictionary.
    """
    response_headers = {"Content-Type": content_type}
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": response_headers,
        "isBase64Encoded": False,
    }


def success_response(response_text: str) -> dict[str, Any]:
    return create_response(200, {"responseText": response_text})


def error_response(status_code: int, message: str) -> dict[str, Any]:
    return create_response(status_code, {"error": message})
