# This is a simple test server for the relay.
# uvicorn gemini_relay.fast_api_server:app --reload --port 8888
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import Response

from gemini_relay.relay_handler import lambda_handler


def _process_response(lambda_resp: dict[str, Any]) -> Response:
    """Convert an AWS Lambda-style proxy response into a FastAPI Response."""
    status_code = lambda_resp.get("statusCode", 200)
    content_type = lambda_resp.get("headers", {}).get("Content-Type", "text/plain")
    body = lambda_resp.get("body", "")
    is_base64 = lambda_resp.get("isBase64Encoded", False)

    if is_base64:
        import base64

        body = base64.b64decode(body)

    return Response(content=body, status_code=status_code, media_type=content_type)


def _process_request(body: bytes, request: Request) -> Response:
    """Convert a FastAPI request to a Lambda-style event."""
    event = {
        "body": body,
        "isBase64Encoded": False,
        "headers": dict(request.headers),
        "httpMethod": request.method,
        "queryStringParameters": dict(request.query_params),
        "requestContext": {"http": {"method": request.method, "path": request.url.path}},
    }
    # Response is a Lambda-style response. Set a direct HTTP response in FastAPI
    lambda_response = lambda_handler(event, None)
    return _process_response(lambda_response)


app = FastAPI(title="Gemini Relay")


# --- route to call the relay; non-POST methods are answered by the handler ---
@app.api_route("/api/generate", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def generate(request: Request) -> Response:
    body = await request.body()
    return _process_request(body, request)


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}
