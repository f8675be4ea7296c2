from typing import Any

from gemini_relay.app.main import logger, process
from gemini_relay.services.response_helpers import error_response


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda entry point for the Gemini relay."""
    try:
        result = process(event)
        # Type assertion: process() returns dict[str, Any] as declared
        assert isinstance(result, dict)
        return result
    except Exception as e:
        logger.exception(f"Function Proxy Fatal Error: {e.__class__.__name__}")
        return error_response(500, "Internal Server Error during processing.")
