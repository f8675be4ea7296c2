import time
from collections.abc import Callable
from typing import Any

from gemini_relay.app.config import RelaySettings, get_settings
from gemini_relay.app.logging import attempt_context, log_relay_request
from gemini_relay.app.process_event import get_http_method, parse_relay_request
from gemini_relay.infrastructure.data_models import (
    CredentialError,
    RequestValidationError,
    RetryExhaustedError,
)
from gemini_relay.infrastructure.gemini_manager import GeminiClient, extract_text
from gemini_relay.services.credential_service import resolve_credential
from gemini_relay.services.response_helpers import error_response, success_response
from gemini_relay.services.retry_service import call_with_retries
from relay_shared.platform_manager import create_logger

logger = create_logger(logger_name="gemini-relay", log_level="INFO")

ClientFactory = Callable[[str, RelaySettings], GeminiClient]


def build_client(api_key: str, settings: RelaySettings) -> GeminiClient:
    """Create the upstream client for one request."""
    return GeminiClient(
        api_key, base_url=settings.api_base_url, timeout=settings.upstream_timeout
    )


def process(
    event: dict[str, Any],
    *,
    settings: RelaySettings | None = None,
    client_factory: ClientFactory = build_client,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, Any]:
    """Process the incoming HTTP Gateway event."""
    # Only POST is relayed
    method = get_http_method(event)
    if method != "POST":
        logger.warning(f"Rejected method: {method or 'unknown'}")
        return error_response(405, "Method Not Allowed")

    settings = settings or get_settings()
    if not settings.default_api_key:
        logger.error("GEMINI_API_KEY is not configured")
        return error_response(500, "Server configuration error: API key not found.")

    # Parse and validate the request
    try:
        relay_request = parse_relay_request(
            event,
            default_model=settings.default_model,
            require_model=settings.require_model,
        )
    except RequestValidationError as e:
        logger.error(f"Invalid request: {e}")
        return error_response(400, str(e))

    # Pick the credential
    try:
        credential = resolve_credential(
            relay_request.key_selection,
            relay_request.custom_key,
            settings.key_pool,
            settings.default_api_key,
            logger,
        )
    except CredentialError as e:
        logger.error(str(e))
        return error_response(500, "Internal Server Error: no valid API key available.")

    log_relay_request(relay_request, credential, logger)
    client = client_factory(credential.api_key, settings)

    def _attempt(attempt: int) -> str:
        result = client.generate(
            relay_request.model, relay_request.contents, **relay_request.extra_fields
        )
        return extract_text(result)

    # Call the upstream with bounded retries
    try:
        response_text = call_with_retries(
            _attempt,
            max_attempts=settings.max_attempts,
            base_delay=settings.backoff_base_seconds,
            sleep=sleep,
            logger=logger,
            context=attempt_context(relay_request, credential),
        )
    except RetryExhaustedError as e:
        logger.error(str(e))
        return error_response(500, str(e))
    finally:
        client.close()

    logger.info(f"Relayed response of {len(response_text)} characters")
    return success_response(response_text)
