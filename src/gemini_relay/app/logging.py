import logging

from gemini_relay.infrastructure.data_models import CredentialResolution, RelayRequest


def attempt_context(request: RelayRequest, credential: CredentialResolution) -> str:
    return f" | model: {request.model} | API Source: {credential.source_name}"


def log_relay_request(
    request: RelayRequest, credential: CredentialResolution, logger: logging.Logger
) -> None:
    logger.info(f"Using AI Model: {request.model} | API Source: {credential.source_name}")
    logger.info(f"Messages: {len(request.contents)}")
    if request.extra_fields:
        logger.info(f"Forwarded fields: {', '.join(sorted(request.extra_fields))}")
