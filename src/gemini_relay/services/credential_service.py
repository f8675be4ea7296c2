import logging
from collections.abc import Mapping

from gemini_relay.app.config import PLACEHOLDER_API_KEY
from gemini_relay.infrastructure.data_models import CredentialError, CredentialResolution

CUSTOM_SELECTOR = "Custom"
POOL_SELECTOR_PREFIX = "API_KEY_"
MIN_CUSTOM_KEY_LENGTH = 11

CUSTOM_SOURCE = "CUSTOM_USER_KEY"
DEFAULT_SOURCE = "DEFAULT_FALLBACK"


def select_credential(
    key_selection: str | None,
    custom_key: str | None,
    key_pool: Mapping[str, str],
    default_api_key: str,
    logger: logging.Logger | None = None,
) -> CredentialResolution:
    """
    Choose the API key for one request.

    Precedence:
      1. `custom_key` when `key_selection` is "Custom" and the key is long enough
      2. the pooled key named by `key_selection` (e.g. "API_KEY_2")
      3. the default key

    A named pool key that is not configured logs a warning and falls back.
    Surrounding whitespace is stripped from every key. Only the source name
    is ever logged.
    """
    if custom_key:
        custom_key = custom_key.strip()
    if key_selection == CUSTOM_SELECTOR and custom_key and len(custom_key) >= MIN_CUSTOM_KEY_LENGTH:
        return CredentialResolution(api_key=custom_key, source_name=CUSTOM_SOURCE)

    if key_selection and key_selection.startswith(POOL_SELECTOR_PREFIX):
        pooled = (key_pool.get(key_selection) or "").strip()
        if pooled:
            return CredentialResolution(api_key=pooled, source_name=key_selection)
        if logger:
            logger.warning(
                f"Environment variable {key_selection} is missing. Falling back to default."
            )

    return CredentialResolution(
        api_key=(default_api_key or "").strip(), source_name=DEFAULT_SOURCE
    )


def _is_header_safe(api_key: str) -> bool:
    return all(ch.isprintable() and not ch.isspace() for ch in api_key)


def resolve_credential(
    key_selection: str | None,
    custom_key: str | None,
    key_pool: Mapping[str, str],
    default_api_key: str,
    logger: logging.Logger | None = None,
) -> CredentialResolution:
    """
    Select a credential and make sure it is usable.

    Raises:
        CredentialError: If the chosen key is empty, still the placeholder, or
            contains whitespace or control characters.
    """
    resolution = select_credential(key_selection, custom_key, key_pool, default_api_key, logger)
    if not resolution.api_key or resolution.api_key == PLACEHOLDER_API_KEY:
        raise CredentialError(
            "No valid API Key found after checking all sources (Custom, Env Pool, Fallback)."
        )
    if not _is_header_safe(resolution.api_key):
        raise CredentialError(
            f"API key from {resolution.source_name} contains whitespace or control characters."
        )
    return resolution
