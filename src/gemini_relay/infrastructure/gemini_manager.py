from typing import Any
from urllib.parse import quote

import requests

from gemini_relay.app.config import DEFAULT_API_BASE_URL
from gemini_relay.infrastructure.data_models import EmptyCandidatesError, UpstreamError

DEFAULT_TIMEOUT = 30.0


def extract_text(result: Any) -> str:
    """
    Pull the text of the first part of the first candidate out of a
    generateContent payload.

    Raises:
        EmptyCandidatesError: If any level of the structure is missing or the text is empty.
    """
    try:
        text = result["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise EmptyCandidatesError() from e

    if not isinstance(text, str) or not text:
        raise EmptyCandidatesError()
    return text


def _error_message(resp: requests.Response) -> str:
    """Return the upstream error message, falling back to the status code."""
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Google API returned status {resp.status_code}"


class GeminiClient:
    """
    A client for the Gemini generateContent endpoint.

    Each call to `generate` makes exactly one HTTP request; retrying is left
    to the caller.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            api_key: The credential sent in the x-goog-api-key header
            base_url: API root, e.g. https://generativelanguage.googleapis.com/v1beta
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session

        Raises:
            ValueError: If the API key is empty
        """
        if not api_key:
            raise ValueError("Gemini API key is required")

        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, model: str) -> str:
        return f"{self.base_url}/models/{quote(model, safe='')}:generateContent"

    def generate(
        self, model: str, contents: list[Any], **extra_fields: Any
    ) -> dict[str, Any]:
        """
        Call generateContent once and return the decoded JSON payload.

        Args:
            model: Model identifier, e.g. 'gemini-2.5-flash'
            contents: Message objects forwarded unchanged
            **extra_fields: Optional request fields (generationConfig, ...)

        Returns:
            The decoded success payload

        Raises:
            UpstreamError: On a non-2xx status, a transport error or a non-JSON body
        """
        payload: dict[str, Any] = {"contents": contents, **extra_fields}
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }

        try:
            resp = self.session.post(
                self.url_for(model),
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            # The exception text can echo header values, including the key
            raise UpstreamError(
                f"Request to Gemini API failed: {e.__class__.__name__}"
            ) from e

        if not resp.ok:
            raise UpstreamError(_error_message(resp), status_code=resp.status_code)

        try:
            result = resp.json()
        except ValueError as e:
            raise UpstreamError(
                "Gemini API returned a non-JSON body", status_code=resp.status_code
            ) from e

        if not isinstance(result, dict):
            raise EmptyCandidatesError()
        return result

    def close(self) -> None:
        """Release the pooled connections held by the session."""
        self.session.close()
