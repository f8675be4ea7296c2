from __future__ import annotations

import requests

from asset_cache_worker.infrastructure.data_models import AssetRequest, AssetResponse, NetworkError

_TIMEOUT = 30.0


class RequestsFetcher:
    """Fetch assets over the network with a shared requests session."""

    def __init__(self, session: requests.Session | None = None, timeout: float = _TIMEOUT) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def __call__(self, request: AssetRequest) -> AssetResponse:
        """
        Perform the request and return its response unmodified.

        Raises:
            NetworkError: If no HTTP response was received.
        """
        try:
            resp = self.session.request(
                request.method,
                request.url,
                headers=request.headers or None,
                data=request.body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Fetch failed for {request.url}: {e}") from e

        return AssetResponse(
            status=resp.status_code,
            headers=dict(resp.headers),
            body=resp.content,
        )
