from collections.abc import Iterable
from urllib.parse import urlsplit

from asset_cache_worker.infrastructure.data_models import AssetRequest

ROOT_ENTRIES = ("/", "index.html")
ROOT_PATHS = ("/", "/index.html")


def is_external(entry: str) -> bool:
    return entry.startswith("http")


def entry_matches(url: str, entry: str) -> bool:
    """
    Check a request URL against one allowlist entry.

    - "/" and "index.html" match the paths "/" and "/index.html"
    - other local entries match "/<entry>" exactly
    - external entries match by URL prefix
    """
    if entry in ROOT_ENTRIES:
        return urlsplit(url).path in ROOT_PATHS
    if not is_external(entry):
        return urlsplit(url).path == f"/{entry.lstrip('/')}"
    return url.startswith(entry)


def is_allowlisted(url: str, allowlist: Iterable[str]) -> bool:
    return any(entry_matches(url, entry) for entry in allowlist)


def is_cacheable(request: AssetRequest, allowlist: Iterable[str]) -> bool:
    """Only GET requests for allowlisted assets go through the cache."""
    return request.method.upper() == "GET" and is_allowlisted(request.url, allowlist)


def resolve_entry_url(entry: str, origin: str) -> str:
    """Turn an allowlist entry into an absolute URL to fetch at install time."""
    if is_external(entry):
        return entry
    return f"{origin.rstrip('/')}/{entry.lstrip('/')}"
