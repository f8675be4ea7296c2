"""
Offline asset cache worker.

Lifecycle: UNINSTALLED -> INSTALLING -> INSTALLED -> ACTIVE.

install() fills the cache container named by the current version with the
allowlisted assets. activate() deletes every container from older versions.
handle_fetch() answers allowlisted GET requests from the cache and sends
everything else straight to the network. Requests are only intercepted once
the worker is active.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum

from asset_cache_worker.app.config import (
    CACHE_NAME,
    DEFAULT_ORIGIN,
    OFFLINE_HTML,
    URLS_TO_CACHE,
    WorkerSettings,
    load_settings,
)
from asset_cache_worker.infrastructure.cache_storage import CacheStorage, build_cache_storage
from asset_cache_worker.infrastructure.data_models import AssetRequest, AssetResponse, NetworkError
from asset_cache_worker.infrastructure.network import RequestsFetcher
from asset_cache_worker.services.matching import is_cacheable, resolve_entry_url
from relay_shared.platform_manager import create_logger

logger = create_logger(logger_name="asset-cache-worker", log_level="INFO")

Fetcher = Callable[[AssetRequest], AssetResponse]


class WorkerState(str, Enum):
    UNINSTALLED = "uninstalled"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVE = "active"


class WorkerStateError(RuntimeError):
    """A lifecycle event arrived in the wrong state."""


def offline_response() -> AssetResponse:
    return AssetResponse(
        status=200,
        headers={"Content-Type": "text/html"},
        body=OFFLINE_HTML.encode("utf-8"),
    )


class AssetCacheWorker:
    """
    Cache-first worker for a fixed allowlist of static assets.

    Args:
        storage: Cache storage holding one container per version name.
        fetch: Callable performing a network request; raises NetworkError when
            no response was received.
        cache_name: Current version name of the cache container.
        allowlist: Local paths and external URLs that may be cached.
        origin: Origin used to resolve local allowlist paths at install time.
    """

    def __init__(
        self,
        storage: CacheStorage,
        fetch: Fetcher,
        *,
        cache_name: str = CACHE_NAME,
        allowlist: Iterable[str] = URLS_TO_CACHE,
        origin: str = DEFAULT_ORIGIN,
    ) -> None:
        self.storage = storage
        self.fetch = fetch
        self.cache_name = cache_name
        self.allowlist = tuple(allowlist)
        self.origin = origin.rstrip("/")
        self.state = WorkerState.UNINSTALLED

    def install(self) -> list[str]:
        """
        Populate the current cache container with every allowlisted asset.

        Best-effort: an asset that cannot be fetched is logged and skipped.

        Returns:
            The URLs that were cached.
        """
        if self.state is not WorkerState.UNINSTALLED:
            raise WorkerStateError(f"Cannot install while {self.state.value}")

        logger.info("Asset cache worker: installing and caching static assets...")
        self.state = WorkerState.INSTALLING
        try:
            container = self.storage.open(self.cache_name)
            cached = []
            for entry in self.allowlist:
                url = resolve_entry_url(entry, self.origin)
                try:
                    response = self.fetch(AssetRequest(url=url))
                except NetworkError as e:
                    logger.error(f"Asset cache worker: failed to cache {url}: {e}")
                    continue
                if not response.ok:
                    logger.error(
                        f"Asset cache worker: failed to cache {url}: status {response.status}"
                    )
                    continue
                container.put(url, response)
                cached.append(url)
        except Exception:
            self.state = WorkerState.UNINSTALLED
            raise

        self.state = WorkerState.INSTALLED
        logger.info(f"Asset cache worker: cached {len(cached)}/{len(self.allowlist)} assets")
        return cached

    def activate(self) -> list[str]:
        """
        Delete every cache container that is not the current version.

        Returns:
            The names of the deleted containers.
        """
        if self.state is not WorkerState.INSTALLED:
            raise WorkerStateError(f"Cannot activate while {self.state.value}")

        logger.info("Asset cache worker: activating and cleaning old caches...")
        deleted = []
        for name in self.storage.keys():
            if name != self.cache_name:
                logger.info(f"Asset cache worker: deleting old cache: {name}")
                self.storage.delete(name)
                deleted.append(name)

        self.state = WorkerState.ACTIVE
        return deleted

    def handle_fetch(self, request: AssetRequest) -> AssetResponse:
        """
        Answer a request, cache-first for allowlisted GETs.

        Non-cacheable requests go to the network and their responses or
        errors are returned unmodified.
        """
        if self.state is not WorkerState.ACTIVE or not is_cacheable(request, self.allowlist):
            return self.fetch(request)

        container = self.storage.open(self.cache_name)
        cached = container.match(request.url)
        if cached is not None:
            logger.info(f"Asset cache worker: serving from cache: {request.url}")
            return cached

        logger.info(f"Asset cache worker: fetching from network: {request.url}")
        try:
            response = self.fetch(request)
        except NetworkError as e:
            logger.error(f"Asset cache worker: fetch failed for {request.url}: {e}")
            return offline_response()

        if response.ok:
            container.put(request.url, response)
        return response


def build_worker(
    settings: WorkerSettings | None = None,
    *,
    storage: CacheStorage | None = None,
    fetch: Fetcher | None = None,
) -> AssetCacheWorker:
    """Create a worker from settings, building storage and fetcher when not given."""
    settings = settings or load_settings()
    if storage is None:
        storage = build_cache_storage(settings.backend, settings.redis_url)
    if fetch is None:
        fetch = RequestsFetcher(timeout=settings.fetch_timeout)

    return AssetCacheWorker(
        storage,
        fetch,
        cache_name=settings.cache_name,
        origin=settings.origin,
    )
