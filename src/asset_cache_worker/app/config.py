from dataclasses import dataclass

from relay_shared.platform_manager import get_parameters

# Increment this version whenever the allowlist or the cached assets change
CACHE_NAME = "small-ai-v2-cache-v2.7"

URLS_TO_CACHE: tuple[str, ...] = (
    "/",  # The root HTML page
    "index.html",
    "manifest.json",
    "logo.png",
    # External CDN resources needed offline
    "https://cdn.tailwindcss.com",
    "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700;800;900&display=swap",
    "https://cdn.jsdelivr.net/npm/marked/marked.min.js",
    "https://cdn.jsdelivr.net/npm/lucide-dynamic@latest/dist/lucide.min.js",
    "https://unpkg.com/lucide@latest",
)

OFFLINE_HTML = (
    "<h1>You are offline!</h1>"
    "<p>It looks like you're not connected to the internet.</p>"
)

DEFAULT_ORIGIN = "http://localhost:8888"
PARAMETERS_PATH = "/apps/prod/asset-cache/"


@dataclass
class WorkerSettings:
    """Asset cache worker settings."""

    cache_name: str = CACHE_NAME
    origin: str = DEFAULT_ORIGIN
    backend: str = "memory"  # "memory" | "redis"
    redis_url: str | None = None
    fetch_timeout: float = 30.0


def load_settings() -> WorkerSettings:
    """Load worker settings from the parameter store."""
    params = get_parameters(
        [
            "asset_cache_name",
            "asset_cache_origin",
            "asset_cache_backend",
            "asset_cache_redis_url",
            "asset_cache_fetch_timeout",
        ],
        PARAMETERS_PATH,
    )

    settings = WorkerSettings(
        cache_name=params["asset_cache_name"] or CACHE_NAME,
        origin=(params["asset_cache_origin"] or DEFAULT_ORIGIN).rstrip("/"),
        backend=(params["asset_cache_backend"] or "memory").lower(),
        redis_url=params["asset_cache_redis_url"],
        fetch_timeout=float(params["asset_cache_fetch_timeout"] or 30.0),
    )

    if settings.backend not in ("memory", "redis"):
        raise ValueError(f"Configuration value is invalid: ASSET_CACHE_BACKEND={settings.backend}")
    if settings.backend == "redis" and not settings.redis_url:
        raise ValueError("Configuration value is invalid: ASSET_CACHE_REDIS_URL")

    return settings
