from dataclasses import dataclass, field

from relay_shared.platform_manager import get_parameters

# Constants that don't change
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_KEY_POOL = "API_KEY_1,API_KEY_2,API_KEY_3"
PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY"

SECRETS_PATH = "/apps/prod/relay/secrets/"
PARAMETERS_PATH = "/apps/prod/relay/"


@dataclass
class RelaySettings:
    """Relay configuration settings loaded from parameter store."""

    # Credentials
    default_api_key: str
    key_pool: dict[str, str] = field(default_factory=dict)

    # Upstream settings
    api_base_url: str = DEFAULT_API_BASE_URL
    default_model: str = DEFAULT_MODEL
    require_model: bool = True
    upstream_timeout: float = 30.0

    # Retry settings
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Singleton configuration manager for the relay."""

    _instance = None
    _settings = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_settings(self) -> RelaySettings:
        """Get relay settings, loading from parameter store if not already cached."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def reset(self) -> None:
        """Drop the cached settings so the next call reloads them."""
        self._settings = None

    def _load_settings(self) -> RelaySettings:
        """Load settings from the parameter store."""
        # Names of the pooled credentials a caller may select
        pool_param = get_parameters("relay_key_pool", PARAMETERS_PATH)["relay_key_pool"]
        pool_names = [
            name.strip().upper()
            for name in (pool_param or DEFAULT_KEY_POOL).split(",")
            if name.strip()
        ]

        # Load secrets (encrypted)
        secrets = get_parameters(["gemini_api_key", *pool_names], SECRETS_PATH, decrypt=True)

        # Load relay parameters (not encrypted)
        relay_params = get_parameters(
            [
                "gemini_api_base_url",
                "relay_default_model",
                "relay_require_model",
                "relay_upstream_timeout",
                "relay_max_attempts",
                "relay_backoff_base_seconds",
            ],
            PARAMETERS_PATH,
        )

        # Only pooled keys that are actually set are selectable
        key_pool = {}
        for name in pool_names:
            value = (secrets.get(name.lower()) or "").strip()
            if value:
                key_pool[name] = value

        settings = RelaySettings(
            default_api_key=(secrets["gemini_api_key"] or "").strip(),
            key_pool=key_pool,
            api_base_url=relay_params["gemini_api_base_url"] or DEFAULT_API_BASE_URL,
            default_model=relay_params["relay_default_model"] or DEFAULT_MODEL,
            require_model=_parse_bool(relay_params["relay_require_model"], True),
            upstream_timeout=float(relay_params["relay_upstream_timeout"] or 30.0),
            max_attempts=int(relay_params["relay_max_attempts"] or 3),
            backoff_base_seconds=float(relay_params["relay_backoff_base_seconds"] or 1.0),
        )

        # Validate settings
        self._validate_settings(settings)

        return settings

    def _validate_settings(self, settings: RelaySettings) -> None:
        """Validate the numeric settings. A missing API key is reported per request."""
        if settings.max_attempts < 1:
            raise ValueError("Configuration value is invalid: RELAY_MAX_ATTEMPTS")
        if settings.backoff_base_seconds < 0:
            raise ValueError("Configuration value is invalid: RELAY_BACKOFF_BASE_SECONDS")
        if settings.upstream_timeout <= 0:
            raise ValueError("Configuration value is invalid: RELAY_UPSTREAM_TIMEOUT")


# Create singleton instance
config = Config()


# Convenience functions
def get_settings() -> RelaySettings:
    """Get relay settings from the singleton config."""
    return config.get_settings()
