"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend-specific requirements (Firestore credentials)
are validated at load time.
"""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment and .env.

    All settings have defaults; validate_backend enforces the credentials
    the selected store backend needs.
    """

    # App
    app_name: str = "video-catalog"
    app_version: str = "1.0.0"
    debug: bool = False

    # Store: "firestore" (Firestore REST API) or "memory" (process-local, dev/tests)
    store_backend: str = "firestore"
    # Per-call timeout; a timed-out call surfaces as StoreUnavailableException (no retry).
    store_timeout_seconds: float = 30.0
    # Calendar used for analytics windows and daily buckets.
    store_timezone: str = "UTC"

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    firestore_project_id: str | None = None  # Overrides project_id from the service account
    firestore_database: str = "(default)"
    # host:port of a local Firestore emulator; credentials are not needed when set.
    firestore_emulator_host: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backend(self) -> "Settings":
        """Validate store backend, its credentials, timezone and timeout.

        - Firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH
          required, unless FIRESTORE_EMULATOR_HOST and FIRESTORE_PROJECT_ID are set.
        - Memory: nothing required.
        """
        backend = self.store_backend.lower()
        if backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            uses_emulator = bool(self.firestore_emulator_host and self.firestore_project_id)
            if not has_key and not self.firebase_service_account_path and not uses_emulator:
                raise ValueError(
                    "When store_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string), "
                    "FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file), or FIRESTORE_EMULATOR_HOST "
                    "together with FIRESTORE_PROJECT_ID."
                )
        elif backend != "memory":
            raise ValueError(
                f"store_backend must be 'firestore' or 'memory', got: {self.store_backend!r}"
            )
        try:
            ZoneInfo(self.store_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown store_timezone: {self.store_timezone!r}") from e
        if self.store_timeout_seconds <= 0:
            raise ValueError("store_timeout_seconds must be positive")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
