"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  In a
production deployment you should at least override ``SECRET_KEY``.
"""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Martial Arts Academy API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # When enabled, the authorization gate re-reads the principal row on
    # every request and rejects principals that were deactivated after
    # their token was issued.  Disabled by default: the token alone is
    # authoritative until it expires.
    recheck_principal_status: bool = _env_flag("RECHECK_PRINCIPAL_STATUS")

    # Path to the SQLite database.  A relative path is resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "academy.db")
    # Seconds a transaction waits for the write lock before failing.
    database_timeout: float = float(os.getenv("DATABASE_TIMEOUT", "10"))

    # Day of month used as the due date for generated monthly billing.
    billing_due_day: int = int(os.getenv("BILLING_DUE_DAY", "10"))
    # Capacity assigned to a class created without ``max_students``.
    default_class_capacity: int = int(os.getenv("DEFAULT_CLASS_CAPACITY", "20"))

    cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Bootstrap credentials.  If both are set and no staff account exists
    # yet, ``init_db`` creates an admin with these credentials.
    admin_username: str = os.getenv("ADMIN_USERNAME", "")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
