"""Metric catalog configuration via pydantic-settings."""

import json
import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "hmac_key": "insecure-hmac-key-change-me",
    "api_key": "insecure-admin-key-change-me",
}


class CatalogSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="METRIC_CATALOG_")

    environment: str = "development"
    log_level: str = "INFO"

    # Audit chain signing key.
    hmac_key: str = "insecure-hmac-key-change-me"

    # HMAC keyring: JSON dict mapping version (int) to key string.
    # e.g. '{"0": "old-key", "1": "new-key"}'
    # When set, hmac_key is ignored.  When empty, hmac_key is used as version 0.
    hmac_keys: str = ""

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/metric_catalog.db"

    # API
    api_title: str = "Metric Catalog"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Capability grants: JSON dict: principal -> org_id -> [capability, ...]
    # e.g. '{"alice": {"org-1": ["org:manage", "metric:use"]}}'
    org_grants: str = ""

    # Expression validation
    expression_validator: str = "basic"  # basic | http
    expression_validator_url: str = ""
    expression_validator_timeout: float = 10.0
    known_sources: list[str] = []

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    @property
    def hmac_keyring(self) -> dict[int, str]:
        """Return HMAC keyring as {version_int: key_str}.

        If hmac_keys is set, parse it as JSON.
        Otherwise, fall back to scalar hmac_key as version 0.
        """
        if self.hmac_keys:
            try:
                raw = json.loads(self.hmac_keys)
            except (json.JSONDecodeError, TypeError) as exc:
                raise ValueError(
                    f"METRIC_CATALOG_HMAC_KEYS must be valid JSON (e.g. '{{\"0\": \"key\"}}'), got: {self.hmac_keys!r}"
                ) from exc
            return {int(k): v for k, v in raw.items()}
        return {0: self.hmac_key}

    @property
    def current_hmac_key(self) -> str:
        """Return the HMAC key for the current (highest) version."""
        ring = self.hmac_keyring
        return ring[max(ring.keys())]

    @property
    def grants(self) -> dict[str, dict[str, list[str]]]:
        """Parsed org_grants; empty when unset."""
        if not self.org_grants:
            return {}
        try:
            raw = json.loads(self.org_grants)
        except (json.JSONDecodeError, TypeError) as exc:
            raise ValueError(
                f"METRIC_CATALOG_ORG_GRANTS must be valid JSON, got: {self.org_grants!r}"
            ) from exc
        return {
            principal: {org: list(caps) for org, caps in orgs.items()}
            for principal, orgs in raw.items()
        }

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"METRIC_CATALOG_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if self.expression_validator == "http" and not self.expression_validator_url:
            raise RuntimeError(
                "METRIC_CATALOG_EXPRESSION_VALIDATOR=http requires METRIC_CATALOG_EXPRESSION_VALIDATOR_URL"
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys; set METRIC_CATALOG_HMAC_KEY and "
                "METRIC_CATALOG_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> CatalogSettings:
    settings = CatalogSettings()
    settings.validate_for_production()
    return settings
