"""Configuration management for Meeting Orchestrator application."""

from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class ProviderConfig(BaseSettings):
    """Calendar/email/contacts provider (Nylas v3) configuration."""

    api_key: Optional[str] = Field(None, validation_alias="NYLAS_API_KEY")
    api_url: str = Field(
        default="https://api.us.nylas.com", validation_alias="NYLAS_API_URL"
    )
    calendar_id: str = Field(default="primary", validation_alias="NYLAS_CALENDAR_ID")

    # Per-call timeouts in seconds
    read_timeout: float = Field(default=10.0, validation_alias="NYLAS_READ_TIMEOUT")
    write_timeout: float = Field(default=30.0, validation_alias="NYLAS_WRITE_TIMEOUT")
    send_timeout: float = Field(default=60.0, validation_alias="NYLAS_SEND_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )


class AppConfig(BaseSettings):
    """Application configuration."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    # Cache TTLs
    contact_cache_ttl_hours: int = Field(
        default=7 * 24, validation_alias="CONTACT_CACHE_TTL_HOURS"
    )
    event_cache_ttl_hours: int = Field(default=24, validation_alias="EVENT_CACHE_TTL_HOURS")
    credential_cache_ttl_seconds: int = Field(
        default=900, validation_alias="CREDENTIAL_CACHE_TTL_SECONDS"
    )

    # Scheduling
    slot_increment_minutes: int = Field(default=15, validation_alias="SLOT_INCREMENT_MINUTES")
    max_workers: int = Field(default=10, validation_alias="MAX_WORKERS")
    default_language: str = Field(default="en", validation_alias="DEFAULT_LANGUAGE")
    meeting_source: str = Field(default="ai_assistant", validation_alias="MEETING_SOURCE")

    tenant_config_path: Path = Field(
        default=Path("tenants.yaml"), validation_alias="TENANT_CONFIG_PATH"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


class CompanyConfig:
    """Credentials and grant records for a single company."""

    def __init__(self, company_id: str, data: dict[str, Any]):
        self.company_id = company_id
        self.name: str = data.get("name", company_id)
        self.credentials: dict[str, str] = {
            str(k): str(v) for k, v in (data.get("credentials") or {}).items()
        }
        self.grants: list[dict[str, Any]] = list(data.get("grants") or [])
        self.employees: list[str] = [
            e.lower().strip() for e in data.get("employees", [])
        ]


class TenantConfig:
    """Multi-company tenant configuration loaded from YAML."""

    def __init__(self, config_path: Path = Path("tenants.yaml")):
        self.config_path = config_path
        self.companies: dict[str, CompanyConfig] = {}

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            for company_id, company_data in (data.get("companies") or {}).items():
                self.companies[str(company_id)] = CompanyConfig(
                    str(company_id), company_data or {}
                )

    @property
    def has_config(self) -> bool:
        return len(self.companies) > 0

    def get_company(self, company_id: str) -> Optional[CompanyConfig]:
        return self.companies.get(company_id)


# Global config instance (CLI entry point)
config = AppConfig()
