"""Company-scoped credential lookup with a TTL cache."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..cache.ttl_cache import TTLCache
from ..config import TenantConfig
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NYLAS_API_KEY = "nylas_api_key"

_CREDENTIAL_TYPE = "credential"


class CredentialSource(ABC):
    """Abstract source of company secrets."""

    @abstractmethod
    def get(self, company_id: str, key: str) -> Optional[str]:
        """
        Look up one secret.

        Args:
            company_id: Owning company
            key: Logical key name (e.g. ``nylas_api_key``)

        Returns:
            Secret string, or None if the company has none configured
        """

    @abstractmethod
    def list_keys(self, company_id: str) -> dict[str, str]:
        """All secrets configured for a company."""


class TenantCredentialSource(CredentialSource):
    """Secrets from the YAML tenant file, with process-wide fallbacks."""

    def __init__(
        self,
        tenant_config: TenantConfig,
        fallbacks: Optional[dict[str, Optional[str]]] = None,
    ):
        """
        Args:
            tenant_config: Loaded tenant configuration
            fallbacks: Key -> secret used when a company defines none
                (e.g. ``NYLAS_API_KEY`` from the environment)
        """
        self.tenant_config = tenant_config
        self.fallbacks = {k: v for k, v in (fallbacks or {}).items() if v}

    def get(self, company_id: str, key: str) -> Optional[str]:
        company = self.tenant_config.get_company(company_id)
        if company and company.credentials.get(key):
            return company.credentials[key]
        return self.fallbacks.get(key)

    def list_keys(self, company_id: str) -> dict[str, str]:
        merged = dict(self.fallbacks)
        company = self.tenant_config.get_company(company_id)
        if company:
            merged.update({k: v for k, v in company.credentials.items() if v})
        return merged


class CredentialService:
    """
    Cached secret lookup keyed by ``company:key``.

    Only found secrets are cached; a missing secret is looked up again on
    the next call.
    """

    def __init__(
        self,
        source: CredentialSource,
        ttl_seconds: int = 900,
        cache: Optional[TTLCache] = None,
    ):
        self.source = source
        self.ttl_hours = ttl_seconds / 3600
        self._cache = cache or TTLCache(default_ttl_hours=self.ttl_hours)

    def get_secret(self, company_id: str, key: str) -> Optional[str]:
        cached = self._cache.get(company_id, _CREDENTIAL_TYPE, key)
        if cached:
            return cached

        secret = self.source.get(company_id, key)
        if secret:
            self._cache.upsert(company_id, _CREDENTIAL_TYPE, key, secret, self.ttl_hours)
        return secret

    def require_secret(self, company_id: str, key: str) -> str:
        """
        Like ``get_secret`` but fails before any remote call is attempted.

        Raises:
            ConfigurationError: If the secret is not configured
        """
        secret = self.get_secret(company_id, key)
        if not secret:
            raise ConfigurationError(f"{key} not configured for company {company_id}")
        return secret

    def update_cache(self, company_id: str, key: str, secret: str) -> None:
        self._cache.upsert(company_id, _CREDENTIAL_TYPE, key, secret, self.ttl_hours)

    def invalidate(self, company_id: str, key: str) -> None:
        self._cache.delete(company_id, _CREDENTIAL_TYPE, key)

    def refresh(self, company_id: str) -> int:
        """Reload every secret of a company into the cache."""
        secrets = self.source.list_keys(company_id)
        for key, secret in secrets.items():
            self.update_cache(company_id, key, secret)
        logger.info(f"Refreshed {len(secrets)} credentials for company {company_id}")
        return len(secrets)

    def missing_keys(self, company_id: str, keys: Iterable[str]) -> list[str]:
        """Keys from ``keys`` that have no configured secret."""
        return [k for k in keys if not self.get_secret(company_id, k)]
