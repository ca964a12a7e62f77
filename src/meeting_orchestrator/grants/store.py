"""Grant persistence contract and in-memory implementation."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..config import TenantConfig
from ..models.grant import Grant, GrantStatus

logger = logging.getLogger(__name__)


class GrantStore(ABC):
    """Abstract grant store. Records are saved in place, never deleted."""

    @abstractmethod
    def find_active(self, company_id: str, email: str) -> Optional[Grant]:
        """Active grant for (company, email), or None."""

    @abstractmethod
    def list_active(self, company_id: str) -> list[Grant]:
        """All active grants of a company."""

    @abstractmethod
    def find_by_user(self, company_id: str, user_id: str) -> Optional[Grant]:
        """The grant record of a user, whatever its status."""

    @abstractmethod
    def find_by_grant_id(self, grant_id: str) -> Optional[Grant]:
        """Grant record by provider grant token."""

    @abstractmethod
    def save(self, grant: Grant) -> Grant:
        """Insert or replace the record for (company, user)."""


class InMemoryGrantStore(GrantStore):
    """Grant store indexed by (company, user) and (company, email)."""

    def __init__(self, grants: Optional[list[Grant]] = None):
        self._by_user: dict[tuple[str, str], Grant] = {}
        self._lock = threading.Lock()
        for grant in grants or []:
            self.save(grant)

    @classmethod
    def from_tenant_config(cls, tenant_config: TenantConfig) -> "InMemoryGrantStore":
        """Build a store from the ``grants`` lists of every configured company."""
        grants = []
        for company in tenant_config.companies.values():
            for data in company.grants:
                grants.append(
                    Grant(
                        company_id=company.company_id,
                        user_id=str(data.get("user_id") or data["email"]),
                        provider=data.get("provider", "google"),
                        grant_id=data["grant_id"],
                        status=GrantStatus(data.get("status", "active")),
                        email=data["email"],
                        scopes=list(data.get("scopes") or []),
                    )
                )
        logger.info(f"Loaded {len(grants)} grants from {tenant_config.config_path}")
        return cls(grants)

    def find_active(self, company_id: str, email: str) -> Optional[Grant]:
        email = email.strip().lower()
        with self._lock:
            for grant in self._by_user.values():
                if grant.company_id == company_id and grant.email == email and grant.is_active:
                    return grant
        return None

    def list_active(self, company_id: str) -> list[Grant]:
        with self._lock:
            return [
                g for g in self._by_user.values()
                if g.company_id == company_id and g.is_active
            ]

    def find_by_user(self, company_id: str, user_id: str) -> Optional[Grant]:
        with self._lock:
            return self._by_user.get((company_id, user_id))

    def find_by_grant_id(self, grant_id: str) -> Optional[Grant]:
        with self._lock:
            for grant in self._by_user.values():
                if grant.grant_id == grant_id:
                    return grant
        return None

    def save(self, grant: Grant) -> Grant:
        with self._lock:
            self._by_user[(grant.company_id, grant.user_id)] = grant
        return grant
