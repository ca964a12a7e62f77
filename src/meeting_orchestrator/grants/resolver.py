"""Resolve (company, user email) to the provider grant used on their behalf."""

import logging
from datetime import datetime
from typing import Optional

import pytz

from ..models.grant import Grant, GrantStatus
from ..utils.exceptions import GrantLookupError, GrantNotFoundError, OrchestratorError
from ..utils.logging import mask_token
from .store import GrantStore

logger = logging.getLogger(__name__)


class GrantResolver:
    """Grant lookups and lifecycle writes over a GrantStore."""

    def __init__(self, store: GrantStore):
        self.store = store

    def _lookup(self, description: str, fn, *args):
        try:
            return fn(*args)
        except OrchestratorError:
            raise
        except Exception as e:
            raise GrantLookupError(f"Failed to look up {description}: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_user_grant(self, company_id: str, email: str) -> Optional[Grant]:
        """Active grant for the user, or None if not connected."""
        return self._lookup(
            f"grant for {email}", self.store.find_active, company_id, email.strip().lower()
        )

    def find_user_grant_or_raise(self, company_id: str, email: str) -> Grant:
        """
        Active grant for the user.

        Raises:
            GrantNotFoundError: If the user has not connected an account
            GrantLookupError: If the store cannot be queried
        """
        grant = self.find_user_grant(company_id, email)
        if grant is None:
            raise GrantNotFoundError(company_id, email)
        return grant

    def list_company_grants(self, company_id: str) -> list[Grant]:
        """Active grants of a company, sorted by email."""
        grants = self._lookup(
            f"grants of company {company_id}", self.store.list_active, company_id
        )
        return sorted(grants, key=lambda g: g.email)

    def is_user_connected(self, company_id: str, email: str) -> bool:
        return self.find_user_grant(company_id, email) is not None

    def emails_to_grant_ids(
        self, company_id: str, emails: list[str]
    ) -> list[tuple[str, Optional[str]]]:
        result = []
        for email in emails:
            grant = self.find_user_grant(company_id, email)
            result.append((email, grant.grant_id if grant else None))
        return result

    def partition_by_connection(
        self, company_id: str, emails: list[str]
    ) -> tuple[list[str], list[str]]:
        """Split emails into (connected, disconnected)."""
        connected, disconnected = [], []
        for email, grant_id in self.emails_to_grant_ids(company_id, emails):
            (connected if grant_id else disconnected).append(email)
        return connected, disconnected

    def get_disconnected_users(self, company_id: str, employee_emails: list[str]) -> list[str]:
        connected = {g.email for g in self.list_company_grants(company_id)}
        return [e for e in employee_emails if e.strip().lower() not in connected]

    def connection_stats(self, company_id: str, total_employees: int) -> dict[str, int]:
        connected = len(self.list_company_grants(company_id))
        return {
            "total_employees": total_employees,
            "connected": connected,
            "disconnected": max(total_employees - connected, 0),
            "connection_rate": round(connected / total_employees * 100)
            if total_employees > 0
            else 0,
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store_grant(
        self,
        company_id: str,
        user_id: str,
        grant_id: str,
        email: str,
        provider: str,
        scopes: Optional[list[str]] = None,
    ) -> Grant:
        """
        Record an OAuth callback for a user.

        A user keeps at most one grant record per company: reconnecting
        updates the existing record in place and reactivates it.
        """
        now = datetime.now(pytz.utc)
        existing = self._lookup(
            f"grant of user {user_id}", self.store.find_by_user, company_id, user_id
        )

        if existing:
            grant = existing.model_copy(
                update={
                    "grant_id": grant_id,
                    "email": email.strip().lower(),
                    "provider": provider,
                    "status": GrantStatus.ACTIVE,
                    "scopes": list(scopes or []),
                    "updated_at": now,
                }
            )
            logger.info(f"Updated grant {mask_token(grant_id)} for user {user_id}")
        else:
            grant = Grant(
                company_id=company_id,
                user_id=user_id,
                grant_id=grant_id,
                email=email,
                provider=provider,
                scopes=list(scopes or []),
                created_at=now,
                updated_at=now,
            )
            logger.info(f"Stored grant {mask_token(grant_id)} for user {user_id}")

        return self.store.save(grant)

    def revoke_grant(self, company_id: str, user_id: str) -> Optional[Grant]:
        """Mark a user's grant revoked. The record is kept for audit."""
        existing = self._lookup(
            f"grant of user {user_id}", self.store.find_by_user, company_id, user_id
        )
        if existing is None:
            return None

        revoked = existing.model_copy(
            update={"status": GrantStatus.REVOKED, "updated_at": datetime.now(pytz.utc)}
        )
        logger.info(f"Revoked grant {mask_token(existing.grant_id)} for user {user_id}")
        return self.store.save(revoked)

    def mark_validated(self, grant_id: str) -> Optional[Grant]:
        existing = self._lookup("grant by id", self.store.find_by_grant_id, grant_id)
        if existing is None:
            return None
        now = datetime.now(pytz.utc)
        return self.store.save(
            existing.model_copy(update={"last_validated_at": now, "updated_at": now})
        )
