"""Tests for grants/resolver.py

Grants map a user's email to the provider grant used for every remote
call. A user keeps at most one grant record per company and revocation
never deletes it.
"""

from unittest.mock import MagicMock

import pytest

from meeting_orchestrator.grants.resolver import GrantResolver
from meeting_orchestrator.models.grant import GrantStatus
from meeting_orchestrator.utils.exceptions import GrantLookupError, GrantNotFoundError


class TestLookups:
    def test_find_is_case_insensitive(self, resolver, company_id):
        grant = resolver.find_user_grant(company_id, "  Bob@ACME.com ")

        assert grant.grant_id == "grant-bob"

    def test_find_unknown_user(self, resolver, company_id):
        assert resolver.find_user_grant(company_id, "dave@acme.com") is None

    def test_find_other_company(self, resolver):
        assert resolver.find_user_grant("globex", "bob@acme.com") is None

    def test_find_or_raise(self, resolver, company_id):
        """Should name the user and tell them to connect."""
        with pytest.raises(GrantNotFoundError) as exc:
            resolver.find_user_grant_or_raise(company_id, "dave@acme.com")

        assert "dave@acme.com has not connected their calendar" in str(exc.value)
        assert exc.value.email == "dave@acme.com"

    def test_list_company_grants_sorted(self, resolver, company_id):
        emails = [g.email for g in resolver.list_company_grants(company_id)]

        assert emails == ["alice@acme.com", "bob@acme.com", "carol@acme.com"]

    def test_partition_and_disconnected(self, resolver, company_id):
        emails = ["alice@acme.com", "dave@acme.com"]

        assert resolver.partition_by_connection(company_id, emails) == (
            ["alice@acme.com"],
            ["dave@acme.com"],
        )
        assert resolver.get_disconnected_users(company_id, emails) == ["dave@acme.com"]
        assert resolver.emails_to_grant_ids(company_id, emails) == [
            ("alice@acme.com", "grant-alice"),
            ("dave@acme.com", None),
        ]

    def test_connection_stats(self, resolver, company_id):
        stats = resolver.connection_stats(company_id, total_employees=4)

        assert stats == {
            "total_employees": 4,
            "connected": 3,
            "disconnected": 1,
            "connection_rate": 75,
        }

    def test_connection_stats_no_employees(self, resolver, company_id):
        assert resolver.connection_stats(company_id, 0)["connection_rate"] == 0

    def test_store_failure_is_wrapped(self, company_id):
        """Should report store failures as GrantLookupError."""
        store = MagicMock()
        store.find_active.side_effect = RuntimeError("connection refused")

        with pytest.raises(GrantLookupError, match="connection refused"):
            GrantResolver(store).find_user_grant(company_id, "bob@acme.com")


class TestLifecycle:
    def test_reconnect_updates_in_place(self, resolver, grant_store, company_id):
        """Should keep one record per user, with the new grant id."""
        resolver.store_grant(company_id, "u-bob", "grant-bob-2", "bob@acme.com", "microsoft")

        grant = resolver.find_user_grant(company_id, "bob@acme.com")
        assert grant.grant_id == "grant-bob-2"
        assert grant.provider == "microsoft"
        assert len(grant_store.list_active(company_id)) == 3

    def test_store_new_user(self, resolver, company_id):
        resolver.store_grant(company_id, "u-dave", "grant-dave", "Dave@Acme.com", "google", ["calendar"])

        grant = resolver.find_user_grant(company_id, "dave@acme.com")
        assert grant.grant_id == "grant-dave"
        assert grant.scopes == ["calendar"]

    def test_revoke_keeps_record(self, resolver, grant_store, company_id):
        """Should mark the grant revoked without deleting it."""
        revoked = resolver.revoke_grant(company_id, "u-bob")

        assert revoked.status == GrantStatus.REVOKED
        assert resolver.find_user_grant(company_id, "bob@acme.com") is None
        assert grant_store.find_by_user(company_id, "u-bob") is not None

    def test_reconnect_reactivates(self, resolver, company_id):
        resolver.revoke_grant(company_id, "u-bob")
        resolver.store_grant(company_id, "u-bob", "grant-bob-3", "bob@acme.com", "google")

        assert resolver.is_user_connected(company_id, "bob@acme.com")

    def test_revoke_unknown_user(self, resolver, company_id):
        assert resolver.revoke_grant(company_id, "u-nobody") is None

    def test_mark_validated(self, resolver):
        grant = resolver.mark_validated("grant-carol")

        assert grant.last_validated_at is not None
        assert resolver.mark_validated("grant-unknown") is None
