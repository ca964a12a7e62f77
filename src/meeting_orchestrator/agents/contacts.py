"""Contacts agent: participant enrichment and company directory.

Lookups are cache-first with a 7-day TTL. Enrichment is best-effort: a
provider failure means "no contact found" and never blocks scheduling.
"""

import logging
from typing import Optional

from ..cache.ttl_cache import TTLCache
from ..grants.resolver import GrantResolver
from ..models.contact import Contact, NewContact
from ..models.meeting import Participant
from ..providers.base import CalendarProvider
from ..utils.concurrency import DEFAULT_MAX_WORKERS, failures, raise_first, settle_all
from ..utils.exceptions import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

CONTACT_OBJECT_TYPE = "contact"
CONTACT_TTL_HOURS = 7 * 24


class ContactsAgent:
    """Directory lookups on behalf of company grants."""

    def __init__(
        self,
        provider: CalendarProvider,
        resolver: GrantResolver,
        cache: TTLCache,
        ttl_hours: float = CONTACT_TTL_HOURS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.provider = provider
        self.resolver = resolver
        self.cache = cache
        self.ttl_hours = ttl_hours
        self.max_workers = max_workers

    def find_contact_for_user(
        self, company_id: str, user_email: str, search_email: str
    ) -> Optional[Contact]:
        """
        Find a contact by email in a user's address book.

        Args:
            company_id: Owning company
            user_email: User whose grant is searched
            search_email: Address to look up

        Returns:
            Contact, or None if the user is not connected, the contact does
            not exist, or the provider call failed
        """
        grant = self.resolver.find_user_grant(company_id, user_email)
        if grant is None:
            return None

        key = search_email.strip().lower()
        cached = self.cache.get(grant.grant_id, CONTACT_OBJECT_TYPE, key)
        if cached is not None:
            logger.debug(f"Contact cache hit for {search_email}")
            return cached

        logger.debug(f"Contact cache miss for {search_email}, querying provider")
        try:
            contacts = self.provider.list_contacts(grant, email=search_email, limit=1)
        except ProviderError as e:
            logger.warning(f"Failed to fetch contact {search_email}: {e}")
            return None

        if not contacts:
            return None

        contact = contacts[0]
        self.cache.upsert(grant.grant_id, CONTACT_OBJECT_TYPE, key, contact, self.ttl_hours)
        return contact

    def enrich_participants(
        self,
        company_id: str,
        organizer_email: str,
        participants: list[Participant],
    ) -> list[Participant]:
        """
        Merge directory data into participants, looked up in parallel.

        Participants without a contact, or whose lookup failed, are
        returned unchanged. Order is preserved.
        """
        logger.info(f"Enriching {len(participants)} participants")

        outcomes = settle_all(
            lambda p: self.find_contact_for_user(company_id, organizer_email, p.email),
            participants,
            self.max_workers,
        )

        enriched = []
        for participant, outcome in zip(participants, outcomes):
            if not outcome.ok:
                logger.warning(f"Enrichment failed for {participant.email}: {outcome.message}")
                enriched.append(participant)
            elif outcome.value is None:
                enriched.append(participant)
            else:
                enriched.append(merge_contact(participant, outcome.value))

        count = sum(1 for p in enriched if p.contact_id)
        logger.info(f"Enriched {count}/{len(participants)} participants")
        return enriched

    def get_company_directory(self, company_id: str) -> dict[str, Contact]:
        """
        Aggregate contacts from every active grant of a company.

        Grants are queried in parallel; contacts are de-duplicated by
        primary email and the first occurrence (in grant email order) wins.
        Grants whose query fails are skipped.
        """
        grants = self.resolver.list_company_grants(company_id)
        logger.info(f"Fetching directory from {len(grants)} grants")

        outcomes = settle_all(
            lambda g: self.provider.list_contacts(g, limit=100), grants, self.max_workers
        )
        raise_first(outcomes, (ConfigurationError,))

        directory: dict[str, Contact] = {}
        for grant, outcome in zip(grants, outcomes):
            if not outcome.ok:
                logger.warning(f"Skipping contacts of {grant.email}: {outcome.message}")
                continue
            for contact in outcome.value:
                email = contact.primary_email.lower()
                if email and email not in directory:
                    directory[email] = contact

        logger.info(
            f"Directory complete: {len(directory)} unique contacts, "
            f"{len(failures(outcomes))} grant(s) failed"
        )
        return directory

    def create_contact_for_user(
        self, company_id: str, user_email: str, contact: NewContact
    ) -> Contact:
        """
        Create a contact in a user's address book and cache it.

        Raises:
            GrantNotFoundError: If the user has not connected an account
            ContactLookupError: If the provider rejects the contact
        """
        grant = self.resolver.find_user_grant_or_raise(company_id, user_email)
        created = self.provider.create_contact(grant, contact)
        self.cache.upsert(
            grant.grant_id,
            CONTACT_OBJECT_TYPE,
            contact.email.strip().lower(),
            created,
            self.ttl_hours,
        )
        logger.info(f"Created contact: {contact.email} (ID: {created.id})")
        return created


def merge_contact(participant: Participant, contact: Contact) -> Participant:
    """Overlay directory fields onto a participant."""
    name = (
        f"{contact.given_name} {contact.surname}"
        if contact.given_name and contact.surname
        else participant.name
    )
    return participant.model_copy(
        update={
            "contact_id": contact.id,
            "name": name,
            "phone": contact.primary_phone or participant.phone,
            "company": contact.company_name or participant.company,
        }
    )
