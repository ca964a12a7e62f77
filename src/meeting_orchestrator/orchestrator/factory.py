"""Wire the orchestrator from application and tenant configuration."""

from typing import Optional

import requests

from ..agents.calendar import EVENT_TTL_HOURS, CalendarAgent
from ..agents.contacts import CONTACT_TTL_HOURS, ContactsAgent
from ..agents.email import EmailAgent
from ..auth.credentials import NYLAS_API_KEY, CredentialService, TenantCredentialSource
from ..cache.ttl_cache import TTLCache
from ..config import AppConfig, TenantConfig
from ..grants.resolver import GrantResolver
from ..grants.store import GrantStore, InMemoryGrantStore
from ..providers.base import CalendarProvider
from ..providers.nylas import NylasProvider
from .engine import MeetingOrchestrator


def create_orchestrator(
    app_config: AppConfig,
    tenant_config: TenantConfig,
    store: Optional[GrantStore] = None,
    provider: Optional[CalendarProvider] = None,
    session: Optional[requests.Session] = None,
) -> MeetingOrchestrator:
    """
    Build a MeetingOrchestrator and its agents.

    Args:
        app_config: Application settings (provider, TTLs, concurrency)
        tenant_config: Company credentials and grants
        store: Grant store (defaults to the grants listed in the tenant file)
        provider: Calendar provider (defaults to Nylas)
        session: HTTP session for the default provider

    Returns:
        Configured orchestrator
    """
    credentials = CredentialService(
        TenantCredentialSource(
            tenant_config, fallbacks={NYLAS_API_KEY: app_config.provider.api_key}
        ),
        ttl_seconds=app_config.credential_cache_ttl_seconds,
    )
    provider = provider or NylasProvider(app_config.provider, credentials, session)
    resolver = GrantResolver(store or InMemoryGrantStore.from_tenant_config(tenant_config))

    contacts = ContactsAgent(
        provider,
        resolver,
        TTLCache(default_ttl_hours=CONTACT_TTL_HOURS),
        ttl_hours=app_config.contact_cache_ttl_hours,
        max_workers=app_config.max_workers,
    )
    calendar = CalendarAgent(
        provider,
        resolver,
        TTLCache(default_ttl_hours=EVENT_TTL_HOURS),
        ttl_hours=app_config.event_cache_ttl_hours,
        increment_seconds=app_config.slot_increment_minutes * 60,
        max_workers=app_config.max_workers,
        calendar_id=app_config.provider.calendar_id,
    )
    email = EmailAgent(provider, resolver, max_workers=app_config.max_workers)

    return MeetingOrchestrator(
        resolver,
        contacts,
        calendar,
        email,
        source=app_config.meeting_source,
        default_language=app_config.default_language,
    )
