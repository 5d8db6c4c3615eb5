"""Read access to the Supabase user and activity tables."""

from resolver.store.client import fetch_activity_signals, fetch_users, is_configured
from resolver.store.async_client import AsyncStoreClient

__all__ = ["AsyncStoreClient", "fetch_activity_signals", "fetch_users", "is_configured"]
