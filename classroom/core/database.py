"""
Supabase client shared by the table services and the blob store.
"""

import logging

from supabase import Client, create_client

from classroom.core.config import settings

logger = logging.getLogger(__name__)

_supabase_client: Client | None = None


def get_supabase() -> Client:
    """Lazily create one client per process. The service key is preferred so storage writes bypass RLS."""
    global _supabase_client
    if _supabase_client is None:
        if not settings.SUPABASE_URL:
            raise RuntimeError("SUPABASE_URL is not configured")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY,
        )
        logger.info("Connected Supabase client for %s", settings.SUPABASE_URL)
    return _supabase_client
