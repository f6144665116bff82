"""Supabase client used for saved and shared routes."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from ..config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Optional[Client]:
    """Cached client, or ``None`` when saved routes are not configured.

    Creating the client does not contact the server; query failures surface
    where the tables are used.
    """
    if not (settings.supabase_url and settings.supabase_key):
        logger.info("Supabase not configured; saved routes are kept locally only")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client for {settings.supabase_url}: {e}")
        return None
