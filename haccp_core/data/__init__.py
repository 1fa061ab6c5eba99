# =============================================================================
# haccp_core/data/__init__.py
# Remote store (Supabase) access
# =============================================================================

from .supabase_client import (
    SupabaseService,
    HaccpRemoteStore,
    get_supabase_client,
    get_cached_supabase_client,
    classify_remote_error,
    to_data_url,
)

__all__ = [
    "SupabaseService",
    "HaccpRemoteStore",
    "get_supabase_client",
    "get_cached_supabase_client",
    "classify_remote_error",
    "to_data_url",
]
