from functools import lru_cache

from supabase import Client, create_client

from pitch_ai import config


@lru_cache(maxsize=1)
def get_supabase_admin() -> Client:
    """Supabase client using the service role key so profile writes bypass RLS."""
    key = config.SUPABASE_SERVICE_ROLE_KEY or config.SUPABASE_KEY
    if not config.SUPABASE_URL or not key:
        raise RuntimeError("Supabase is not configured (SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required)")
    return create_client(config.SUPABASE_URL, key)


def get_supabase_auth() -> Client:
    """Fresh anon-key client for sign-up and sign-in.

    Signing in stores the user session on the client that made the call, so
    these never run on the shared admin client.
    """
    key = config.SUPABASE_KEY or config.SUPABASE_SERVICE_ROLE_KEY
    if not config.SUPABASE_URL or not key:
        raise RuntimeError("Supabase is not configured (SUPABASE_URL and SUPABASE_KEY required)")
    return create_client(config.SUPABASE_URL, key)


def to_jsonable(obj):
    """Convert auth response models (user, session) into plain dicts."""
    if obj is None:
        return None
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return obj
