from __future__ import annotations

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from cadnotes.config import settings
from cadnotes.utils.logging import get_logger

logger = get_logger(__name__)


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped Supabase client using the anon key.

    GoTrue keeps the signed-in session inside the client object, so clients
    are never shared between requests. If a JWT is provided it becomes the
    PostgREST bearer and row level security applies to every query.
    """
    logger.debug("Creating request-scoped Supabase client")
    anon_key = settings.supabase_anon_key
    if not anon_key:
        raise RuntimeError("supabase_anon_key is required for request client")

    client = create_client(
        settings.supabase_url,
        anon_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client
