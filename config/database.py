"""
Supabase clients for the admin API.

The anon-key client serves table reads and writes, password auth and the
image/receipt buckets. The service-role client is only needed to create and
remove auth users when admins are registered or deleted.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Tables the health check counts
HEALTH_TABLES = ("products", "variants", "orders")


class SupabaseUnavailableError(Exception):
    """The Supabase project could not be reached at startup."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get the shared anon-key client.

    The first call pings the categories table so a bad URL or key fails
    here instead of inside a request. Call reset_connection() to reconnect.

    Raises:
        SupabaseUnavailableError: If the ping fails
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."
        )

        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table("categories").select("id").limit(1).execute()

        logger.info("supabase_connected")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise SupabaseUnavailableError(f"Failed to connect to Supabase: {e}") from e


@lru_cache()
def get_admin_client() -> Optional[Client]:
    """
    Get the service-role client used for auth user management.

    Returns None without SUPABASE_SERVICE_KEY; admin registration then
    falls back to a plain sign-up and deleted admins keep their auth user.
    """
    if not settings.supabase_service_key:
        logger.warning("admin_client_not_configured", fallback="sign_up")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        logger.error("admin_client_failed", error=str(e))
        return None


# ===================
# HEALTH
# ===================

def _check_tables(client: Client) -> dict:
    counts = {}
    for table in HEALTH_TABLES:
        result = client.table(table).select("id", count="exact").limit(1).execute()
        counts[f"{table}_count"] = result.count
    return counts


def _check_bucket(client: Client, bucket: str) -> str:
    try:
        client.storage.get_bucket(bucket)
        return "ok"
    except Exception as e:
        logger.warning("storage_bucket_unreachable", bucket=bucket, error=str(e))
        return "unreachable"


def check_connection() -> dict:
    """
    Report on the pieces the admin API depends on.

    Returns:
        dict: status ("healthy" or "unhealthy"), catalog and order counts,
        the variant image bucket state and whether admin auth is configured
    """
    try:
        client = get_supabase_client()
        counts = _check_tables(client)
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

    storage = _check_bucket(client, settings.variant_images_bucket)

    return {
        "status": "healthy" if storage == "ok" else "unhealthy",
        **counts,
        "storage": storage,
        "admin_auth": "configured" if settings.supabase_service_key else "sign_up_only",
    }


def reset_connection():
    """Drop both cached clients so the next call reconnects."""
    get_supabase_client.cache_clear()
    get_admin_client.cache_clear()
    logger.info("database_connection_reset")
