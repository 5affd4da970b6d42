"""
Store location service.

Exactly one location is the default. The first location created becomes
default; the default can be neither deleted nor deactivated, and the last
remaining location cannot be deleted.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.location import (
    StoreLocationCreate,
    StoreLocationResponse,
    StoreLocationUpdate,
)
from exceptions import (
    DatabaseError,
    StoreLocationNotFoundError,
    StoreLocationProtectedError,
)

logger = structlog.get_logger(__name__)


class StoreLocationService:
    """CRUD for store locations."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "store_locations"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_default(self) -> StoreLocationResponse:
        """
        Raises:
            StoreLocationNotFoundError: No active default location
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("is_default", True)
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error("get_default_location_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise StoreLocationNotFoundError("default")
        return StoreLocationResponse(**result.data[0])

    def get_all(self) -> list[StoreLocationResponse]:
        """Default first, then newest."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("is_default", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
            return [StoreLocationResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("get_locations_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, location_id: str) -> StoreLocationResponse:
        """
        Raises:
            StoreLocationNotFoundError: No such location
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", location_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_location_failed", location_id=location_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise StoreLocationNotFoundError(location_id)
        return StoreLocationResponse(**result.data[0])

    def count(self) -> int:
        try:
            result = self.db.table(self.table).select("id", count="exact").execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_locations_failed", error=str(e))
            raise DatabaseError("count", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: StoreLocationCreate) -> StoreLocationResponse:
        """Create a location; the first one becomes default."""
        is_first = self.count() == 0

        logger.info("creating_location", name=data.name, is_default=is_first)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    **data.model_dump(),
                    "is_default": is_first,
                })
                .execute()
            )
            location = StoreLocationResponse(**result.data[0])
            logger.info("location_created", location_id=location.id)
            return location
        except Exception as e:
            logger.error("create_location_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, location_id: str, data: StoreLocationUpdate) -> StoreLocationResponse:
        """
        Update a location. Making it default unsets every other default.

        Raises:
            StoreLocationNotFoundError: No such location
        """
        logger.info("updating_location", location_id=location_id)

        self.get_by_id(location_id)

        update_data = data.model_dump(exclude_unset=True)

        try:
            if update_data.get("is_default") is True:
                self.db.table(self.table).update(
                    {"is_default": False}
                ).neq("id", location_id).execute()

            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", location_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_location_failed", location_id=location_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise StoreLocationNotFoundError(location_id)

        logger.info(
            "location_updated",
            location_id=location_id,
            fields=[k for k in update_data if k != "updated_at"]
        )
        return StoreLocationResponse(**result.data[0])

    def delete(self, location_id: str) -> bool:
        """
        Raises:
            StoreLocationNotFoundError: No such location
            StoreLocationProtectedError: Last or default location
        """
        logger.info("deleting_location", location_id=location_id)

        if self.count() <= 1:
            raise StoreLocationProtectedError(
                location_id, "Cannot delete the last store location"
            )

        location = self.get_by_id(location_id)
        if location.is_default:
            raise StoreLocationProtectedError(
                location_id,
                "Cannot delete the default store location. "
                "Please set another location as default first."
            )

        try:
            self.db.table(self.table).delete().eq("id", location_id).execute()
            logger.info("location_deleted", location_id=location_id)
            return True
        except Exception as e:
            logger.error("delete_location_failed", location_id=location_id, error=str(e))
            raise DatabaseError("delete", str(e))

    def set_default(self, location_id: str) -> StoreLocationResponse:
        return self.update(location_id, StoreLocationUpdate(is_default=True))

    def set_active(self, location_id: str, is_active: bool) -> StoreLocationResponse:
        """
        Raises:
            StoreLocationProtectedError: Deactivating the default location
        """
        location = self.get_by_id(location_id)
        if location.is_default and not is_active:
            raise StoreLocationProtectedError(
                location_id, "Cannot deactivate the default store location"
            )
        return self.update(location_id, StoreLocationUpdate(is_active=is_active))


# Singleton instance for convenience
_location_service: Optional[StoreLocationService] = None


def get_location_service() -> StoreLocationService:
    """Get or create StoreLocationService instance."""
    global _location_service
    if _location_service is None:
        _location_service = StoreLocationService()
    return _location_service
