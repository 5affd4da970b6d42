"""
Variant image service.

Images live in the variant-images storage bucket under
{prefix}/{variant_id}/{timestamp}.{ext}; each row in variant_images keeps a
long-lived signed URL. The primary image's URL is mirrored onto
variants.image_url so listings can show it without joining.
"""

import time
from dataclasses import dataclass
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import VariantImageResponse, VariantImageUpdate
from exceptions import (
    DatabaseError,
    StorageError,
    VariantImageNotFoundError,
    VariantNotFoundError,
)
from utils.storage import extract_object_path, read_signed_url

logger = structlog.get_logger(__name__)

DEFAULT_EXTENSION = "jpg"


@dataclass
class ImageFile:
    """An uploaded file ready to be stored."""

    content: bytes
    filename: str
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        if "." in self.filename:
            ext = self.filename.rsplit(".", 1)[1].strip().lower()
            if ext:
                return ext
        return DEFAULT_EXTENSION


class ImageService:
    """Upload, order and remove variant images."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "variant_images"
        self.variants_table = "variants"

    @property
    def bucket(self):
        return self.db.storage.from_(settings.variant_images_bucket)

    # ===================
    # READ OPERATIONS
    # ===================

    def list_for_variant(self, variant_id: str) -> list[VariantImageResponse]:
        """Images of a variant in display order."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("variant_id", variant_id)
                .order("display_order")
                .execute()
            )
            return [VariantImageResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("get_variant_images_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, image_id: str) -> VariantImageResponse:
        """
        Raises:
            VariantImageNotFoundError: No such image
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", image_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_variant_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VariantImageNotFoundError(image_id)
        return VariantImageResponse(**result.data[0])

    def _ensure_variant(self, variant_id: str) -> None:
        try:
            result = (
                self.db.table(self.variants_table)
                .select("id")
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)

    # ===================
    # UPLOADS
    # ===================

    def upload(
        self,
        variant_id: str,
        image: ImageFile,
        display_order: int = 0,
        is_primary: bool = False
    ) -> VariantImageResponse:
        """
        Store one image and record it.

        Raises:
            VariantNotFoundError: No such variant
            StorageError: Upload or URL signing failed
        """
        self._ensure_variant(variant_id)

        path = (
            f"{settings.variant_images_prefix}/{variant_id}/"
            f"{time.time_ns()}.{image.extension}"
        )

        logger.info(
            "uploading_variant_image",
            variant_id=variant_id,
            path=path,
            size_bytes=len(image.content),
            is_primary=is_primary
        )

        file_options = {"upsert": "false"}
        if image.content_type:
            file_options["content-type"] = image.content_type

        try:
            self.bucket.upload(path, image.content, file_options=file_options)
        except Exception as e:
            logger.error("variant_image_upload_failed", path=path, error=str(e))
            raise StorageError(f"Failed to upload image: {e}", {"path": path})

        try:
            signed = self.bucket.create_signed_url(
                path,
                settings.variant_image_url_ttl_seconds
            )
            image_url = read_signed_url(signed)
        except Exception as e:
            logger.error("variant_image_signing_failed", path=path, error=str(e))
            image_url = ""

        if not image_url:
            self._remove_object(path)
            raise StorageError("Failed to create image URL", {"path": path})

        record = None
        cleared: list[str] = []
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "variant_id": variant_id,
                    "image_url": image_url,
                    "display_order": display_order,
                    "is_primary": is_primary,
                })
                .execute()
            )
            record = VariantImageResponse(**result.data[0])

            if is_primary:
                cleared = self._clear_primary(variant_id, keep_id=record.id)
                self._mirror_primary(variant_id, image_url)

        except Exception as e:
            logger.error("save_variant_image_failed", variant_id=variant_id, error=str(e))
            self._undo_upload(record, cleared)
            self._remove_object(path)
            raise DatabaseError("insert", str(e))

        logger.info("variant_image_uploaded", variant_id=variant_id, image_id=record.id)
        return record

    def upload_many(
        self,
        variant_id: str,
        images: list[ImageFile]
    ) -> list[VariantImageResponse]:
        """
        Upload several images after the existing ones.

        The first upload becomes primary only if the variant had no images.
        """
        existing = self.list_for_variant(variant_id)
        next_order = max((i.display_order for i in existing), default=-1) + 1

        uploaded = []
        for offset, image in enumerate(images):
            uploaded.append(
                self.upload(
                    variant_id,
                    image,
                    display_order=next_order + offset,
                    is_primary=not existing and offset == 0
                )
            )

        logger.info("variant_images_uploaded", variant_id=variant_id, count=len(uploaded))
        return uploaded

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update(self, image_id: str, data: VariantImageUpdate) -> VariantImageResponse:
        """Update display order; is_primary=True goes through set_primary."""
        image = self.get_by_id(image_id)

        if data.is_primary:
            image = self.set_primary(image_id)

        update_data = {}
        if data.display_order is not None:
            update_data["display_order"] = data.display_order
        if data.is_primary is False and image.is_primary:
            update_data["is_primary"] = False

        if not update_data:
            return image

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", image_id)
                .execute()
            )
            logger.info("variant_image_updated", image_id=image_id, fields=list(update_data))
            return VariantImageResponse(**result.data[0])
        except Exception as e:
            logger.error("update_variant_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("update", str(e))

    def set_primary(self, image_id: str) -> VariantImageResponse:
        """Make one image primary for its variant and mirror its URL."""
        image = self.get_by_id(image_id)

        try:
            result = (
                self.db.table(self.table)
                .update({"is_primary": True})
                .eq("id", image_id)
                .execute()
            )
            if result.data:
                self._clear_primary(image.variant_id, keep_id=image_id)
                self._mirror_primary(image.variant_id, image.image_url)
        except Exception as e:
            logger.error("set_primary_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise VariantImageNotFoundError(image_id)

        logger.info("primary_image_set", variant_id=image.variant_id, image_id=image_id)
        return VariantImageResponse(**result.data[0])

    def delete(self, image_id: str) -> bool:
        """
        Delete an image row, then its stored object.

        When the primary image goes, the next image by display order takes
        its place on the variant (or the variant loses its image).
        """
        image = self.get_by_id(image_id)

        logger.info("deleting_variant_image", image_id=image_id, variant_id=image.variant_id)

        try:
            self.db.table(self.table).delete().eq("id", image_id).execute()
        except Exception as e:
            logger.error("delete_variant_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("delete", str(e))

        self._remove_object(extract_object_path(image.image_url, settings.variant_images_bucket))

        if image.is_primary:
            remaining = self.list_for_variant(image.variant_id)
            try:
                if remaining:
                    successor = remaining[0]
                    self.db.table(self.table).update(
                        {"is_primary": True}
                    ).eq("id", successor.id).execute()
                    self._mirror_primary(image.variant_id, successor.image_url)
                else:
                    self._mirror_primary(image.variant_id, None)
            except Exception as e:
                logger.error("repoint_primary_image_failed", variant_id=image.variant_id, error=str(e))
                raise DatabaseError("update", str(e))

        logger.info("variant_image_deleted", image_id=image_id)
        return True

    def delete_for_variant(self, variant_id: str) -> int:
        """Remove every image of a variant. Returns how many were removed."""
        images = self.list_for_variant(variant_id)

        try:
            self.db.table(self.table).delete().eq("variant_id", variant_id).execute()
        except Exception as e:
            logger.error("delete_variant_images_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("delete", str(e))

        for image in images:
            self._remove_object(
                extract_object_path(image.image_url, settings.variant_images_bucket)
            )

        logger.info("variant_images_deleted", variant_id=variant_id, count=len(images))
        return len(images)

    # ===================
    # HELPERS
    # ===================

    def _clear_primary(self, variant_id: str, keep_id: Optional[str] = None) -> list[str]:
        """Unset is_primary on a variant's images. Returns the ids that were primary."""
        query = self.db.table(self.table).update(
            {"is_primary": False}
        ).eq("variant_id", variant_id).eq("is_primary", True)
        if keep_id:
            query = query.neq("id", keep_id)
        result = query.execute()
        return [row["id"] for row in result.data or []]

    def _undo_upload(self, record: Optional[VariantImageResponse], cleared: list[str]) -> None:
        """Best effort; drop the new row and re-flag the previous primary."""
        try:
            if cleared:
                self.db.table(self.table).update(
                    {"is_primary": True}
                ).in_("id", cleared).execute()
            if record is not None:
                self.db.table(self.table).delete().eq("id", record.id).execute()
        except Exception as e:
            logger.warning(
                "variant_image_rollback_failed",
                image_id=record.id if record else None,
                error=str(e)
            )

    def _mirror_primary(self, variant_id: str, image_url: Optional[str]) -> None:
        self.db.table(self.variants_table).update(
            {"image_url": image_url}
        ).eq("id", variant_id).execute()

    def _remove_object(self, path: Optional[str]) -> None:
        """Best effort; failures are only logged."""
        if not path:
            return
        try:
            self.bucket.remove([path])
        except Exception as e:
            logger.warning("storage_object_remove_failed", path=path, error=str(e))


# Singleton instance for convenience
_image_service: Optional[ImageService] = None


def get_image_service() -> ImageService:
    """Get or create ImageService instance."""
    global _image_service
    if _image_service is None:
        _image_service = ImageService()
    return _image_service
