import asyncio
import logging

import cloudinary
import cloudinary.uploader

from fastapi import UploadFile

from savora import config
from savora.utils.errors import BadRequest, ConfigError, Internal

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "savora"
ALLOWED_FORMATS = ["jpg", "jpeg", "png", "webp"]
IMAGE_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


async def read_image_upload(upload: UploadFile | None) -> bytes | None:
    """Bytes of an uploaded image, or None when no file was sent."""
    if upload is None or not upload.filename:
        return None
    if upload.content_type not in IMAGE_CONTENT_TYPES:
        raise BadRequest("Image must be a jpg, jpeg, png or webp file")
    return await upload.read()


async def discard_image(store, public_id: str) -> None:
    """Best-effort delete; a failure is logged and the image is left orphaned."""
    try:
        await store.delete(public_id)
    except Exception:
        logger.exception("Could not delete image %s", public_id)


class CloudinaryImageStore:
    """Hosted image storage: upload returns (url, public_id); delete takes the public_id."""

    def __init__(self, folder: str = UPLOAD_FOLDER):
        self.folder = folder
        self._configured = False

    def _configure(self) -> None:
        if self._configured:
            return
        if not all([config.CLOUDINARY_CLOUD_NAME, config.CLOUDINARY_API_KEY, config.CLOUDINARY_API_SECRET]):
            raise ConfigError(
                "Missing Cloudinary credentials. Please set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY, and CLOUDINARY_API_SECRET."
            )
        cloudinary.config(
            cloud_name=config.CLOUDINARY_CLOUD_NAME,
            api_key=config.CLOUDINARY_API_KEY,
            api_secret=config.CLOUDINARY_API_SECRET,
            secure=True,
        )
        self._configured = True

    async def upload(self, data: bytes) -> tuple[str, str]:
        self._configure()
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                data,
                folder=self.folder,
                resource_type="image",
                allowed_formats=ALLOWED_FORMATS,
                transformation=[{"width": 800, "height": 800, "crop": "limit"}],
            )
        except Exception as e:
            logger.error("Failed to upload image to Cloudinary: %s", e)
            raise Internal("Failed to upload image") from e

        logger.info("Uploaded image %s", result["public_id"])
        return result["secure_url"], result["public_id"]

    async def delete(self, public_id: str) -> None:
        self._configure()
        await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
        logger.info("Deleted image %s", public_id)


image_store = CloudinaryImageStore()


def get_image_store():
    """FastAPI dependency; overridden in tests."""
    return image_store
