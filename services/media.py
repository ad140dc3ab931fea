"""
Media uploads to Cloudinary.

Incoming files are spooled to a local temp directory first, then pushed to
the media host. The local copy is always removed afterwards; if that removal
fails it is logged and the request carries on.
"""
from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaSettings:
    cloud_name: str
    api_key: str
    api_secret: str
    tmp_dir: str

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "MediaSettings":
        return cls(
            cloud_name=config.get("CLOUDINARY_CLOUD_NAME", ""),
            api_key=config.get("CLOUDINARY_API_KEY", ""),
            api_secret=config.get("CLOUDINARY_API_SECRET", ""),
            tmp_dir=config["UPLOAD_TMP_DIR"],
        )


def remove_local_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove temporary upload %s", path, exc_info=True)


class MediaUploader:
    def __init__(self, settings: MediaSettings):
        self.settings = settings
        cloudinary.config(
            cloud_name=settings.cloud_name,
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            secure=True,
        )

    def spool(self, file_storage) -> str | None:
        """Save an incoming werkzeug FileStorage locally; returns its path."""
        if file_storage is None or not file_storage.filename:
            return None
        os.makedirs(self.settings.tmp_dir, exist_ok=True)
        name = f"{uuid.uuid4().hex}-{secure_filename(file_storage.filename) or 'upload'}"
        path = os.path.join(self.settings.tmp_dir, name)
        file_storage.save(path)
        return path

    def upload(self, local_path: str | None) -> str | None:
        """Upload a local file and return its public url, or None on failure."""
        if not local_path:
            return None
        try:
            response = cloudinary.uploader.upload(local_path, resource_type="auto")
            url = response.get("secure_url") or response.get("url")
            logger.info("File has been uploaded to the media host: %s", url)
            return url
        except (CloudinaryError, OSError):
            logger.exception("Upload of %s failed", local_path)
            return None
        finally:
            remove_local_file(local_path)

    def upload_file(self, file_storage) -> str | None:
        return self.upload(self.spool(file_storage))
