from __future__ import annotations
import time
from typing import Optional
from urllib.parse import unquote, urlparse

from firebase_admin import storage
from google.api_core import exceptions as gcloud_exceptions
from losthub.scripts.logging_config import get_logger
from config import settings

logger = get_logger("media_store")

# Lazy bucket init
_bucket = None

def get_bucket():
    global _bucket
    if _bucket is None:
        bucket_name = settings.FIREBASE_STORAGE_BUCKET
        try:
            import firebase_admin
            app = firebase_admin.get_app()
            # If app initialized with storageBucket option it will appear in options
            opt_bucket = app.options.get('storageBucket') if hasattr(app, 'options') else None
            if not bucket_name and opt_bucket:
                bucket_name = opt_bucket
            if not bucket_name:
                project_id = getattr(app, 'project_id', None)
                if project_id:
                    bucket_name = f"{project_id}.firebasestorage.app"
        except ValueError:
            # firebase app not initialized
            pass
        if not bucket_name:
            raise RuntimeError("Storage bucket not configured and cannot derive project id")
        _bucket = storage.bucket(bucket_name)
    return _bucket


def upload_item_image(data: bytes, filename: str, content_type: str) -> str:
    """Store an item image publicly and return its permanent URL."""
    bucket = get_bucket()
    safe_name = (filename or "image").replace(" ", "_")
    blob = bucket.blob(f"items/{int(time.time() * 1000)}_{safe_name}")
    blob.upload_from_string(data, content_type=content_type)
    blob.make_public()
    logger.info("item_image_stored path=%s bytes=%d", blob.name, len(data))
    return f"https://storage.googleapis.com/{bucket.name}/{blob.name}"


def blob_path_from_url(image_url: str) -> Optional[str]:
    """https://storage.googleapis.com/<bucket>/<path> -> <path>"""
    parts = urlparse(image_url).path.lstrip("/").split("/", 1)
    if len(parts) < 2 or not parts[1]:
        return None
    return unquote(parts[1])


def delete_item_image(image_url: Optional[str]) -> bool:
    """Best-effort removal of the blob behind `image_url`. Never raises."""
    if not image_url:
        return False
    path = blob_path_from_url(image_url)
    if not path:
        logger.warning("item_image_delete_skip unparsable url=%s", image_url)
        return False
    try:
        get_bucket().blob(path).delete()
    except gcloud_exceptions.NotFound:
        logger.warning("item_image_delete_missing path=%s", path)
        return False
    except Exception as e:
        logger.error("item_image_delete_error path=%s err=%s", path, e)
        return False
    logger.info("item_image_deleted path=%s", path)
    return True
