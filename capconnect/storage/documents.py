"""
Data-room file storage in the Supabase `documents` bucket.
"""

import os
import logging
import time
import uuid
from typing import Dict, Union

from capconnect.storage.client import get_supabase

logger = logging.getLogger(__name__)

DOCUMENTS_BUCKET_NAME = os.getenv("DOCUMENTS_BUCKET_NAME", "documents")


def build_storage_path(company_id: Union[str, uuid.UUID], filename: str) -> str:
    """`<company_id>/<epoch_ms>.<ext>`; the original file name is not kept in the path."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{company_id}/{int(time.time() * 1000)}.{ext}"


def upload_document_file(
    company_id: Union[str, uuid.UUID],
    filename: str,
    data: bytes,
    content_type: str = "application/octet-stream",
) -> Dict[str, str]:
    """
    Upload raw bytes to the documents bucket.

    Returns a dict with `storage_path` and `public_url`.
    """
    client = get_supabase()
    storage_path = build_storage_path(company_id, filename)

    try:
        client.storage.from_(DOCUMENTS_BUCKET_NAME).upload(
            storage_path,
            data,
            {"content-type": content_type},
        )
    except Exception as e:
        logger.error("Upload of %s to bucket %s failed: %s", storage_path, DOCUMENTS_BUCKET_NAME, e, exc_info=True)
        raise

    public_url = client.storage.from_(DOCUMENTS_BUCKET_NAME).get_public_url(storage_path)
    logger.info("Uploaded document for company %s to %s", company_id, storage_path)
    return {"storage_path": storage_path, "public_url": public_url}


def storage_path_from_url(url: str) -> str:
    """The object key the original uploader stored, recovered from a public URL."""
    marker = f"/{DOCUMENTS_BUCKET_NAME}/"
    path = url.split("?", 1)[0]
    if marker in path:
        return path.split(marker, 1)[1]
    return path.rsplit("/", 1)[-1]


def remove_document_file(storage_path: str) -> None:
    client = get_supabase()
    try:
        client.storage.from_(DOCUMENTS_BUCKET_NAME).remove([storage_path])
        logger.info("Removed %s from bucket %s", storage_path, DOCUMENTS_BUCKET_NAME)
    except Exception as e:
        # row deletion stands; the object is left orphaned
        logger.warning("Could not remove %s from storage: %s", storage_path, e)
