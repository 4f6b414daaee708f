from __future__ import annotations

import logging
import os

from cropmate.integrations.storage import StorageProvider, build_storage_provider
from cropmate.services.errors import UpstreamFailureError, ValidationError

logger = logging.getLogger(__name__)


def _folder(kind: str) -> str:
    root = (os.getenv("STORAGE_FOLDER") or "cropmate").strip().strip("/") or "cropmate"
    return f"{root}/{kind}"


def upload_proof(file, *, kind: str, storage: StorageProvider | None = None) -> str:
    """Hand a proof image to blob storage and return its public URL."""
    if file is None:
        raise ValidationError("Payment proof file is required")
    try:
        provider = storage or build_storage_provider()
        result = provider.upload(file, folder=_folder(kind))
    except RuntimeError as e:
        logger.warning("proof_upload_failed kind=%s err=%s", kind, e)
        raise UpstreamFailureError("Failed to upload payment proof") from e
    return result.secure_url
