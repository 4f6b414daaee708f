from __future__ import annotations

import os

from cropmate.integrations.common import IntegrationDisabledError, IntegrationMisconfiguredError
from cropmate.integrations.storage.base import StorageProvider
from cropmate.integrations.storage.cloudinary_provider import CloudinaryStorageProvider
from cropmate.integrations.storage.mock_provider import MockStorageProvider


def _env() -> str:
    return (os.getenv("CROPMATE_ENV") or "dev").strip().lower()


def build_storage_provider() -> StorageProvider:
    provider = (os.getenv("STORAGE_PROVIDER") or "").strip().lower()
    if not provider:
        provider = "cloudinary" if _env() in ("prod", "production") else "mock"

    if provider == "disabled":
        raise IntegrationDisabledError("INTEGRATION_DISABLED:storage")

    if provider == "mock":
        if _env() in ("prod", "production"):
            raise IntegrationMisconfiguredError("INTEGRATION_MISCONFIGURED:mock storage not allowed in production")
        return MockStorageProvider()

    if provider != "cloudinary":
        raise IntegrationMisconfiguredError(f"INTEGRATION_MISCONFIGURED:storage_provider={provider}")

    missing = [k for k in _cloudinary_keys() if not (os.getenv(k) or "").strip()]
    if missing:
        raise IntegrationMisconfiguredError(f"INTEGRATION_MISCONFIGURED:missing {','.join(missing)}")

    return CloudinaryStorageProvider(
        cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", "").strip(),
        api_key=os.getenv("CLOUDINARY_API_KEY", "").strip(),
        api_secret=os.getenv("CLOUDINARY_API_SECRET", "").strip(),
    )


def _cloudinary_keys() -> tuple[str, ...]:
    return ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")


def storage_health() -> dict:
    provider = (os.getenv("STORAGE_PROVIDER") or "").strip().lower() or ("cloudinary" if _env() in ("prod", "production") else "mock")
    missing = []
    if provider == "cloudinary":
        missing = [k for k in _cloudinary_keys() if not (os.getenv(k) or "").strip()]
    if provider == "disabled":
        status = "disabled"
    elif missing:
        status = "misconfigured"
    else:
        status = "configured"
    return {"status": status, "provider": provider, "missing": missing}
