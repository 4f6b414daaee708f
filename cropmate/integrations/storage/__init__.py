from cropmate.integrations.storage.base import StorageProvider, UploadResult
from cropmate.integrations.storage.factory import build_storage_provider

__all__ = ["StorageProvider", "UploadResult", "build_storage_provider"]
