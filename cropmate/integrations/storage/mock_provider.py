from __future__ import annotations

import hashlib

from cropmate.integrations.common import IntegrationRequestError
from cropmate.integrations.storage.base import StorageProvider, UploadResult, read_upload


class MockStorageProvider(StorageProvider):
    name = "mock"

    def __init__(self, base_url: str = "https://storage.cropmate.test"):
        self.base_url = base_url.rstrip("/")

    def upload(self, file, *, folder: str) -> UploadResult:
        content, filename = read_upload(file)
        if not content:
            raise IntegrationRequestError("MOCK_UPLOAD_FAILED:empty file")
        digest = hashlib.sha256(content).hexdigest()[:24]
        public_id = f"{folder.strip('/')}/{digest}"
        return UploadResult(
            secure_url=f"{self.base_url}/{public_id}",
            public_id=public_id,
            provider=self.name,
            raw={"filename": filename, "bytes": len(content)},
        )
