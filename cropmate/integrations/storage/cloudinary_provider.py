from __future__ import annotations

import hashlib
import time

import requests

from cropmate.integrations.common import IntegrationRequestError
from cropmate.integrations.storage.base import StorageProvider, UploadResult, read_upload


class CloudinaryStorageProvider(StorageProvider):
    name = "cloudinary"

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, timeout: int = 25):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    def _signature(self, params: dict) -> str:
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    def upload(self, file, *, folder: str) -> UploadResult:
        content, filename = read_upload(file)
        if not content:
            raise IntegrationRequestError("CLOUDINARY_UPLOAD_FAILED:empty file")
        params = {"folder": folder, "timestamp": int(time.time())}
        data = {
            **params,
            "api_key": self.api_key,
            "signature": self._signature(params),
        }
        url = f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"
        try:
            r = requests.post(url, data=data, files={"file": (filename, content)}, timeout=self.timeout)
        except requests.RequestException as e:
            raise IntegrationRequestError(f"CLOUDINARY_UPLOAD_FAILED:{e}") from e
        try:
            j = r.json() if r.content else {}
        except ValueError:
            # Proxies answer 5xx with HTML pages.
            j = {}
        if not isinstance(j, dict):
            j = {}
        if r.status_code < 200 or r.status_code >= 300 or not j.get("secure_url"):
            msg = ((j.get("error") or {}).get("message") or f"HTTP {r.status_code}").strip()
            raise IntegrationRequestError(f"CLOUDINARY_UPLOAD_FAILED:{msg}")
        return UploadResult(
            secure_url=str(j.get("secure_url")),
            public_id=str(j.get("public_id") or ""),
            provider=self.name,
            raw=j,
        )
