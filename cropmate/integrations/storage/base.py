from __future__ import annotations

from dataclasses import dataclass

from cropmate.integrations.common import IntegrationRequestError


@dataclass
class UploadResult:
    secure_url: str
    public_id: str
    provider: str
    raw: dict | None = None


class StorageProvider:
    name = "unknown"

    def upload(self, file, *, folder: str) -> UploadResult:
        raise NotImplementedError


def read_upload(file) -> tuple[bytes, str]:
    """Return (content, filename) for a werkzeug FileStorage, file object or raw bytes."""
    if file is None:
        return b"", ""
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), "upload"
    filename = getattr(file, "filename", None) or getattr(file, "name", None) or "upload"
    reader = getattr(file, "read", None)
    if reader is None:
        raise IntegrationRequestError(f"UPLOAD_UNREADABLE:{type(file).__name__} is not bytes or a readable file")
    content = reader()
    if isinstance(content, str):
        content = content.encode("utf-8")
    return content, str(filename)
