from __future__ import annotations


class CropMateError(Exception):
    code = "ERROR"
    status = 400

    def __init__(self, message: str = "", *, status: int | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if status is not None:
            self.status = int(status)

    def to_dict(self) -> dict:
        return {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "status": int(self.status),
        }


class UnauthorizedError(CropMateError):
    code = "UNAUTHORIZED"
    status = 403


class NotFoundError(CropMateError):
    code = "NOT_FOUND"
    status = 404


class InvalidStateError(CropMateError):
    code = "INVALID_STATE"
    status = 409


class ConflictError(CropMateError):
    code = "CONFLICT"
    status = 409


class UpstreamFailureError(CropMateError):
    code = "UPSTREAM_FAILURE"
    status = 502


class ValidationError(CropMateError):
    code = "VALIDATION_ERROR"
    status = 400
