from __future__ import annotations


class IntegrationDisabledError(RuntimeError):
    pass


class IntegrationMisconfiguredError(RuntimeError):
    pass


class IntegrationRequestError(RuntimeError):
    pass
