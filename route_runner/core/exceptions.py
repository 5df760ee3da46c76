from __future__ import annotations


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", details: dict | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ConfigurationError(AppError):
    def __init__(self, message: str = "Service is not configured", details: dict | None = None) -> None:
        super().__init__(code="configuration_error", message=message, status_code=500, details=details)


class ProviderRequestError(AppError):
    def __init__(self, message: str = "Reasoning provider request failed", details: dict | None = None) -> None:
        super().__init__(code="provider_error", message=message, status_code=502, details=details)


class ProviderParseError(AppError):
    """The reasoning provider answered with something that is not a route intent."""

    def __init__(self, message: str, raw: str, details: dict | None = None) -> None:
        payload = {"raw": raw}
        payload.update(details or {})
        super().__init__(code="provider_parse_error", message=message, status_code=502, details=payload)
        self.raw = raw


class DirectionsUnavailable(AppError):
    def __init__(self, message: str = "No route found", details: dict | None = None) -> None:
        super().__init__(code="directions_unavailable", message=message, status_code=502, details=details)
