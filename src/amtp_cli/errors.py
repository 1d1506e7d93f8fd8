"""SDK error types."""

from __future__ import annotations

from typing import Any

from amtp_cli.models import parse_error_body


class AmtpSDKError(RuntimeError):
    """Base SDK error."""


class ConfigurationError(AmtpSDKError):
    """A configuration value required by the command is missing."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ValidationError(AmtpSDKError):
    """Command input was rejected before any request was issued."""


class GatewayUnavailableError(AmtpSDKError):
    """Gateway could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        gateway_url: str | None = None,
        connection_refused: bool = False,
    ) -> None:
        super().__init__(message)
        self.gateway_url = gateway_url
        self.connection_refused = connection_refused


class AmtpError(AmtpSDKError):
    """Gateway returned a failure, or a response that cannot be used."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        *,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    @classmethod
    def from_response(cls, status_code: int, body: object | None) -> AmtpError:
        error = parse_error_body(body)
        return cls(
            status_code,
            error.code or "UNKNOWN",
            error.message or f"HTTP {status_code}",
            details=error.details or None,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status_code": self.status_code,
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload
