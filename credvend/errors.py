"""Exceptions raised by the credential-vending client.

Every failure surfaced to callers derives from CredVendError. Errors declared by the
service through a structured ``code`` map onto a closed set of subclasses via
ERROR_CODE_TABLE, so callers can branch on the exception type instead of message text.
"""

from types import MappingProxyType
from typing import Mapping, Optional


class CredVendError(Exception):
    """Base exception for all credential-vending client errors."""

    default_message = "credential-vending client error"

    def __init__(self, message: str = "", suggestion: str = "", details: str = ""):
        message = message or self.default_message
        full_message = message
        if suggestion:
            full_message += f"\n\n{suggestion}"
        if details:
            full_message += f"\n\n{details}"
        super().__init__(full_message)
        self.message = message
        self.suggestion = suggestion
        self.details = details

    def format(self) -> str:
        """Format error for console output with suggestions."""
        output = f"❌ {self.message}"
        if self.suggestion:
            output += f"\n   💡 {self.suggestion}"
        if self.details:
            output += f"\n   ℹ️  {self.details}"
        return output


class ServiceCodeError(CredVendError):
    """An error the service declared through a structured error code."""

    code = ""


class InvalidArnError(ServiceCodeError):
    code = "899"
    default_message = "requested role is an invalid ARN"


class NoMatchingRolesError(ServiceCodeError):
    code = "900"
    default_message = "no matching roles"

    def __init__(self, message: str = "", suggestion: str = "", details: str = ""):
        super().__init__(
            message,
            suggestion or "Check the role name, or list eligible roles to find the exact ARN.",
            details,
        )


class MultipleMatchingRolesError(ServiceCodeError):
    code = "901"
    default_message = "more than one matching role"

    def __init__(self, message: str = "", suggestion: str = "", details: str = ""):
        super().__init__(message, suggestion or "Request the role by its full ARN.", details)


class CredentialRetrievalError(ServiceCodeError):
    code = "902"
    default_message = "unable to retrieve credentials from the credential-vending service"


class MalformedRequestError(ServiceCodeError):
    code = "904"
    default_message = "malformed request sent to the credential-vending service"


class MutualTLSCertNeedsRefreshError(ServiceCodeError):
    code = "905"
    default_message = "mutual TLS certificate needs to be refreshed"


class InvalidJWTError(ServiceCodeError):
    code = "invalid_jwt"
    default_message = "authentication is invalid or has expired"

    def __init__(self, message: str = "", suggestion: str = "", details: str = ""):
        super().__init__(message, suggestion or "Re-authenticate and try again.", details)


class UnexpectedStatusError(CredVendError):
    """Non-200 response the error table does not cover."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"unexpected HTTP status {status_code}, want 200. Response: {body}")
        self.status_code = status_code
        self.body = body


class ServiceError(CredVendError):
    """Non-200 response carrying free-form error strings, one per line."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnexpectedResponseTypeError(CredVendError):
    default_message = "unexpected response type"


class RequestStageError(CredVendError):
    """Transport or decode failure at a named stage of a request.

    The underlying exception is available as ``cause`` and as ``__cause__``.
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause


class RoleAssumptionError(CredVendError):
    """A hop of a role-assumption chain failed."""

    def __init__(self, role_arn: str, cause: BaseException):
        super().__init__(f"role assumption failed for {role_arn}: {cause}")
        self.role_arn = role_arn
        self.cause = cause


class AccountTitleParseError(CredVendError):
    """Account search title is not of the form ``name (number)``."""

    def __init__(self, title: str):
        super().__init__(f"unable to parse account title {title!r}", details='Expected the form "name (number)"')
        self.title = title


#: Server-declared error code -> client error kind. Read-only for the process lifetime.
ERROR_CODE_TABLE: Mapping[str, type[ServiceCodeError]] = MappingProxyType(
    {
        "899": InvalidArnError,
        "900": NoMatchingRolesError,
        "901": MultipleMatchingRolesError,
        "902": CredentialRetrievalError,
        "903": NoMatchingRolesError,
        "904": MalformedRequestError,
        "905": MutualTLSCertNeedsRefreshError,
        "invalid_jwt": InvalidJWTError,
    }
)
