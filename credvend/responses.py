"""Response decoding and error mapping.

Non-200 responses are mapped onto the typed errors in ``credvend.errors``. A body
carrying a structured ``code`` is looked up in ERROR_CODE_TABLE; a body carrying only
free-form ``errors`` becomes a ServiceError; anything else is an UnexpectedStatusError
holding the raw status and body.
"""

import json
from typing import Any, Callable, Optional

import structlog

from .errors import (
    ERROR_CODE_TABLE,
    CredVendError,
    InvalidJWTError,
    RequestStageError,
    ServiceError,
    UnexpectedResponseTypeError,
    UnexpectedStatusError,
)
from .models import WebResponse

logger = structlog.get_logger(__name__)

SessionInvalidator = Callable[[], None]


def decode_json(document: bytes) -> Any:
    try:
        return json.loads(document)
    except ValueError as e:
        raise RequestStageError("failed to unmarshal JSON", e) from e


def _invalidate_session(on_invalid_session: Optional[SessionInvalidator]) -> None:
    logger.error("Authentication is invalid or has expired. Please re-authenticate.")
    if on_invalid_session is None:
        return
    try:
        on_invalid_session()
    except Exception as e:
        logger.error("Failed to delete cached session", error=str(e), error_type=type(e).__name__)


def decode_error(
    status_code: int,
    document: bytes,
    on_invalid_session: Optional[SessionInvalidator] = None,
) -> CredVendError:
    """Map a non-200 response onto a typed error.

    The ``invalid_jwt`` code invokes ``on_invalid_session`` before the error is
    returned. A failure of that callback is logged and does not change the result.

    Args:
        status_code: HTTP status of the response
        document: Raw response body
        on_invalid_session: Callback deleting the locally cached session

    Returns:
        The error to raise
    """
    text = document.decode("utf-8", errors="replace")
    try:
        payload = json.loads(document)
    except ValueError:
        return UnexpectedStatusError(status_code, text)
    if not isinstance(payload, dict):
        return UnexpectedStatusError(status_code, text)

    code = payload.get("code")
    if code is not None:
        kind = ERROR_CODE_TABLE.get(str(code))
        if kind is None:
            return UnexpectedStatusError(status_code, text)
        if kind is InvalidJWTError:
            _invalidate_session(on_invalid_session)
        logger.debug("Service returned error code", code=str(code), status_code=status_code)
        return kind(details=payload.get("message") or "")

    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        return ServiceError("\n".join(str(error) for error in errors), status_code=status_code)

    return UnexpectedStatusError(status_code, text)


def decode_envelope(document: bytes) -> WebResponse:
    payload = decode_json(document)
    if not isinstance(payload, dict):
        raise UnexpectedResponseTypeError(details=f"expected a JSON object, got {type(payload).__name__}")
    try:
        return WebResponse.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise RequestStageError("failed to unmarshal JSON", e) from e


def sub_document(envelope: WebResponse, name: str, expected_type: type) -> Any:
    """Return ``data[name]`` from an envelope, checking its JSON shape.

    Raises:
        UnexpectedResponseTypeError: If the sub-document is missing or has another shape
    """
    value = (envelope.data or {}).get(name)
    if not isinstance(value, expected_type):
        raise UnexpectedResponseTypeError(
            details=f"data.{name}: expected {expected_type.__name__}, got {type(value).__name__}"
        )
    return value
