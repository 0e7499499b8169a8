"""Network-free test double for credential-vending clients.

ClientMock implements the HTTPClient capabilities on top of a canned executor, so
code written against a client can be exercised without a service.

Usage:
    client = get_test_client({"Credentials": {"AccessKeyId": "AK", ...}})
    creds = client.get_role_credentials("role/x", False)
"""

import json
from typing import Any, Callable, Dict, List, Optional

import requests

from .client import get_role_credentials_with, new_request
from .models import Credentials
from .responses import SessionInvalidator

MOCK_HOST = "https://credvend.invalid"

DoFunc = Callable[[requests.PreparedRequest], requests.Response]


def make_response(status_code: int, body: bytes) -> requests.Response:
    """Build a fully-read ``requests.Response``."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response._content_consumed = True
    response.headers["Content-Type"] = "application/json"
    return response


class ClientMock:
    """HTTPClient whose requests are answered by ``do_func``.

    Attributes:
        do_func: Called with each prepared request, returns the response
        requests: Every request executed, in order
    """

    def __init__(self, do_func: DoFunc, on_invalid_session: Optional[SessionInvalidator] = None):
        self.do_func = do_func
        self.on_invalid_session = on_invalid_session
        self.requests: List[requests.PreparedRequest] = []

    def build_request(
        self,
        method: str,
        resource: str,
        body: Optional[bytes],
        api_prefix: str,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.PreparedRequest:
        return new_request(MOCK_HOST, method, resource, body, api_prefix, params).prepare()

    def execute(self, request: requests.PreparedRequest) -> requests.Response:
        self.requests.append(request)
        return self.do_func(request)

    def close_idle_connections(self) -> None:
        pass

    def get_role_credentials(self, role: str, no_ip_restrict: bool) -> Credentials:
        return get_role_credentials_with(self, role, no_ip_restrict, on_invalid_session=self.on_invalid_session)


def _status_for(response_body: Any) -> int:
    # Structured error bodies answer with a failure status: the numeric code itself, 401 otherwise
    if isinstance(response_body, dict) and "code" in response_body:
        code = str(response_body["code"])
        return int(code) if code.isdigit() else 401
    return 200


def get_test_client(
    response_body: Any,
    status_code: Optional[int] = None,
    on_invalid_session: Optional[SessionInvalidator] = None,
) -> ClientMock:
    """Return a ClientMock answering every request with the same canned response.

    Args:
        response_body: JSON-serializable body, or raw bytes
        status_code: Response status (default: derived from a structured error ``code``, else 200)
        on_invalid_session: Callback invoked on ``invalid_jwt``

    Returns:
        ClientMock with a fixed responder
    """
    if isinstance(response_body, bytes):
        body = response_body
    else:
        body = json.dumps(response_body).encode("utf-8")

    if status_code is None:
        status_code = _status_for(response_body)

    def do_func(request: requests.PreparedRequest) -> requests.Response:
        return make_response(status_code, body)

    return ClientMock(do_func, on_invalid_session=on_invalid_session)
