"""Client for the credential-vending service.

Credential retrieval lives in a module-level function shared by every HTTPClient
implementation, so the production Client and the test double exercise the same
request construction and response decoding.
"""

import json
from functools import partial
from typing import Any, Dict, List, Optional, Protocol, Tuple

import requests
import structlog

from .arn import parse_arn
from .auth.session_cache import delete_local_session
from .config import Config, get_config
from .errors import CredentialRetrievalError, RequestStageError, UnexpectedResponseTypeError
from .instance_info import InstanceInfoProvider, get_instance_info
from .models import (
    AccountDetails,
    CredentialRequest,
    Credentials,
    ResourceSearchResult,
    Role,
    RoleDetails,
)
from .responses import SessionInvalidator, decode_envelope, decode_error, decode_json, sub_document
from .transport import AuthenticatedSession, TransportSettings, build_session
from .version import USER_AGENT

logger = structlog.get_logger(__name__)

API_V1 = "/api/v1"
API_V2 = "/api/v2"

ACCOUNT_SEARCH_LIMIT = 1000
ROLE_SEARCH_LIMIT = 5000


class HTTPClient(Protocol):
    """Capabilities every credential-vending client implements."""

    def execute(self, request: requests.PreparedRequest) -> requests.Response: ...

    def get_role_credentials(self, role: str, no_ip_restrict: bool) -> Credentials: ...

    def close_idle_connections(self) -> None: ...

    def build_request(
        self,
        method: str,
        resource: str,
        body: Optional[bytes],
        api_prefix: str,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.PreparedRequest: ...


def new_request(
    host: str,
    method: str,
    resource: str,
    body: Optional[bytes],
    api_prefix: str,
    params: Optional[Dict[str, str]] = None,
) -> requests.Request:
    return requests.Request(
        method=method,
        url=host + api_prefix + resource,
        headers={"User-Agent": USER_AGENT, "Content-Type": "application/json"},
        data=body,
        params=params,
    )


def perform_request(
    client: HTTPClient,
    method: str,
    resource: str,
    api_prefix: str,
    body: Optional[bytes] = None,
    params: Optional[Dict[str, str]] = None,
) -> Tuple[int, bytes]:
    """Build, send and read one request.

    Returns:
        Tuple of (status_code, body)

    Raises:
        RequestStageError: If building, sending or reading fails
    """
    try:
        request = client.build_request(method, resource, body, api_prefix, params)
    except Exception as e:
        raise RequestStageError("failed to build request", e) from e

    try:
        response = client.execute(request)
    except requests.RequestException as e:
        raise RequestStageError("failed to action request", e) from e

    try:
        document = response.content
    except requests.RequestException as e:
        raise RequestStageError("failed to read response body", e) from e
    finally:
        response.close()

    logger.debug("Request completed", method=method, resource=api_prefix + resource, status_code=response.status_code)
    return response.status_code, document


def get_role_credentials_with(
    client: HTTPClient,
    role: str,
    no_ip_restrict: bool,
    metadata_provider: Optional[InstanceInfoProvider] = None,
    on_invalid_session: Optional[SessionInvalidator] = None,
) -> Credentials:
    """Exchange a role identifier for temporary credentials.

    Args:
        client: Client used to build and execute the request
        role: Role name or ARN to request
        no_ip_restrict: Ask the service not to restrict the credentials to the caller's IP
        metadata_provider: Instance-identity snapshot to attach (None disables it)
        on_invalid_session: Callback deleting the cached session on ``invalid_jwt``

    Returns:
        Credentials for the requested role

    Raises:
        CredentialRetrievalError: If the service returned 200 without credentials
        CredVendError: For any other failure
    """
    credential_request = CredentialRequest(requested_role=role, no_ip_restricton=no_ip_restrict)
    if metadata_provider is not None:
        credential_request.metadata = metadata_provider()

    try:
        body = json.dumps(credential_request.to_dict()).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestStageError("failed to create request body", e) from e

    status_code, document = perform_request(client, "POST", "/get_credentials", API_V1, body=body)
    if status_code != 200:
        raise decode_error(status_code, document, on_invalid_session)

    payload = decode_json(document)
    if not isinstance(payload, dict):
        raise UnexpectedResponseTypeError(details=f"expected a JSON object, got {type(payload).__name__}")

    raw_credentials = payload.get("Credentials")
    if raw_credentials is None:
        logger.error("Credential response carried no credentials", role=role)
        raise CredentialRetrievalError(details="the service returned a success status without credentials")
    if not isinstance(raw_credentials, dict):
        raise UnexpectedResponseTypeError(details="Credentials: expected a JSON object")

    try:
        credentials = Credentials.from_dict(raw_credentials)
    except (KeyError, TypeError, ValueError) as e:
        raise UnexpectedResponseTypeError(details=f"Credentials: {e}") from e

    logger.info("Retrieved role credentials", role=role, role_arn=credentials.role_arn, expiration=credentials.expiration)
    return credentials


class Client:
    """Client for the credential-vending service.

    Holds no per-call state; one instance may be shared between threads as long as
    its transport may.

    Attributes:
        host: Service base URL
        region: AWS region for role-assumption hops
        web_url: Base URL of the web console
    """

    def __init__(
        self,
        host: str,
        transport: Optional[AuthenticatedSession] = None,
        region: str = "",
        web_url: str = "",
        metadata_provider: Optional[InstanceInfoProvider] = None,
        on_invalid_session: Optional[SessionInvalidator] = None,
    ):
        if not host:
            raise ValueError("hostname cannot be empty string")

        self.host = host.rstrip("/")
        self.transport = transport or build_session()
        self.region = region
        self.web_url = (web_url or host).rstrip("/")
        self.metadata_provider = metadata_provider
        self.on_invalid_session = on_invalid_session

    def build_request(
        self,
        method: str,
        resource: str,
        body: Optional[bytes],
        api_prefix: str,
        params: Optional[Dict[str, str]] = None,
    ) -> requests.PreparedRequest:
        return self.transport.prepare(new_request(self.host, method, resource, body, api_prefix, params))

    def execute(self, request: requests.PreparedRequest) -> requests.Response:
        return self.transport.send(request)

    def close_idle_connections(self) -> None:
        self.transport.close_idle_connections()

    def get_role_credentials(self, role: str, no_ip_restrict: bool) -> Credentials:
        return get_role_credentials_with(
            self,
            role,
            no_ip_restrict,
            metadata_provider=self.metadata_provider,
            on_invalid_session=self.on_invalid_session,
        )

    def _get_envelope(self, resource: str, api_prefix: str, params: Dict[str, str]):
        status_code, document = perform_request(self, "GET", resource, api_prefix, params=params)
        if status_code != 200:
            raise decode_error(status_code, document, self.on_invalid_session)
        return decode_envelope(document)

    def roles(self) -> List[Role]:
        """Return all roles the caller is eligible for."""
        envelope = self._get_envelope("/get_roles", API_V2, {"all": "true"})
        raw_roles = sub_document(envelope, "roles", list)
        return [_decode_item(Role, item, "roles") for item in raw_roles]

    def roles_extended(self) -> List[RoleDetails]:
        """Return all eligible roles with account and application details."""
        envelope = self._get_envelope("/get_roles", API_V2, {"all": "true"})
        raw_roles = sub_document(envelope, "roles", list)
        return [_decode_item(RoleDetails, item, "roles") for item in raw_roles]

    def get_resource_url(self, arn: str) -> str:
        """Resolve an ARN to a web console URL."""
        envelope = self._get_envelope("/get_resource_url", API_V2, {"arn": arn})
        path = sub_document(envelope, "url", str)
        return self.web_url + path

    def generic_get(self, resource: str, api_prefix: str) -> Dict[str, Any]:
        """GET an endpoint and return the envelope's ``data`` map."""
        return self._generic_request("GET", resource, api_prefix)

    def generic_post(self, resource: str, api_prefix: str, body: Any) -> Dict[str, Any]:
        """POST a JSON body to an endpoint and return the envelope's ``data`` map."""
        try:
            document = json.dumps(body).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RequestStageError("failed to create request body", e) from e
        return self._generic_request("POST", resource, api_prefix, document)

    def _generic_request(self, method: str, resource: str, api_prefix: str, body: Optional[bytes] = None):
        status_code, document = perform_request(self, method, resource, api_prefix, body=body)
        if status_code != 200:
            raise decode_error(status_code, document, self.on_invalid_session)
        return decode_envelope(document).data or {}

    def search_resources(self, resource_type: str, query: str, limit: int) -> List[ResourceSearchResult]:
        """Typeahead search over one resource type.

        Args:
            resource_type: Resource type tag, e.g. "account" or "iam_arn"
            query: Free-text query
            limit: Maximum number of results

        Returns:
            Search results in the order the service ranked them
        """
        params = {"search": query, "resource": resource_type, "limit": str(limit)}
        status_code, document = perform_request(self, "GET", "/policies/typeahead", API_V1, params=params)
        if status_code != 200:
            raise decode_error(status_code, document, self.on_invalid_session)

        payload = decode_json(document)
        if not isinstance(payload, list):
            raise UnexpectedResponseTypeError(details=f"expected a JSON list, got {type(payload).__name__}")
        return [_decode_item(ResourceSearchResult, item, "typeahead") for item in payload]

    def get_accounts(self, query: str) -> List[AccountDetails]:
        """Search accounts by name or number.

        Raises:
            AccountTitleParseError: If a result title is not of the form "name (number)"
        """
        results = self.search_resources("account", query, ACCOUNT_SEARCH_LIMIT)
        return [AccountDetails.from_title(result.title) for result in results]

    def get_roles_in_account(self, query: str, account_number: str) -> List[RoleDetails]:
        """Search role ARNs within one account."""
        query = f"arn:aws:iam::{account_number}:role/{query}"
        results = self.search_resources("iam_arn", query, ROLE_SEARCH_LIMIT)
        roles = []
        for result in results:
            arn = parse_arn(result.title)
            roles.append(RoleDetails(arn=result.title, role_name=arn.resource, account_number=arn.account_id))
        return roles


def _decode_item(model, item: Any, name: str):
    if not isinstance(item, dict):
        raise UnexpectedResponseTypeError(details=f"{name}: expected a JSON object, got {type(item).__name__}")
    try:
        return model.from_dict(item)
    except (KeyError, TypeError, ValueError) as e:
        raise UnexpectedResponseTypeError(details=f"{name}: {e}") from e


def get_client(config: Optional[Config] = None, transport: Optional[AuthenticatedSession] = None) -> Client:
    """Create a client from configuration.

    Args:
        config: Client configuration (default: read from the environment)
        transport: Pre-authenticated transport (default: a new pooled session)

    Returns:
        Client bound to the configured service
    """
    config = config or get_config()
    if transport is None:
        transport = build_session(
            TransportSettings(connect_timeout=config.http_timeout, read_timeout=config.http_read_timeout)
        )

    return Client(
        config.host,
        transport=transport,
        region=config.aws_region,
        web_url=config.base_web_url(),
        metadata_provider=get_instance_info if config.metadata_enabled else None,
        on_invalid_session=partial(delete_local_session, config.session_file),
    )

