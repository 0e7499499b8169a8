"""Client for a central credential-vending service.

Requests temporary AWS credentials for a named role, follows role-assumption chains,
and searches eligible roles and accounts.

Example usage::

    from credvend import configure_logging, get_client, get_credentials_chain

    configure_logging("INFO")
    client = get_client()
    creds = get_credentials_chain(
        client,
        "arn:aws:iam::123456789012:role/Base",
        no_ip_restrict=False,
        assume_chain=["arn:aws:iam::210987654321:role/Target"],
    )
"""

from .chain import get_credentials, get_credentials_chain
from .client import Client, HTTPClient, get_client, get_role_credentials_with
from .config import Config, get_config
from .errors import (
    ERROR_CODE_TABLE,
    AccountTitleParseError,
    CredentialRetrievalError,
    CredVendError,
    InvalidArnError,
    InvalidJWTError,
    MalformedRequestError,
    MultipleMatchingRolesError,
    MutualTLSCertNeedsRefreshError,
    NoMatchingRolesError,
    RequestStageError,
    RoleAssumptionError,
    ServiceError,
    UnexpectedResponseTypeError,
    UnexpectedStatusError,
)
from .logging_setup import configure_logging
from .models import AccountDetails, Credentials, Role, RoleDetails
from .version import __version__

__all__ = [
    "ERROR_CODE_TABLE",
    "AccountDetails",
    "AccountTitleParseError",
    "Client",
    "Config",
    "CredVendError",
    "CredentialRetrievalError",
    "Credentials",
    "HTTPClient",
    "InvalidArnError",
    "InvalidJWTError",
    "MalformedRequestError",
    "MultipleMatchingRolesError",
    "MutualTLSCertNeedsRefreshError",
    "NoMatchingRolesError",
    "RequestStageError",
    "Role",
    "RoleAssumptionError",
    "RoleDetails",
    "ServiceError",
    "UnexpectedResponseTypeError",
    "UnexpectedStatusError",
    "__version__",
    "configure_logging",
    "get_client",
    "get_config",
    "get_credentials",
    "get_credentials_chain",
    "get_role_credentials_with",
]
