"""Role-assumption chains.

A chain starts from credentials vended for one role and assumes each further role in
order, using the previous hop's credentials as the calling identity. Hops run one
after another on the calling thread. The first failing hop ends the chain.
"""

from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog

from .auth.role_manager import RoleManager
from .client import HTTPClient, get_client
from .config import Config, get_config
from .errors import RoleAssumptionError
from .models import Credentials

logger = structlog.get_logger(__name__)

#: (access_key_id, secret_access_key, session_token, role_arn) -> STS-style credentials mapping
AssumeRoleFunc = Callable[[str, str, str, str], Mapping[str, Any]]


def _assume_hop(credentials: Credentials, role_arn: str, assume_role: AssumeRoleFunc) -> Credentials:
    result = assume_role(
        credentials.access_key_id,
        credentials.secret_access_key,
        credentials.session_token,
        role_arn,
    )
    return replace(
        credentials,
        access_key_id=result["AccessKeyId"],
        secret_access_key=result["SecretAccessKey"],
        session_token=result["SessionToken"],
        expiration=result.get("Expiration", credentials.expiration),
        role_arn=role_arn,
    )


def get_credentials_chain(
    client: HTTPClient,
    role: str,
    no_ip_restrict: bool,
    assume_chain: Sequence[str] = (),
    assume_role: Optional[AssumeRoleFunc] = None,
    region: str = "us-east-1",
) -> Credentials:
    """Request credentials for ``role`` then assume each role in ``assume_chain`` in order.

    Args:
        client: Client used for the initial credential exchange
        role: Role requested from the credential-vending service
        no_ip_restrict: Ask the service not to restrict the credentials to the caller's IP
        assume_chain: Role ARNs to assume after the initial exchange
        assume_role: Role-assumption primitive (default: RoleManager(region))
        region: AWS region for the default role-assumption primitive

    Returns:
        Credentials of the last hop, or of the initial exchange when the chain is empty

    Raises:
        RoleAssumptionError: Naming the first hop that failed; later hops are not attempted
        CredVendError: If the initial exchange fails
    """
    credentials = client.get_role_credentials(role, no_ip_restrict)

    if assume_chain and assume_role is None:
        assume_role = RoleManager(region=region).assume_role_with_credentials

    for hop, role_arn in enumerate(assume_chain, start=1):
        logger.debug("Assuming chained role", hop=hop, hops=len(assume_chain), role_arn=role_arn)
        try:
            credentials = _assume_hop(credentials, role_arn, assume_role)
        except Exception as e:
            logger.error("Role assumption chain aborted", hop=hop, role_arn=role_arn, error=str(e))
            raise RoleAssumptionError(role_arn, e) from e

    return credentials


def get_credentials(
    role: str,
    no_ip_restrict: bool = False,
    assume_chain: Sequence[str] = (),
    config: Optional[Config] = None,
) -> Credentials:
    """Build a client from configuration and run a role-assumption chain with it.

    Logging is left to the caller; call ``configure_logging`` once at start-up.
    """
    config = config or get_config()

    client = get_client(config)
    try:
        return get_credentials_chain(client, role, no_ip_restrict, assume_chain, region=client.region)
    finally:
        client.close_idle_connections()
