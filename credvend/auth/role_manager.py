"""AWS IAM role assumption using caller-supplied temporary credentials.

Each chain hop calls STS with the previous hop's key/secret/token as the calling
identity, so every call builds its own STS client.
"""

import socket
import time
from typing import Any, Dict

import boto3
import structlog
from botocore.config import Config as BotocoreConfig

logger = structlog.get_logger(__name__)

SESSION_NAME_PREFIX = "credvend"


class RoleManager:
    """Assumes IAM roles on behalf of an already-vended identity.

    Usage:
        role_manager = RoleManager(region="us-west-2")
        creds = role_manager.assume_role_with_credentials(
            access_key_id, secret_access_key, session_token,
            "arn:aws:iam::123456789012:role/Target",
        )

    Attributes:
        region: AWS region for the STS client
        duration_seconds: Lifetime requested for assumed-role credentials
    """

    def __init__(self, region: str = "us-east-1", duration_seconds: int = 3600):
        self.region = region
        self.duration_seconds = duration_seconds

    def _generate_session_name(self) -> str:
        """Generate unique session name for role assumption.

        Session names include the hostname for CloudTrail auditing.

        Returns:
            Session name in format: "credvend-{hostname}-{timestamp}"
        """
        try:
            hostname = socket.gethostname()
        except Exception:
            hostname = "unknown"

        # AWS session names are limited to 64 chars; prefix, separators and timestamp take 20
        hostname = "".join(c if (c.isascii() and c.isalnum()) or c in "-_." else "-" for c in hostname)[:42]

        timestamp = int(time.time())
        return f"{SESSION_NAME_PREFIX}-{hostname}-{timestamp}"

    def assume_role_with_credentials(
        self,
        access_key_id: str,
        secret_access_key: str,
        session_token: str,
        role_arn: str,
    ) -> Dict[str, Any]:
        """Assume an IAM role as the identity described by the given credentials.

        Args:
            access_key_id: Access key of the calling identity
            secret_access_key: Secret key of the calling identity
            session_token: Session token of the calling identity
            role_arn: ARN of IAM role to assume

        Returns:
            Dictionary with AccessKeyId, SecretAccessKey, SessionToken, Expiration

        Raises:
            Exception: If role assumption fails
        """
        try:
            sts_client = boto3.client(
                "sts",
                region_name=self.region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                aws_session_token=session_token,
                config=BotocoreConfig(retries={"max_attempts": 1, "mode": "standard"}),
            )

            session_name = self._generate_session_name()

            logger.debug(
                "Assuming IAM role",
                role_arn=role_arn,
                session_name=session_name,
            )

            response = sts_client.assume_role(
                RoleArn=role_arn,
                RoleSessionName=session_name,
                DurationSeconds=self.duration_seconds,
            )

            credentials = response["Credentials"]

            logger.info(
                "Role assumed successfully",
                role_arn=role_arn,
                expires_at=credentials["Expiration"].isoformat(),
            )

            return credentials

        except Exception as e:
            logger.error(
                "Failed to assume role",
                role_arn=role_arn,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
