import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from dataclasses_json import Undefined, config, dataclass_json

from .errors import AccountTitleParseError

_ACCOUNT_TITLE = re.compile(r"^(?P<name>[^()]+?)\s*\((?P<number>[^()]+)\)$")


def _decode_expiration(value: Union[int, float, str]) -> datetime:
    """Expiration arrives as epoch seconds or an ISO-8601 timestamp."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if value.isdigit():
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    return datetime.fromisoformat(value)


def _encode_expiration(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass(frozen=True)
class Credentials:
    """Temporary AWS credentials vended for a role.

    Instances are immutable; every chain hop produces a new value.
    """

    access_key_id: str = field(metadata=config(field_name="AccessKeyId"))
    secret_access_key: str = field(metadata=config(field_name="SecretAccessKey"))
    session_token: str = field(metadata=config(field_name="SessionToken"))
    expiration: Optional[datetime] = field(
        default=None,
        metadata=config(field_name="Expiration", decoder=_decode_expiration, encoder=_encode_expiration),
    )
    role_arn: str = field(default="", metadata=config(field_name="RoleArn"))

    def __repr__(self) -> str:
        return f"Credentials(access_key_id={self.access_key_id!r}, role_arn={self.role_arn!r}, expiration={self.expiration!r})"


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass(frozen=True, eq=False)
class Role:
    """An eligible role returned by discovery. Roles are identified by ARN alone."""

    arn: str
    account_id: str = ""
    account_friendly_name: str = ""
    role_name: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Role):
            return NotImplemented
        return self.arn == other.arn

    def __hash__(self) -> int:
        return hash(self.arn)


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class AppDetails:
    name: str = ""
    owner: str = ""
    owner_url: str = ""
    app_url: str = ""


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class RoleApps:
    app_details: List[AppDetails] = field(default_factory=list)


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class RoleDetails:
    """Role with the extended payload of the v2 roles endpoint."""

    arn: str
    role_name: str = ""
    account_number: str = field(default="", metadata=config(field_name="account_id"))
    account_name: str = field(default="", metadata=config(field_name="account_friendly_name"))
    apps: RoleApps = field(default_factory=RoleApps)


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class AccountDetails:
    account_name: str
    account_number: str

    @classmethod
    def from_title(cls, title: str) -> "AccountDetails":
        """Parse a search title of the form ``"<name> (<number>)"``.

        Raises:
            AccountTitleParseError: If the title does not contain exactly one parenthesis pair
        """
        match = _ACCOUNT_TITLE.match(title.strip())
        if match is None:
            raise AccountTitleParseError(title)
        return cls(account_name=match.group("name"), account_number=match.group("number"))


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class ResourceSearchResult:
    """One element of a typeahead search result."""

    title: str


@dataclass_json
@dataclass
class CredentialRequest:
    requested_role: str = field(metadata=config(field_name="RequestedRole"))
    # Field name matches the service's wire format.
    no_ip_restricton: bool = field(default=False, metadata=config(field_name="NoIpRestricton"))
    metadata: Optional[Dict[str, Any]] = field(
        default=None,
        metadata=config(field_name="Metadata", exclude=lambda value: value is None),
    )


@dataclass_json(undefined=Undefined.EXCLUDE)
@dataclass
class WebResponse:
    """Generic ``{data, status, errors}`` envelope of the non-credential endpoints."""

    status: str = ""
    reason: str = ""
    redirect_url: str = ""
    status_code: Optional[int] = None
    message: str = ""
    errors: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
