"""AWS ARN parsing."""

from dataclasses import dataclass

from .errors import InvalidArnError


@dataclass(frozen=True)
class ArnInfo:
    partition: str
    service: str
    region: str
    account_id: str
    resource_type: str
    resource: str


def parse_arn(arn: str) -> ArnInfo:
    """Split an ARN into its components.

    ``arn:aws:iam::123456789012:role/Admin`` yields resource_type ``role`` and
    resource ``Admin``. Resources without a type separator keep resource_type empty.

    Raises:
        InvalidArnError: If the string is not an ARN
    """
    pieces = arn.split(":", 5)
    if len(pieces) != 6 or pieces[0] != "arn":
        raise InvalidArnError(f"invalid ARN: {arn!r}")

    resource = pieces[5]
    resource_type = ""
    if ":" in resource:
        resource_type, resource = resource.split(":", 1)
    elif "/" in resource:
        resource_type, resource = resource.split("/", 1)

    return ArnInfo(
        partition=pieces[1],
        service=pieces[2],
        region=pieces[3],
        account_id=pieces[4],
        resource_type=resource_type,
        resource=resource,
    )
