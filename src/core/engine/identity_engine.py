import boto3
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional

from ..models import AwsIdentity, AwsIdentityError

def get_current_aws_identity(
    profile: Optional[str] = None,
    region: Optional[str] = None,
) -> AwsIdentity:
    """
    Descobre a identidade AWS atual via STS, respeitando profile/region
    passados explicitamente (se houver).

    Também serve de preflight: se o STS não responde, a API da AWS está
    inalcançável e o operador não deve subir.
    """
    try:
        session = boto3.session.Session(
            profile_name=profile,
            region_name=region,
        )
        sts = session.client("sts")
        resp = sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        raise AwsIdentityError(f"could not resolve the current AWS identity: {e}") from e

    return AwsIdentity(
        account=resp["Account"],
        arn=resp["Arn"],
        user_id=resp["UserId"],
        region=session.region_name,
        profile=session.profile_name,
    )
