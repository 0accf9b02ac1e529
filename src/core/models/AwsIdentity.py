from dataclasses import dataclass
from typing import Optional

from ..errors import RetagError


@dataclass(frozen=True)
class AwsIdentity:
    account: str
    arn: str
    user_id: str
    region: Optional[str]
    profile: Optional[str]

    @property
    def role_name(self) -> Optional[str]:
        """
        Nome da role quando as credenciais vêm de um assumed-role (IRSA,
        instance profile). None para usuários IAM e root.
        """
        # arn:aws:sts::123456789012:assumed-role/<role>/<session>
        resource = self.arn.split(":", 5)[-1]
        parts = resource.split("/")
        if parts[0] == "assumed-role" and len(parts) >= 2:
            return parts[1]
        return None


class AwsIdentityError(RetagError):
    """STS não respondeu: sem credenciais ou API inalcançável."""
