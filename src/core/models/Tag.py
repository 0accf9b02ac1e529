from dataclasses import dataclass
from typing import Dict

# Limites do ec2:CreateTags
MAX_KEY_LENGTH = 128
MAX_VALUE_LENGTH = 256
RESERVED_PREFIX = "aws:"


@dataclass(frozen=True)
class Tag:
    key: str
    value: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("tag keys must not be empty")
        if len(self.key) > MAX_KEY_LENGTH:
            raise ValueError(f"tag key longer than {MAX_KEY_LENGTH} characters: {self.key!r}")
        if self.key.lower().startswith(RESERVED_PREFIX):
            raise ValueError(f"tag keys must not use the reserved '{RESERVED_PREFIX}' prefix: {self.key!r}")
        if len(self.value) > MAX_VALUE_LENGTH:
            raise ValueError(f"value of tag {self.key!r} longer than {MAX_VALUE_LENGTH} characters")

    def to_aws(self) -> Dict[str, str]:
        return {"Key": self.key, "Value": self.value}
