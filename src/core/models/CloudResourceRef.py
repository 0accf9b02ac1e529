from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CloudResourceRef:
    """Região + ids que recebem o mesmo TagSet numa única chamada."""

    region: str
    resource_ids: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.resource_ids:
            raise ValueError("a cloud resource reference needs at least one resource id")

    def with_ids(self, *extra: str) -> "CloudResourceRef":
        return CloudResourceRef(region=self.region, resource_ids=self.resource_ids + tuple(extra))
