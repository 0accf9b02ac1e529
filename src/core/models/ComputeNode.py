from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

ZONE_LABEL = "topology.kubernetes.io/zone"
REGION_LABEL = "topology.kubernetes.io/region"


@dataclass(frozen=True)
class ComputeNode:
    """Snapshot de um Node do cluster (só o que o reconciler precisa)."""

    name: str
    annotations: Mapping[str, str] = field(default_factory=dict)
    provider_id: str = ""
    zone: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "ComputeNode":
        meta = body.get("metadata") or {}
        labels = meta.get("labels") or {}
        spec = body.get("spec") or {}
        return cls(
            name=meta["name"],
            annotations=dict(meta.get("annotations") or {}),
            provider_id=spec.get("providerID") or "",
            zone=labels.get(ZONE_LABEL),
            region=labels.get(REGION_LABEL),
        )
