from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

BOUND_PHASE = "Bound"


@dataclass(frozen=True)
class TopologyRequirement:
    key: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TopologyTerm:
    match_expressions: Tuple[TopologyRequirement, ...] = ()


@dataclass(frozen=True)
class StorageVolume:
    """Snapshot de um PersistentVolume do cluster."""

    name: str
    annotations: Mapping[str, str] = field(default_factory=dict)
    phase: Optional[str] = None
    csi_driver: Optional[str] = None
    csi_volume_handle: Optional[str] = None
    ebs_volume_id: Optional[str] = None
    topology: Tuple[TopologyTerm, ...] = ()

    @property
    def is_bound(self) -> bool:
        return self.phase == BOUND_PHASE

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "StorageVolume":
        meta = body.get("metadata") or {}
        spec = body.get("spec") or {}
        status = body.get("status") or {}

        csi = spec.get("csi") or {}
        ebs = spec.get("awsElasticBlockStore") or {}

        return cls(
            name=meta["name"],
            annotations=dict(meta.get("annotations") or {}),
            phase=status.get("phase"),
            csi_driver=csi.get("driver"),
            csi_volume_handle=csi.get("volumeHandle"),
            ebs_volume_id=ebs.get("volumeID"),
            topology=_topology_terms(spec),
        )


def _topology_terms(spec: Mapping[str, Any]) -> Tuple[TopologyTerm, ...]:
    affinity = spec.get("nodeAffinity") or {}
    required = affinity.get("required") or {}

    terms = []
    for term in required.get("nodeSelectorTerms") or []:
        exprs = tuple(
            TopologyRequirement(key=e["key"], values=tuple(e.get("values") or ()))
            for e in (term.get("matchExpressions") or [])
        )
        terms.append(TopologyTerm(match_expressions=exprs))
    return tuple(terms)
