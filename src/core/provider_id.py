"""
Extração de ids e região da AWS a partir dos metadados do Kubernetes.

Formato esperado do providerID de um Node:

    aws:///us-east-1a/i-0123456789abcdef0
"""
import re
from typing import Iterable, Optional

from .errors import MalformedIdentifier, TopologyNotFound, UnsupportedVolumeSource
from .models import StorageVolume, TopologyTerm

AWS_SCHEME = "aws://"
INSTANCE_ID_PREFIX = "i-"
EBS_CSI_DRIVER = "ebs.csi.aws.com"

# Ordem importa só entre chaves do mesmo term: a primeira encontrada vence.
TOPOLOGY_KEYS = (
    "topology.kubernetes.io/zone",
    "topology.kubernetes.io/region",
    "topology.ebs.csi.aws.com/zone",
    "failure-domain.beta.kubernetes.io/zone",
    "failure-domain.beta.kubernetes.io/region",
)

# us-east-1a, eu-west-1b, us-gov-west-1a -> zona. O resto é tratado como região.
ZONE_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d[a-z]$")


def is_aws_provider_id(provider_id: str) -> bool:
    return provider_id.startswith(AWS_SCHEME)


def extract_compute_identifier(provider_id: str) -> str:
    """
    Devolve o instance id (último segmento do providerID).
    """
    if not provider_id:
        raise MalformedIdentifier("providerID is empty")

    instance_id = provider_id.split("/")[-1]
    if not instance_id.startswith(INSTANCE_ID_PREFIX):
        raise MalformedIdentifier(
            f"expected instance ID starting with {INSTANCE_ID_PREFIX!r}, got {instance_id!r} "
            f"(providerID: {provider_id})"
        )
    return instance_id


def extract_region(provider_id: str) -> str:
    """
    Deriva a região a partir da AZ (penúltimo segmento), removendo a letra final.

    O último segmento também precisa ser um instance id; um providerID que
    não passa em extract_compute_identifier não tem região confiável.
    """
    parts = provider_id.split("/")
    if len(parts) < 2:
        raise MalformedIdentifier(f"unexpected providerID format: {provider_id!r}")
    extract_compute_identifier(provider_id)

    az = parts[-2]
    if len(az) < 2:
        raise MalformedIdentifier(f"AZ too short to derive region: {az!r} (providerID: {provider_id})")
    return az[:-1]


def normalize_region(value: str) -> str:
    if ZONE_PATTERN.match(value):
        return value[:-1]
    return value


def extract_volume_region(terms: Iterable[TopologyTerm]) -> str:
    value = _find_topology_value(terms)
    if value is None:
        raise TopologyNotFound(
            f"no zone/region label found in node affinity (looked for: {', '.join(TOPOLOGY_KEYS)})"
        )
    return normalize_region(value)


def _find_topology_value(terms: Iterable[TopologyTerm]) -> Optional[str]:
    for term in terms:
        for req in term.match_expressions:
            if req.key in TOPOLOGY_KEYS and req.values:
                return req.values[0]
    return None


def extract_volume_identifier(volume: StorageVolume) -> str:
    """
    CSI (ebs.csi.aws.com) primeiro; depois o formato legado in-tree,
    que pode vir como "aws://us-east-1a/vol-xxx" ou só "vol-xxx".

    Handles de outros drivers CSI (EFS, FSx...) não são volumes EBS.
    """
    if volume.csi_volume_handle:
        if volume.csi_driver != EBS_CSI_DRIVER:
            raise UnsupportedVolumeSource(
                f"volume {volume.name!r} uses CSI driver {volume.csi_driver!r}, expected {EBS_CSI_DRIVER!r}"
            )
        return volume.csi_volume_handle

    if volume.ebs_volume_id:
        return volume.ebs_volume_id.rstrip("/").split("/")[-1]

    raise UnsupportedVolumeSource(
        f"volume {volume.name!r} has neither a CSI volumeHandle nor an awsElasticBlockStore volumeID"
    )
