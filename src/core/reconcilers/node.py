import dataclasses
import logging
from typing import Any, Mapping, Optional

from ..models import ChangeEvent, CloudResourceRef, ComputeNode, EventType
from ..provider_id import extract_compute_identifier, extract_region, is_aws_provider_id, normalize_region
from ..state import TagState, retries_on_any_event
from .base import BaseReconciler

logger = logging.getLogger(__name__)


class NodeReconciler(BaseReconciler):
    """
    Taggeia a instância EC2 de um Node e todos os volumes EBS anexados.
    """

    kind = "Node"
    plural = "nodes"
    watched_field = "spec.providerID"
    list_method = "list_node"
    read_method = "read_node"
    pretty_name = "node"

    @classmethod
    def snapshot(cls, body: Mapping[str, Any]) -> ComputeNode:
        return ComputeNode.from_body(body)

    @classmethod
    def with_field_value(cls, resource: ComputeNode, value: Any) -> ComputeNode:
        return dataclasses.replace(resource, provider_id=value or "")

    def is_actionable(self, event: ChangeEvent, state: TagState) -> Optional[str]:
        node: ComputeNode = event.new

        if not node.provider_id:
            # o cloud-controller-manager preenche o providerID depois; o UPDATE resolve
            return "providerID not yet set"

        if retries_on_any_event(state) or event.type is EventType.ADDED:
            return None

        old: Optional[ComputeNode] = event.old
        if old is None or not old.provider_id:
            return None
        return "providerID unchanged"

    def derive(self, resource: ComputeNode) -> Optional[CloudResourceRef]:
        if not is_aws_provider_id(resource.provider_id):
            logger.warning(
                "not an AWS node, skipping",
                extra={"resource": resource.name, "provider_id": resource.provider_id},
            )
            return None

        instance_id = extract_compute_identifier(resource.provider_id)
        region = extract_region(resource.provider_id)
        self._check_labels(resource, region)
        return CloudResourceRef(region=region, resource_ids=(instance_id,))

    def _check_labels(self, node: ComputeNode, region: str) -> None:
        # o providerID continua sendo a fonte da verdade; o label só serve de alerta
        labeled = node.region or (normalize_region(node.zone) if node.zone else None)
        if labeled and labeled != region:
            logger.warning(
                "node topology labels disagree with providerID region",
                extra={"resource": node.name, "region": region, "label_region": labeled},
            )

    def expand(self, ref: CloudResourceRef) -> CloudResourceRef:
        instance_id = ref.resource_ids[0]
        volume_ids = self.tagger.list_attached_volumes(ref.region, instance_id)
        return ref.with_ids(*volume_ids)
