import dataclasses
from typing import Any, Mapping, Optional

from ..models import ChangeEvent, CloudResourceRef, EventType, StorageVolume
from ..provider_id import extract_volume_identifier, extract_volume_region
from ..state import TagState, retries_on_any_event
from .base import BaseReconciler


class PersistentVolumeReconciler(BaseReconciler):
    """
    Taggeia o volume EBS de um PersistentVolume quando ele chega em Bound.

    Região e id saem do próprio PV; não depende de nenhum Node.
    """

    kind = "PersistentVolume"
    plural = "persistentvolumes"
    watched_field = "status.phase"
    list_method = "list_persistent_volume"
    read_method = "read_persistent_volume"
    pretty_name = "persistent volume"

    @classmethod
    def snapshot(cls, body: Mapping[str, Any]) -> StorageVolume:
        return StorageVolume.from_body(body)

    @classmethod
    def with_field_value(cls, resource: StorageVolume, value: Any) -> StorageVolume:
        return dataclasses.replace(resource, phase=value)

    def is_actionable(self, event: ChangeEvent, state: TagState) -> Optional[str]:
        pv: StorageVolume = event.new

        if not pv.is_bound:
            return f"phase is {pv.phase or 'unknown'}, waiting for Bound"

        if retries_on_any_event(state) or event.type is EventType.ADDED:
            return None

        old: Optional[StorageVolume] = event.old
        if old is None or not old.is_bound:
            return None
        return "already Bound before this update"

    def derive(self, resource: StorageVolume) -> Optional[CloudResourceRef]:
        volume_id = extract_volume_identifier(resource)
        region = extract_volume_region(resource.topology)
        return CloudResourceRef(region=region, resource_ids=(volume_id,))
