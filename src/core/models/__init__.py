from .AwsIdentity import AwsIdentity, AwsIdentityError
from .ChangeEvent import ChangeEvent, EventType
from .CloudResourceRef import CloudResourceRef
from .ComputeNode import ComputeNode
from .ReconcileResult import Outcome, ReconcileResult
from .StorageVolume import StorageVolume, TopologyRequirement, TopologyTerm
from .Tag import Tag
from .TagSet import TagSet

__all__ = [
    "AwsIdentity",
    "AwsIdentityError",
    "ChangeEvent",
    "CloudResourceRef",
    "ComputeNode",
    "EventType",
    "Outcome",
    "ReconcileResult",
    "StorageVolume",
    "Tag",
    "TagSet",
    "TopologyRequirement",
    "TopologyTerm",
]
