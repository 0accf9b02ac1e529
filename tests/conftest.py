import sys
from pathlib import Path

import pytest


# Garante que `src/` está no PYTHONPATH quando rodar pytest no repo.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from core.models import TagSet  # noqa: E402


@pytest.fixture
def tagset():
    return TagSet.from_dict({"Environment": "production", "Team": "platform"})


@pytest.fixture
def make_node():
    """Body de um Node como o kopf entrega (dict no formato da API)."""

    def _make(name="node-1", provider_id=None, annotations=None, labels=None):
        spec = {}
        if provider_id is not None:
            spec["providerID"] = provider_id
        return {
            "apiVersion": "v1",
            "kind": "Node",
            "metadata": {
                "name": name,
                "annotations": annotations or {},
                "labels": labels if labels is not None else {"topology.kubernetes.io/zone": "us-east-1a"},
            },
            "spec": spec,
        }

    return _make


@pytest.fixture
def make_pv():
    def _make(
        name="pv-1",
        phase="Bound",
        volume_handle=None,
        ebs_volume_id=None,
        topology=None,
        annotations=None,
        driver="ebs.csi.aws.com",
    ):
        spec = {}
        if volume_handle is not None:
            spec["csi"] = {"driver": driver, "volumeHandle": volume_handle}
        if ebs_volume_id is not None:
            spec["awsElasticBlockStore"] = {"volumeID": ebs_volume_id}
        if topology is not None:
            spec["nodeAffinity"] = {
                "required": {
                    "nodeSelectorTerms": [
                        {
                            "matchExpressions": [
                                {"key": key, "operator": "In", "values": values}
                                for key, values in topology.items()
                            ]
                        }
                    ]
                }
            }

        return {
            "apiVersion": "v1",
            "kind": "PersistentVolume",
            "metadata": {"name": name, "annotations": annotations or {}},
            "spec": spec,
            "status": {"phase": phase},
        }

    return _make


class FakeTagger:
    def __init__(self, volumes=None, apply_error=None, list_error=None):
        self.volumes = volumes or []
        self.apply_error = apply_error
        self.list_error = list_error
        self.list_calls = []
        self.apply_calls = []

    def list_attached_volumes(self, region, instance_id):
        self.list_calls.append((region, instance_id))
        if self.list_error is not None:
            raise self.list_error
        return list(self.volumes)

    def apply_tags(self, region, resource_ids, tagset):
        self.apply_calls.append((region, tuple(resource_ids), tagset))
        if self.apply_error is not None:
            raise self.apply_error


class FakeMarker:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def mark_tagged(self, kind, name):
        self.calls.append((kind, name))
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_tagger():
    return FakeTagger


@pytest.fixture
def fake_marker():
    return FakeMarker
