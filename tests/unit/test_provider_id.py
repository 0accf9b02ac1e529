import pytest

from core.errors import MalformedIdentifier, TopologyNotFound, UnsupportedVolumeSource
from core.models import StorageVolume, TopologyRequirement, TopologyTerm
from core.provider_id import (
    extract_compute_identifier,
    extract_region,
    extract_volume_identifier,
    extract_volume_region,
    is_aws_provider_id,
    normalize_region,
)


@pytest.mark.parametrize(
    "provider_id, instance_id, region",
    [
        ("aws:///us-east-1a/i-0abc123def456789a", "i-0abc123def456789a", "us-east-1"),
        ("aws:///eu-west-1b/i-09876543210abcdef", "i-09876543210abcdef", "eu-west-1"),
        ("aws:///ap-southeast-2c/i-0abc123def456789a", "i-0abc123def456789a", "ap-southeast-2"),
        ("aws:///us-west-2a/i-0abc123def456789a", "i-0abc123def456789a", "us-west-2"),
    ],
)
def test_parse_valid_provider_ids(provider_id, instance_id, region):
    assert extract_compute_identifier(provider_id) == instance_id
    assert extract_region(provider_id) == region


@pytest.mark.parametrize("provider_id", ["", "aws:///us-east-1a/invalid", "aws:///us-east-1a/"])
def test_extract_compute_identifier_rejects_malformed(provider_id):
    with pytest.raises(MalformedIdentifier):
        extract_compute_identifier(provider_id)


@pytest.mark.parametrize(
    "provider_id", ["", "i-0abc123def456789a", "aws:///a/i-0abc", "aws:///us-east-1a/invalid"]
)
def test_extract_region_rejects_malformed(provider_id):
    with pytest.raises(MalformedIdentifier):
        extract_region(provider_id)


def test_is_aws_provider_id():
    assert is_aws_provider_id("aws:///us-east-1a/i-0abc123def456789a")
    assert not is_aws_provider_id("gce://project/us-central1-a/instance-1")
    assert not is_aws_provider_id("")


def test_volume_region_from_zone_strips_trailing_letter():
    terms = (TopologyTerm((TopologyRequirement("topology.kubernetes.io/zone", ("eu-west-1b",)),)),)
    assert extract_volume_region(terms) == "eu-west-1"


def test_volume_region_from_region_label_is_unchanged():
    terms = (TopologyTerm((TopologyRequirement("topology.kubernetes.io/region", ("us-east-1",)),)),)
    assert extract_volume_region(terms) == "us-east-1"


def test_volume_region_from_ebs_csi_zone_label():
    terms = (TopologyTerm((TopologyRequirement("topology.ebs.csi.aws.com/zone", ("ap-southeast-2c",)),)),)
    assert extract_volume_region(terms) == "ap-southeast-2"


def test_volume_region_skips_unrecognized_keys():
    terms = (
        TopologyTerm((TopologyRequirement("some.other/label", ("value",)),)),
        TopologyTerm((
            TopologyRequirement("kubernetes.io/hostname", ("ip-10-0-0-1",)),
            TopologyRequirement("failure-domain.beta.kubernetes.io/zone", ("us-west-2b",)),
        )),
    )
    assert extract_volume_region(terms) == "us-west-2"


@pytest.mark.parametrize(
    "terms",
    [
        (),
        (TopologyTerm((TopologyRequirement("some.other/label", ("value",)),)),),
        (TopologyTerm((TopologyRequirement("topology.kubernetes.io/zone", ()),)),),
    ],
)
def test_volume_region_not_found(terms):
    with pytest.raises(TopologyNotFound):
        extract_volume_region(terms)


# Labels reais publicados pela AWS: zonas terminam em letra, regiões em dígito.
@pytest.mark.parametrize(
    "value, expected",
    [
        ("us-east-1a", "us-east-1"),
        ("eu-central-1c", "eu-central-1"),
        ("ap-northeast-3a", "ap-northeast-3"),
        ("us-gov-west-1a", "us-gov-west-1"),
        ("ca-west-1b", "ca-west-1"),
        ("us-east-1", "us-east-1"),
        ("us-gov-east-1", "us-gov-east-1"),
        ("eu-south-2", "eu-south-2"),
    ],
)
def test_normalize_region_zone_vs_region_heuristic(value, expected):
    assert normalize_region(value) == expected


def test_volume_identifier_prefers_csi_handle():
    pv = StorageVolume(
        name="pv",
        csi_driver="ebs.csi.aws.com",
        csi_volume_handle="vol-0123456789abcdef0",
        ebs_volume_id="vol-legacy",
    )
    assert extract_volume_identifier(pv) == "vol-0123456789abcdef0"


def test_volume_identifier_rejects_other_csi_drivers():
    # EFS também usa CSI, mas o handle é um filesystem, não um volume EBS
    pv = StorageVolume(name="efs-pv", csi_driver="efs.csi.aws.com", csi_volume_handle="fs-0123456789abcdef0")
    with pytest.raises(UnsupportedVolumeSource):
        extract_volume_identifier(pv)


def test_volume_identifier_foreign_csi_does_not_fall_back_to_legacy():
    pv = StorageVolume(
        name="pv",
        csi_driver="fsx.csi.aws.com",
        csi_volume_handle="fs-0123456789abcdef0",
        ebs_volume_id="vol-0123456789abcdef0",
    )
    with pytest.raises(UnsupportedVolumeSource):
        extract_volume_identifier(pv)


@pytest.mark.parametrize(
    "legacy, expected",
    [
        ("vol-0123456789abcdef0", "vol-0123456789abcdef0"),
        ("aws://us-east-1a/vol-0123456789abcdef0", "vol-0123456789abcdef0"),
    ],
)
def test_volume_identifier_legacy_in_tree(legacy, expected):
    pv = StorageVolume(name="pv", ebs_volume_id=legacy)
    assert extract_volume_identifier(pv) == expected


def test_volume_identifier_unsupported_source():
    with pytest.raises(UnsupportedVolumeSource):
        extract_volume_identifier(StorageVolume(name="nfs-pv"))
