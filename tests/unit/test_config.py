import pytest

from core.config import OperatorConfig
from core.errors import ConfigurationError


def test_defaults(tagset):
    cfg = OperatorConfig(tagset=tagset)
    assert cfg.kinds == ("Node", "PersistentVolume")
    assert cfg.retry_max_attempts == 5
    assert cfg.resync_period_seconds == 12 * 60 * 60
    assert cfg.dry_run is False


def test_kinds_follow_watch_flags(tagset):
    assert OperatorConfig(tagset=tagset, watch_volumes=False).kinds == ("Node",)
    assert OperatorConfig(tagset=tagset, watch_nodes=False).kinds == ("PersistentVolume",)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"watch_nodes": False, "watch_volumes": False},
        {"workers": 0},
        {"workers": 1000},
        {"resync_period_seconds": 1},
        {"cache_sync_timeout_seconds": 0},
        {"retry_max_attempts": 0},
        {"retry_delay_seconds": -1},
    ],
)
def test_invalid_values(tagset, kwargs):
    with pytest.raises(ConfigurationError):
        OperatorConfig(tagset=tagset, **kwargs)


def test_errors_are_collected(tagset):
    with pytest.raises(ConfigurationError) as exc_info:
        OperatorConfig(tagset=tagset, workers=0, retry_max_attempts=0)

    msg = str(exc_info.value)
    assert "workers" in msg
    assert "retry attempts" in msg


def test_config_is_immutable(tagset):
    cfg = OperatorConfig(tagset=tagset)
    with pytest.raises(Exception):
        cfg.dry_run = True
