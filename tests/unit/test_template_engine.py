from pathlib import Path

import pytest

from core.errors import ConfigurationError
from core.template_engine import load_template, render_dynamic
from core.merge import build_tagset


def test_render_dynamic_merges_defaults_fixed_dynamic_precedence(tmp_path: Path):
    tpl = {
        "defaults": {"Owner": "defaults", "Env": "dev"},
        "fixed": {"Owner": "fixed", "CostCenter": "123"},
        "dynamic": {"Owner": "{{ owner }}", "Message": "{{ msg }}"},
    }

    out = render_dynamic(tpl, {"owner": "dynamic", "msg": "hello"})
    # dynamic ganha de fixed e defaults
    assert out["Owner"] == "dynamic"
    # fixed ganha de defaults
    assert out["CostCenter"] == "123"
    assert out["Env"] == "dev"
    assert out["Message"] == "hello"


def test_render_dynamic_strict_undefined_raises():
    tpl = {"dynamic": {"Owner": "{{ missing_var }}"}}
    with pytest.raises(Exception):
        render_dynamic(tpl, {})


def test_render_dynamic_uses_process_environment_by_default(monkeypatch):
    monkeypatch.setenv("CLUSTER_NAME", "prod-eu")
    out = render_dynamic({"dynamic": {"Cluster": "{{ env.CLUSTER_NAME }}"}})
    assert out == {"Cluster": "prod-eu"}


def test_load_template_rejects_non_mapping(tmp_path: Path):
    p = tmp_path / "t.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_template(p)


def test_render_dynamic_rejects_non_mapping_section():
    with pytest.raises(ValueError):
        render_dynamic({"fixed": ["Owner"]}, {})


def test_build_tagset_from_template_file(tmp_path: Path):
    p = tmp_path / "t.yaml"
    p.write_text(
        """
defaults:
  Owner: "team"
dynamic:
  Env: "{{ env }}"
""",
        encoding="utf-8",
    )

    tagset = build_tagset(template_path=str(p), ctx={"env": "hml"})
    assert tagset.to_dict() == {"Owner": "team", "Env": "hml"}


def test_build_tagset_inline_json_wins_over_template(tmp_path: Path):
    p = tmp_path / "t.yaml"
    p.write_text("fixed:\n  Owner: team\n  Env: dev\n", encoding="utf-8")

    tagset = build_tagset('{"Env": "production"}', str(p), ctx={})
    assert tagset.to_dict() == {"Owner": "team", "Env": "production"}


@pytest.mark.parametrize("raw", [None, "", "{}", "[]", "not json", '{"aws:reserved": "x"}'])
def test_build_tagset_invalid_inputs(raw):
    with pytest.raises(ConfigurationError):
        build_tagset(raw)


def test_build_tagset_missing_template_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        build_tagset(template_path=str(tmp_path / "missing.yaml"))


def test_build_tagset_template_with_undefined_variable(tmp_path: Path):
    p = tmp_path / "t.yaml"
    p.write_text('dynamic:\n  Owner: "{{ nope }}"\n', encoding="utf-8")
    with pytest.raises(ConfigurationError):
        build_tagset(template_path=str(p), ctx={})
