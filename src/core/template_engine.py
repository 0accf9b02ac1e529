import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import yaml
from jinja2 import Environment, StrictUndefined


env = Environment(undefined=StrictUndefined)


def load_template(path: str | Path) -> Dict[str, Any]:
    content = Path(path).read_text(encoding="utf-8")
    # Suporta YAML e JSON (YAML já é superset)
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(f"tag template must be a mapping, got {type(data).__name__}")
    return data


def render_dynamic(template: Dict[str, Any], ctx: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Espera algo como:
    {
        "defaults": {...},
        "fixed": {...},
        "dynamic": {
            "Cluster": "{{ env.CLUSTER_NAME }}",
        }
    }

    O render acontece uma única vez no startup; o TagSet resultante é o
    mesmo para todos os recursos do cluster.
    """
    if ctx is None:
        ctx = {"env": dict(os.environ)}

    defaults = _section(template, "defaults")
    fixed = _section(template, "fixed")
    dynamic = _section(template, "dynamic")

    rendered_dynamic: Dict[str, Any] = {}
    for key, expr in dynamic.items():
        # expr é uma string Jinja2
        template_obj = env.from_string(str(expr))
        rendered_dynamic[key] = template_obj.render(**ctx)

    # ordem: defaults < fixed < dynamic (dynamic ganha)
    merged: Dict[str, Any] = {**defaults, **fixed, **rendered_dynamic}
    return merged


def _section(template: Mapping[str, Any], name: str) -> Dict[str, Any]:
    section = template.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"template section {name!r} must be a mapping, got {type(section).__name__}")
    return section
