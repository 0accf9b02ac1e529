import json
from typing import Any, Dict, Mapping, Optional

from jinja2 import TemplateError
from yaml import YAMLError

from .errors import ConfigurationError
from .models import TagSet
from .template_engine import load_template, render_dynamic


def _load_json_str(json_str: Optional[str]) -> Dict[str, Any]:
    if not json_str:
        return {}
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"failed to parse TAGS: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            'TAGS must be a JSON object, e.g. {"Environment":"production"}'
        )
    return data


def build_tagset(
    tags_json: Optional[str] = None,
    template_path: Optional[str] = None,
    ctx: Optional[Mapping[str, Any]] = None,
) -> TagSet:
    """
    Monta o TagSet a partir do template (YAML) e/ou do JSON inline.
    O JSON inline tem precedência sobre o template.
    """
    merged: Dict[str, Any] = {}

    if template_path:
        try:
            merged.update(render_dynamic(load_template(template_path), ctx))
        except (OSError, YAMLError, TemplateError, ValueError) as e:
            raise ConfigurationError(f"failed to load tag template {template_path}: {e}") from e

    merged.update(_load_json_str(tags_json))

    if not merged:
        raise ConfigurationError(
            'TAGS is required (JSON object, e.g. {"Environment":"production"}) or a --template'
        )

    try:
        return TagSet.from_dict(merged)
    except ValueError as e:
        raise ConfigurationError(f"invalid tags: {e}") from e
