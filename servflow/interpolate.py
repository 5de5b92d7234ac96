"""Placeholder substitution for action templates."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=True)
    return str(value)


def interpolate(template: str, data: Mapping[str, Any]) -> str:
    """Replace ``{Name}`` placeholders with values from ``data``.

    Placeholders whose name is not a key of ``data`` are left untouched so a
    misconfigured template stays visibly wrong. Substituted values are never
    scanned again.
    """

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in data:
            return match.group(0)
        return _to_text(data[key])

    return _PLACEHOLDER_RE.sub(_replace, template)


def interpolate_config(config: Any, data: Mapping[str, Any]) -> Any:
    """Return a copy of ``config`` with every string leaf interpolated.

    Dictionary keys are left as they are.
    """
    if isinstance(config, str):
        return interpolate(config, data)
    if isinstance(config, dict):
        return {key: interpolate_config(value, data) for key, value in config.items()}
    if isinstance(config, list):
        return [interpolate_config(item, data) for item in config]
    return config
