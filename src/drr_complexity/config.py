"""Loading of pipeline parameters from configs/params.yml."""
from pathlib import Path
from typing import Any

import yaml

from drr_complexity.errors import ConfigError
from drr_complexity.paths import CONFIGS_DIR

REQUIRED_SECTIONS = ("inputs", "columns", "dimensions", "ratings", "outliers", "correlation", "hypothesis")
_REQUIRED = object()


def load_params(path: Path | None = None) -> dict:
    """Load parameters from configs/params.yml (or an explicit path)."""
    path = Path(path) if path is not None else CONFIGS_DIR / "params.yml"
    with open(path, encoding="utf-8") as f:
        params = yaml.safe_load(f) or {}

    missing = [s for s in REQUIRED_SECTIONS if s not in params]
    if missing:
        raise ConfigError(f"{path}: missing section(s) {', '.join(missing)}")
    return params


def get_param(params: dict, dotted_key: str, default: Any = _REQUIRED) -> Any:
    """
    Look up a nested key such as "ratings.high_threshold".

    Without ``default`` the key is required and its absence raises
    ConfigError. Any explicit default, None and 0 included, is returned
    instead.
    """
    node: Any = params
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            if default is not _REQUIRED:
                return default
            raise ConfigError(f"missing parameter: {dotted_key}")
        node = node[part]
    return node
