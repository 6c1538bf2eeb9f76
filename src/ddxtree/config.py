"""
ddxtree.config
==============

Build-time parameters for the decision trees and their YAML round trip.

A parameter file holds the three keys either at the top level or under a
``tree:`` section::

    tree:
      max_depth: 4
      min_samples_leaf: 2
      min_gain_ratio: 0.05
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

import yaml

from .exceptions import ConfigError


@dataclass(frozen=True)
class TreeParams:
    """Pruning controls applied while a tree is grown.

    Parameters
    ----------
    max_depth : int, default=10
        Maximum number of splits on any root-to-leaf path.  ``0`` yields a
        single majority leaf.
    min_samples_leaf : int, default=1
        Minimum number of records a partition must hold to keep splitting.
    min_gain_ratio : float, default=0.0
        Minimum gain ratio a split must reach to be accepted.
    """

    max_depth: int = 10
    min_samples_leaf: int = 1
    min_gain_ratio: float = 0.0

    def __post_init__(self):
        for name in ("max_depth", "min_samples_leaf"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigError(f"{name} must be non-negative, got {value}")
        ratio = self.min_gain_ratio
        if isinstance(ratio, bool) or not isinstance(ratio, (int, float)):
            raise ConfigError(f"min_gain_ratio must be a number, got {ratio!r}")
        if not math.isfinite(ratio) or ratio < 0:
            raise ConfigError(f"min_gain_ratio must be finite and non-negative, got {ratio}")

    def updated(self, **overrides) -> "TreeParams":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def params_from_dict(data: dict | None) -> TreeParams:
    if data is None:
        return TreeParams()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping of tree parameters, got {type(data).__name__}")
    if isinstance(data.get("tree"), dict):
        data = data["tree"]
    known = {f.name for f in fields(TreeParams)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown tree parameter(s): {', '.join(unknown)}")
    return TreeParams(**data)


def load_params(path: str | Path) -> TreeParams:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
    return params_from_dict(data)


def save_params(params: TreeParams, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump({"tree": asdict(params)}, f, default_flow_style=False)
