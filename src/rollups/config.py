# ABOUTME: Declares rollup options and loads them from YAML configs or caller mappings.
# ABOUTME: Validates option values up front so a bad config fails before any attempt is scanned.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

import yaml

DEFAULT_METRICS: Tuple[Tuple[str, str], ...] = (
    ("acc", "Accuracy"),
    ("flu", "Fluency"),
    ("comp", "Completeness"),
    ("pron", "Pronunciation"),
)

_ALIASES = {
    "windowDays": "window_days",
    "minWordCount": "min_word_count",
    "minPhonCount": "min_phon_count",
}


@dataclass(frozen=True)
class RollupOptions:
    """Configuration for one rollup computation."""

    window_days: int = 30
    min_word_count: float = 2
    min_phon_count: float = 3
    metrics: Tuple[Tuple[str, str], ...] = DEFAULT_METRICS

    def __post_init__(self) -> None:
        if isinstance(self.window_days, bool) or not isinstance(self.window_days, int) or self.window_days <= 0:
            raise ValueError(f"window_days must be a positive integer, got {self.window_days!r}.")
        for name in ("min_word_count", "min_phon_count"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value!r}.")
        keys = [key for key, _ in self.metrics]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate metric keys in {keys}.")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RollupOptions":
        """Build options from snake_case or camelCase keys; unknown keys are ignored."""

        kwargs = {}
        for key, value in values.items():
            name = _ALIASES.get(key, key)
            if name in ("window_days", "min_word_count", "min_phon_count") and value is not None:
                kwargs[name] = value
            elif name == "metrics" and value:
                kwargs[name] = _parse_metrics(value)
        return cls(**kwargs)


def _parse_metrics(value: Any) -> Tuple[Tuple[str, str], ...]:
    if isinstance(value, Mapping):
        return tuple((str(k), str(label)) for k, label in value.items())
    return tuple((str(k), str(label)) for k, label in value)


def load_rollup_config(config_path: Path) -> RollupOptions:
    """Load rollup options from the ``rollups`` section of a YAML config."""

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, Mapping):
        raise ValueError(f"Config at {config_path} must be a mapping.")
    section = cfg.get("rollups", {}) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"'rollups' section in {config_path} must be a mapping.")
    return RollupOptions.from_mapping(section)
