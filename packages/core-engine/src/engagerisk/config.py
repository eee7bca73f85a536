"""EngageRisk configuration management.

Settings live in ``.engagerisk.yaml`` and are layered over the built-in
defaults, so a file only needs the keys it changes::

    notifications:
      enabled: true
      webhook_url: https://hooks.slack.com/services/...
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from engagerisk_shared.constants.constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG,
    WEBHOOK_ENV_VAR,
)

logger = logging.getLogger(__name__)


class EngageRiskConfig:
    """Application settings, defaults merged with a user file."""

    def __init__(self, overrides: dict[str, Any] | None = None):
        self._data = copy.deepcopy(DEFAULT_CONFIG)
        _merge_into(self._data, overrides or {})

    @classmethod
    def from_file(cls, path: Path) -> "EngageRiskConfig":
        """Read settings from a YAML file.

        Raises:
            ValueError: If the file holds something other than a mapping.
        """
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        logger.debug("Loaded config from %s", path)
        return cls(loaded)

    def _section(self, name: str) -> dict[str, Any]:
        return self._data[name]

    # ─── Storage ───────────────────────────────────────────────────────────────
    @property
    def db_path(self) -> Path:
        return Path(self._section("storage")["db_path"]).expanduser()

    # ─── Submission Rate Limit ─────────────────────────────────────────────────
    @property
    def rate_limit_max_requests(self) -> int:
        return int(self._section("rate_limit")["max_requests"])

    @property
    def rate_limit_window_seconds(self) -> float:
        return float(self._section("rate_limit")["window_seconds"])

    # ─── High-Risk Alerts ──────────────────────────────────────────────────────
    @property
    def notifications_enabled(self) -> bool:
        return bool(self._section("notifications")["enabled"])

    @property
    def high_risk_threshold(self) -> int:
        return int(self._section("notifications")["high_risk_threshold"])

    @property
    def webhook_url(self) -> Optional[str]:
        """Webhook target; ENGAGERISK_WEBHOOK_URL takes precedence over the file."""
        return os.environ.get(WEBHOOK_ENV_VAR) or self._section("notifications")["webhook_url"]

    @property
    def notification_rate_limit(self) -> int:
        return int(self._section("notifications")["rate_limit_per_hour"])

    @property
    def include_alert_details(self) -> bool:
        return bool(self._section("notifications")["include_details"])

    # ─── Dotted Access ─────────────────────────────────────────────────────────
    def get(self, key: str, default: Any = None) -> Any:
        """Look up ``section.option`` style keys."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Assign a ``section.option`` style key, creating sections as needed."""
        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


def candidate_paths(directory: str | None = None) -> list[Path]:
    """Config file locations in lookup order."""
    paths = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path))
    if directory:
        paths.append(Path(directory) / CONFIG_FILE_NAME)
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    return paths


def load_config(directory: str | None = None) -> EngageRiskConfig:
    """Load the first config file found, or the defaults.

    Lookup order is the ENGAGERISK_CONFIG path, then ``directory``, then
    the current working directory.

    Args:
        directory: Project directory that may hold .engagerisk.yaml.

    Returns:
        EngageRiskConfig instance.
    """
    for path in candidate_paths(directory):
        if path.is_file():
            return EngageRiskConfig.from_file(path)
    return EngageRiskConfig()


def save_config(directory: str, config: EngageRiskConfig | None = None) -> Path:
    """Write settings to ``directory``/.engagerisk.yaml.

    Returns:
        Path of the written file.
    """
    target = Path(directory) / CONFIG_FILE_NAME
    data = (config or EngageRiskConfig()).to_dict()
    target.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return target


def _merge_into(base: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Recursively copy ``overrides`` into ``base`` in place."""
    for key, value in overrides.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge_into(current, value)
        else:
            base[key] = copy.deepcopy(value)
