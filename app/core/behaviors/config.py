"""
Behavior selection and options.

Config file format (YAML or JSON):
    enabled: [sync_jobs, no_tags]      # optional allowlist
    disabled: [clean_first]
    options:
      sync_jobs: {jobs: 8}

Environment variable:
    REPOSCM_BEHAVIORS_FILE — path to the config file (optional).
    Default search path: <project_root>/behaviors.yaml
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

_log = logging.getLogger("reposcm.config")

# config.py lives at <project_root>/app/core/behaviors/config.py
PROJECT_ROOT = Path(__file__).resolve().parents[3]


@dataclass
class BehaviorsRunConfig:
    enabled: Optional[list[str]] = None   # None => use enabled_by_default
    disabled: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "BehaviorsRunConfig":
        """
        Accepts:
          - None
          - ["sync_jobs", ...]
          - {"enabled":[...], "disabled":[...], "options":{...}}
        Also tolerates {"behaviors":["..."]} and enabled="sync_jobs".
        """
        if payload is None:
            return cls()

        if isinstance(payload, list):
            return cls(enabled=[x for x in payload if isinstance(x, str)])

        if isinstance(payload, dict):
            enabled = payload.get("enabled", payload.get("behaviors", None))
            disabled = payload.get("disabled", [])
            options = payload.get("options", {})

            if isinstance(enabled, str):
                enabled = [enabled]
            if isinstance(disabled, str):
                disabled = [disabled]

            return cls(
                enabled=[x for x in enabled if isinstance(x, str)] if isinstance(enabled, list) else None,
                disabled=[x for x in disabled if isinstance(x, str)] if isinstance(disabled, list) else [],
                options=options if isinstance(options, dict) else {},
            )

        return cls()

    def behavior_options(self, name: str) -> dict[str, Any]:
        opts = self.options or {}
        v = opts.get(name, {})
        return v if isinstance(v, dict) else {}

    def is_enabled_with_default(self, name: str, *, enabled_by_default: bool = True) -> bool:
        if name in (self.disabled or []):
            return False

        # enabled explicitly set => allowlist semantics
        if self.enabled is not None:
            return name in self.enabled

        return bool(enabled_by_default)


def load_behaviors_config(path: Optional[Path] = None) -> BehaviorsRunConfig:
    """
    Load the behavior config from a YAML or JSON file.

    Returns the default config if the file is absent, unreadable or
    malformed.
    """
    resolved = behaviors_config_path(path)
    if not resolved.exists():
        return BehaviorsRunConfig()

    try:
        raw_text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        _log.warning("Cannot read behaviors config %s: %s", resolved, exc)
        return BehaviorsRunConfig()

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            _log.warning("Failed to parse behaviors config %s as JSON or YAML: %s", resolved, exc)
            return BehaviorsRunConfig()

    if data is None:
        return BehaviorsRunConfig()
    if not isinstance(data, (dict, list)):
        _log.warning("Behaviors config %s must be a mapping or list, got %s", resolved, type(data).__name__)
        return BehaviorsRunConfig()

    cfg = BehaviorsRunConfig.from_payload(data)
    _log.info("Loaded behaviors config from %s", resolved)
    return cfg


def behaviors_config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv("REPOSCM_BEHAVIORS_FILE", "").strip()
    if env_path:
        return Path(env_path)
    return PROJECT_ROOT / "behaviors.yaml"
