from __future__ import annotations

import hashlib
import importlib.util
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Tuple

from app.core.behaviors.chain import BehaviorChain
from app.core.behaviors.config import BehaviorsRunConfig
from app.core.behaviors.contract import RepoScmBehavior

log = logging.getLogger("reposcm.registry")

# registry.py -> parents[3] = project root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def default_behaviors_dir() -> Path:
    env_dir = (os.getenv("REPOSCM_BEHAVIORS_DIR") or "").strip()
    if env_dir:
        return Path(env_dir)
    return PROJECT_ROOT / "app" / "plugins" / "behaviors"


@dataclass(frozen=True)
class BehaviorInfo:
    name: str
    version: str
    enabled_by_default: bool
    priority: int
    file: str


class BehaviorRegistry:
    """
    Discovers behaviors from:
      <behaviors_dir>/*.py

    Each module must expose:
      BEHAVIOR = <RepoScmBehavior instance>
    """

    def __init__(self, behaviors_dir: Optional[str | Path] = None):
        self._behaviors_dir = Path(behaviors_dir) if behaviors_dir is not None else default_behaviors_dir()
        self._behaviors: Dict[str, RepoScmBehavior] = {}
        self._behavior_files: Dict[str, Path] = {}
        self._fingerprint: Optional[str] = None

    @property
    def behaviors_dir(self) -> Path:
        return self._behaviors_dir

    @property
    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = self._compute_fingerprint()
        return self._fingerprint

    def reload(self) -> None:
        self._behaviors.clear()
        self._behavior_files.clear()
        self._fingerprint = None
        self.load_all()

    def load_all(self) -> None:
        self._fingerprint = self._compute_fingerprint()
        for py in self._plugin_files():
            behavior = self._load_behavior_from_file(py)
            self._register(behavior, py)

    def is_stale(self) -> bool:
        """True if the plugin files changed since they were loaded."""
        return self._fingerprint is not None and self._fingerprint != self._compute_fingerprint()

    def discover(self) -> List[Dict[str, Any]]:
        """
        Like load_all(), but never raises for a single bad plugin;
        bad ones are skipped and returned as warnings.
        """
        warnings: List[Dict[str, Any]] = []
        self._fingerprint = self._compute_fingerprint()

        if not self._behaviors_dir.exists():
            return [{
                "code": "behaviors.dir_missing",
                "severity": "warn",
                "message": f"No behaviors directory found at {self._behaviors_dir}",
                "data": {"path": str(self._behaviors_dir)},
            }]

        for py in self._plugin_files():
            try:
                behavior = self._load_behavior_from_file(py)
                self._register(behavior, py)
            except Exception as e:
                log.warning("Skipping behavior plugin %s: %s", py.name, e)
                warnings.append({
                    "code": "behaviors.load_failed",
                    "severity": "warn",
                    "message": f"Failed to load behavior {py.name}: {e}",
                    "data": {"module_path": str(py)},
                })
        return warnings

    def get(self, name: str) -> Optional[RepoScmBehavior]:
        return self._behaviors.get(name)

    def names(self) -> List[str]:
        return sorted(self._behaviors.keys())

    def list_behaviors(self) -> List[BehaviorInfo]:
        out: List[BehaviorInfo] = []
        for name in self.names():
            b = self._behaviors[name]
            out.append(BehaviorInfo(
                name=name,
                version=str(b.version or "0.0.0"),
                enabled_by_default=bool(b.enabled_by_default),
                priority=int(b.priority),
                file=str(self._behavior_files[name]),
            ))
        return out

    def resolve(self, cfg: Optional[BehaviorsRunConfig] = None) -> Tuple[List[RepoScmBehavior], List[Dict[str, str]]]:
        """
        Returns (selected, skipped). Selected behaviors are configured with
        their options and ordered by (priority, name).
        """
        if cfg is None:
            cfg = BehaviorsRunConfig()

        selected: List[RepoScmBehavior] = []
        skipped: List[Dict[str, str]] = []

        for name in self.names():
            b = self._behaviors[name]
            if not cfg.is_enabled_with_default(name, enabled_by_default=bool(b.enabled_by_default)):
                skipped.append({"name": name, "reason": "disabled"})
                continue
            selected.append(b.configure(cfg.behavior_options(name)))

        for name in cfg.enabled or []:
            if name not in self._behaviors:
                skipped.append({"name": name, "reason": "unknown"})

        selected.sort(key=lambda b: (int(b.priority), b.display_name))
        return selected, skipped

    def build_chain(self, cfg: Optional[BehaviorsRunConfig] = None) -> BehaviorChain:
        selected, skipped = self.resolve(cfg)
        log.debug(
            "behaviors.chain selected=%s skipped=%s fingerprint=%s",
            [b.display_name for b in selected],
            [s["name"] for s in skipped],
            self.fingerprint,
        )
        return BehaviorChain(selected)

    # --- internals ---

    def _plugin_files(self) -> List[Path]:
        return [py for py in sorted(self._behaviors_dir.glob("*.py")) if not py.name.startswith("_")]

    def _register(self, behavior: RepoScmBehavior, py: Path) -> None:
        name = behavior.display_name
        if name in self._behaviors:
            raise ValueError(f"Duplicate behavior name: {name} ({py})")
        self._behaviors[name] = behavior
        self._behavior_files[name] = py

    def _compute_fingerprint(self) -> str:
        h = hashlib.sha256()
        for py in self._plugin_files():
            h.update(py.name.encode("utf-8"))
            h.update(b"\0")
            h.update(py.read_bytes())
            h.update(b"\0")
        return h.hexdigest()[:16]

    def _load_module(self, file_path: Path) -> ModuleType:
        file_path = file_path.resolve()

        # module name must be deterministic across interpreter restarts
        path_key = str(file_path).replace("\\", "/").lower().encode("utf-8")
        path_hash = hashlib.sha1(path_key).hexdigest()[:16]
        module_name = f"reposcm_behavior_{file_path.stem}_{path_hash}"

        spec = importlib.util.spec_from_file_location(module_name, str(file_path))
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load spec for {module_name} from {file_path}")

        module = importlib.util.module_from_spec(spec)

        # register before exec_module (dataclasses looks the module up)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise
        return module

    def _load_behavior_from_file(self, file_path: Path) -> RepoScmBehavior:
        module = self._load_module(file_path)

        if not hasattr(module, "BEHAVIOR"):
            raise AttributeError(f"{file_path.name} must define BEHAVIOR")

        behavior = getattr(module, "BEHAVIOR")
        if not isinstance(behavior, RepoScmBehavior):
            raise TypeError(f"{file_path.name}: BEHAVIOR must be a RepoScmBehavior instance")

        if not behavior.name:
            behavior.name = file_path.stem
        return behavior
