from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from app.core.behaviors.contract import BehaviorApplicationError, RepoScmBehavior
from app.core.repo.listener import TaskListener


@dataclass
class LocalManifestBehavior(RepoScmBehavior):
    """
    Writes a local manifest after `repo init`, so that the following sync
    picks up extra or overridden projects.
    """

    name: str = "local_manifest"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 100
    xml: str = ""
    file_name: str = "local.xml"

    def post_init(self, workspace: Path, env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        content = (self.xml or "").strip()
        if not content:
            return True
        if not content.startswith("<"):
            raise BehaviorApplicationError("local_manifest xml must be an XML document")
        if "/" in self.file_name or "\\" in self.file_name or not self.file_name.endswith(".xml"):
            raise BehaviorApplicationError(f"Invalid local manifest file name: {self.file_name}")

        target_dir = Path(workspace) / ".repo" / "local_manifests"
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / self.file_name
        target.write_text(content + "\n", encoding="utf-8")
        listener.info("Wrote local manifest %s", target)
        return True


BEHAVIOR = LocalManifestBehavior()
