from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.core.behaviors.contract import RepoScmBehavior
from app.core.repo.listener import TaskListener


@dataclass
class ManifestGroupsBehavior(RepoScmBehavior):
    name: str = "manifest_groups"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 100
    groups: List[str] = field(default_factory=list)

    def decorate_init(self, commands: List[str], env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        groups = [g.strip() for g in self.groups if g and g.strip()]
        if groups:
            commands += ["-g", ",".join(groups)]
        return True


BEHAVIOR = ManifestGroupsBehavior()
