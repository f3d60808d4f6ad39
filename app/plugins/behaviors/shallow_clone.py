from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from app.core.behaviors.contract import BehaviorApplicationError, RepoScmBehavior
from app.core.repo.listener import TaskListener


@dataclass
class ShallowCloneBehavior(RepoScmBehavior):
    """Limits `repo init` to the last `depth` commits of each project."""

    name: str = "shallow_clone"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 50
    depth: int = 1

    def decorate_init(self, commands: List[str], env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        if int(self.depth) < 1:
            raise BehaviorApplicationError(f"shallow_clone depth must be >= 1, got {self.depth}")

        commands[:] = [c for c in commands if not c.startswith("--depth=")]
        commands.append(f"--depth={int(self.depth)}")
        listener.info("Shallow clone with depth %s", self.depth)
        return True


BEHAVIOR = ShallowCloneBehavior()
