from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from app.core.behaviors.contract import RepoScmBehavior
from app.core.repo.listener import TaskListener


@dataclass
class NoTagsBehavior(RepoScmBehavior):
    name: str = "no_tags"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 100

    def _add(self, commands: List[str]) -> bool:
        if "--no-tags" not in commands:
            commands.append("--no-tags")
        return True

    def decorate_init(self, commands: List[str], env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        return self._add(commands)

    def decorate_sync(self, commands: List[str], env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        return self._add(commands)


BEHAVIOR = NoTagsBehavior()
