from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from app.core.behaviors.contract import BehaviorApplicationError, RepoScmBehavior
from app.core.repo.listener import TaskListener


@dataclass
class SyncJobsBehavior(RepoScmBehavior):
    """Sets the number of parallel fetch jobs of `repo sync`."""

    name: str = "sync_jobs"
    version: str = "0.1.0"
    enabled_by_default: bool = True
    priority: int = 100
    jobs: int = 4

    def decorate_sync(self, commands: List[str], env: Optional[Dict[str, str]], listener: TaskListener) -> bool:
        if int(self.jobs) < 1:
            raise BehaviorApplicationError(f"sync_jobs jobs must be >= 1, got {self.jobs}")

        commands[:] = [c for c in commands if not c.startswith("--jobs=")]
        commands.append(f"--jobs={int(self.jobs)}")
        return True


BEHAVIOR = SyncJobsBehavior()
