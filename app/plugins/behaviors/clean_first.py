from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from app.core.behaviors.contract import BehaviorApplicationError, RepoScmBehavior
from app.core.repo.launcher import Launcher
from app.core.repo.listener import TaskListener


@dataclass
class CleanFirstBehavior(RepoScmBehavior):
    """Resets and cleans every project before `repo sync`."""

    name: str = "clean_first"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 10
    reset: bool = True

    def pre_sync(
        self,
        executable: str,
        launcher: Launcher,
        workspace: Path,
        listener: TaskListener,
        env: Optional[Dict[str, str]],
    ) -> bool:
        steps: List[List[str]] = []
        if self.reset:
            steps.append(["reset", "--hard"])
        steps.append(["clean", "-fdx"])

        for git_args in steps:
            cmd = [executable, "forall", "-c", "git", *git_args]
            listener.info("$ %s", " ".join(cmd))
            r = launcher.launch(cmd, cwd=workspace, env=env)
            if not r.ok:
                raise BehaviorApplicationError(
                    f"'{' '.join(cmd)}' failed with exit code {r.returncode}: {r.stderr or r.stdout}"
                )
        return True


BEHAVIOR = CleanFirstBehavior()
