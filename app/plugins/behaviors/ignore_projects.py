from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import List, Optional

from app.core.behaviors.contract import RepoScmBehavior
from app.core.repo.state import ProjectState, RevisionState


@dataclass
class IgnoreProjectsBehavior(RepoScmBehavior):
    """
    Ignores changes that only touch projects matching `projects`
    (glob patterns on the project path).
    """

    name: str = "ignore_projects"
    version: str = "0.1.0"
    enabled_by_default: bool = False
    priority: int = 100
    projects: List[str] = field(default_factory=list)

    def _ignored(self, path: str) -> bool:
        return any(fnmatchcase(path, pat) for pat in self.projects if pat)

    def should_ignore_changes(
        self,
        changed_projects: List[ProjectState],
        current: RevisionState,
        baseline: Optional[RevisionState],
    ) -> bool:
        if not changed_projects or not self.projects:
            return False
        return all(self._ignored(p.path) for p in changed_projects)


BEHAVIOR = IgnoreProjectsBehavior()
