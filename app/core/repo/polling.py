from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from app.core.behaviors.chain import BehaviorChain
from app.core.repo.state import ProjectState, RevisionState


class Change(str, Enum):
    NO_CHANGES = "NO_CHANGES"
    SIGNIFICANT = "SIGNIFICANT"


@dataclass
class ChangeEvaluation:
    change: Change
    changed_projects: List[ProjectState] = field(default_factory=list)
    decided_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "change": self.change.value,
            "changed_projects": [p.to_dict() for p in self.changed_projects],
            "decided_by": self.decided_by,
        }


def compare_revisions(
    current: RevisionState,
    baseline: Optional[RevisionState],
    chain: BehaviorChain,
) -> ChangeEvaluation:
    """
    Decide whether `current` warrants a rebuild compared to `baseline`.

    No baseline means nothing was built yet. Otherwise the behaviors get a
    chance to ignore the changed projects.
    """
    changed = current.changed_projects(baseline)

    if baseline is None:
        return ChangeEvaluation(change=Change.SIGNIFICANT, changed_projects=changed)

    if not changed:
        return ChangeEvaluation(change=Change.NO_CHANGES)

    decision = chain.should_ignore_changes(changed, current, baseline)
    if decision.ignore:
        return ChangeEvaluation(change=Change.NO_CHANGES, changed_projects=changed, decided_by=decision.decided_by)

    return ChangeEvaluation(change=Change.SIGNIFICANT, changed_projects=changed)
