from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from app.core.behaviors.contract import (
    BehaviorApplicationError,
    EnvVars,
    HookOutcome,
    RepoScmBehavior,
)
from app.core.observability.metrics import inc_hook
from app.core.repo.launcher import Launcher
from app.core.repo.listener import TaskListener
from app.core.repo.state import ProjectState, RevisionState

log = logging.getLogger("reposcm.behaviors")


@dataclass(frozen=True)
class HookResult:
    hook: str
    outcome: HookOutcome
    behavior: Optional[str] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is HookOutcome.CONTINUE

    def raise_for_abort(self) -> "HookResult":
        if self.outcome is HookOutcome.ABORT:
            raise BehaviorApplicationError(self.reason or f"{self.hook} aborted by {self.behavior}")
        return self

    def to_dict(self) -> dict:
        return {
            "hook": self.hook,
            "outcome": self.outcome.value,
            "behavior": self.behavior,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ChangeDecision:
    ignore: bool
    decided_by: Optional[str] = None


class BehaviorChain:
    """
    Invokes behaviors in order for each lifecycle hook.

    A behavior answering False stops the phase (STOP); one raising
    BehaviorApplicationError aborts it (ABORT). Either way the remaining
    behaviors are not invoked. Other exceptions propagate.
    """

    def __init__(self, behaviors: Optional[Iterable[RepoScmBehavior]] = None):
        self._behaviors: List[RepoScmBehavior] = list(behaviors or [])

    @property
    def behaviors(self) -> List[RepoScmBehavior]:
        return list(self._behaviors)

    @property
    def names(self) -> List[str]:
        return [b.display_name for b in self._behaviors]

    def __len__(self) -> int:
        return len(self._behaviors)

    def decorate_init(self, commands: List[str], env: Optional[EnvVars], listener: TaskListener) -> HookResult:
        return self._dispatch(
            "decorate_init",
            lambda b: b.decorate_init(commands, env, listener),
            listener,
        )

    def decorate_sync(self, commands: List[str], env: Optional[EnvVars], listener: TaskListener) -> HookResult:
        return self._dispatch(
            "decorate_sync",
            lambda b: b.decorate_sync(commands, env, listener),
            listener,
        )

    def post_init(self, workspace: Path, env: Optional[EnvVars], listener: TaskListener) -> HookResult:
        return self._dispatch(
            "post_init",
            lambda b: b.post_init(workspace, env, listener),
            listener,
        )

    def pre_sync(
        self,
        executable: str,
        launcher: Launcher,
        workspace: Path,
        listener: TaskListener,
        env: Optional[EnvVars],
    ) -> HookResult:
        return self._dispatch(
            "pre_sync",
            lambda b: b.pre_sync(executable, launcher, workspace, listener, env),
            listener,
        )

    def should_ignore_changes(
        self,
        changed_projects: List[ProjectState],
        current: RevisionState,
        baseline: Optional[RevisionState],
    ) -> ChangeDecision:
        for behavior in self._behaviors:
            name = behavior.display_name
            ignore = bool(behavior.should_ignore_changes(changed_projects, current, baseline))
            inc_hook("should_ignore_changes", name, "ignore" if ignore else "keep")
            if ignore:
                log.debug("should_ignore_changes decided_by=%s changed=%s", name, len(changed_projects))
                return ChangeDecision(ignore=True, decided_by=name)
        return ChangeDecision(ignore=False)

    # --- internals ---

    def _dispatch(
        self,
        hook: str,
        call: Callable[[RepoScmBehavior], bool],
        listener: TaskListener,
    ) -> HookResult:
        for behavior in self._behaviors:
            name = behavior.display_name
            try:
                proceed = call(behavior)
            except BehaviorApplicationError as e:
                inc_hook(hook, name, HookOutcome.ABORT.value)
                listener.error("%s aborted by %s: %s", hook, name, e)
                log.warning("%s aborted behavior=%s reason=%s", hook, name, e)
                return HookResult(hook=hook, outcome=HookOutcome.ABORT, behavior=name, reason=str(e))

            if not proceed:
                inc_hook(hook, name, HookOutcome.STOP.value)
                log.info("%s stopped behavior=%s", hook, name)
                return HookResult(hook=hook, outcome=HookOutcome.STOP, behavior=name)

            inc_hook(hook, name, HookOutcome.CONTINUE.value)
            log.debug("%s continue behavior=%s", hook, name)

        return HookResult(hook=hook, outcome=HookOutcome.CONTINUE)
