from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core.behaviors.chain import BehaviorChain, HookResult
from app.core.repo.commands import (
    RepoScmSettings,
    build_environment,
    build_forall_command,
    build_init_command,
    build_sync_command,
    expand,
)
from app.core.repo.launcher import Launcher
from app.core.repo.listener import TaskListener

log = logging.getLogger("reposcm.checkout")


@dataclass
class CheckoutPlan:
    init_command: List[str]
    sync_command: Optional[List[str]]
    result: HookResult

    @property
    def ok(self) -> bool:
        return self.result.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "init_command": list(self.init_command),
            "sync_command": list(self.sync_command) if self.sync_command is not None else None,
            **self.result.to_dict(),
        }


@dataclass
class CheckoutOutcome:
    success: bool
    phase: str
    plan: CheckoutPlan
    result: Optional[HookResult] = None
    message: Optional[str] = None


class RepoCheckout:
    """
    Runs the repo lifecycle with the behavior hooks at their call sites:

      decorate_init -> decorate_sync -> repo init -> post_init
        -> (reset/clean) -> pre_sync -> repo sync
    """

    def __init__(self, settings: RepoScmSettings, chain: BehaviorChain, launcher: Launcher):
        self.settings = settings
        self.chain = chain
        self.launcher = launcher

    def plan(self, env: Optional[Dict[str, str]], listener: TaskListener) -> CheckoutPlan:
        return self._plan(build_environment(self.settings, env), listener)

    def _plan(self, env: Dict[str, str], listener: TaskListener) -> CheckoutPlan:
        # env is already built; expanding it again would repeat self-references
        init_cmd = build_init_command(self.settings, env)
        res = self.chain.decorate_init(init_cmd, env, listener)
        if not res.ok:
            return CheckoutPlan(init_command=init_cmd, sync_command=None, result=res)

        sync_cmd = build_sync_command(self.settings, env)
        res = self.chain.decorate_sync(sync_cmd, env, listener)
        return CheckoutPlan(init_command=init_cmd, sync_command=sync_cmd, result=res)

    def run(self, workspace: Path, env: Optional[Dict[str, str]], listener: TaskListener) -> CheckoutOutcome:
        env = build_environment(self.settings, env)

        plan = self._plan(env, listener)
        if not plan.ok:
            return self._fail("decorate", plan, result=plan.result)

        ws = Path(workspace)
        if self.settings.destination_dir:
            ws = ws / (expand(self.settings.destination_dir, env) or "")
        ws.mkdir(parents=True, exist_ok=True)

        listener.info("$ %s", " ".join(plan.init_command))
        r = self.launcher.launch(plan.init_command, cwd=ws, env=env)
        if not r.ok:
            listener.error("repo init failed (exit %s): %s", r.returncode, r.stderr or r.stdout)
            return self._fail("init", plan, message=r.stderr or r.stdout)

        res = self.chain.post_init(ws, env, listener)
        if not res.ok:
            return self._fail("post_init", plan, result=res)

        for enabled, git_args in (
            (self.settings.reset_first, ["reset", "--hard"]),
            (self.settings.clean_first, ["clean", "-fdx"]),
        ):
            if not enabled:
                continue
            cmd = build_forall_command(self.settings, git_args, env)
            listener.info("$ %s", " ".join(cmd))
            r = self.launcher.launch(cmd, cwd=ws, env=env)
            if not r.ok:
                listener.error("%s failed (exit %s): %s", " ".join(cmd), r.returncode, r.stderr or r.stdout)
                return self._fail("pre_sync", plan, message=r.stderr or r.stdout)

        executable = plan.sync_command[0]
        res = self.chain.pre_sync(executable, self.launcher, ws, listener, env)
        if not res.ok:
            return self._fail("pre_sync", plan, result=res)

        listener.info("$ %s", " ".join(plan.sync_command))
        r = self.launcher.launch(plan.sync_command, cwd=ws, env=env)
        if not r.ok:
            listener.error("repo sync failed (exit %s): %s", r.returncode, r.stderr or r.stdout)
            return self._fail("sync", plan, message=r.stderr or r.stdout)

        log.info("checkout done workspace=%s behaviors=%s", ws, self.chain.names)
        return CheckoutOutcome(success=True, phase="done", plan=plan)

    def _fail(
        self,
        phase: str,
        plan: CheckoutPlan,
        *,
        result: Optional[HookResult] = None,
        message: Optional[str] = None,
    ) -> CheckoutOutcome:
        if result is not None and message is None:
            message = result.reason
        log.info(
            "checkout stopped phase=%s outcome=%s behavior=%s",
            phase,
            result.outcome.value if result is not None else "error",
            result.behavior if result is not None else None,
        )
        return CheckoutOutcome(success=False, phase=phase, plan=plan, result=result, message=message)
