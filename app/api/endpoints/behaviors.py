from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.core.behaviors.config import BehaviorsRunConfig, load_behaviors_config
from app.core.behaviors.registry import BehaviorRegistry, default_behaviors_dir
from app.core.observability.metrics import inc_named
from app.core.repo.checkout import RepoCheckout
from app.core.repo.commands import RepoScmSettings
from app.core.repo.launcher import SubprocessLauncher
from app.core.repo.listener import TaskListener
from app.core.repo.polling import compare_revisions
from app.core.repo.state import RevisionState

router = APIRouter(prefix="/behaviors", tags=["Behaviors"])


class CheckoutPlanRequest(BaseModel):
    settings: RepoScmSettings
    behaviors: Optional[Any] = None
    env: Dict[str, str] = Field(default_factory=dict)
    # strict: an aborting behavior fails the request (409) instead of being reported
    strict: bool = False


class ChangesEvaluateRequest(BaseModel):
    current: Dict[str, Any]
    baseline: Optional[Dict[str, Any]] = None
    behaviors: Optional[Any] = None


# one registry per behaviors dir, reloaded when its plugin files change
_REGISTRIES: Dict[Path, Tuple[BehaviorRegistry, List[Dict[str, Any]]]] = {}
_REGISTRIES_LOCK = threading.Lock()


def _load_registry() -> Tuple[BehaviorRegistry, List[Dict[str, Any]]]:
    behaviors_dir = default_behaviors_dir()
    with _REGISTRIES_LOCK:
        cached = _REGISTRIES.get(behaviors_dir)
        if cached is None or cached[0].is_stale():
            reg = BehaviorRegistry(behaviors_dir)
            cached = _REGISTRIES[behaviors_dir] = (reg, reg.discover())
        return cached


def _registry() -> BehaviorRegistry:
    return _load_registry()[0]


def _split(csv: Optional[str]) -> list[str]:
    return [x.strip() for x in (csv or "").split(",") if x.strip()]


def _query_config(enabled: Optional[str], disabled: Optional[str]) -> BehaviorsRunConfig:
    base = load_behaviors_config()
    enabled_list = _split(enabled)
    disabled_list = _split(disabled)
    return BehaviorsRunConfig(
        enabled=enabled_list or base.enabled,
        disabled=disabled_list or base.disabled,
        options=base.options,
    )


def _payload_config(payload: Any) -> BehaviorsRunConfig:
    if payload is None:
        return load_behaviors_config()
    return BehaviorsRunConfig.from_payload(payload)


@router.get("")
def list_behaviors(
    enabled_only: bool = False,
    enabled: Optional[str] = Query(default=None),
    disabled: Optional[str] = Query(default=None),
):
    reg, warnings = _load_registry()
    cfg = _query_config(enabled, disabled)

    out = []
    for info in reg.list_behaviors():
        is_enabled = cfg.is_enabled_with_default(info.name, enabled_by_default=info.enabled_by_default)
        if enabled_only and not is_enabled:
            continue
        out.append({
            "name": info.name,
            "version": info.version,
            "enabled_by_default": info.enabled_by_default,
            "priority": info.priority,
            "module_path": info.file,
            "enabled": is_enabled,
        })

    return {
        "kind": "behaviors",
        "count": len(out),
        "fingerprint": reg.fingerprint,
        "behaviors": out,
        "warnings": warnings,
    }


@router.get("/resolve")
def resolve_behaviors(
    enabled: Optional[str] = Query(default=None),
    disabled: Optional[str] = Query(default=None),
):
    reg = _registry()
    cfg = _query_config(enabled, disabled)

    try:
        selected, skipped = reg.resolve(cfg)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "selected": [b.describe() for b in selected],
        "order": [b.display_name for b in selected],
        "skipped": skipped,
        "fingerprint": reg.fingerprint,
    }


@router.post("/checkout-plan")
def checkout_plan(req: CheckoutPlanRequest):
    inc_named("behaviors_checkout_plan")
    reg = _registry()

    try:
        chain = reg.build_chain(_payload_config(req.behaviors))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    listener = TaskListener("checkout-plan")
    plan = RepoCheckout(req.settings, chain, SubprocessLauncher()).plan(req.env, listener)
    if req.strict:
        plan.result.raise_for_abort()

    return {
        **plan.to_dict(),
        "behaviors": chain.names,
        "log": listener.lines,
    }


@router.post("/changes/evaluate")
def evaluate_changes(req: ChangesEvaluateRequest):
    inc_named("behaviors_changes_evaluate")
    reg = _registry()

    try:
        current = RevisionState.from_dict(req.current)
        baseline = RevisionState.from_dict(req.baseline)
        chain = reg.build_chain(_payload_config(req.behaviors))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    evaluation = compare_revisions(current, baseline, chain)
    return {
        **evaluation.to_dict(),
        "behaviors": chain.names,
    }


@router.get("/{name}")
def get_behavior(name: str):
    reg = _registry()
    b = reg.get(name)
    if b is None:
        raise HTTPException(status_code=404, detail=f"Unknown behavior: {name}")
    return b.describe()
