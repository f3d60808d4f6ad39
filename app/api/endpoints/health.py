from __future__ import annotations

import os

from fastapi import APIRouter
from starlette.responses import JSONResponse

from app.core.behaviors.config import behaviors_config_path
from app.core.behaviors.registry import default_behaviors_dir
from app.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/health/ready")
def ready():
    """
    Readiness reflects ability to serve traffic: the behaviors directory
    must exist. In prod the behaviors config file must exist too, so a
    missing file does not silently fall back to the defaults.
    """
    inc_named("health_ready")

    env = (os.getenv("REPOSCM_ENV") or "dev").strip().lower()
    problems: list[str] = []

    behaviors_dir = default_behaviors_dir()
    if not behaviors_dir.is_dir():
        problems.append(f"missing_behaviors_dir:{behaviors_dir}")

    if env == "prod":
        config_path = behaviors_config_path()
        if not config_path.is_file():
            problems.append(f"missing_behaviors_file:{config_path}")

    if problems:
        return JSONResponse(status_code=503, content={"status": "not_ready", "env": env, "problems": problems})
    return {"status": "ready", "env": env}
