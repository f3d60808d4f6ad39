import os
from pathlib import Path
from typing import List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient

from app.api.main import app
from app.core.observability.metrics import reset_metrics
from app.core.repo.launcher import LaunchResult


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    os.environ["REPOSCM_ENV"] = "dev"
    # never pick up a developer's behaviors.yaml
    os.environ["REPOSCM_BEHAVIORS_FILE"] = str(Path(__file__).parent / "_no_behaviors.yaml")


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def client():
    return TestClient(app)


class FakeLauncher:
    """Records launched commands; fails for the repo subcommands in fail_on."""

    def __init__(self, fail_on: Optional[List[str]] = None, returncode: int = 1):
        self.fail_on = set(fail_on or [])
        self.returncode = returncode
        self.calls: List[dict] = []

    def launch(self, cmd: List[str], *, cwd: Path, env: Optional[Mapping[str, str]] = None) -> LaunchResult:
        self.calls.append({"cmd": list(cmd), "cwd": Path(cwd), "env": dict(env or {})})
        sub = next((c for c in cmd[1:] if not c.startswith("-")), "")
        if sub in self.fail_on:
            return LaunchResult(returncode=self.returncode, stderr=f"{sub} exploded")
        return LaunchResult(returncode=0, stdout="ok")

    @property
    def commands(self) -> List[List[str]]:
        return [c["cmd"] for c in self.calls]


@pytest.fixture()
def launcher():
    return FakeLauncher()


@pytest.fixture()
def write_plugin(tmp_path: Path):
    """Writes a behavior plugin module into a temp behaviors dir."""
    plugins = tmp_path / "behaviors"
    plugins.mkdir()

    def _write(file_name: str, body: str) -> Path:
        p = plugins / file_name
        p.write_text(body, encoding="utf-8")
        return plugins

    return _write
