from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Protocol


@dataclass(frozen=True)
class LaunchResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Launcher(Protocol):
    """
    Process-launching capability passed to pre_sync behaviors and used by
    the checkout to run `repo`.
    """

    def launch(
        self,
        cmd: List[str],
        *,
        cwd: Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> LaunchResult:
        ...


class SubprocessLauncher:
    def launch(
        self,
        cmd: List[str],
        *,
        cwd: Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> LaunchResult:
        try:
            p = subprocess.run(
                list(cmd),
                cwd=str(cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env={**os.environ, **dict(env or {})},
            )
        except FileNotFoundError as e:
            return LaunchResult(returncode=127, stderr=str(e))
        return LaunchResult(
            returncode=p.returncode,
            stdout=(p.stdout or "").strip(),
            stderr=(p.stderr or "").strip(),
        )
