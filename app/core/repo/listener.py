from __future__ import annotations

import logging
from typing import List

_build_log = logging.getLogger("reposcm.build")


class TaskListener:
    """
    Logging sink handed to behaviors.

    Keeps the build log lines (for API responses) and forwards each line to
    the reposcm.build logger.
    """

    def __init__(self, name: str = "build"):
        self.name = name
        self.lines: List[str] = []

    def info(self, msg: str, *args) -> None:
        line = msg % args if args else msg
        self.lines.append(line)
        _build_log.info("[%s] %s", self.name, line)

    def error(self, msg: str, *args) -> None:
        line = msg % args if args else msg
        self.lines.append(f"ERROR: {line}")
        _build_log.error("[%s] %s", self.name, line)
