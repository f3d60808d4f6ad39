from __future__ import annotations

from dataclasses import asdict, fields, is_dataclass, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, get_type_hints

from pydantic import TypeAdapter, ValidationError

if TYPE_CHECKING:
    from app.core.repo.launcher import Launcher
    from app.core.repo.listener import TaskListener
    from app.core.repo.state import ProjectState, RevisionState


EnvVars = Dict[str, str]


class BehaviorApplicationError(Exception):
    """
    Raised by a behavior when something needs the user's attention.

    Aborts the current lifecycle phase: no further behaviors are invoked.
    """


class HookOutcome(str, Enum):
    CONTINUE = "continue"
    STOP = "stop"
    ABORT = "abort"


class RepoScmBehavior:
    """
    Extension point for command line additions and lifecycle reactions
    around the `repo` tool.

    Every hook has a pass-through default; override only what you need.
    Plugin modules export an instance as BEHAVIOR.
    """

    name: str = ""
    version: str = "0.0.0"
    enabled_by_default: bool = True
    priority: int = 100

    def decorate_init(
        self,
        commands: List[str],
        env: Optional[EnvVars],
        listener: "TaskListener",
    ) -> bool:
        """
        Decorate the `repo init` command line in place.

        Returns True to continue, False to stop.
        Raises BehaviorApplicationError if the user's attention is needed.
        """
        return True

    def decorate_sync(
        self,
        commands: List[str],
        env: Optional[EnvVars],
        listener: "TaskListener",
    ) -> bool:
        """
        Decorate the `repo sync` command line in place.

        Returns True to continue, False to stop.
        Raises BehaviorApplicationError if the user's attention is needed;
        this aborts all later decorations.
        """
        return True

    def post_init(
        self,
        workspace: Path,
        env: Optional[EnvVars],
        listener: "TaskListener",
    ) -> bool:
        """
        Called just after a successful `repo init` in `workspace`.
        """
        return True

    def pre_sync(
        self,
        executable: str,
        launcher: "Launcher",
        workspace: Path,
        listener: "TaskListener",
        env: Optional[EnvVars],
    ) -> bool:
        """
        Called just before `repo sync`. `executable` is the resolved repo
        executable, `launcher` can run it in `workspace`.
        """
        return True

    def should_ignore_changes(
        self,
        changed_projects: List["ProjectState"],
        current: "RevisionState",
        baseline: Optional["RevisionState"],
    ) -> bool:
        """
        Called when deciding whether changes warrant a rebuild.

        The first behavior answering True wins. Returns True if the changes
        should be ignored, False otherwise (the default).
        """
        return False

    # --- configuration ---

    @property
    def display_name(self) -> str:
        return self.name or type(self).__name__

    def configure(self, options: Optional[Dict[str, Any]] = None) -> "RepoScmBehavior":
        """
        Return a copy configured with `options`.

        Dataclass behaviors accept their field names as options, validated
        against the field annotations; anything else is rejected.
        """
        options = options or {}
        if not options:
            return self
        if not is_dataclass(self):
            raise ValueError(f"Behavior '{self.display_name}' takes no options")

        known = {f.name for f in fields(self) if f.init} - {"name", "version"}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(
                f"Unknown option(s) for behavior '{self.display_name}': {', '.join(unknown)}"
            )
        hints = get_type_hints(type(self))
        values: Dict[str, Any] = {}
        for key, value in options.items():
            try:
                values[key] = TypeAdapter(hints[key]).validate_python(value)
            except ValidationError as e:
                msg = e.errors()[0]["msg"]
                raise ValueError(f"Invalid option '{key}' for behavior '{self.display_name}': {msg}") from e
        return replace(self, **values)

    def describe(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "name": self.display_name,
            "version": self.version,
            "enabled_by_default": bool(self.enabled_by_default),
            "priority": int(self.priority),
        }
        if is_dataclass(self):
            opts = asdict(self)
            for k in ("name", "version", "enabled_by_default", "priority"):
                opts.pop(k, None)
            out["options"] = opts
        return out
