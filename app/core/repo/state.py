from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class ProjectState:
    """A single project (git repository) of the manifest at one revision."""

    path: str
    server_path: str
    revision: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "server_path": self.server_path, "revision": self.revision}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectState":
        if not isinstance(data, dict):
            raise ValueError(f"project state must be an object, got {type(data).__name__}")
        path = data.get("path")
        if not path:
            raise ValueError("project state requires 'path'")
        return cls(
            path=str(path),
            server_path=str(data.get("server_path") or path),
            revision=str(data.get("revision") or ""),
        )


@dataclass
class RevisionState:
    """
    Snapshot of the resolved revisions of every project in a manifest.
    """

    branch: str = ""
    manifest: str = ""
    projects: Dict[str, ProjectState] = field(default_factory=dict)

    @classmethod
    def of(cls, projects: Iterable[ProjectState], *, branch: str = "", manifest: str = "") -> "RevisionState":
        return cls(branch=branch, manifest=manifest, projects={p.path: p for p in projects})

    def get_revision(self, path: str) -> Optional[str]:
        p = self.projects.get(path)
        return p.revision if p is not None else None

    def changed_projects(self, baseline: Optional["RevisionState"]) -> List[ProjectState]:
        """
        Projects of this state that are new or differ from `baseline`.
        Projects removed since the baseline are not reported.
        """
        if baseline is None:
            return [self.projects[k] for k in sorted(self.projects)]

        changed: List[ProjectState] = []
        for path in sorted(self.projects):
            current = self.projects[path]
            if baseline.projects.get(path) != current:
                changed.append(current)
        return changed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch": self.branch,
            "manifest": self.manifest,
            "projects": [self.projects[k].to_dict() for k in sorted(self.projects)],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["RevisionState"]:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValueError(f"revision state must be an object, got {type(data).__name__}")
        raw_projects = data.get("projects") or []
        if not isinstance(raw_projects, list):
            raise ValueError("revision state 'projects' must be a list")
        projects = [ProjectState.from_dict(p) for p in raw_projects]
        return cls.of(
            projects,
            branch=str(data.get("branch") or ""),
            manifest=str(data.get("manifest") or ""),
        )
