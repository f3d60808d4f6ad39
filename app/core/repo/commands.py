from __future__ import annotations

import os
from string import Template
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _default_executable() -> str:
    return (os.getenv("REPOSCM_REPO_EXECUTABLE") or "repo").strip() or "repo"


class RepoScmSettings(BaseModel):
    """Checkout settings for one `repo` managed workspace."""

    manifest_repository_url: str
    manifest_branch: Optional[str] = None
    manifest_file: Optional[str] = None
    manifest_group: Optional[str] = None
    manifest_platform: Optional[str] = None
    mirror_dir: Optional[str] = None
    repo_url: Optional[str] = None
    repo_branch: Optional[str] = None
    destination_dir: Optional[str] = None

    depth: int = Field(default=0, ge=0)
    jobs: int = Field(default=0, ge=0)

    current_branch: bool = False
    quiet: bool = False
    force_sync: bool = False
    no_tags: bool = False
    no_clone_bundle: bool = False
    fetch_submodules: bool = False
    manifest_submodules: bool = False
    worktree: bool = False
    trace: bool = False
    reset_first: bool = False
    clean_first: bool = False

    extra_env_vars: Dict[str, str] = Field(default_factory=dict)
    executable: str = Field(default_factory=_default_executable)

    @field_validator("manifest_repository_url", "executable")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


def expand(value: Optional[str], env: Optional[Dict[str, str]]) -> Optional[str]:
    """Expand ${NAME} / $NAME against env; unknown names are left as-is."""
    if value is None or not env:
        return value
    return Template(value).safe_substitute(env)


def build_environment(settings: RepoScmSettings, env: Optional[Dict[str, str]]) -> Dict[str, str]:
    out = dict(env or {})
    for k, v in settings.extra_env_vars.items():
        out[k] = expand(v, out) or ""
    return out


def _head(settings: RepoScmSettings, env: Optional[Dict[str, str]]) -> List[str]:
    cmd = [expand(settings.executable, env) or settings.executable]
    if settings.trace:
        cmd.append("--trace")
    return cmd


def build_init_command(settings: RepoScmSettings, env: Optional[Dict[str, str]] = None) -> List[str]:
    cmd = _head(settings, env)
    cmd += ["init", "-u", expand(settings.manifest_repository_url, env)]

    if settings.manifest_branch:
        cmd += ["-b", expand(settings.manifest_branch, env)]
    if settings.manifest_file:
        cmd += ["-m", expand(settings.manifest_file, env)]
    if settings.manifest_group:
        cmd += ["-g", expand(settings.manifest_group, env)]
    if settings.manifest_platform:
        cmd += ["-p", expand(settings.manifest_platform, env)]
    if settings.mirror_dir:
        cmd.append(f"--reference={expand(settings.mirror_dir, env)}")
    if settings.repo_url:
        cmd.append(f"--repo-url={expand(settings.repo_url, env)}")
    if settings.repo_branch:
        cmd.append(f"--repo-rev={expand(settings.repo_branch, env)}")
    if settings.depth > 0:
        cmd.append(f"--depth={settings.depth}")
    if settings.current_branch:
        cmd.append("--current-branch")
    if settings.no_tags:
        cmd.append("--no-tags")
    if settings.no_clone_bundle:
        cmd.append("--no-clone-bundle")
    if settings.manifest_submodules:
        cmd.append("--submodules")
    if settings.worktree:
        cmd.append("--worktree")
    return cmd


def build_sync_command(settings: RepoScmSettings, env: Optional[Dict[str, str]] = None) -> List[str]:
    cmd = _head(settings, env)
    cmd += ["sync", "-d"]

    if settings.current_branch:
        cmd.append("-c")
    if settings.quiet:
        cmd.append("-q")
    if settings.force_sync:
        cmd.append("--force-sync")
    if settings.jobs > 0:
        cmd.append(f"--jobs={settings.jobs}")
    if settings.no_tags:
        cmd.append("--no-tags")
    if settings.no_clone_bundle:
        cmd.append("--no-clone-bundle")
    if settings.fetch_submodules:
        cmd.append("--fetch-submodules")
    return cmd


def build_forall_command(settings: RepoScmSettings, git_args: List[str], env: Optional[Dict[str, str]] = None) -> List[str]:
    return [expand(settings.executable, env) or settings.executable, "forall", "-c", "git", *git_args]
