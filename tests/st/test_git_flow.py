"""端到端：真实 git 仓库上的 核对 → 安装 → 锁定 → 更新 → 冲突处理

上游仓库建在本地（file:// URL），不访问网络；环境中没有 git 时跳过。
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from hxdeps.core.config import Config
from hxdeps.core.manifest import Manifest, load_manifest, save_manifest
from hxdeps.core.models import Dependency, DependencyKind, InstallState
from hxdeps.services.conflict import ScriptedPrompt
from hxdeps.services.container import ServiceContainer
from hxdeps.services.results import InstallAction

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="需要 git")


def _git(cwd: Path, *args: str) -> str:
    r = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return r.stdout.strip()


@pytest.fixture
def upstream(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """本地上游仓库 haxeflixel/flixel：v5.0.0 标签 + main 上多一个提交"""
    for key in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(key, "hxdeps")
    for key in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(key, "hxdeps@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")

    repo = tmp_path / "upstream" / "HaxeFlixel" / "flixel"
    repo.mkdir(parents=True)
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "haxelib.json").write_text('{"name": "flixel", "version": "5.0.0"}\n')
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "5.0.0")
    _git(repo, "tag", "v5.0.0")
    tagged = _git(repo, "rev-parse", "HEAD")

    (repo / "haxelib.json").write_text('{"name": "flixel", "version": "5.1.0"}\n')
    _git(repo, "commit", "-q", "-am", "5.1.0")
    latest = _git(repo, "rev-parse", "HEAD")
    return {"url": repo.as_uri(), "tagged": tagged, "latest": latest}


@pytest.fixture
def workspace(tmp_path: Path) -> tuple[ServiceContainer, Path]:
    cfg = Config(manifest=str(tmp_path / "hmm.json"), cache_dir=str(tmp_path / ".haxelib"))
    return ServiceContainer(cfg, prompt=ScriptedPrompt(["d"])), tmp_path / "hmm.json"


def _state(svc: ServiceContainer, path: Path) -> InstallState:
    result = svc.evaluator.reconcile(load_manifest(path))
    assert result.ok, result.errors
    return result.statuses[0].state


def _install(svc: ServiceContainer, path: Path):
    result = svc.evaluator.reconcile(load_manifest(path))
    return svc.installer.install_all([s for s in result if s.needs_action])


class TestGitFlow:
    def test_install_lock_update_resolve(self, upstream, workspace) -> None:
        svc, path = workspace
        save_manifest(
            Manifest([Dependency("flixel", DependencyKind.GIT, vcs_ref="v5.0.0", url=upstream["url"])]),
            path,
        )

        # 首次: 未克隆 → 安装
        assert _state(svc, path) is InstallState.MISSING_GIT
        report = _install(svc, path)
        assert report.ok
        assert report.results[0].action is InstallAction.INSTALLED

        repo = svc.cache.git_dir("flixel")
        assert _git(repo, "rev-parse", "HEAD") == upstream["tagged"]
        assert _git(repo, "remote") == "haxeflixel/flixel"
        assert svc.cache.read_current("flixel") == "git"
        assert _state(svc, path) is InstallState.ALREADY_INSTALLED

        # 锁定为最短 commit id，再次核对仍然一致
        _, lock_report = svc.lock.lock_file(path)
        assert lock_report.locked == 1
        locked = load_manifest(path).require("flixel").vcs_ref
        assert upstream["tagged"].startswith(locked)
        assert len(locked) < 40
        assert _state(svc, path) is InstallState.ALREADY_INSTALLED

        # 指向 main → 版本不一致 → 更新
        manifest = load_manifest(path)
        manifest.require("flixel").vcs_ref = "main"
        save_manifest(manifest, path)
        assert _state(svc, path) is InstallState.OUTDATED
        report = _install(svc, path)
        assert report.results[0].action is InstallAction.UPDATED
        assert _git(repo, "rev-parse", "HEAD") == upstream["latest"]

        # 本地修改 + 回到 v5.0.0 → 冲突 → discard 后更新
        (repo / "haxelib.json").write_text("{}\n")
        manifest.require("flixel").vcs_ref = "v5.0.0"
        save_manifest(manifest, path)
        status = svc.evaluator.reconcile(load_manifest(path)).statuses[0]
        assert status.state is InstallState.CONFLICT
        assert status.installed.endswith("(wrong commit + local changes)")

        report = _install(svc, path)
        assert report.results[0].action is InstallAction.RESOLVED
        assert _git(repo, "rev-parse", "HEAD") == upstream["tagged"]
        assert _state(svc, path) is InstallState.ALREADY_INSTALLED

    def test_untracked_files_are_not_dirty(self, upstream, workspace) -> None:
        svc, path = workspace
        save_manifest(
            Manifest([Dependency("flixel", DependencyKind.GIT, vcs_ref="v5.0.0", url=upstream["url"])]),
            path,
        )
        assert _install(svc, path).ok
        (svc.cache.git_dir("flixel") / "scratch.txt").write_text("notes\n")
        assert _state(svc, path) is InstallState.ALREADY_INSTALLED

    def test_add_git_records_default_branch(self, upstream, workspace) -> None:
        svc, _ = workspace
        manifest = Manifest()
        dep = svc.installer.add_git(manifest, "flixel", upstream["url"])
        assert dep.vcs_ref == "main"
        assert _git(svc.cache.git_dir("flixel"), "rev-parse", "HEAD") == upstream["latest"]
