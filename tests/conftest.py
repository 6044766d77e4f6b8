"""测试公共夹具：内存版 git 能力 + 独立缓存目录"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pytest

import hxdeps.core.config as cfgmod
from hxdeps.core.cache import CacheLayout
from hxdeps.core.exceptions import CacheStateError, ExternalToolError
from hxdeps.core.protocols import StashPopResult
from hxdeps.services.container import reset_container

HEAD_A = "a" * 40


@dataclass
class FakeRepo:
    head: str
    refs: dict[str, str] = field(default_factory=dict)
    dirty: bool = False
    branch: str | None = "main"
    remotes: dict[str, str] = field(default_factory=dict)
    stashes: list[str] = field(default_factory=list)


class FakeGit:
    """GitOperations 的内存实现，按顺序记录调用"""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.repos: dict[str, FakeRepo] = {}
        # 远端可见的 ref，clone / fetch 时复制到本地
        self.remote_refs: dict[str, str] = {"main": HEAD_A}
        self.default_branch = "main"
        self.fail_clone = False
        self.fail_rename = False
        self.fail_submodule = False
        self.fail_diff = False
        self.pop_conflict = False

    def add_repo(self, path: Path, head: str = HEAD_A, **kwargs) -> FakeRepo:
        path.mkdir(parents=True, exist_ok=True)
        repo = FakeRepo(head=head, **kwargs)
        self.repos[str(path)] = repo
        return repo

    def repo(self, path: Path) -> FakeRepo:
        try:
            return self.repos[str(path)]
        except KeyError:
            raise CacheStateError(f"无法打开 git 仓库 {path}") from None

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    # ---- 只读查询 ----

    def open(self, repo: Path) -> None:
        self.calls.append(("open", repo))
        self.repo(repo)

    def head_commit(self, repo: Path) -> str:
        return self.repo(repo).head

    def short_id(self, repo: Path, commit: str) -> str:
        return commit[:7]

    def resolve_ref(self, repo: Path, ref: str) -> str | None:
        r = self.repo(repo)
        if ref in r.refs:
            return r.refs[ref]
        for commit in {r.head, *r.refs.values()}:
            if len(ref) >= 4 and commit.startswith(ref):
                return commit
        return None

    def is_dirty(self, repo: Path) -> bool:
        return self.repo(repo).dirty

    def current_branch(self, repo: Path) -> str | None:
        return self.repo(repo).branch

    def diff_stat(self, repo: Path) -> str:
        if self.fail_diff:
            raise ExternalToolError("git diff --stat 失败 (rc=128)")
        return " Main.hx | 2 +-\n 1 file changed" if self.repo(repo).dirty else ""

    # ---- 远端 ----

    def clone(self, url: str, dest: Path, *, blobless: bool = True) -> None:
        self.calls.append(("clone", url, dest, blobless))
        if self.fail_clone:
            raise ExternalToolError("git clone 失败 (rc=128)", "fatal: repository not found")
        self.add_repo(
            dest,
            head=self.remote_refs[self.default_branch],
            refs=dict(self.remote_refs),
            branch=self.default_branch,
            remotes={"origin": url},
        )

    def fetch(self, repo: Path, remote: str) -> None:
        self.calls.append(("fetch", repo, remote))
        r = self.repo(repo)
        if remote not in r.remotes:
            raise ExternalToolError(f"git fetch 失败: 没有 remote {remote}")
        r.refs.update(self.remote_refs)

    def remote_get_url(self, repo: Path, remote: str) -> str | None:
        return self.repo(repo).remotes.get(remote)

    def remote_add(self, repo: Path, remote: str, url: str) -> None:
        self.calls.append(("remote_add", repo, remote, url))
        self.repo(repo).remotes[remote] = url

    def remote_set_url(self, repo: Path, remote: str, url: str) -> None:
        self.calls.append(("remote_set_url", repo, remote, url))
        self.repo(repo).remotes[remote] = url

    def remote_rename(self, repo: Path, old: str, new: str) -> None:
        self.calls.append(("remote_rename", repo, old, new))
        if self.fail_rename:
            raise ExternalToolError("git remote rename 失败 (rc=3)", "error: remote already exists")
        remotes = self.repo(repo).remotes
        remotes[new] = remotes.pop(old)

    # ---- 工作区 ----

    def checkout(self, repo: Path, ref: str, *, check: bool = False) -> bool:
        self.calls.append(("checkout", repo, ref))
        r = self.repo(repo)
        if ref in r.refs:
            r.head = r.refs[ref]
            r.branch = ref
            return True
        commit = self.resolve_ref(repo, ref)
        if commit is None:
            if check:
                raise ExternalToolError(
                    f"git checkout {ref} 失败 (rc=1)",
                    f"error: pathspec '{ref}' did not match any file(s) known to git",
                )
            return False
        r.head = commit
        r.branch = None
        return True

    def submodule_sync(self, repo: Path) -> None:
        self.calls.append(("submodule_sync", repo))
        if self.fail_submodule:
            raise ExternalToolError("git submodule update 失败 (rc=1)")

    def stash_push(self, repo: Path, message: str) -> None:
        self.calls.append(("stash_push", repo, message))
        r = self.repo(repo)
        r.stashes.append(message)
        r.dirty = False

    def stash_pop(self, repo: Path) -> StashPopResult:
        self.calls.append(("stash_pop", repo))
        r = self.repo(repo)
        if self.pop_conflict:
            return StashPopResult(conflicted=True, message="CONFLICT (content): Main.hx")
        r.stashes.pop()
        r.dirty = True
        return StashPopResult()

    def discard_changes(self, repo: Path) -> None:
        self.calls.append(("discard_changes", repo))
        self.repo(repo).dirty = False

    def commit_all(self, repo: Path, message: str) -> bool:
        self.calls.append(("commit_all", repo, message))
        r = self.repo(repo)
        if not r.dirty:
            return False
        r.dirty = False
        return True


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def cache(tmp_path: Path) -> CacheLayout:
    return CacheLayout(tmp_path / ".haxelib")


@pytest.fixture(autouse=True)
def _isolate_globals():
    """每个测试使用默认配置和全新的服务容器"""
    cfgmod.set_config(cfgmod.Config())
    reset_container()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    reset_container()
    # CLI 入口会重新配置根日志器
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
