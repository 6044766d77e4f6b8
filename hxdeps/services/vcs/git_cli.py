"""git 命令行实现的版本控制能力

所有操作都通过 `git -C <repo> ...` 调用外部 git，阻塞执行、不设超时。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from hxdeps.core.exceptions import CacheStateError, ExternalToolError
from hxdeps.core.protocols import StashPopResult
from hxdeps.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9a-fA-F]{4,64}$")
UNABLE_TO_DIFF = "(unable to get diff)"


class GitCli:
    """GitOperations 的 git CLI 实现"""

    def __init__(self, executor: CommandExecutor | None = None, git: str = "git") -> None:
        self.executor = executor or get_executor()
        self.git = git

    def _run(self, args: list[str], repo: Path | None = None) -> CommandResult:
        cmd = [self.git]
        if repo is not None:
            cmd += ["-C", str(repo)]
        return self.executor.execute(cmd + args)

    def _check(self, args: list[str], repo: Path | None = None, *, label: str = "") -> CommandResult:
        r = self._run(args, repo)
        if not r.success:
            raise ExternalToolError(f"git {label or args[0]} 失败 (rc={r.returncode})", r.stderr)
        return r

    # ------------------------------------------------------------------
    # 只读查询
    # ------------------------------------------------------------------

    def open(self, repo: Path) -> None:
        r = self._run(["rev-parse", "--show-toplevel"], repo)
        if not r.success:
            raise CacheStateError(f"无法打开 git 仓库 {repo}: {r.stderr.strip()}")
        # 目录本身不是仓库但位于其他工作区内时，git 会向上找到外层仓库
        toplevel = Path(r.stdout.strip())
        if toplevel.resolve() != repo.resolve():
            raise CacheStateError(f"{repo} 不是 git 仓库根目录（属于 {toplevel}）")

    def head_commit(self, repo: Path) -> str:
        r = self._run(["rev-parse", "HEAD"], repo)
        if not r.success:
            raise CacheStateError(f"无法解析 {repo} 的 HEAD: {r.stderr.strip()}")
        return r.stdout.strip()

    def short_id(self, repo: Path, commit: str) -> str:
        r = self._check(["rev-parse", "--short", commit], repo, label="rev-parse --short")
        return r.stdout.strip()

    def _verify(self, repo: Path, rev: str) -> str | None:
        r = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], repo)
        if r.success and r.stdout.strip():
            return r.stdout.strip()
        return None

    def resolve_ref(self, repo: Path, ref: str) -> str | None:
        candidates = [f"refs/heads/{ref}", f"refs/tags/{ref}", f"refs/remotes/{ref}"]
        if ref.startswith("refs/"):
            candidates.insert(0, ref)
        for candidate in candidates:
            commit = self._verify(repo, candidate)
            if commit:
                return commit
        if _HEX_RE.match(ref):
            return self._verify(repo, ref)
        return None

    def is_dirty(self, repo: Path) -> bool:
        # 未跟踪文件不计入
        r = self._run(["status", "--porcelain", "--untracked-files=no"], repo)
        if not r.success:
            raise CacheStateError(f"无法读取 {repo} 的工作区状态: {r.stderr.strip()}")
        return bool(r.stdout.strip())

    def current_branch(self, repo: Path) -> str | None:
        r = self._run(["rev-parse", "--abbrev-ref", "HEAD"], repo)
        if not r.success:
            return None
        branch = r.stdout.strip()
        return None if branch in ("", "HEAD") else branch

    def diff_stat(self, repo: Path) -> str:
        r = self._check(["diff", "--stat"], repo, label="diff --stat")
        return r.stdout

    # ------------------------------------------------------------------
    # 远端
    # ------------------------------------------------------------------

    def clone(self, url: str, dest: Path, *, blobless: bool = True) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if blobless:
            r = self._run(["clone", "--filter=blob:none", url, str(dest)])
            if r.success:
                logger.info("blobless clone 完成: %s", url)
                return
            logger.warning("blobless clone 失败，改用完整 clone: %s (%s)", url, r.stderr.strip()[:200])
        self._check(["clone", url, str(dest)], label="clone")
        logger.info("clone 完成: %s", url)

    def fetch(self, repo: Path, remote: str) -> None:
        self._check(["fetch", remote], repo)

    def remote_get_url(self, repo: Path, remote: str) -> str | None:
        r = self._run(["remote", "get-url", remote], repo)
        return r.stdout.strip() if r.success else None

    def remote_add(self, repo: Path, remote: str, url: str) -> None:
        self._check(["remote", "add", remote, url], repo, label="remote add")

    def remote_set_url(self, repo: Path, remote: str, url: str) -> None:
        self._check(["remote", "set-url", remote, url], repo, label="remote set-url")

    def remote_rename(self, repo: Path, old: str, new: str) -> None:
        self._check(["remote", "rename", old, new], repo, label="remote rename")

    # ------------------------------------------------------------------
    # 工作区
    # ------------------------------------------------------------------

    def checkout(self, repo: Path, ref: str, *, check: bool = False) -> bool:
        if check:
            self._check(["checkout", ref], repo, label=f"checkout {ref}")
            return True
        r = self._run(["checkout", ref], repo)
        if not r.success:
            logger.debug("checkout %s 失败: %s", ref, r.stderr.strip())
        return r.success

    def submodule_sync(self, repo: Path) -> None:
        self._check(["submodule", "update", "--init", "--recursive"], repo, label="submodule update")

    def stash_push(self, repo: Path, message: str) -> None:
        self._check(["stash", "push", "-m", message], repo, label="stash push")

    def stash_pop(self, repo: Path) -> StashPopResult:
        r = self._run(["stash", "pop"], repo)
        if r.success:
            return StashPopResult(conflicted=False, message=r.stdout.strip())
        if "CONFLICT" in r.output:
            return StashPopResult(conflicted=True, message=r.output.strip())
        raise ExternalToolError("git stash pop 失败", r.stderr)

    def discard_changes(self, repo: Path) -> None:
        self._check(["reset", "--hard", "HEAD"], repo, label="reset --hard")
        self._check(["clean", "-fd"], repo, label="clean")

    def commit_all(self, repo: Path, message: str) -> bool:
        self._check(["add", "-A"], repo, label="add")
        r = self._run(["commit", "-m", message], repo)
        if r.success:
            return True
        if "nothing to commit" in r.output:
            return False
        raise ExternalToolError("git commit 失败", r.stderr or r.stdout)
