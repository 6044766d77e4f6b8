"""Git 依赖安装后端

职责:
- ensure_repository: 工作副本不存在时 clone（优先 blobless），并把 origin 改名为 owner/repo
- smart_checkout:    先本地检出，失败则确保 remote 正确 → fetch → 再检出一次
- submodule_sync:    每次成功检出后递归同步子模块
- diff_summary:      冲突处理时展示的改动摘要
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from hxdeps.core.cache import GIT_MARKER
from hxdeps.core.exceptions import ExternalToolError
from hxdeps.services.vcs.git_cli import UNABLE_TO_DIFF
from hxdeps.services.vcs.remote import remote_name_from_url

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.models import Dependency
    from hxdeps.core.protocols import GitOperations

logger = logging.getLogger(__name__)


class VcsBackend:
    """git 依赖的 clone / checkout / 子模块管理"""

    def __init__(self, git: GitOperations, cache: CacheLayout, *, blobless: bool = True) -> None:
        self.git = git
        self.cache = cache
        self.blobless = blobless

    def repo_path(self, dep: Dependency) -> Path:
        return self.cache.git_dir(dep.name)

    def ensure_repository(self, dep: Dependency) -> Path:
        """工作副本不存在时 clone，返回仓库路径"""
        repo = self.repo_path(dep)
        if repo.exists():
            logger.info("仓库已存在: %s -> %s", dep.name, repo)
        else:
            url = dep.require_url()
            remote = remote_name_from_url(url)
            logger.info("克隆 %s: %s", dep.name, url)
            self.git.clone(url, repo, blobless=self.blobless)
            try:
                self.git.remote_rename(repo, "origin", remote)
            except ExternalToolError as e:
                # 改名失败不影响安装，后续 smart_checkout 会补建 remote
                logger.warning("%s: origin 改名为 %s 失败: %s", dep.name, remote, e)
        self.cache.write_current(dep.name, GIT_MARKER)
        return repo

    def ensure_remote(self, repo: Path, remote: str, url: str) -> None:
        """确保 remote 存在且 URL 正确（缺失则添加，漂移则修正）"""
        existing = self.git.remote_get_url(repo, remote)
        if existing is None:
            logger.info("添加 remote %s: %s", remote, url)
            self.git.remote_add(repo, remote, url)
        elif existing != url:
            logger.info("更新 remote %s URL: %s -> %s", remote, existing, url)
            self.git.remote_set_url(repo, remote, url)

    def smart_checkout(self, dep: Dependency, repo: Path) -> None:
        """检出清单声明的 ref，本地没有时 fetch 后重试一次"""
        ref = dep.require_ref()
        if self.git.checkout(repo, ref):
            logger.info("%s: 已检出 %s（本地）", dep.name, ref)
            return

        url = dep.require_url()
        remote = remote_name_from_url(url)
        logger.info("%s: 本地没有 %s，从 %s 拉取", dep.name, ref, remote)
        self.ensure_remote(repo, remote, url)
        self.git.fetch(repo, remote)
        try:
            self.git.checkout(repo, ref, check=True)
        except ExternalToolError as e:
            raise ExternalToolError(f"{dep.name}: fetch 后仍无法检出 {ref}", e.stderr) from e
        logger.info("%s: 已检出 %s（fetch 后）", dep.name, ref)

    def submodule_sync(self, repo: Path) -> None:
        self.git.submodule_sync(repo)

    def diff_summary(self, dep: Dependency) -> str:
        try:
            return self.git.diff_stat(self.repo_path(dep))
        except ExternalToolError as e:
            logger.debug("%s: diff --stat 失败: %s", dep.name, e)
            return UNABLE_TO_DIFF

    def install_or_update(self, dep: Dependency) -> Path:
        """clone（如需）→ 检出 ref（未声明则保持默认分支）→ 同步子模块"""
        repo = self.ensure_repository(dep)
        if dep.vcs_ref is not None:
            self.smart_checkout(dep, repo)
        else:
            logger.info("%s: 未指定 ref，使用仓库默认分支", dep.name)
        self.submodule_sync(repo)
        return repo

    def detect_ref(self, dep: Dependency) -> str:
        """当前分支名；detached HEAD 时返回 commit id"""
        repo = self.repo_path(dep)
        branch = self.git.current_branch(repo)
        if branch:
            return branch
        return self.git.head_commit(repo)
