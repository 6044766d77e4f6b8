"""依赖状态核对

对清单中的每个依赖检查缓存目录（git 依赖还检查仓库实际状态），
得到一个 InstallStatus。核对只读，不做任何输出；渲染由 CLI 层负责。

判定流程:
  1. 缓存目录不存在 → Missing（git 类型为 MissingGit）
  2. 读取标记文件（.dev 优先），不可读 → Missing
  3. haxelib: 未声明 version → NotLocked；与 .current 逐字节比较 → Outdated / AlreadyInstalled
  4. git: 无 git 子目录 → MissingGit；否则比较 HEAD 与目标 ref 解析出的 commit，
     结合工作区是否有未提交修改得出 Outdated / Conflict / AlreadyInstalled
  5. dev: 标记存在即视为满足
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hxdeps.core.exceptions import CacheStateError, ExternalToolError
from hxdeps.core.models import Dependency, DependencyKind, InstallState, InstallStatus

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.manifest import Manifest
    from hxdeps.core.protocols import GitOperations

logger = logging.getLogger(__name__)

WRONG_COMMIT = "wrong commit"
LOCAL_CHANGES = "local changes"


@dataclass
class Reconciliation:
    """整份清单的核对结果

    单个依赖的缓存状态错误记录在 errors 中，不影响其他依赖的核对。
    """

    statuses: list[InstallStatus] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[InstallStatus]:
        return iter(self.statuses)

    def __len__(self) -> int:
        return len(self.statuses)

    def count(self, state: InstallState) -> int:
        return sum(1 for s in self.statuses if s.state is state)

    @property
    def installed_count(self) -> int:
        return self.count(InstallState.ALREADY_INSTALLED)

    @property
    def ok(self) -> bool:
        return not self.errors


class StatusEvaluator:
    """依赖状态核对器"""

    def __init__(self, cache: CacheLayout, git: GitOperations) -> None:
        self.cache = cache
        self.git = git

    def evaluate(self, dep: Dependency) -> InstallStatus:
        """核对单个依赖

        Raises:
            CacheStateError: git 工作副本无法打开 / HEAD 无法解析
        """
        lib_dir = self.cache.lib_dir(dep.name)
        if not lib_dir.exists():
            state = InstallState.MISSING_GIT if dep.kind is DependencyKind.GIT else InstallState.MISSING
            return InstallStatus(dep, state, wanted=dep.wanted())

        marker = self.cache.read_marker(dep.name)
        if marker is None:
            return InstallStatus(dep, InstallState.MISSING, wanted=dep.wanted())

        if dep.kind is DependencyKind.HAXELIB:
            return self._evaluate_haxelib(dep, marker)
        if dep.kind is DependencyKind.GIT:
            return self._evaluate_git(dep)
        if dep.kind is DependencyKind.DEV:
            # 开发路径不做版本比对
            return InstallStatus(
                dep, InstallState.ALREADY_INSTALLED, wanted=dep.path, installed=marker,
            )
        if dep.kind is DependencyKind.MERCURIAL:
            logger.warning("%s: mercurial 类型暂不支持版本核对", dep.name)
            return InstallStatus(dep, InstallState.ALREADY_INSTALLED, installed=marker)
        raise CacheStateError(f"{dep.name}: 未处理的依赖类型 {dep.kind}")

    def reconcile(
        self,
        manifest: Manifest,
        on_status: Callable[[InstallStatus], None] | None = None,
    ) -> Reconciliation:
        """顺序核对清单中的全部依赖

        on_status 在每个依赖核对完成后调用一次（供展示层逐条渲染）。
        """
        result = Reconciliation()
        for dep in manifest:
            try:
                status = self.evaluate(dep)
            except (CacheStateError, ExternalToolError) as e:
                logger.error("核对失败: %s - %s", dep.name, e)
                result.errors[dep.name] = str(e)
                continue
            result.statuses.append(status)
            if on_status is not None:
                on_status(status)
        logger.info(
            "核对完成: %d/%d 已就绪, %d 失败",
            result.installed_count, len(manifest), len(result.errors),
        )
        return result

    # ------------------------------------------------------------------

    @staticmethod
    def _evaluate_haxelib(dep: Dependency, marker: str) -> InstallStatus:
        if dep.version is None:
            return InstallStatus(dep, InstallState.NOT_LOCKED, installed=marker)
        if dep.version != marker:
            return InstallStatus(
                dep, InstallState.OUTDATED, wanted=dep.version, installed=marker,
            )
        return InstallStatus(
            dep, InstallState.ALREADY_INSTALLED, wanted=dep.version, installed=marker,
        )

    def _evaluate_git(self, dep: Dependency) -> InstallStatus:
        repo = self.cache.git_dir(dep.name)
        if not repo.exists():
            return InstallStatus(dep, InstallState.MISSING_GIT, wanted=dep.vcs_ref)

        self.git.open(repo)
        head = self.git.head_commit(repo)
        if dep.vcs_ref is None:
            return InstallStatus(dep, InstallState.NOT_LOCKED, installed=head)

        ref = dep.vcs_ref
        target = self.git.resolve_ref(repo, ref)
        if target is None:
            logger.info("%s: 本地无法解析 ref %s，按 commit 不一致处理", dep.name, ref)

        wrong_commit = target != head
        dirty = self.git.is_dirty(repo)
        logger.debug(
            "%s: head=%s target=%s wrong_commit=%s dirty=%s",
            dep.name, head, target, wrong_commit, dirty,
        )

        if wrong_commit and dirty:
            return InstallStatus(
                dep, InstallState.CONFLICT, wanted=ref,
                installed=f"{head} ({WRONG_COMMIT} + {LOCAL_CHANGES})",
            )
        if wrong_commit:
            return InstallStatus(
                dep, InstallState.OUTDATED, wanted=ref,
                installed=f"{head} ({WRONG_COMMIT})",
            )
        if dirty:
            return InstallStatus(
                dep, InstallState.CONFLICT, wanted=ref,
                installed=f"{head} ({LOCAL_CHANGES})",
            )
        return InstallStatus(dep, InstallState.ALREADY_INSTALLED, wanted=ref, installed=ref)
