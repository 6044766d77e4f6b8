"""依赖版本锁定

把当前已安装的版本 / commit 写回清单:
  - haxelib: 已有 version → 已锁定；否则取 .current 内容（需先安装）
  - git:     取 HEAD commit（长 id 或最短无歧义前缀），与现有 ref 相同 → 已锁定
  - dev:     跳过（由路径锁定）
  - hg:      跳过（暂不支持）

锁定在清单副本上进行；只要有一个依赖被实际锁定就写回清单，
任一依赖出错时整体结果为失败，但已成功的部分仍会保存。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from hxdeps.core.exceptions import CacheStateError, ExternalToolError, HxDepsError
from hxdeps.core.manifest import Manifest, load_manifest, save_manifest
from hxdeps.core.models import Dependency, DependencyKind

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.protocols import GitOperations

logger = logging.getLogger(__name__)


class LockResultKind(str, Enum):
    LOCKED = "locked"
    ALREADY_LOCKED = "already_locked"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class LockOutcome:
    """单个依赖的锁定结果；value 为锁定值，reason 为跳过/出错原因"""

    name: str
    kind: DependencyKind
    result: LockResultKind
    value: str = ""
    reason: str = ""


@dataclass
class LockReport:
    outcomes: list[LockOutcome] = field(default_factory=list)

    def _count(self, *kinds: LockResultKind) -> int:
        return sum(1 for o in self.outcomes if o.result in kinds)

    @property
    def locked(self) -> int:
        return self._count(LockResultKind.LOCKED)

    @property
    def skipped(self) -> int:
        """跳过 + 已锁定"""
        return self._count(LockResultKind.SKIPPED, LockResultKind.ALREADY_LOCKED)

    @property
    def errors(self) -> int:
        return self._count(LockResultKind.ERROR)

    @property
    def persist(self) -> bool:
        return self.locked > 0

    @property
    def ok(self) -> bool:
        return self.errors == 0


@dataclass
class LockCheckEntry:
    name: str
    kind: DependencyKind
    locked: bool
    applicable: bool = True
    reason: str = ""


@dataclass
class LockCheckReport:
    entries: list[LockCheckEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def locked_count(self) -> int:
        return sum(1 for e in self.entries if e.locked)

    @property
    def unlocked(self) -> list[LockCheckEntry]:
        return [e for e in self.entries if not e.locked]

    @property
    def ok(self) -> bool:
        return not self.unlocked


class LockEngine:
    """版本锁定引擎"""

    def __init__(self, cache: CacheLayout, git: GitOperations) -> None:
        self.cache = cache
        self.git = git

    def lock(
        self,
        manifest: Manifest,
        selection: Iterable[str] | None = None,
        long_id: bool = False,
    ) -> tuple[Manifest, LockReport]:
        """锁定选中的依赖（不指定则全部），返回 (更新后的清单副本, 报告)

        Raises:
            LibraryNotFoundError: selection 中有不在清单里的名称（此时不锁定任何依赖）
        """
        selected = {d.name for d in manifest.select(list(selection or []))}
        updated = manifest.copy()
        report = LockReport()
        logger.info("锁定 %d 个依赖 (long_id=%s)", len(selected), long_id)

        for dep in updated:
            if dep.name not in selected:
                continue
            try:
                outcome = self.lock_dependency(dep, long_id)
            except (HxDepsError, OSError) as e:
                logger.error("锁定失败: %s - %s", dep.name, e)
                outcome = LockOutcome(dep.name, dep.kind, LockResultKind.ERROR, reason=str(e))
            report.outcomes.append(outcome)

        logger.info(
            "锁定汇总: %d 已锁定, %d 跳过/已锁定, %d 失败",
            report.locked, report.skipped, report.errors,
        )
        return updated, report

    def lock_file(
        self,
        manifest_path: str | Path,
        selection: Iterable[str] | None = None,
        long_id: bool = False,
    ) -> tuple[Manifest, LockReport]:
        """读取清单 → 锁定 → 有变化时写回"""
        manifest = load_manifest(manifest_path)
        updated, report = self.lock(manifest, selection, long_id)
        if report.persist:
            save_manifest(updated, manifest_path)
        return updated, report

    def lock_dependency(self, dep: Dependency, long_id: bool = False) -> LockOutcome:
        """就地锁定单个依赖"""
        if dep.kind is DependencyKind.HAXELIB:
            return self._lock_haxelib(dep)
        if dep.kind is DependencyKind.GIT:
            return self._lock_git(dep, long_id)
        if dep.kind is DependencyKind.DEV:
            return LockOutcome(
                dep.name, dep.kind, LockResultKind.SKIPPED,
                reason="dev 依赖已由路径锁定",
            )
        if dep.kind is DependencyKind.MERCURIAL:
            return LockOutcome(
                dep.name, dep.kind, LockResultKind.SKIPPED,
                reason="暂不支持 mercurial",
            )
        return LockOutcome(
            dep.name, dep.kind, LockResultKind.SKIPPED, reason=f"不支持的类型 {dep.kind}",
        )

    def _lock_haxelib(self, dep: Dependency) -> LockOutcome:
        if dep.version is not None:
            return LockOutcome(dep.name, dep.kind, LockResultKind.ALREADY_LOCKED, value=dep.version)

        current = self.cache.read_current(dep.name)
        if current is None:
            raise CacheStateError(f"{dep.name} 未安装（缺少 .current），请先执行 install")
        dep.version = current
        return LockOutcome(dep.name, dep.kind, LockResultKind.LOCKED, value=current)

    def _lock_git(self, dep: Dependency, long_id: bool) -> LockOutcome:
        repo = self.cache.git_dir(dep.name)
        if not repo.exists():
            raise CacheStateError(f"{dep.name} 的 git 仓库尚未克隆，请先执行 install")

        self.git.open(repo)
        head = self.git.head_commit(repo)
        commit = head if long_id else self.git.short_id(repo, head)
        if not commit:
            raise ExternalToolError(f"{dep.name}: 无法获取 HEAD commit")

        if dep.vcs_ref == commit:
            return LockOutcome(dep.name, dep.kind, LockResultKind.ALREADY_LOCKED, value=commit)
        dep.vcs_ref = commit
        return LockOutcome(dep.name, dep.kind, LockResultKind.LOCKED, value=commit)


def check_locked(manifest: Manifest) -> LockCheckReport:
    """只读检查：各依赖是否已锁定（dev 视为不适用，计入已锁定）"""
    report = LockCheckReport()
    for dep in manifest:
        report.entries.append(_lock_state(dep))
    return report


def _lock_state(dep: Dependency) -> LockCheckEntry:
    if dep.kind is DependencyKind.HAXELIB:
        if dep.version is not None:
            return LockCheckEntry(dep.name, dep.kind, locked=True)
        return LockCheckEntry(dep.name, dep.kind, locked=False, reason="未指定 version")
    if dep.kind in (DependencyKind.GIT, DependencyKind.MERCURIAL):
        if dep.vcs_ref is not None:
            return LockCheckEntry(dep.name, dep.kind, locked=True)
        return LockCheckEntry(dep.name, dep.kind, locked=False, reason="未指定 ref")
    if dep.kind is DependencyKind.DEV:
        return LockCheckEntry(dep.name, dep.kind, locked=True, applicable=False)
    return LockCheckEntry(dep.name, dep.kind, locked=False, reason=f"不支持的类型 {dep.kind}")
