"""安装编排

按核对结果逐个分派:
  Missing / MissingGit   → 获取（clone 或下载）
  Outdated               → 就地更新（haxelib 重新下载解压；git checkout 或 fetch 后 checkout）
  Conflict               → 冲突处理
  AlreadyInstalled / NotLocked → 无动作
未实现的类型输出提示并跳过，不视为失败。

单个依赖失败只终止该依赖的处理；配置错误（ConfigError）始终向上抛出。
另外提供 add / dev / remove 等修改清单的入口。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from hxdeps.core.exceptions import ConfigError, HxDepsError, ValidationError
from hxdeps.core.models import Dependency, DependencyKind, InstallState, InstallStatus
from hxdeps.services.results import InstallAction, InstallReport, InstallResult

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.manifest import Manifest
    from hxdeps.services.conflict import ConflictResolver
    from hxdeps.services.haxelib import HaxelibRegistry, ProgressCallback
    from hxdeps.services.vcs.backend import VcsBackend

logger = logging.getLogger(__name__)


class Installer:
    """安装编排器"""

    def __init__(
        self,
        cache: CacheLayout,
        vcs: VcsBackend,
        registry: HaxelibRegistry,
        resolver: ConflictResolver,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.cache = cache
        self.vcs = vcs
        self.registry = registry
        self.resolver = resolver
        self.progress = progress

    # ------------------------------------------------------------------
    # 按核对结果安装
    # ------------------------------------------------------------------

    def install(self, status: InstallStatus) -> InstallResult:
        """处理单个核对结果，失败时抛出异常"""
        state = status.state
        if state in (InstallState.MISSING, InstallState.MISSING_GIT):
            return self._acquire(status.dependency, InstallAction.INSTALLED)
        if state is InstallState.OUTDATED:
            return self._acquire(status.dependency, InstallAction.UPDATED)
        if state is InstallState.CONFLICT:
            return self.resolver.resolve(status)
        if state in (InstallState.ALREADY_INSTALLED, InstallState.NOT_LOCKED):
            return InstallResult(status.name, InstallAction.NONE)
        raise ValidationError(f"{status.name}: 未处理的安装状态 {state}")

    def install_all(self, statuses: Iterable[InstallStatus]) -> InstallReport:
        """顺序处理全部核对结果，单个依赖失败不影响其他依赖"""
        report = InstallReport()
        for status in statuses:
            try:
                result = self.install(status)
            except ConfigError:
                raise
            except (HxDepsError, OSError) as e:
                logger.error("安装失败: %s - %s", status.name, e)
                result = InstallResult(status.name, InstallAction.FAILED, str(e))
            report.results.append(result)
        logger.info(
            "安装汇总: %d 安装, %d 更新, %d 冲突已处理, %d 失败",
            report.count(InstallAction.INSTALLED),
            report.count(InstallAction.UPDATED),
            report.count(InstallAction.RESOLVED),
            len(report.failures),
        )
        return report

    def _acquire(self, dep: Dependency, action: InstallAction) -> InstallResult:
        if dep.kind is DependencyKind.HAXELIB:
            self.registry.install(dep, progress=self.progress)
            return InstallResult(dep.name, action, dep.require_version())
        if dep.kind is DependencyKind.GIT:
            self.vcs.install_or_update(dep)
            return InstallResult(dep.name, action, dep.vcs_ref or "(default)")
        if dep.kind in (DependencyKind.DEV, DependencyKind.MERCURIAL):
            logger.warning("%s: 尚未实现 %s 类型的安装", dep.name, dep.kind.value)
            return InstallResult(
                dep.name, InstallAction.UNSUPPORTED, f"尚未实现 {dep.kind.value} 类型的安装",
            )
        raise ValidationError(f"{dep.name}: 未处理的依赖类型 {dep.kind}")

    # ------------------------------------------------------------------
    # 修改清单的入口
    # ------------------------------------------------------------------

    def add_haxelib(self, manifest: Manifest, name: str, version: str) -> Dependency:
        """从 lib.haxe.org 安装指定版本并写入清单"""
        _warn_replacing(manifest, name, DependencyKind.HAXELIB)
        dep = Dependency(name=name, kind=DependencyKind.HAXELIB, version=version)
        self.registry.install(dep, progress=self.progress)
        manifest.upsert(dep)
        return dep

    def add_git(self, manifest: Manifest, name: str, url: str, ref: str | None = None) -> Dependency:
        """安装 git 依赖并写入清单；未指定 ref 时记录克隆后检出的分支（或 commit）"""
        _warn_replacing(manifest, name, DependencyKind.GIT)
        dep = Dependency(name=name, kind=DependencyKind.GIT, url=url, vcs_ref=ref)
        self.vcs.install_or_update(dep)
        if dep.vcs_ref is None:
            dep.vcs_ref = self.vcs.detect_ref(dep)
            logger.info("%s: 检测到 ref %s", name, dep.vcs_ref)
        manifest.upsert(dep)
        return dep

    def add_dev(self, manifest: Manifest, name: str, path: str) -> Dependency:
        """登记本地开发路径：.dev 写绝对路径，清单保留原始路径"""
        target = Path(path)
        if not target.exists():
            raise ValidationError(f"路径不存在: {path}")
        _warn_replacing(manifest, name, DependencyKind.DEV)
        self.cache.write_dev(name, str(target.resolve()))
        dep = Dependency(name=name, kind=DependencyKind.DEV, path=path)
        manifest.upsert(dep)
        return dep

    def remove(self, manifest: Manifest, names: Iterable[str]) -> list[str]:
        """从清单和缓存中移除依赖，返回实际移除的名称"""
        names = list(names)
        if not names:
            raise ValidationError("请指定要移除的库")
        removed: list[str] = []
        for dep in manifest.select(names):
            manifest.remove(dep.name)
            self.cache.remove(dep.name)
            removed.append(dep.name)
        return removed


def _warn_replacing(manifest: Manifest, name: str, kind: DependencyKind) -> None:
    existing = manifest.get(name)
    if existing is not None:
        logger.warning(
            "%s 已存在于清单中（%s），将改为 %s", name, existing.kind.value, kind.value,
        )
