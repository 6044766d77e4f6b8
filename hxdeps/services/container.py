"""服务容器：统一依赖注入

缓存布局、git 能力、各后端、核对器、锁定引擎和安装编排器都通过容器懒加载获取，
同一容器内共享实例。CLI 通过 get_container() 获取服务，而非直接构造。

依赖关系（→ 表示依赖）:
  evaluator / lock → cache, git
  vcs              → git, cache
  resolver         → vcs, git, prompt
  installer        → cache, vcs, registry, resolver

用法:
    container = ServiceContainer(config=Config(cache_dir="/tmp/.haxelib"))
    statuses = container.evaluator.reconcile(manifest)

    # 非交互场景替换冲突处理策略
    container = ServiceContainer(prompt=SkipPrompt())
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.config import Config
    from hxdeps.core.lock import LockEngine
    from hxdeps.core.protocols import GitOperations
    from hxdeps.core.status import StatusEvaluator
    from hxdeps.services.conflict import ConflictPrompt, ConflictResolver
    from hxdeps.services.haxelib import HaxelibRegistry, ProgressCallback
    from hxdeps.services.installer import Installer
    from hxdeps.services.vcs.backend import VcsBackend

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        git: GitOperations | None = None,
        prompt: ConflictPrompt | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from hxdeps.core.config import get_config
            config = get_config()
        self._config = config
        if git is not None:
            self._instances["git"] = git
        self._prompt = prompt
        self._progress = progress

    @property
    def config(self) -> Config:
        return self._config

    # ---- 基础设施 ----

    @property
    def cache(self) -> CacheLayout:
        if "cache" not in self._instances:
            from hxdeps.core.cache import CacheLayout
            self._instances["cache"] = CacheLayout(self._config.cache_dir)
        return self._instances["cache"]  # type: ignore[return-value]

    @property
    def git(self) -> GitOperations:
        if "git" not in self._instances:
            from hxdeps.services.vcs.git_cli import GitCli
            self._instances["git"] = GitCli(git=self._config.git_executable)
        return self._instances["git"]  # type: ignore[return-value]

    # ---- 后端 ----

    @property
    def vcs(self) -> VcsBackend:
        if "vcs" not in self._instances:
            from hxdeps.services.vcs.backend import VcsBackend
            self._instances["vcs"] = VcsBackend(
                self.git, self.cache, blobless=self._config.blobless_clone,
            )
        return self._instances["vcs"]  # type: ignore[return-value]

    @property
    def registry(self) -> HaxelibRegistry:
        if "registry" not in self._instances:
            from hxdeps.services.haxelib import HaxelibRegistry
            self._instances["registry"] = HaxelibRegistry(
                self.cache,
                self._config.registry_host,
                timeout=self._config.download_timeout,
                chunk_size=self._config.download_chunk_size,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    # ---- 核对 / 锁定 / 安装 ----

    @property
    def evaluator(self) -> StatusEvaluator:
        if "evaluator" not in self._instances:
            from hxdeps.core.status import StatusEvaluator
            self._instances["evaluator"] = StatusEvaluator(self.cache, self.git)
        return self._instances["evaluator"]  # type: ignore[return-value]

    @property
    def lock(self) -> LockEngine:
        if "lock" not in self._instances:
            from hxdeps.core.lock import LockEngine
            self._instances["lock"] = LockEngine(self.cache, self.git)
        return self._instances["lock"]  # type: ignore[return-value]

    @property
    def resolver(self) -> ConflictResolver:
        if "resolver" not in self._instances:
            from hxdeps.services.conflict import ConflictResolver
            self._instances["resolver"] = ConflictResolver(self.vcs, self.git, self._prompt)
        return self._instances["resolver"]  # type: ignore[return-value]

    @property
    def installer(self) -> Installer:
        if "installer" not in self._instances:
            from hxdeps.services.installer import Installer
            self._instances["installer"] = Installer(
                self.cache, self.vcs, self.registry, self.resolver, progress=self._progress,
            )
        return self._instances["installer"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def set_container(container: ServiceContainer) -> ServiceContainer:
    """替换全局容器（CLI 按命令行选项构造 / 测试注入）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = container
    return container


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
