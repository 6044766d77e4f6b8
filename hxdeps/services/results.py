"""安装结果模型"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InstallAction(str, Enum):
    INSTALLED = "installed"        # 新安装（Missing / MissingGit）
    UPDATED = "updated"            # 就地更新（Outdated）
    RESOLVED = "resolved"          # 冲突已处理并更新
    SKIPPED = "skipped"            # 用户选择跳过
    UNSUPPORTED = "unsupported"    # 该类型尚未实现
    NONE = "none"                  # 已就绪 / 未锁定，无需动作
    FAILED = "failed"


@dataclass
class InstallResult:
    """单个依赖的处理结果；warnings 记录不影响成功的提示（如 stash 冲突）"""

    name: str
    action: InstallAction
    message: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.action is InstallAction.FAILED


@dataclass
class InstallReport:
    results: list[InstallResult] = field(default_factory=list)

    def count(self, action: InstallAction) -> int:
        return sum(1 for r in self.results if r.action is action)

    @property
    def failures(self) -> list[InstallResult]:
        return [r for r in self.results if r.failed]

    @property
    def ok(self) -> bool:
        return not self.failures
