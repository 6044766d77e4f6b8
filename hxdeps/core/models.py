"""核心数据模型

- DependencyKind: 依赖来源类型（封闭枚举）
- Dependency:     清单中声明的单个库
- InstallState / InstallStatus: 状态核对结果（瞬态，不持久化）

Dependency 的必填字段完全由 kind 决定；字段在类型层面均可缺省，
缺失时由 require_* 访问器延迟报错（ConfigError），而非加载时报错。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from hxdeps.core.exceptions import ConfigError, ValidationError


def escape_name(value: str) -> str:
    """缓存目录命名规则：'.' 替换为 ','，不做其他转义"""
    return value.replace(".", ",")


class DependencyKind(str, Enum):
    """依赖来源类型"""

    HAXELIB = "haxelib"   # lib.haxe.org 托管的版本归档
    GIT = "git"           # git 仓库克隆
    DEV = "dev"           # 本地开发路径
    MERCURIAL = "hg"      # 保留，未实现

    @classmethod
    def parse(cls, tag: str) -> DependencyKind:
        try:
            return cls(tag)
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            raise ValidationError(f"未知的依赖类型 '{tag}'，可用: {allowed}") from None


@dataclass
class Dependency:
    """清单中的单个依赖"""

    name: str
    kind: DependencyKind
    vcs_ref: str | None = None
    dir: str | None = None
    path: str | None = None
    url: str | None = None
    version: str | None = None

    # ------------------------------------------------------------------
    # 必填字段访问器
    # ------------------------------------------------------------------

    def require_version(self) -> str:
        if self.version is None:
            raise ConfigError(f"{self.name}: haxelib 类型必须指定 version")
        return self.version

    def require_ref(self) -> str:
        if self.vcs_ref is None:
            raise ConfigError(f"{self.name}: git 类型必须指定 ref")
        return self.vcs_ref

    def require_url(self) -> str:
        if self.url is None:
            raise ConfigError(f"{self.name}: git 类型必须指定 url")
        return self.url

    def require_path(self) -> str:
        if self.path is None:
            raise ConfigError(f"{self.name}: dev 类型必须指定 path")
        return self.path

    # ------------------------------------------------------------------
    # 派生信息
    # ------------------------------------------------------------------

    @property
    def escaped_name(self) -> str:
        return escape_name(self.name)

    def wanted(self) -> str | None:
        """清单期望的版本（haxelib）或 ref（git），其他类型无"""
        if self.kind is DependencyKind.HAXELIB:
            return self.version
        if self.kind is DependencyKind.GIT:
            return self.vcs_ref
        if self.kind in (DependencyKind.DEV, DependencyKind.MERCURIAL):
            return None
        raise ValidationError(f"{self.name}: 未处理的依赖类型 {self.kind}")

    def download_url(self, host: str = "lib.haxe.org") -> str:
        """Haxelib 归档下载地址，git 类型即仓库 URL"""
        if self.kind is DependencyKind.HAXELIB:
            return f"https://{host}/p/{self.name}/{self.require_version()}/download"
        if self.kind is DependencyKind.GIT:
            return self.require_url()
        raise ConfigError(f"{self.name}: 无法为 {self.kind.value} 类型生成下载地址")

    # ------------------------------------------------------------------
    # 序列化
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """序列化为清单记录；ref/path/url/version 缺省时省略，dir 始终输出"""
        data: dict[str, Any] = {"name": self.name, "type": self.kind.value}
        if self.vcs_ref is not None:
            data["ref"] = self.vcs_ref
        data["dir"] = self.dir
        if self.path is not None:
            data["path"] = self.path
        if self.url is not None:
            data["url"] = self.url
        if self.version is not None:
            data["version"] = self.version
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dependency:
        name = data.get("name")
        if not name:
            raise ValidationError(f"依赖记录缺少 name: {data}")
        if "type" not in data:
            raise ValidationError(f"{name}: 依赖记录缺少 type")
        return cls(
            name=name,
            kind=DependencyKind.parse(data["type"]),
            vcs_ref=data.get("ref"),
            dir=data.get("dir"),
            path=data.get("path"),
            url=data.get("url"),
            version=data.get("version"),
        )


class InstallState(str, Enum):
    """单个依赖的安装状态"""

    MISSING = "missing"                      # 缓存中不存在或标记文件不可读
    MISSING_GIT = "missing_git"              # 缓存存在但无 git 子目录
    OUTDATED = "outdated"                    # 版本 / commit 与清单不一致
    ALREADY_INSTALLED = "already_installed"  # 一致
    CONFLICT = "conflict"                    # git 工作区有未提交修改
    NOT_LOCKED = "not_locked"                # haxelib 未声明 version


@dataclass
class InstallStatus:
    """状态核对结果"""

    dependency: Dependency
    state: InstallState
    wanted: str | None = None
    installed: str | None = None

    @property
    def name(self) -> str:
        return self.dependency.name

    @property
    def kind(self) -> DependencyKind:
        return self.dependency.kind

    @property
    def needs_action(self) -> bool:
        return self.state not in (InstallState.ALREADY_INSTALLED, InstallState.NOT_LOCKED)
