"""集中配置管理

清单路径、缓存目录、Haxelib 主机、下载参数等统一从此处获取。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import yaml

from hxdeps.core.exceptions import ConfigError
from hxdeps.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "hxdeps.yml"


@dataclass
class Config:
    """全局配置"""

    # 路径
    manifest: str = "hmm.json"
    cache_dir: str = ".haxelib"

    # Haxelib 下载
    registry_host: str = "lib.haxe.org"
    download_timeout: int = 60
    download_chunk_size: int = 64 * 1024

    # Git
    git_executable: str = "git"
    blobless_clone: bool = True

    # lock 默认使用短 commit id
    long_id: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认

        Raises:
            ConfigError: YAML 格式错误、文件过大或字段类型不匹配
        """
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"配置文件无效 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件无效 {path}: {e}") from e
        cfg.extra = extra
        return cfg


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current


def set_config(cfg: Config) -> Config:
    """直接替换全局配置（CLI 覆盖项 / 测试）"""
    global _current  # noqa: PLW0603
    _current = cfg
    return _current
