"""本地库缓存目录布局

目录结构:
  <root>/<escaped-name>/.current              haxelib: 版本号；git: 字面量 "git"
  <root>/<escaped-name>/.dev                  dev: 绝对路径
  <root>/<escaped-name>/<escaped-version>/    haxelib 解压目录
  <root>/<escaped-name>/git/                  git 工作副本

名称转义规则统一为 '.' → ','。只有状态核对和各安装后端会访问缓存目录。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from hxdeps.core.models import escape_name

logger = logging.getLogger(__name__)

CURRENT_FILE = ".current"
DEV_FILE = ".dev"
GIT_DIR = "git"
GIT_MARKER = "git"


class CacheLayout:
    """缓存路径解析 + 标记文件读写"""

    def __init__(self, root: str | Path = ".haxelib") -> None:
        self.root = Path(root)

    def lib_dir(self, name: str) -> Path:
        return self.root / escape_name(name)

    def git_dir(self, name: str) -> Path:
        return self.lib_dir(name) / GIT_DIR

    def current_file(self, name: str) -> Path:
        return self.lib_dir(name) / CURRENT_FILE

    def dev_file(self, name: str) -> Path:
        return self.lib_dir(name) / DEV_FILE

    def version_dir(self, name: str, version: str) -> Path:
        return self.lib_dir(name) / escape_name(version)

    def exists(self, name: str) -> bool:
        return self.lib_dir(name).exists()

    # ------------------------------------------------------------------
    # 标记文件
    # ------------------------------------------------------------------

    def read_marker(self, name: str) -> str | None:
        """读取安装标记：.dev 优先于 .current；不存在或不可读返回 None"""
        dev = self.dev_file(name)
        marker = dev if dev.exists() else self.current_file(name)
        return _read_text(marker)

    def read_current(self, name: str) -> str | None:
        return _read_text(self.current_file(name))

    def write_current(self, name: str, content: str) -> Path:
        path = self.current_file(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_dev(self, name: str, absolute_path: str) -> Path:
        path = self.dev_file(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(absolute_path, encoding="utf-8")
        return path

    # ------------------------------------------------------------------
    # 整体操作
    # ------------------------------------------------------------------

    def init(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def remove(self, name: str) -> bool:
        lib = self.lib_dir(name)
        if not lib.exists():
            return False
        shutil.rmtree(lib)
        logger.info("已删除缓存: %s", lib)
        return True

    def clean(self) -> bool:
        if not self.root.exists():
            return False
        shutil.rmtree(self.root)
        logger.info("已删除缓存目录: %s", self.root)
        return True


def _read_text(path: Path) -> str | None:
    # 原样返回，不做 strip：版本比较是逐字节的
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
