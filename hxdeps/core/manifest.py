"""hmm.json 清单

Manifest 是按名称唯一的有序依赖集合：
  - 查找区分大小写
  - 保存时按名称忽略大小写排序（稳定排序，同名保持原有相对顺序）

用法:
    manifest = load_manifest("hmm.json")
    manifest.upsert(Dependency(name="lime", kind=DependencyKind.HAXELIB, version="8.1.2"))
    save_manifest(manifest, "hmm.json")
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from hxdeps.core.exceptions import ConfigError, LibraryNotFoundError, ValidationError
from hxdeps.core.models import Dependency
from hxdeps.utils.json_io import load_json, save_json

logger = logging.getLogger(__name__)


class Manifest:
    """依赖清单"""

    def __init__(self, dependencies: Iterable[Dependency] = ()) -> None:
        self.dependencies: list[Dependency] = []
        for dep in dependencies:
            if dep.name in self:
                raise ValidationError(f"清单中存在重复的库: {dep.name}")
            self.dependencies.append(dep)

    def __iter__(self) -> Iterator[Dependency]:
        return iter(self.dependencies)

    def __len__(self) -> int:
        return len(self.dependencies)

    def __contains__(self, name: object) -> bool:
        return any(d.name == name for d in self.dependencies)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.dependencies]

    def get(self, name: str) -> Dependency | None:
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None

    def require(self, name: str) -> Dependency:
        dep = self.get(name)
        if dep is None:
            raise LibraryNotFoundError(f"库 '{name}' 不在清单中")
        return dep

    def select(self, names: Iterable[str] | None) -> list[Dependency]:
        """按名称挑选依赖；names 为空时返回全部。任一名称不存在即报错"""
        if not names:
            return list(self.dependencies)
        return [self.require(n) for n in names]

    def upsert(self, dep: Dependency) -> Dependency | None:
        """替换同名依赖（保持位置）或追加，返回被替换的旧条目"""
        for i, existing in enumerate(self.dependencies):
            if existing.name == dep.name:
                self.dependencies[i] = dep
                return existing
        self.dependencies.append(dep)
        return None

    def remove(self, name: str) -> bool:
        before = len(self.dependencies)
        self.dependencies = [d for d in self.dependencies if d.name != name]
        return len(self.dependencies) != before

    def sorted_dependencies(self) -> list[Dependency]:
        return sorted(self.dependencies, key=lambda d: d.name.lower())

    def copy(self) -> Manifest:
        return Manifest(copy.deepcopy(self.dependencies))

    def to_dict(self) -> dict[str, Any]:
        return {"dependencies": [d.to_dict() for d in self.sorted_dependencies()]}

    @classmethod
    def from_dict(cls, data: Any) -> Manifest:
        if not isinstance(data, dict) or not isinstance(data.get("dependencies"), list):
            raise ConfigError("清单格式无效: 顶层必须是包含 dependencies 列表的对象")
        return cls(Dependency.from_dict(item) for item in data["dependencies"])


def load_manifest(path: str | Path) -> Manifest:
    """读取清单文件"""
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"清单文件不存在: {p}（可先执行 init）")
    try:
        data = load_json(p)
    except json.JSONDecodeError as e:
        raise ConfigError(f"清单文件格式错误 {p}: {e}") from e
    manifest = Manifest.from_dict(data)
    logger.info("已加载 %d 个依赖: %s", len(manifest), p)
    return manifest


def save_manifest(manifest: Manifest, path: str | Path) -> None:
    """按名称排序后原子写回清单文件"""
    save_json(path, manifest.to_dict())
    logger.info("清单已保存: %s", path)


def create_empty_manifest(path: str | Path) -> Manifest:
    manifest = Manifest()
    save_manifest(manifest, path)
    return manifest
