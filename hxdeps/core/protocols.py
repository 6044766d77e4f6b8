"""领域协议定义

版本控制能力以 Protocol 描述，状态核对、锁定、安装和冲突处理只依赖该抽象，
默认实现是调用 git 命令行的 GitCli，也可替换为内嵌仓库库的实现而无需改动调用方。

所有 repo 参数均为工作副本目录（<cache>/<name>/git）。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass
class StashPopResult:
    """stash pop 结果：conflicted 为 True 时工作区留有冲突标记，stash 未被删除"""

    conflicted: bool = False
    message: str = ""


class GitOperations(Protocol):
    """版本控制能力接口"""

    # ---- 只读查询 ----

    def open(self, repo: Path) -> None:
        """确认 repo 是可用的工作副本，否则抛 CacheStateError"""
        ...

    def head_commit(self, repo: Path) -> str:
        """HEAD 指向的完整 commit id"""
        ...

    def short_id(self, repo: Path, commit: str) -> str:
        """仓库内无歧义的最短 commit 前缀"""
        ...

    def resolve_ref(self, repo: Path, ref: str) -> str | None:
        """先按分支/标签解析，再按（缩写）commit 解析；解析不到返回 None"""
        ...

    def is_dirty(self, repo: Path) -> bool:
        """已跟踪文件有修改或暂存区有改动（不含未跟踪文件）"""
        ...

    def current_branch(self, repo: Path) -> str | None:
        """当前分支名，detached HEAD 时返回 None"""
        ...

    def diff_stat(self, repo: Path) -> str:
        ...

    # ---- 远端 ----

    def clone(self, url: str, dest: Path, *, blobless: bool = True) -> None:
        ...

    def fetch(self, repo: Path, remote: str) -> None:
        ...

    def remote_get_url(self, repo: Path, remote: str) -> str | None:
        ...

    def remote_add(self, repo: Path, remote: str, url: str) -> None:
        ...

    def remote_set_url(self, repo: Path, remote: str, url: str) -> None:
        ...

    def remote_rename(self, repo: Path, old: str, new: str) -> None:
        ...

    # ---- 工作区 ----

    def checkout(self, repo: Path, ref: str, *, check: bool = False) -> bool:
        """检出 ref，成功返回 True；失败返回 False，check=True 时改为抛出带 stderr 的 ExternalToolError"""
        ...

    def submodule_sync(self, repo: Path) -> None:
        ...

    def stash_push(self, repo: Path, message: str) -> None:
        ...

    def stash_pop(self, repo: Path) -> StashPopResult:
        ...

    def discard_changes(self, repo: Path) -> None:
        ...

    def commit_all(self, repo: Path, message: str) -> bool:
        """暂存全部并提交；没有可提交内容时返回 False（不视为失败）"""
        ...
