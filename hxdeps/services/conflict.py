"""git 冲突处理

工作区有未提交修改（可能同时检出了错误的 commit）时，向用户展示当前/期望版本和
改动摘要，按选择执行:
  - stash:   暂存修改 → 更新 → 恢复（恢复产生冲突只警告，不算失败）
  - discard: reset --hard + clean -fd → 更新
  - commit:  输入提交信息（不能为空）→ add -A → commit（无可提交内容视为成功）→ 更新
  - skip:    不做任何处理

交互以策略对象注入（ConflictPrompt），CI / 测试可使用 ScriptedPrompt 或 SkipPrompt。
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import click

from hxdeps.core.exceptions import InteractiveInputError
from hxdeps.services.results import InstallAction, InstallResult

if TYPE_CHECKING:
    from hxdeps.core.models import InstallStatus
    from hxdeps.core.protocols import GitOperations
    from hxdeps.services.vcs.backend import VcsBackend

logger = logging.getLogger(__name__)


class ConflictChoice(str, Enum):
    STASH = "stash"
    DISCARD = "discard"
    COMMIT = "commit"
    SKIP = "skip"


_CHOICES = {
    "s": ConflictChoice.STASH,
    "stash": ConflictChoice.STASH,
    "d": ConflictChoice.DISCARD,
    "discard": ConflictChoice.DISCARD,
    "c": ConflictChoice.COMMIT,
    "commit": ConflictChoice.COMMIT,
    "k": ConflictChoice.SKIP,
    "skip": ConflictChoice.SKIP,
}


def parse_choice(text: str) -> ConflictChoice:
    """解析用户输入，无法识别时按 skip 处理（不重复询问）"""
    return _CHOICES.get(text.strip().lower(), ConflictChoice.SKIP)


class ConflictPrompt(Protocol):
    """冲突交互策略"""

    def choose(self, status: InstallStatus, diff: str) -> ConflictChoice:
        ...

    def commit_message(self, status: InstallStatus) -> str:
        ...


class ConsolePrompt:
    """终端交互（阻塞读取输入）"""

    _RULE = "─" * 53

    def choose(self, status: InstallStatus, diff: str) -> ConflictChoice:
        dim = {"fg": "bright_black"}
        click.echo()
        click.secho("┌" + self._RULE, **dim)
        click.echo(
            click.style("│ ", **dim)
            + click.style(status.name, fg="yellow", bold=True)
            + click.style(" 有未提交的修改", fg="yellow")
        )
        click.secho("├" + self._RULE, **dim)
        click.echo(click.style("│ ", **dim) + "当前: " + click.style(status.installed or "-", fg="red"))
        click.echo(click.style("│ ", **dim) + "期望: " + click.style(status.wanted or "-", fg="green"))
        lines = [line for line in diff.splitlines() if line.strip()]
        if lines:
            click.secho("├" + self._RULE, **dim)
            click.echo(click.style("│ ", **dim) + "改动文件:")
            for line in lines:
                click.echo(click.style("│   ", **dim) + click.style(line, **dim))
        click.secho("├" + self._RULE, **dim)
        click.echo(click.style("│ ", **dim) + "如何处理?")
        click.echo(click.style("│  ", **dim) + click.style("[s] Stash", fg="cyan", bold=True) + "   - 暂存修改，更新后恢复")
        click.echo(click.style("│  ", **dim) + click.style("[d] Discard", fg="red", bold=True) + " - 丢弃全部本地修改后更新")
        click.echo(click.style("│  ", **dim) + click.style("[c] Commit", fg="green", bold=True) + "  - 先提交修改再更新")
        click.echo(click.style("│  ", **dim) + click.style("[k] Skip", fg="yellow", bold=True) + "    - 暂时跳过该库")
        click.secho("└" + self._RULE, **dim)

        answer = click.prompt("选择 (s/d/c/k)", default="", show_default=False)
        choice = parse_choice(answer)
        if choice is ConflictChoice.SKIP and answer.strip().lower() not in ("k", "skip"):
            click.echo(f"无效选择，跳过 {status.name}")
        return choice

    def commit_message(self, status: InstallStatus) -> str:
        click.echo()
        return click.prompt("提交信息", default="", show_default=False).strip()


class ScriptedPrompt:
    """预置答案的非交互策略（测试 / CI）；答案耗尽后一律 skip"""

    def __init__(self, choices: Iterable[str | ConflictChoice] = (), messages: Iterable[str] = ()) -> None:
        self._choices = deque(
            c if isinstance(c, ConflictChoice) else parse_choice(c) for c in choices
        )
        self._messages = deque(messages)

    def choose(self, status: InstallStatus, diff: str) -> ConflictChoice:
        return self._choices.popleft() if self._choices else ConflictChoice.SKIP

    def commit_message(self, status: InstallStatus) -> str:
        return self._messages.popleft().strip() if self._messages else ""


class SkipPrompt:
    """始终跳过冲突"""

    def choose(self, status: InstallStatus, diff: str) -> ConflictChoice:
        return ConflictChoice.SKIP

    def commit_message(self, status: InstallStatus) -> str:
        return ""


class ConflictResolver:
    """冲突处理状态机：每个冲突依赖交互一次"""

    def __init__(self, vcs: VcsBackend, git: GitOperations, prompt: ConflictPrompt | None = None) -> None:
        self.vcs = vcs
        self.git = git
        self.prompt = prompt or ConsolePrompt()

    def resolve(self, status: InstallStatus) -> InstallResult:
        """处理单个冲突依赖

        Raises:
            InteractiveInputError: 选择 commit 但提交信息为空
            ExternalToolError: stash / reset / commit / 更新失败
        """
        dep = status.dependency
        repo = self.vcs.repo_path(dep)
        choice = self.prompt.choose(status, self.vcs.diff_summary(dep))
        logger.info("%s: 冲突处理选择 %s", dep.name, choice.value)

        if choice is ConflictChoice.SKIP:
            return InstallResult(dep.name, InstallAction.SKIPPED, "已跳过")

        warnings: list[str] = []
        if choice is ConflictChoice.STASH:
            self.git.stash_push(repo, f"hxdeps: auto-stash before updating to {dep.vcs_ref or 'latest'}")
            try:
                self.vcs.install_or_update(dep)
            finally:
                popped = self.git.stash_pop(repo)
            if popped.conflicted:
                msg = (
                    f"恢复 stash 时产生合并冲突，请在 {repo} 中手动解决，"
                    f"然后执行: git -C {repo} stash drop"
                )
                logger.warning("%s: %s", dep.name, msg)
                warnings.append(msg)
        elif choice is ConflictChoice.DISCARD:
            self.git.discard_changes(repo)
            self.vcs.install_or_update(dep)
        elif choice is ConflictChoice.COMMIT:
            message = self.prompt.commit_message(status)
            if not message:
                raise InteractiveInputError(f"{dep.name}: 提交信息不能为空")
            if not self.git.commit_all(repo, message):
                logger.info("%s: 没有可提交的内容（可能已暂存）", dep.name)
            self.vcs.install_or_update(dep)

        return InstallResult(dep.name, InstallAction.RESOLVED, f"{choice.value} 后已更新", warnings)
