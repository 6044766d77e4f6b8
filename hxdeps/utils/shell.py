"""子进程执行工具：统一外部命令调用

git 等外部工具均通过 CommandExecutor 协议调用，测试时可注入录制/回放实现。
调用是阻塞的且不设超时：外部进程挂起即整个运行挂起。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout + stderr，git 的部分提示写在 stdout 上"""
        return f"{self.stdout}\n{self.stderr}"


class CommandExecutor(Protocol):
    """命令执行器协议

    实现此协议即可替换底层执行方式，测试时注入 fake 实现，无需 patch subprocess。
    """

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """执行命令并返回结果（不抛出非零退出码）"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        logger.debug("exec: %s (cwd=%s)", " ".join(args), cwd or ".")
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False,
            )
        except FileNotFoundError as e:
            # 可执行文件不存在，按 127 返回，由调用方决定如何报错
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
