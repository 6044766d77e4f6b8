"""终端渲染：状态、锁定结果、下载进度

核对器和引擎只返回数据，所有终端输出集中在这里。
"""

from __future__ import annotations

import click

from hxdeps.core.lock import LockCheckReport, LockOutcome, LockResultKind
from hxdeps.core.models import Dependency, InstallState, InstallStatus
from hxdeps.services.results import InstallAction, InstallReport, InstallResult

_HEADLINES = {
    InstallState.MISSING: "未安装",
    InstallState.MISSING_GIT: "未克隆 / 未安装（git）",
    InstallState.OUTDATED: "版本不一致",
    InstallState.CONFLICT: "有未处理的问题",
}


def render_status(status: InstallStatus) -> None:
    """输出单个依赖的核对结果"""
    name = status.name
    state = status.state

    if state is InstallState.ALREADY_INSTALLED:
        click.echo(
            click.style(name, fg="green", bold=True)
            + click.style(f" [{status.kind.value}]: ", fg="green", dim=True)
            + click.style(status.wanted or status.installed or "-", fg="green", dim=True)
            + click.style(" ✔", fg="bright_green")
        )
        return

    if state is InstallState.NOT_LOCKED:
        click.echo(
            click.style(name, fg="yellow", bold=True)
            + click.style(' 未锁定到具体版本（清单中 "version": null）', fg="yellow")
        )
        click.echo(
            click.style("执行 `hxdeps lock` 锁定为: ", fg="bright_yellow")
            + click.style(status.installed or "-", fg="yellow")
        )
        return

    click.echo(click.style(name, fg="red", bold=True) + click.style(" " + _HEADLINES[state], fg="red"))
    if state is InstallState.CONFLICT:
        if status.installed:
            click.echo("当前: " + click.style(status.installed, fg="red"))
        if status.wanted:
            click.echo("期望: " + click.style(status.wanted, fg="red"))
        return
    click.echo(
        "期望: " + click.style(status.wanted or "-", fg="red")
        + " | 已安装: " + click.style(status.installed or "无", fg="red")
    )


def render_summary(installed: int, total: int, errors: dict[str, str]) -> None:
    click.echo()
    click.echo(f"{click.style(str(installed), bold=True)} / {click.style(str(total), bold=True)} 个依赖已就绪")
    for name, message in errors.items():
        click.secho(f"  {name}: {message}", fg="red", err=True)


_ACTION_COLORS = {
    InstallAction.INSTALLED: "green",
    InstallAction.UPDATED: "green",
    InstallAction.RESOLVED: "cyan",
    InstallAction.SKIPPED: "yellow",
    InstallAction.UNSUPPORTED: "yellow",
    InstallAction.FAILED: "red",
}


def render_install_result(result: InstallResult) -> None:
    if result.action is InstallAction.NONE:
        return
    color = _ACTION_COLORS.get(result.action)
    line = click.style(f"{result.name}: {result.action.value}", fg=color, bold=True)
    if result.message:
        line += f" ({result.message})"
    click.echo(line)
    for warning in result.warnings:
        click.secho(f"  ! {warning}", fg="yellow")


def render_install_report(report: InstallReport) -> None:
    for result in report.results:
        render_install_result(result)
    click.echo()
    click.echo(
        f"安装 {report.count(InstallAction.INSTALLED)}, "
        f"更新 {report.count(InstallAction.UPDATED)}, "
        f"冲突已处理 {report.count(InstallAction.RESOLVED)}, "
        f"跳过 {report.count(InstallAction.SKIPPED)}, "
        f"失败 {len(report.failures)}"
    )


def render_lock_outcome(outcome: LockOutcome) -> None:
    tag = click.style(f"[{outcome.kind.value}]", dim=True)
    if outcome.result is LockResultKind.LOCKED:
        click.echo(f"{click.style(outcome.name, fg='green', bold=True)} {tag} 已锁定为 {outcome.value}")
    elif outcome.result is LockResultKind.ALREADY_LOCKED:
        click.echo(f"{click.style(outcome.name, bold=True)} {tag} 已是 {outcome.value}")
    elif outcome.result is LockResultKind.SKIPPED:
        click.echo(f"{click.style(outcome.name, fg='yellow', bold=True)} {tag} 跳过: {outcome.reason}")
    else:
        click.echo(f"{click.style(outcome.name, fg='red', bold=True)} {tag} 失败: {outcome.reason}")


def render_lock_check(report: LockCheckReport) -> None:
    for entry in report.unlocked:
        click.echo(
            click.style(entry.name, fg="red", bold=True)
            + click.style(f" [{entry.kind.value}]", fg="red", dim=True)
            + " 未锁定: " + click.style(entry.reason, fg="red")
        )
    click.echo()
    click.echo(
        f"{click.style(str(report.locked_count), bold=True)} / "
        f"{click.style(str(report.total), bold=True)} 个依赖已锁定"
    )
    if not report.ok:
        click.echo()
        click.echo("执行 " + click.style("hxdeps lock", fg="yellow", bold=True) + " 锁定全部依赖")


def render_dependency(dep: Dependency) -> None:
    """list 命令的单行输出"""
    detail = dep.version or dep.vcs_ref or dep.path or "-"
    line = f"{click.style(dep.name, bold=True)} [{dep.kind.value}] {detail}"
    if dep.url:
        line += click.style(f"  {dep.url}", dim=True)
    click.echo(line)


def hxml_line(dep: Dependency) -> str:
    """to-hxml 单行：锁定了版本的 haxelib 写 name:version，其余只写名称"""
    if dep.version:
        return f"-lib {dep.name}:{dep.version}"
    return f"-lib {dep.name}"


class DownloadProgress:
    """下载进度回调：每次下载开始时新建一个 click 进度条"""

    def __init__(self, label: str = "下载") -> None:
        self.label = label
        self._bar = None
        self._last = 0

    def __call__(self, downloaded: int, total: int) -> None:
        if self._bar is None or downloaded < self._last:
            self.finish()
            self._bar = click.progressbar(length=total, label=self.label, file=click.get_text_stream("stderr"))
            self._last = 0
        self._bar.update(downloaded - self._last)
        self._last = downloaded
        if downloaded >= total:
            self.finish()

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.render_finish()
            self._bar = None
            self._last = 0
