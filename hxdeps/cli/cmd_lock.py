"""CLI：版本锁定命令"""

from __future__ import annotations

import click

from hxdeps.cli import _fail, _svc
from hxdeps.cli.render import render_lock_check, render_lock_outcome
from hxdeps.core.lock import check_locked
from hxdeps.core.manifest import load_manifest


def register(group: click.Group) -> None:
    group.add_command(lock)


@click.command()
@click.argument("libs", nargs=-1)
@click.option("--long-id", "-l", is_flag=True, help="git 依赖使用完整 commit id")
@click.option("--check", "check_only", is_flag=True, help="只检查是否全部已锁定，不修改清单")
def lock(libs: tuple[str, ...], long_id: bool, check_only: bool) -> None:
    """把依赖锁定到当前已安装的版本 / commit"""
    svc = _svc()
    path = svc.config.manifest

    if check_only:
        report = check_locked(load_manifest(path))
        render_lock_check(report)
        if not report.ok:
            _fail()
        return

    _, report = svc.lock.lock_file(path, libs, long_id or svc.config.long_id)
    for outcome in report.outcomes:
        render_lock_outcome(outcome)
    click.echo()
    click.echo(f"已锁定 {report.locked}, 跳过 {report.skipped}, 失败 {report.errors}")
    if report.persist:
        click.echo(f"已写回 {path}")
    if not report.ok:
        _fail()
