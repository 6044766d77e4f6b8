"""CLI：核对与安装命令"""

from __future__ import annotations

import click

from hxdeps.cli import _fail, _svc
from hxdeps.cli.render import render_install_report, render_status, render_summary
from hxdeps.core.manifest import load_manifest


def register(group: click.Group) -> None:
    group.add_command(check)
    group.add_command(check, name="ch")
    group.add_command(install)
    group.add_command(install, name="i")


@click.command()
def check() -> None:
    """核对依赖是否已按清单版本安装"""
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    result = svc.evaluator.reconcile(manifest, on_status=render_status)
    render_summary(result.installed_count, len(manifest), result.errors)
    if not result.ok:
        _fail()


@click.command()
def install() -> None:
    """安装清单中缺失或版本不一致的依赖"""
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    result = svc.evaluator.reconcile(manifest, on_status=render_status)
    pending = [s for s in result if s.needs_action]
    click.echo()
    click.echo(f"{click.style(str(len(pending)), bold=True)} 个依赖需要安装")

    report = svc.installer.install_all(pending)
    render_install_report(report)
    render_summary(result.installed_count, len(manifest), result.errors)
    if not (report.ok and result.ok):
        _fail()
