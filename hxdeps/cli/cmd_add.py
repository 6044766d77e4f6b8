"""CLI：修改清单的命令（add / haxelib / git / dev / remove）"""

from __future__ import annotations

import click

from hxdeps.cli import _svc
from hxdeps.core.manifest import load_manifest, save_manifest


def register(group: click.Group) -> None:
    group.add_command(add)
    group.add_command(haxelib)
    group.add_command(git)
    group.add_command(dev)
    group.add_command(remove)
    group.add_command(remove, name="rm")


def _add_haxelib(name: str, version: str | None) -> None:
    if not version:
        raise click.UsageError(f"请指定 {name} 的版本，例如: hxdeps haxelib {name} 1.0.0")
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    dep = svc.installer.add_haxelib(manifest, name, version)
    save_manifest(manifest, svc.config.manifest)
    click.echo(f"已添加 {dep.name}@{dep.version}")


def _add_git(name: str, url: str, ref: str | None) -> None:
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    dep = svc.installer.add_git(manifest, name, url, ref)
    save_manifest(manifest, svc.config.manifest)
    click.echo(f"已添加 {dep.name} ({dep.url} @ {dep.vcs_ref})")


@click.command()
@click.argument("name")
@click.argument("ref", required=False)
@click.option("--git", "git_url", default=None, metavar="URL", help="从 git 仓库安装")
def add(name: str, ref: str | None, git_url: str | None) -> None:
    """添加依赖：带 --git 时 REF 为 git ref，否则为 haxelib 版本"""
    if git_url:
        _add_git(name, git_url, ref)
    else:
        _add_haxelib(name, ref)


@click.command()
@click.argument("name")
@click.argument("version", required=False)
def haxelib(name: str, version: str | None) -> None:
    """从 lib.haxe.org 安装指定版本并写入清单"""
    _add_haxelib(name, version)


@click.command()
@click.argument("name")
@click.argument("url")
@click.argument("ref", required=False)
def git(name: str, url: str, ref: str | None) -> None:
    """从 git 仓库安装并写入清单（不指定 REF 时记录默认分支）"""
    _add_git(name, url, ref)


@click.command()
@click.argument("name")
@click.argument("path")
def dev(name: str, path: str) -> None:
    """登记本地开发路径依赖"""
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    dep = svc.installer.add_dev(manifest, name, path)
    save_manifest(manifest, svc.config.manifest)
    click.echo(f"已添加开发依赖 {dep.name} -> {dep.path}")


@click.command()
@click.argument("libs", nargs=-1, required=True)
def remove(libs: tuple[str, ...]) -> None:
    """从清单和 .haxelib 中移除依赖"""
    svc = _svc()
    manifest = load_manifest(svc.config.manifest)
    removed = svc.installer.remove(manifest, libs)
    save_manifest(manifest, svc.config.manifest)
    for name in removed:
        click.echo(f"已移除 {name}")
