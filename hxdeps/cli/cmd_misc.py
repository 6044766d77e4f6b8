"""CLI：杂项命令（list、init、clean、to-hxml）"""

from __future__ import annotations

from pathlib import Path

import click

from hxdeps.cli import _svc
from hxdeps.cli.render import hxml_line, render_dependency
from hxdeps.core.manifest import create_empty_manifest, load_manifest


def register(group: click.Group) -> None:
    group.add_command(list_deps)
    group.add_command(list_deps, name="ls")
    group.add_command(init)
    group.add_command(clean)
    group.add_command(clean, name="cl")
    group.add_command(to_hxml)


@click.command(name="list")
@click.argument("libs", nargs=-1)
def list_deps(libs: tuple[str, ...]) -> None:
    """列出清单中的依赖（可指定库名）"""
    manifest = load_manifest(_svc().config.manifest)
    deps = manifest.select(libs)
    if not deps:
        click.echo("清单中没有依赖。")
        return
    for dep in deps:
        render_dependency(dep)


@click.command()
def init() -> None:
    """创建空的 .haxelib/ 目录和 hmm.json"""
    svc = _svc()
    svc.cache.init()
    path = Path(svc.config.manifest)
    if path.exists():
        click.echo(f"{path} 已存在，保持不变")
    else:
        create_empty_manifest(path)
        click.echo(f"已创建 {path}")
    click.echo(f"缓存目录: {svc.cache.root}")


@click.command()
def clean() -> None:
    """删除本地 .haxelib 目录（用于完整重装）"""
    cache = _svc().cache
    if cache.clean():
        click.echo(f"已删除 {cache.root}")
    else:
        click.echo(f"{cache.root} 不存在")


@click.command(name="to-hxml")
@click.argument("hxml", required=False, type=click.Path(dir_okay=False))
def to_hxml(hxml: str | None) -> None:
    """把清单导出为 -lib 参数（写入 HXML 文件或输出到 stdout）"""
    manifest = load_manifest(_svc().config.manifest)
    lines = [hxml_line(dep) for dep in manifest.sorted_dependencies()]
    content = "\n".join(lines)
    if hxml:
        Path(hxml).write_text(content + "\n", encoding="utf-8")
        click.echo(f"已写入 {hxml}")
    else:
        click.echo(content)
