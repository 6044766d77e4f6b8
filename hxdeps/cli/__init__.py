"""hxdeps 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import logging
from typing import Any

import click

from hxdeps import __version__
from hxdeps.core.config import DEFAULT_CONFIG_FILE, init_config
from hxdeps.core.exceptions import HxDepsError
from hxdeps.services.container import ServiceContainer, get_container, set_container
from hxdeps.utils.logger import setup_from_env

logger = logging.getLogger(__name__)


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _fail(ctx: click.Context | None = None) -> None:
    """批量命令有失败项时以退出码 1 结束"""
    (ctx or click.get_current_context()).exit(1)


class HxDepsGroup(click.Group):
    """把业务异常转换为友好提示 + 退出码 1"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except HxDepsError as e:
            logger.debug("命令失败", exc_info=True)
            raise click.ClickException(f"[{e.code}] {e}") from e


@click.group(cls=HxDepsGroup)
@click.version_option(version=__version__)
@click.option("--json", "-j", "manifest", default=None, help="清单文件路径（默认 hmm.json）")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, show_default=True, help="配置文件路径")
@click.option("-v", "--verbose", count=True, help="输出更多日志（-v INFO，-vv DEBUG）")
def main(manifest: str | None, config_path: str, verbose: int) -> None:
    """hxdeps - Haxe 项目依赖管理（hmm.json）"""
    setup_from_env(verbose)
    cfg = init_config(config_path)
    if manifest:
        cfg.manifest = manifest

    from hxdeps.cli.render import DownloadProgress
    set_container(ServiceContainer(cfg, progress=DownloadProgress()))


# 注册各领域子命令
from hxdeps.cli.cmd_check import register as _reg_check  # noqa: E402
from hxdeps.cli.cmd_lock import register as _reg_lock  # noqa: E402
from hxdeps.cli.cmd_add import register as _reg_add  # noqa: E402
from hxdeps.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_check(main)
_reg_lock(main)
_reg_add(main)
_reg_misc(main)
