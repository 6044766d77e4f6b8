"""版本控制后端

- git_cli.py: GitOperations 协议的 git 命令行实现
- remote.py:  由仓库 URL 生成 remote 名
- backend.py: clone / smart checkout / 子模块同步
"""

from hxdeps.services.vcs.backend import VcsBackend
from hxdeps.services.vcs.git_cli import GitCli
from hxdeps.services.vcs.remote import remote_name_from_url

__all__ = [
    "GitCli",
    "VcsBackend",
    "remote_name_from_url",
]
