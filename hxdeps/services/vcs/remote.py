"""远端命名：由仓库 URL 生成 owner/repo 形式的 remote 名"""

from __future__ import annotations

from hxdeps.core.exceptions import ValidationError

_PREFIXES = ("https://", "http://", "ssh://", "git://", "file://", "git@")


def remote_name_from_url(url: str) -> str:
    """从仓库 URL 解析 remote 名（小写 owner/repo）

    支持格式:
        https://github.com/User/Repo.git  → user/repo
        git@github.com:user/repo.git      → user/repo
        ssh://git@github.com/user/repo    → user/repo
    """
    path = url.strip()
    for prefix in _PREFIXES:
        if path.startswith(prefix):
            path = path[len(prefix):]
    # 去掉 ssh 写法中残留的 user@
    if "@" in path.split("/", 1)[0]:
        path = path.split("@", 1)[1]
    if ":" in path:
        path = path.split(":")[-1]

    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise ValidationError(f"无法从 URL 解析 owner/repo: {url}")

    owner, repo = parts[-2], parts[-1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return f"{owner.lower()}/{repo.lower()}"
