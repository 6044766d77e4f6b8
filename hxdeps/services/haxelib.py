"""Haxelib 归档安装后端

职责:
- 生成 lib.haxe.org 下载地址: https://<host>/p/<name>/<version>/download
- 流式下载到单个临时文件，逐块回调进度
- 按 Content-Length 校验大小
- 解压到 <cache>/<name>/<version>/，成功后写 .current
"""

from __future__ import annotations

import logging
import tempfile
import urllib.error
import urllib.request
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hxdeps import __version__
from hxdeps.core.exceptions import DownloadError
from hxdeps.utils.net import validate_url_scheme

if TYPE_CHECKING:
    from hxdeps.core.cache import CacheLayout
    from hxdeps.core.models import Dependency

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class HaxelibRegistry:
    """lib.haxe.org 归档下载与解压"""

    def __init__(
        self,
        cache: CacheLayout,
        host: str = "lib.haxe.org",
        *,
        timeout: int = 60,
        chunk_size: int = 64 * 1024,
        temp_dir: str | Path | None = None,
        opener: Callable[..., Any] | None = None,
    ) -> None:
        self.cache = cache
        self.host = host
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self._opener = opener or urllib.request.urlopen

    def download_url(self, dep: Dependency) -> str:
        return dep.download_url(self.host)

    def install(self, dep: Dependency, progress: ProgressCallback | None = None) -> Path:
        """下载并解压指定版本，返回解压目录"""
        version = dep.require_version()
        url = self.download_url(dep)
        validate_url_scheme(url, context=f"haxelib {dep.name}")

        tmp_file = self.temp_dir / f"{dep.escaped_name}.zip"
        logger.info("下载 %s@%s: %s", dep.name, version, url)
        try:
            size = self._download(url, tmp_file, progress)
            logger.info("下载完成 %s@%s (%d 字节)", dep.name, version, size)
            dest = self._extract(dep, tmp_file)
        finally:
            tmp_file.unlink(missing_ok=True)

        self.cache.write_current(dep.name, version)
        logger.info("已安装 %s@%s -> %s", dep.name, version, dest)
        return dest

    def _download(self, url: str, dest: Path, progress: ProgressCallback | None) -> int:
        req = urllib.request.Request(url, headers={"User-Agent": f"hxdeps/{__version__}"})
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self._opener(req, timeout=self.timeout) as resp:  # nosec B310
                length = resp.headers.get("Content-Length")
                if length is None:
                    raise DownloadError(f"服务器未返回 Content-Length: {url}")
                try:
                    total = int(length)
                except ValueError:
                    raise DownloadError(f"Content-Length 无效 '{length}': {url}") from None

                downloaded = 0
                with open(dest, "wb") as f:
                    while True:
                        chunk = resp.read(self.chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded = min(downloaded + len(chunk), total)
                        if progress is not None:
                            progress(downloaded, total)
        except urllib.error.HTTPError as e:
            raise DownloadError(f"下载失败: HTTP {e.code} {url}") from e
        except (urllib.error.URLError, OSError) as e:
            raise DownloadError(f"下载失败: {url} - {e}") from e

        actual = dest.stat().st_size
        if actual != total:
            raise DownloadError(f"下载不完整: 期望 {total} 字节, 实际 {actual} 字节")
        return actual

    def _extract(self, dep: Dependency, archive: Path) -> Path:
        target = self.cache.version_dir(dep.name, dep.require_version())
        target.mkdir(parents=True, exist_ok=True)
        root = target.resolve()
        try:
            with zipfile.ZipFile(archive) as zf:
                for member in zf.namelist():
                    resolved = (root / member).resolve()
                    if resolved != root and root not in resolved.parents:
                        raise DownloadError(f"归档包含越界路径: {member}")
                zf.extractall(target)
        except zipfile.BadZipFile as e:
            raise DownloadError(f"解压失败，文件可能已损坏: {archive}") from e
        return target
