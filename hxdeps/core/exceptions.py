"""统一异常体系

所有业务异常继承 HxDepsError，按错误来源分类：
  - ConfigError:        清单字段缺失等配置错误，始终致命，不做单库隔离
  - CacheStateError:    缓存目录损坏 / 仓库无法打开，仅影响当前依赖
  - ExternalToolError:  git 等外部命令失败，携带 stderr
  - DownloadError:      Haxelib 下载 / 解压失败
  - InteractiveInputError: 交互输入无效（如空提交信息）

CLI 层据 code 输出友好提示并返回非零退出码。
"""

from __future__ import annotations


class HxDepsError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(HxDepsError):
    """清单或配置文件缺少必填字段 / 内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(HxDepsError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class LibraryNotFoundError(ValidationError):
    """指定的库不在清单中"""

    code = "LIBRARY_NOT_FOUND"


class CacheStateError(HxDepsError):
    """缓存条目损坏或仓库无法打开"""

    code = "CACHE_STATE_ERROR"


class ExternalToolError(HxDepsError):
    """外部命令执行失败"""

    code = "EXTERNAL_TOOL_ERROR"

    def __init__(self, message: str, stderr: str = "") -> None:
        if stderr:
            message = f"{message}: {stderr.strip()[:500]}"
        super().__init__(message)
        self.stderr = stderr


class DownloadError(HxDepsError):
    """归档下载、校验或解压失败"""

    code = "DOWNLOAD_ERROR"


class InteractiveInputError(HxDepsError):
    """交互输入无效"""

    code = "INTERACTIVE_INPUT_ERROR"
