"""JSON 文件读写工具

hmm.json 清单的序列化/反序列化。写入采用原子替换，防止中途崩溃导致清单损坏。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写同目录临时文件再 rename

    异常:
        OSError: 文件写入或移动失败
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件

    异常:
        FileNotFoundError: 文件不存在
        json.JSONDecodeError: 格式错误
    """
    p = Path(path)
    try:
        with open(p, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error("解析 JSON 文件失败: %s, 错误: %s", path, e)
        raise


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文件（2 空格缩进，保持键顺序，结尾无换行）"""
    content = json.dumps(data, indent=2, ensure_ascii=False)
    atomic_write(Path(path), content)
