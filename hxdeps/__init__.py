"""hxdeps - Haxe 库依赖管理器

按 hmm.json 清单对齐本地 .haxelib/ 缓存：状态核对、安装/更新、冲突处理、版本锁定。
"""

__version__ = "0.1.0"
