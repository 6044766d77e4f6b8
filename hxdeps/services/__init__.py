"""服务层 - Git / Haxelib 后端、冲突处理、安装编排"""
