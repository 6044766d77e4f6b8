"""领域核心 - 清单模型、缓存布局、状态核对、版本锁定"""
