"""
starcup.core
~~~~~~~~~~~~

配置、日志、异常与限流等基础设施。
"""
