"""dotlink 核心模块接口定义"""

from .reporter import IReporter, NullReporter, CollectingReporter

__all__ = [
    'IReporter',
    'NullReporter',
    'CollectingReporter',
]
