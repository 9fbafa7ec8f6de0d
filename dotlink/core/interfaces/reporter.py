"""事件报告接口定义"""

from abc import ABC, abstractmethod
from typing import List

from dotlink.core.data_structures import ReconcileEvent


class IReporter(ABC):
    """调和事件报告器接口"""

    @abstractmethod
    def report(self, event: ReconcileEvent) -> None:
        """报告单个事件，应立即输出"""
        pass


class NullReporter(IReporter):
    """丢弃所有事件的报告器"""

    def report(self, event: ReconcileEvent) -> None:
        pass


class CollectingReporter(IReporter):
    """在内存中收集事件的报告器"""

    def __init__(self):
        self.events: List[ReconcileEvent] = []

    def report(self, event: ReconcileEvent) -> None:
        self.events.append(event)
