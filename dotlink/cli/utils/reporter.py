"""终端事件报告器

每个事件立即输出一行：进度写入 stdout，警告和错误写入 stderr。"""

from typing import Optional

import click

from dotlink.core.data_structures import ReconcileEvent, Severity
from dotlink.core.interfaces.reporter import IReporter
from dotlink.cli.utils.formatting import OutputFormatter


class ConsoleReporter(IReporter):
    """彩色终端报告器"""

    def __init__(self, formatter: Optional[OutputFormatter] = None):
        self.formatter = formatter or OutputFormatter()

    def format_event(self, event: ReconcileEvent) -> str:
        """把事件格式化为单行文本"""
        text = event.message
        if event.path is not None:
            text = f"{text}: {self.formatter.link(event.path, event.target)}"

        if event.severity == Severity.ERROR:
            return self.formatter.error(text)
        if event.severity == Severity.WARNING:
            return self.formatter.warning(text)
        return self.formatter.success(text)

    def report(self, event: ReconcileEvent) -> None:
        # click.echo 每次写入后都会 flush
        click.echo(self.format_event(event), err=event.severity != Severity.INFO)
