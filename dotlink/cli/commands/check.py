"""dotlink check 命令实现

只解析各目录的链接描述文件并报告语法错误，不修改文件系统。
"""

import click

from dotlink.core.exceptions import DotlinkException
from dotlink.core.reconciler import Reconciler
from dotlink.cli.utils import ConsoleReporter, load_run_context


@click.command(name="check")
@click.pass_context
def check(ctx: click.Context) -> None:
    """检查链接描述文件的语法"""
    try:
        run_context = load_run_context(ctx.obj)
    except DotlinkException as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    reconciler = Reconciler(run_context.settings, reporter=ConsoleReporter(run_context.formatter))
    report = reconciler.check()
    ctx.exit(report.exit_code)
