"""dotlink unlink 命令实现

删除所有指向仓库的符号链接，并清理变空的父目录。
"""

import click

from dotlink.core.exceptions import DotlinkException
from dotlink.core.reconciler import Reconciler
from dotlink.cli.utils import ConsoleReporter, load_run_context, require_interactive_terminal


@click.command(name="unlink")
@click.pass_context
def unlink(ctx: click.Context) -> None:
    """删除所有指向仓库的符号链接"""
    problem = require_interactive_terminal()
    if problem:
        click.echo(f"Error: {problem}", err=True)
        ctx.exit(1)

    try:
        run_context = load_run_context(ctx.obj)
    except DotlinkException as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    reconciler = Reconciler(run_context.settings, reporter=ConsoleReporter(run_context.formatter))
    report = reconciler.unlink_all()
    ctx.exit(report.exit_code)
