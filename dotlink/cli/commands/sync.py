"""dotlink sync 命令实现

删除仓库已有的符号链接，按描述文件重新创建，然后运行执行脚本。
"""

from typing import Optional

import click

from dotlink.core.data_structures import ReconcileReport
from dotlink.core.exceptions import DotlinkException
from dotlink.core.logger import get_logger
from dotlink.core.reconciler import Reconciler
from dotlink.cli.utils import ConsoleReporter, RunContext, load_run_context, require_interactive_terminal

logger = get_logger("dotlink.cli.sync")


class SyncCommand:
    """完整调和命令处理器"""

    def __init__(self, run_context: RunContext, reconciler: Optional[Reconciler] = None):
        """初始化同步命令处理器

        Args:
            run_context: 已加载的运行环境
            reconciler: 调和调度器，默认使用终端报告器创建
        """
        self.run_context = run_context
        self.reconciler = reconciler or Reconciler(
            run_context.settings,
            reporter=ConsoleReporter(run_context.formatter),
        )

    def execute(self, run_exec: bool = True) -> ReconcileReport:
        """执行调和

        Args:
            run_exec: 是否运行执行脚本

        Returns:
            调和报告
        """
        logger.info(
            "Sync started",
            repo_root=str(self.run_context.settings.repo_root),
            home=str(self.run_context.settings.home),
            run_exec=run_exec,
        )
        return self.reconciler.reconcile(run_exec=run_exec)


@click.command(name="sync")
@click.option("--no-exec", is_flag=True, help="只处理符号链接，不运行执行脚本")
@click.pass_context
def sync(ctx: click.Context, no_exec: bool) -> None:
    """删除旧链接、创建新链接并运行执行脚本"""
    problem = require_interactive_terminal()
    if problem:
        click.echo(f"Error: {problem}", err=True)
        ctx.exit(1)

    try:
        run_context = load_run_context(ctx.obj)
    except DotlinkException as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    report = SyncCommand(run_context).execute(run_exec=not no_exec)
    ctx.exit(report.exit_code)
