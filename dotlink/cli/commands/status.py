"""dotlink status 命令实现

列出 home 下当前指向仓库的符号链接，不修改文件系统。
"""

from typing import List

import click

from dotlink.core.exceptions import DotlinkException
from dotlink.core.reconciler import Reconciler
from dotlink.core.symlink import Symlink
from dotlink.cli.utils import RunContext, beautify_path, load_run_context


class StatusCommand:
    """链接状态查看命令处理器"""

    def __init__(self, run_context: RunContext):
        self.run_context = run_context
        self.reconciler = Reconciler(run_context.settings)

    def get_symlinks(self) -> List[Symlink]:
        """获取当前指向仓库的符号链接"""
        return self.reconciler.status()

    def format_status(self, symlinks: List[Symlink]) -> str:
        """格式化为表格"""
        settings = self.run_context.settings
        formatter = self.run_context.formatter

        if not symlinks:
            return formatter.info("没有找到指向仓库的符号链接")

        rows = [
            [
                beautify_path(symlink.link_path, settings.home),
                str(symlink.target_path.relative_to(settings.repo_root)),
            ]
            for symlink in symlinks
        ]
        return formatter.format_table(["LINK", "TARGET"], rows)

    def execute(self) -> str:
        """执行查看"""
        return self.format_status(self.get_symlinks())


@click.command(name="status")
@click.pass_context
def status(ctx: click.Context) -> None:
    """列出当前指向仓库的符号链接"""
    try:
        run_context = load_run_context(ctx.obj)
    except DotlinkException as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(StatusCommand(run_context).execute())
