"""dotlink CLI 主入口"""

import sys

import click

from dotlink import __version__
from dotlink.cli.commands import check, status, sync, unlink


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--verbose',
    is_flag=True,
    help='详细日志输出（调试用）'
)
@click.option(
    '--no-color',
    is_flag=True,
    help='关闭彩色输出'
)
@click.option(
    '--repo',
    type=click.Path(file_okay=False, exists=True),
    help='dotfiles 仓库根目录（默认向上查找 .dotlink.yaml）'
)
@click.option(
    '--home',
    type=click.Path(file_okay=False),
    help='home 目录（默认为当前用户的 home）'
)
@click.pass_context
def cli(ctx, verbose, no_color, repo, home):
    """dotlink - 声明式 dotfiles 符号链接管理工具

    核心命令：
      sync [--no-exec]        删除旧链接、创建新链接并运行执行脚本
      unlink                  删除所有指向仓库的符号链接
      status                  列出当前指向仓库的符号链接
      check                   检查链接描述文件的语法

    全局选项:
      --help                  显示帮助信息
      --version               显示版本号
      --verbose               详细日志输出（调试用）
      --no-color              关闭彩色输出
      --repo PATH             指定仓库根目录
      --home PATH             指定 home 目录

    示例:
      dotlink sync
      dotlink --no-color sync --no-exec
      dotlink status
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['no_color'] = no_color
    ctx.obj['repo'] = repo
    ctx.obj['home'] = home


# 注册命令
cli.add_command(sync)
cli.add_command(unlink)
cli.add_command(status)
cli.add_command(check)


def main():
    """CLI 入口点，处理中断和全局异常"""
    try:
        exit_code = cli(standalone_mode=False)
    except click.exceptions.Abort:
        # click 已把 KeyboardInterrupt 转换为 Abort
        click.echo("Interrupted", err=True)
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    sys.exit(exit_code if isinstance(exit_code, int) else 0)


if __name__ == "__main__":
    main()
