"""仓库路径查找与运行环境准备

提供类似 git 的目录查找机制，从当前目录逐级向上查找包含 .dotlink.yaml
的仓库根目录，并根据全局选项组装运行所需的配置、设置和输出器。
"""

import os
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotlink.core.config_manager import ConfigManager
from dotlink.core.data_structures import LinkSettings
from dotlink.core.exceptions import RepositoryNotFoundError
from dotlink.core.logger import Logger, LoggerConfig, configure_logger
from dotlink.cli.utils.formatting import FormatterConfig, OutputFormatter

REPO_ENV = "DOTLINK_REPO"


def find_repo_root(start_path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    """查找 dotfiles 仓库根目录

    DOTLINK_REPO 环境变量优先；否则从起始目录逐级向上查找 .dotlink.yaml。

    Args:
        start_path: 起始查找目录，默认为当前工作目录
        env: 环境变量，默认为 os.environ

    Returns:
        仓库根目录路径

    Raises:
        RepositoryNotFoundError: 如果未找到仓库
    """
    env = os.environ if env is None else env
    marker = ConfigManager.CONFIG_FILENAME

    override = env.get(REPO_ENV)
    if override:
        repo_root = Path(override).expanduser().resolve()
        if not repo_root.is_dir():
            raise RepositoryNotFoundError(repo_root, marker)
        return repo_root

    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()

    while True:
        if (current / marker).is_file():
            return current

        parent = current.parent
        if parent == current:
            raise RepositoryNotFoundError(Path(start_path), marker)

        current = parent


def streams_are_interactive() -> bool:
    """stdout 和 stderr 是否都连接到终端"""
    return sys.stdout.isatty() and sys.stderr.isatty()


@dataclass
class RunContext:
    """一次命令运行所需的全部对象"""
    config_manager: ConfigManager
    settings: LinkSettings
    formatter: OutputFormatter


def load_run_context(options: Dict[str, Any]) -> RunContext:
    """根据全局选项加载配置、设置日志并生成运行时设置

    Args:
        options: click 上下文中的全局选项（repo、home、verbose、no_color）

    Raises:
        RepositoryNotFoundError: 未找到仓库
        ConfigException: 配置文件无效
    """
    repo = options.get('repo')
    repo_root = Path(repo).expanduser().resolve() if repo else find_repo_root()

    config_manager = ConfigManager(repo_root)
    config_manager.load_config()

    log_dir = config_manager.get("logging.log_dir")
    configure_logger(LoggerConfig(
        log_dir=Path(log_dir).expanduser() if log_dir else None,
        level="DEBUG" if options.get('verbose') else config_manager.get("logging.level"),
        json_output=config_manager.get("logging.json", False),
        console_output=bool(options.get('verbose')),
    ))
    Logger.set_run_id(str(uuid.uuid4()))

    home = options.get('home')
    settings = config_manager.build_settings(home=Path(home) if home else None)

    no_color = bool(options.get('no_color')) or not config_manager.get("display.colors", True)
    formatter = OutputFormatter(FormatterConfig(no_color=no_color, home=settings.home))

    return RunContext(config_manager=config_manager, settings=settings, formatter=formatter)


def require_interactive_terminal() -> Optional[str]:
    """检查终端前置条件

    Returns:
        不满足时返回错误信息，满足时返回 None
    """
    if streams_are_interactive():
        return None
    return "dotlink 需要在交互式终端中运行（stdout 和 stderr 都必须是终端）"
