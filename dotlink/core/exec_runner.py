"""执行脚本运行器

仓库顶层子目录中存在执行标记文件时，该目录下约定名称的脚本会在所有
符号链接创建完成后依次运行。"""

import subprocess
from pathlib import Path
from typing import List

from dotlink.core.data_structures import LinkSettings
from dotlink.core.exceptions import ExecScriptError, ScriptFailed, ScriptNotExecutable
from dotlink.core.logger import get_logger

logger = get_logger("dotlink.exec_runner")


def iter_top_level_dirs(repo_root: Path) -> List[Path]:
    """按名称排序列出仓库的顶层子目录"""
    return sorted(
        (child for child in Path(repo_root).iterdir() if child.is_dir()),
        key=lambda child: child.name,
    )


class ExecRunner:
    """执行脚本运行器"""

    def __init__(self, settings: LinkSettings):
        self.settings = settings

    def discover(self) -> List[Path]:
        """查找所有需要运行的脚本

        Returns:
            按目录名字典序排列的脚本路径
        """
        scripts = [
            directory / self.settings.exec_script
            for directory in iter_top_level_dirs(self.settings.repo_root)
            if (directory / self.settings.exec_marker).exists()
        ]
        logger.debug("Exec scripts discovered", count=len(scripts))
        return scripts

    def run(self, script: Path) -> int:
        """运行单个脚本，工作目录为脚本所在目录

        脚本继承当前进程的标准输入输出，运行结束前阻塞。

        Returns:
            脚本退出码（总是 0，非零时抛出 ScriptFailed）

        Raises:
            ScriptNotExecutable: 脚本没有执行权限
            ScriptFailed: 脚本以非零状态退出
            ExecScriptError: 其他启动失败
        """
        script = Path(script)
        logger.info("Running exec script", script=str(script))

        try:
            result = subprocess.run([str(script)], cwd=script.parent, check=False)
        except PermissionError as e:
            raise ScriptNotExecutable(
                "脚本不可执行",
                script=script,
                details={"error": str(e)},
            )
        except OSError as e:
            raise ExecScriptError(
                f"无法运行脚本: {e.strerror or e}",
                script=script,
                details={"error": str(e)},
            )

        if result.returncode != 0:
            logger.warning("Exec script failed", script=str(script), returncode=result.returncode)
            raise ScriptFailed(
                f"脚本退出状态为 {result.returncode}",
                script=script,
                returncode=result.returncode,
            )

        logger.info("Exec script finished", script=str(script))
        return result.returncode
