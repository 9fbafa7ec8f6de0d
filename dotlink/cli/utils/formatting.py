"""CLI 输出格式化工具

提供颜色、消息前缀和路径美化功能。"""

from pathlib import Path
from typing import Any, List, Optional


class Color:
    """ANSI 颜色代码"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'


class FormatterConfig:
    """格式化配置中心"""

    def __init__(self, no_color: bool = False, home: Optional[Path] = None):
        """初始化配置
        Args:
            no_color: 是否禁用颜色输出
            home: 用于美化路径的 home 目录
        """
        self.no_color = no_color
        self.home = Path(home) if home else Path.home()

    def colorize(self, text: str, color: str) -> str:
        """根据配置为文本添加 ANSI 颜色"""
        if self.no_color:
            return text
        return f"{color}{text}{Color.RESET}"


def beautify_path(path: Path, home: Path) -> str:
    """把 home 下的路径显示为 ~/...

    Args:
        path: 目标路径
        home: home 目录

    Returns:
        美化后的路径字符串
    """
    path = Path(path)
    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)
    if relative == Path("."):
        return "~"
    return f"~/{relative}"


class OutputFormatter:
    """CLI 输出格式化器"""

    def __init__(self, config: Optional[FormatterConfig] = None):
        self.config = config or FormatterConfig()

    def success(self, message: str) -> str:
        """格式化成功消息"""
        prefix = self.config.colorize("+", Color.GREEN)
        return f"{prefix} {message}"

    def error(self, message: str) -> str:
        """格式化错误消息"""
        prefix = self.config.colorize("-", Color.RED)
        return f"{prefix} {message}"

    def warning(self, message: str) -> str:
        """格式化警告消息"""
        prefix = self.config.colorize("!", Color.YELLOW)
        return f"{prefix} {message}"

    def info(self, message: str) -> str:
        """格式化普通信息消息"""
        prefix = self.config.colorize("*", Color.BLUE)
        return f"{prefix} {message}"

    def path(self, path: Path) -> str:
        """美化并着色路径"""
        return self.config.colorize(beautify_path(path, self.config.home), Color.CYAN)

    def link(self, path: Path, target: Optional[Path] = None) -> str:
        """格式化 "链接 -> 目标" """
        if target is None:
            return self.path(path)
        return f"{self.path(path)} -> {self.path(target)}"

    def format_table(self, headers: List[str], rows: List[List[Any]]) -> str:
        """格式化对齐的表格字符串"""
        if not headers:
            return ""

        column_widths = []
        for i, header in enumerate(headers):
            max_width = len(str(header))
            for row in rows:
                if i < len(row):
                    max_width = max(max_width, len(str(row[i])))
            column_widths.append(max_width)

        lines = []
        header_row = "  ".join(str(h).ljust(w) for h, w in zip(headers, column_widths))
        lines.append(self.config.colorize(header_row.rstrip(), Color.BOLD))
        lines.append("  ".join("-" * w for w in column_widths))

        for row in rows:
            data_row = "  ".join(str(cell).ljust(w) for cell, w in zip(row, column_widths))
            lines.append(data_row.rstrip())

        return "\n".join(lines)
