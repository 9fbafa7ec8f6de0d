"""链接描述文件解析器

解析形如下面的声明文件：

    # 注释
    shell/profile -> profile
    XDG_CONFIG_HOME/git/config -> gitconfig   # 行尾注释

左侧是相对于 home（或 XDG 基础目录）的链接路径，右侧是相对于描述文件
所在目录的目标路径。
"""

import posixpath
from pathlib import Path
from typing import List, Tuple

from dotlink.core.data_structures import LinkSettings
from dotlink.core.exceptions import LinkFileReadError, LinkSyntaxError
from dotlink.core.logger import get_logger
from dotlink.core.symlink import Symlink

logger = get_logger("dotlink.link_parser")

SEPARATOR = " -> "
COMMENT_CHAR = "#"
ESCAPE_CHAR = "\\"
CONFIG_HOME_PREFIX = "XDG_CONFIG_HOME/"
DATA_HOME_PREFIX = "XDG_DATA_HOME/"


def strip_comment(line: str) -> str:
    """去掉第一个未转义的 # 及其后的内容，并把 \\# 还原为 #"""
    chars = []
    i = 0
    while i < len(line):
        char = line[i]
        if char == ESCAPE_CHAR and i + 1 < len(line) and line[i + 1] == COMMENT_CHAR:
            chars.append(COMMENT_CHAR)
            i += 2
            continue
        if char == COMMENT_CHAR:
            break
        chars.append(char)
        i += 1
    return "".join(chars)


class LinkParser:
    """链接描述文件解析器"""

    def __init__(self, settings: LinkSettings):
        """初始化解析器

        Args:
            settings: 运行时设置，提供 home 与 XDG 基础目录
        """
        self.settings = settings

    def parse_file(self, link_file: Path) -> List[Symlink]:
        """读取并解析描述文件

        Raises:
            LinkFileReadError: 文件无法读取或不是 UTF-8
            LinkSyntaxError: 存在语法错误
        """
        link_file = Path(link_file)
        logger.debug("Parsing link file", path=str(link_file))

        try:
            text = link_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LinkFileReadError(
                f"无法读取链接描述文件: {getattr(e, 'strerror', None) or e}",
                path=link_file,
                details={"error": str(e)},
            )

        return self.parse(text, link_file)

    def parse(self, text: str, link_file: Path) -> List[Symlink]:
        """解析描述文件内容

        Args:
            text: 文件内容
            link_file: 描述文件路径，用于解析目标路径和报告错误

        Returns:
            按行序排列的 Symlink 列表

        Raises:
            LinkSyntaxError: 遇到第一处语法错误时抛出
        """
        link_file = Path(link_file)
        base_dir = link_file.parent
        symlinks: List[Symlink] = []

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = strip_comment(raw_line).strip()
            if not line:
                continue

            link_rel, target_rel = self._split_declaration(line, link_file, line_number)
            symlinks.append(Symlink(
                link_path=self._resolve_link_path(link_rel, link_file, line_number),
                target_path=base_dir / target_rel,
            ))

        logger.debug("Link file parsed", path=str(link_file), count=len(symlinks))
        return symlinks

    def _split_declaration(self, line: str, link_file: Path, line_number: int) -> Tuple[str, str]:
        """把一行声明拆成链接路径和目标路径"""
        if line.count(SEPARATOR) != 1:
            raise LinkSyntaxError(
                f"每行必须恰好包含一个 '{SEPARATOR.strip()}'",
                path=link_file,
                line_number=line_number,
                line=line,
            )

        link_rel, target_rel = (part.strip() for part in line.split(SEPARATOR))
        self._validate_relative(link_rel, "链接路径", link_file, line_number, line)
        self._validate_relative(target_rel, "目标路径", link_file, line_number, line)
        return link_rel, target_rel

    def _resolve_link_path(self, link_rel: str, link_file: Path, line_number: int) -> Path:
        """根据前缀选择基础目录"""
        if link_rel.startswith(CONFIG_HOME_PREFIX):
            base, rest = self.settings.config_home, link_rel[len(CONFIG_HOME_PREFIX):]
        elif link_rel.startswith(DATA_HOME_PREFIX):
            base, rest = self.settings.data_home, link_rel[len(DATA_HOME_PREFIX):]
        else:
            return self.settings.home / link_rel

        self._validate_relative(rest, "链接路径", link_file, line_number, link_rel)
        return base / rest

    @staticmethod
    def _validate_relative(part: str, label: str, link_file: Path, line_number: int, line: str) -> None:
        """路径必须非空、相对且不以分隔符结尾"""
        if not part:
            problem = "不能为空"
        elif posixpath.isabs(part):
            problem = "不能是绝对路径"
        elif part.endswith("/"):
            problem = "不能以 '/' 结尾"
        else:
            return

        raise LinkSyntaxError(
            f"{label}{problem}: '{part}'",
            path=link_file,
            line_number=line_number,
            line=line,
        )
