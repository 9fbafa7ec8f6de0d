"""符号链接实体

一个 Symlink 表示“链接位置 -> 目标”的一对绝对路径，负责创建自身、
删除自身并清理因删除而变空的父目录。
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from dotlink.core.exceptions import (
    SymlinkExists,
    SymlinkFilesystemError,
    TargetNotFound,
)
from dotlink.core.logger import get_logger

logger = get_logger("dotlink.symlink")


class LinkStatus(Enum):
    """创建操作的结果"""
    CREATED = "created"
    ALREADY_LINKED = "already_linked"


def is_within(path: Path, root: Path) -> bool:
    """判断 path 是否位于 root 之内（含 root 本身）"""
    try:
        Path(path).relative_to(root)
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class Symlink:
    """符号链接

    Attributes:
        link_path: 符号链接所在位置（绝对路径）
        target_path: 链接应指向的目标（绝对路径）
    """
    link_path: Path
    target_path: Path

    def create(self) -> LinkStatus:
        """创建符号链接

        链接内容使用相对于链接父目录的相对路径，仓库整体搬迁后链接仍然有效。

        Returns:
            LinkStatus.CREATED 或 LinkStatus.ALREADY_LINKED

        Raises:
            TargetNotFound: 目标不存在
            SymlinkExists: 链接位置已有指向别处的文件
            SymlinkFilesystemError: 其他文件系统错误
        """
        link = self.link_path
        target = self.target_path

        if not target.exists():
            raise TargetNotFound(
                "链接目标不存在",
                link_path=link,
                target_path=target,
            )

        try:
            link.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SymlinkFilesystemError(
                f"无法创建父目录: {e.strerror or e}",
                link_path=link,
                target_path=target,
                details={"error": str(e)},
            )

        try:
            relative_target = os.path.relpath(target.resolve(), link.parent.resolve())
            os.symlink(relative_target, link)
        except FileExistsError:
            if self._points_to_target():
                logger.debug("Symlink already in place", link=str(link), target=str(target))
                return LinkStatus.ALREADY_LINKED
            raise SymlinkExists(
                "链接位置已存在其他文件",
                link_path=link,
                target_path=target,
            )
        except OSError as e:
            raise SymlinkFilesystemError(
                f"创建符号链接失败: {e.strerror or e}",
                link_path=link,
                target_path=target,
                details={"error": str(e)},
            )

        logger.info("Symlink created", link=str(link), target=str(target))
        return LinkStatus.CREATED

    def delete(self, home: Path) -> List[Path]:
        """删除符号链接，并向上清理变空的父目录

        清理在 home 处停止，home 本身永远不会被删除；遇到非空或无法删除的
        目录时同样停止。

        Args:
            home: 清理的边界目录

        Returns:
            被删除的父目录列表（由近及远）

        Raises:
            SymlinkFilesystemError: 删除链接本身失败
        """
        link = self.link_path

        try:
            link.unlink()
        except OSError as e:
            raise SymlinkFilesystemError(
                f"删除符号链接失败: {e.strerror or e}",
                link_path=link,
                target_path=self.target_path,
                details={"error": str(e)},
            )

        logger.info("Symlink removed", link=str(link))
        return self._prune_empty_parents(Path(home))

    def resolves_into(self, root: Path) -> bool:
        """链接目标是否位于 root 之内"""
        return is_within(self.target_path, root)

    def _points_to_target(self) -> bool:
        """已有条目是否为解析到目标的符号链接

        硬链接或目标本身虽然是同一个文件，但不算已就位。
        """
        if not self.link_path.is_symlink():
            return False
        try:
            return os.path.samefile(self.link_path, self.target_path)
        except OSError:
            return False

    def _prune_empty_parents(self, home: Path) -> List[Path]:
        """逐级删除空的父目录"""
        pruned: List[Path] = []
        current = self.link_path.parent

        while current != home and is_within(current, home):
            try:
                current.rmdir()
            except OSError:
                # 目录非空或无法删除，正常结束
                break
            pruned.append(current)
            logger.debug("Pruned empty directory", path=str(current))
            current = current.parent

        return pruned

    def __str__(self) -> str:
        return f"{self.link_path} -> {self.target_path}"
