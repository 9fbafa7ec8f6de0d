"""已有符号链接扫描器

遍历 home 目录，找出当前指向仓库内部的符号链接。"""

import os
from pathlib import Path
from typing import Iterator

from dotlink.core.logger import get_logger
from dotlink.core.symlink import Symlink, is_within

logger = get_logger("dotlink.scanner")


class SymlinkScanner:
    """已有符号链接扫描器

    只有解析后目标位于仓库内（不含仓库根目录本身）、且自身不在仓库内的
    链接才被视为由 dotlink 管理的链接。
    """

    def __init__(self, home: Path, repo_root: Path):
        """初始化扫描器

        Args:
            home: 扫描起点
            repo_root: 仓库根目录（已解析的绝对路径）
        """
        self.home = Path(home).resolve()
        self.repo_root = Path(repo_root).resolve()

    def iter_candidates(self) -> Iterator[Path]:
        """惰性遍历 home 下的所有符号链接

        不跟随目录符号链接，不进入仓库目录，按名称排序以保证结果稳定。
        """
        for dirpath, dirnames, filenames in os.walk(self.home, onerror=self._on_walk_error):
            current = Path(dirpath)

            # 原地修改 dirnames 以控制遍历范围
            dirnames.sort()
            dirnames[:] = [
                name for name in dirnames
                if not self._is_repo_dir(current / name)
            ]

            for name in sorted(dirnames + filenames):
                entry = current / name
                if entry.is_symlink():
                    yield entry

    def find_existing(self) -> Iterator[Symlink]:
        """查找指向仓库内部的已有符号链接"""
        count = 0
        for entry in self.iter_candidates():
            if is_within(entry, self.repo_root):
                continue

            try:
                resolved = entry.resolve(strict=False)
            except (OSError, RuntimeError) as e:
                # 循环链接等无法解析的情况直接跳过
                logger.debug("Skipping unresolvable symlink", path=str(entry), error=str(e))
                continue

            if resolved == self.repo_root:
                # 指向仓库根目录本身的链接由用户维护
                continue

            symlink = Symlink(link_path=entry, target_path=resolved)
            if symlink.resolves_into(self.repo_root):
                count += 1
                yield symlink

        logger.info("Existing symlinks scanned", home=str(self.home), count=count)

    def _is_repo_dir(self, path: Path) -> bool:
        """目录本身（非链接）是否就是仓库或位于仓库内"""
        try:
            return is_within(path.resolve(), self.repo_root) and not path.is_symlink()
        except (OSError, RuntimeError):
            return False

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        """无法读取的目录跳过，不中断遍历"""
        logger.debug("Directory not readable", path=getattr(error, "filename", None), error=str(error))
