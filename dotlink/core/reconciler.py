"""调和调度器

按顺序执行三个阶段：删除已有链接、按描述文件创建链接、运行执行脚本。
每个阶段完整处理完自己的输入后才进入下一阶段，单个条目的失败只记录
到报告中，不会中断整个运行。
"""

from pathlib import Path
from typing import List, Optional

from dotlink.core.data_structures import LinkSettings, Phase, ReconcileEvent, ReconcileReport
from dotlink.core.exceptions import (
    ExecScriptError,
    LinkSpecException,
    LinkSyntaxError,
    SymlinkException,
)
from dotlink.core.exec_runner import ExecRunner, iter_top_level_dirs
from dotlink.core.interfaces.reporter import IReporter, NullReporter
from dotlink.core.link_parser import LinkParser
from dotlink.core.logger import OperationScope, get_logger
from dotlink.core.scanner import SymlinkScanner
from dotlink.core.symlink import LinkStatus, Symlink

logger = get_logger("dotlink.reconciler")


class Reconciler:
    """调和调度器

    拥有本次运行的 ReconcileReport，所有事件在记录的同时立即交给
    reporter 输出。
    """

    def __init__(
        self,
        settings: LinkSettings,
        reporter: Optional[IReporter] = None,
        parser: Optional[LinkParser] = None,
        scanner: Optional[SymlinkScanner] = None,
        exec_runner: Optional[ExecRunner] = None,
    ):
        self.settings = settings
        self.reporter = reporter or NullReporter()
        self.parser = parser or LinkParser(settings)
        self.scanner = scanner or SymlinkScanner(settings.home, settings.repo_root)
        self.exec_runner = exec_runner or ExecRunner(settings)

    # 入口

    def reconcile(self, run_exec: bool = True) -> ReconcileReport:
        """完整调和：删除 -> 创建 -> 执行脚本"""
        report = ReconcileReport()
        self.delete_existing(report)
        self.create_links(report)
        if run_exec:
            self.run_exec_scripts(report)

        logger.info(
            "Reconciliation finished",
            hard_errors=len(report.hard_errors),
            warnings=len(report.warnings),
        )
        return report

    def unlink_all(self) -> ReconcileReport:
        """只执行删除阶段"""
        report = ReconcileReport()
        self.delete_existing(report)
        return report

    def check(self) -> ReconcileReport:
        """只解析描述文件，不修改文件系统"""
        report = ReconcileReport()
        for link_file in self.discover_link_files():
            symlinks = self._parse_link_file(link_file, report)
            if symlinks is not None:
                self._emit(report, report.add_info(
                    Phase.CREATE, f"{len(symlinks)} 条声明", path=link_file,
                ))
        return report

    def status(self) -> List[Symlink]:
        """列出当前指向仓库的符号链接"""
        return list(self.scanner.find_existing())

    def discover_link_files(self) -> List[Path]:
        """按目录名字典序列出各顶层子目录中的链接描述文件"""
        return [
            directory / self.settings.links_filename
            for directory in iter_top_level_dirs(self.settings.repo_root)
            if (directory / self.settings.links_filename).is_file()
        ]

    # 阶段

    def delete_existing(self, report: ReconcileReport) -> None:
        """删除阶段：先完整扫描，再逐个删除"""
        with OperationScope("delete_phase", logger=logger):
            existing = list(self.scanner.find_existing())

            for symlink in existing:
                try:
                    pruned = symlink.delete(self.scanner.home)
                except SymlinkException as e:
                    self._emit(report, report.add_exception(
                        Phase.DELETE, e, path=symlink.link_path, target=symlink.target_path,
                    ))
                    continue

                self._emit(report, report.add_info(
                    Phase.DELETE, "已删除", path=symlink.link_path, target=symlink.target_path,
                ))
                for directory in pruned:
                    self._emit(report, report.add_info(Phase.DELETE, "已清理空目录", path=directory))

    def create_links(self, report: ReconcileReport) -> None:
        """创建阶段：逐个解析描述文件并创建其中的链接"""
        with OperationScope("create_phase", logger=logger):
            for link_file in self.discover_link_files():
                symlinks = self._parse_link_file(link_file, report)
                if symlinks is None:
                    continue

                for symlink in symlinks:
                    self._create_symlink(symlink, report)

    def run_exec_scripts(self, report: ReconcileReport) -> None:
        """执行阶段：按顺序逐个运行脚本"""
        with OperationScope("exec_phase", logger=logger):
            for script in self.exec_runner.discover():
                self._emit(report, report.add_info(Phase.EXEC, "运行脚本", path=script))
                try:
                    self.exec_runner.run(script)
                except ExecScriptError as e:
                    self._emit(report, report.add_exception(Phase.EXEC, e, path=script))

    # 内部方法

    def _parse_link_file(self, link_file: Path, report: ReconcileReport) -> Optional[List[Symlink]]:
        """解析单个描述文件，失败时记录硬错误并返回 None"""
        try:
            return self.parser.parse_file(link_file)
        except LinkSyntaxError as e:
            self._emit(report, report.add_exception(
                Phase.CREATE, e, path=link_file,
                message=f"第 {e.line_number} 行语法错误: {e.message}",
            ))
        except LinkSpecException as e:
            self._emit(report, report.add_exception(Phase.CREATE, e, path=link_file))
        return None

    def _create_symlink(self, symlink: Symlink, report: ReconcileReport) -> None:
        """创建单个链接并记录结果"""
        try:
            status = symlink.create()
        except SymlinkException as e:
            self._emit(report, report.add_exception(
                Phase.CREATE, e, path=symlink.link_path, target=symlink.target_path,
            ))
            return

        message = "已创建" if status == LinkStatus.CREATED else "已就位"
        self._emit(report, report.add_info(
            Phase.CREATE, message, path=symlink.link_path, target=symlink.target_path,
        ))

    def _emit(self, report: ReconcileReport, event: ReconcileEvent) -> None:
        """立即把事件交给 reporter"""
        if event.is_hard_error:
            logger.error(
                "Reconcile item failed",
                phase=event.phase.value,
                kind=event.kind.value if event.kind else None,
                path=str(event.path),
            )
        elif event.is_warning:
            logger.warning(
                "Reconcile item skipped",
                phase=event.phase.value,
                kind=event.kind.value if event.kind else None,
                path=str(event.path),
            )
        self.reporter.report(event)
