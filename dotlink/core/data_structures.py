"""dotlink 核心数据结构定义

定义调和过程中使用的事件、报告和运行时设置。"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotlink.core.exceptions import DotlinkException, ErrorKind


class Severity(Enum):
    """事件严重级别"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Phase(Enum):
    """调和阶段"""
    DELETE = "delete"
    CREATE = "create"
    EXEC = "exec"


# 只有这两类错误被视为警告，其余均为硬错误
SEVERITY_BY_KIND: Dict[ErrorKind, Severity] = {
    ErrorKind.SYMLINK_EXISTS: Severity.WARNING,
    ErrorKind.SCRIPT_EXIT_STATUS: Severity.WARNING,
}


def severity_for(kind: ErrorKind) -> Severity:
    """根据错误类型返回严重级别"""
    return SEVERITY_BY_KIND.get(kind, Severity.ERROR)


@dataclass(frozen=True)
class ReconcileEvent:
    """调和过程中的单个事件"""
    phase: Phase
    severity: Severity
    message: str
    path: Optional[Path] = None
    target: Optional[Path] = None
    kind: Optional[ErrorKind] = None

    @property
    def is_hard_error(self) -> bool:
        """是否为硬错误"""
        return self.severity == Severity.ERROR

    @property
    def is_warning(self) -> bool:
        """是否为警告"""
        return self.severity == Severity.WARNING

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            'phase': self.phase.value,
            'severity': self.severity.value,
            'message': self.message,
            'path': str(self.path) if self.path else None,
            'target': str(self.target) if self.target else None,
            'kind': self.kind.value if self.kind else None,
        }


@dataclass
class ReconcileReport:
    """调和结果累加器

    由调度器独占，记录每个阶段产生的全部事件。
    """
    events: List[ReconcileEvent] = field(default_factory=list)

    def add(self, event: ReconcileEvent) -> ReconcileEvent:
        """追加事件"""
        self.events.append(event)
        return event

    def add_info(
        self,
        phase: Phase,
        message: str,
        path: Optional[Path] = None,
        target: Optional[Path] = None,
    ) -> ReconcileEvent:
        """追加进度事件"""
        return self.add(ReconcileEvent(phase, Severity.INFO, message, path=path, target=target))

    def add_exception(
        self,
        phase: Phase,
        error: DotlinkException,
        path: Optional[Path] = None,
        target: Optional[Path] = None,
        message: Optional[str] = None,
    ) -> ReconcileEvent:
        """将异常转换为事件，严重级别由其 ErrorKind 决定"""
        return self.add(ReconcileEvent(
            phase,
            severity_for(error.kind),
            message or error.message,
            path=path,
            target=target,
            kind=error.kind,
        ))

    @property
    def hard_errors(self) -> List[ReconcileEvent]:
        """所有硬错误"""
        return [e for e in self.events if e.is_hard_error]

    @property
    def warnings(self) -> List[ReconcileEvent]:
        """所有警告"""
        return [e for e in self.events if e.is_warning]

    @property
    def ok(self) -> bool:
        """是否没有任何硬错误"""
        return not self.hard_errors

    @property
    def exit_code(self) -> int:
        """进程退出码"""
        return 0 if self.ok else 1

    def for_phase(self, phase: Phase) -> List[ReconcileEvent]:
        """获取指定阶段的事件"""
        return [e for e in self.events if e.phase == phase]

    def kinds(self) -> List[ErrorKind]:
        """按顺序列出所有出现的错误类型"""
        return [e.kind for e in self.events if e.kind is not None]


@dataclass(frozen=True)
class LinkSettings:
    """解析后的运行时设置"""
    repo_root: Path
    home: Path
    config_home: Path
    data_home: Path
    links_filename: str = "links"
    exec_marker: str = "exec"
    exec_script: str = "setup"
