"""dotlink 异常体系

每个异常都带有一个 ErrorKind 标签，调度器根据标签决定是警告还是硬错误。"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional


class ErrorKind(Enum):
    """错误类型标签"""
    INVALID_SYNTAX = "invalid_syntax"
    SYMLINK_EXISTS = "symlink_exists"
    TARGET_NOT_FOUND = "target_not_found"
    FILESYSTEM = "filesystem"
    EXEC_FAILED = "exec_failed"
    SCRIPT_NOT_EXECUTABLE = "script_not_executable"
    SCRIPT_EXIT_STATUS = "script_exit_status"
    CONFIG = "config"
    REPOSITORY = "repository"


class DotlinkException(Exception):
    """基础异常类"""

    kind = ErrorKind.FILESYSTEM

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


# 链接描述文件相关异常
class LinkSpecException(DotlinkException):
    """链接描述文件异常"""
    pass


class LinkSyntaxError(LinkSpecException):
    """链接声明语法错误"""

    kind = ErrorKind.INVALID_SYNTAX

    def __init__(self, message: str, path: Path, line_number: Optional[int] = None, line: str = ""):
        self.path = Path(path)
        self.line_number = line_number
        self.line = line
        super().__init__(
            message,
            details={"path": str(path), "line_number": line_number, "line": line},
        )


class LinkFileReadError(LinkSpecException):
    """链接描述文件读取失败"""

    def __init__(self, message: str, path: Path, details: Any = None):
        self.path = Path(path)
        super().__init__(message, details=details)


# 符号链接异常
class SymlinkException(DotlinkException):
    """符号链接异常"""

    def __init__(self, message: str, link_path: Path, target_path: Optional[Path] = None, details: Any = None):
        self.link_path = Path(link_path)
        self.target_path = Path(target_path) if target_path is not None else None
        super().__init__(message, details=details)


class SymlinkExists(SymlinkException):
    """链接位置已有其他文件"""
    kind = ErrorKind.SYMLINK_EXISTS


class TargetNotFound(SymlinkException):
    """链接目标不存在"""
    kind = ErrorKind.TARGET_NOT_FOUND


class SymlinkFilesystemError(SymlinkException):
    """符号链接文件系统操作失败"""
    kind = ErrorKind.FILESYSTEM


# 执行脚本异常
class ExecScriptError(DotlinkException):
    """执行脚本失败"""

    kind = ErrorKind.EXEC_FAILED

    def __init__(self, message: str, script: Path, details: Any = None):
        self.script = Path(script)
        super().__init__(message, details=details)


class ScriptNotExecutable(ExecScriptError):
    """脚本不可执行"""
    kind = ErrorKind.SCRIPT_NOT_EXECUTABLE


class ScriptFailed(ExecScriptError):
    """脚本以非零状态退出"""

    kind = ErrorKind.SCRIPT_EXIT_STATUS

    def __init__(self, message: str, script: Path, returncode: int):
        self.returncode = returncode
        super().__init__(message, script, details={"returncode": returncode})


# 配置相关异常
class ConfigException(DotlinkException):
    """配置异常"""
    kind = ErrorKind.CONFIG


class ConfigParseError(ConfigException):
    """配置解析失败"""
    pass


class ConfigIOError(ConfigException):
    """配置文件读写失败"""
    pass


class ConfigValidationError(ConfigException):
    """配置验证失败"""
    pass


class RepositoryNotFoundError(DotlinkException):
    """未找到 dotfiles 仓库"""

    kind = ErrorKind.REPOSITORY

    def __init__(self, start_path: Path, marker: str):
        self.start_path = start_path
        super().__init__(
            f"fatal: not a dotlink repository (or any of the parent directories): {marker}\n"
            f"searched from: {start_path}",
            details={"start_path": str(start_path), "marker": marker},
        )
