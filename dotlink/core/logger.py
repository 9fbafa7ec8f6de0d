"""结构化日志系统

基于 structlog 的结构化日志记录器，支持运行 ID 追踪和阶段耗时统计。
诊断日志与面向用户的进度输出相互独立，默认不输出到终端。"""

import logging
import time
import traceback
import contextvars
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pathlib import Path

import structlog


# 全局链路上下文变量
_run_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    'run_id', default=""
)
_operation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    'operation_id', default=""
)

ROOT_LOGGER_NAME = "dotlink"
LOG_FILENAME = "dotlink.log"


class LoggerConfig:
    """日志配置类"""

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        level: str = "WARNING",
        json_output: bool = False,
        console_output: bool = False,
    ):
        """初始化日志配置
        Args:
            log_dir: 日志目录，如果为 None 则不写入文件
            level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
            json_output: 是否输出 JSON 格式
            console_output: 是否输出到控制台（stderr）
        """
        self.log_dir = log_dir
        self.level = level.upper()
        self.json_output = json_output
        self.console_output = console_output


class Logger:
    """结构化日志记录器"""

    def __init__(self, name: str = ROOT_LOGGER_NAME, config: Optional[LoggerConfig] = None):
        """初始化日志记录器

        Args:
            name: 日志记录器名称
            config: 日志配置对象
        """
        self.name = name
        self.config = config or LoggerConfig()
        self._setup_structlog()
        self.logger = structlog.get_logger(name)

    def _setup_structlog(self) -> None:
        """配置 structlog 处理器链"""
        # 没有处理器时静默，避免 logging.lastResort 写入 stderr
        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if not package_logger.handlers:
            package_logger.addHandler(logging.NullHandler())

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer()
                if self.config.json_output
                else structlog.dev.ConsoleRenderer(colors=False),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

    def debug(self, event: str, **kwargs) -> None:
        """记录 DEBUG 级别日志"""
        self._log("debug", event, **kwargs)

    def info(self, event: str, **kwargs) -> None:
        """记录 INFO 级别日志"""
        self._log("info", event, **kwargs)

    def warning(self, event: str, **kwargs) -> None:
        """记录 WARNING 级别日志"""
        self._log("warning", event, **kwargs)

    def error(self, event: str, **kwargs) -> None:
        """记录 ERROR 级别日志"""
        self._log("error", event, **kwargs)

    def _log(self, level: str, event: str, **kwargs) -> None:
        """内部日志记录方法"""
        context = self._build_context(**kwargs)
        getattr(self.logger, level)(event, **context)

    def _build_context(self, **kwargs) -> Dict[str, Any]:
        """构建日志上下文，附加时间戳和链路信息"""
        context = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        }

        run_id = _run_id.get()
        if run_id:
            context['run_id'] = run_id

        operation_id = _operation_id.get()
        if operation_id:
            context['operation_id'] = operation_id

        context.update(kwargs)
        return context

    @staticmethod
    def set_run_id(run_id: str) -> None:
        """设置本次运行的 ID"""
        _run_id.set(run_id)

    @staticmethod
    def set_operation_id(operation_id: str) -> None:
        """设置操作 ID"""
        _operation_id.set(operation_id)

    @staticmethod
    def clear_context() -> None:
        """清除所有链路上下文"""
        _run_id.set("")
        _operation_id.set("")


class OperationTracer:
    """操作追踪器

    记录操作的开始、结束和异常事件，并统计耗时。
    """

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or get_logger()
        self.operations: Dict[str, Dict[str, Any]] = {}

    def start_operation(
        self,
        operation_name: str,
        operation_id: Optional[str] = None,
        **context
    ) -> str:
        """记录操作开始

        Returns:
            生成或提供的操作 ID
        """
        op_id = operation_id or str(uuid.uuid4())

        self.operations[op_id] = {
            'name': operation_name,
            'start_time': time.time(),
            'context': context,
            'status': 'running',
        }

        self.logger.info(f'{operation_name}_started', operation_id=op_id, **context)
        return op_id

    def end_operation(
        self,
        operation_id: str,
        status: str = "success",
        **context
    ) -> Dict[str, Any]:
        """记录操作结束

        Returns:
            包含操作统计的字典
        """
        if operation_id not in self.operations:
            raise ValueError(f"Operation {operation_id} not found")

        op_data = self.operations[operation_id]
        duration_ms = int((time.time() - op_data['start_time']) * 1000)

        op_data['status'] = status
        op_data['duration_ms'] = duration_ms

        event_name = f"{op_data['name']}_{'succeeded' if status == 'success' else 'failed'}"
        self.logger.info(
            event_name,
            operation_id=operation_id,
            duration_ms=duration_ms,
            status=status,
            **context,
        )

        return {
            'operation_id': operation_id,
            'duration_ms': duration_ms,
            'status': status,
        }

    def record_exception(self, operation_id: str, exception: BaseException, **context) -> None:
        """记录操作中的异常"""
        if operation_id not in self.operations:
            raise ValueError(f"Operation {operation_id} not found")

        self.logger.error(
            f"{self.operations[operation_id]['name']}_error",
            operation_id=operation_id,
            error_type=type(exception).__name__,
            error_message=str(exception),
            traceback=traceback.format_exc(),
            **context,
        )


class OperationScope:
    """操作范围上下文管理器

    自动处理操作的开始、结束和异常记录。用于包裹每个调和阶段。
    """

    def __init__(
        self,
        operation_name: str,
        context: Optional[Dict[str, Any]] = None,
        logger: Optional[Logger] = None,
        tracer: Optional[OperationTracer] = None,
        operation_id: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.context = context or {}
        self.logger = logger or get_logger()
        self.tracer = tracer or OperationTracer(self.logger)
        self.operation_id = operation_id or str(uuid.uuid4())
        self._token = None

    def __enter__(self) -> 'OperationScope':
        self._token = _operation_id.set(self.operation_id)
        self.tracer.start_operation(
            self.operation_name,
            operation_id=self.operation_id,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.tracer.record_exception(self.operation_id, exc_val, **self.context)
            self.tracer.end_operation(
                self.operation_id,
                status="failure",
                error_type=exc_type.__name__,
                **self.context
            )
        else:
            self.tracer.end_operation(self.operation_id, status="success", **self.context)

        # 恢复外层操作的 ID
        _operation_id.reset(self._token)
        return False


# 全局日志配置和按名称缓存的记录器
_config: Optional[LoggerConfig] = None
_loggers: Dict[str, Logger] = {}


def get_logger(name: str = ROOT_LOGGER_NAME) -> Logger:
    """获取日志记录器实例

    Args:
        name: 日志记录器名称，约定为 "dotlink.<模块>"

    Returns:
        日志记录器实例
    """
    if name not in _loggers:
        _loggers[name] = Logger(name, _config)
    return _loggers[name]


def configure_logger(config: LoggerConfig) -> None:
    """配置全局日志

    会移除之前安装的处理器，并让已缓存的记录器使用新配置。
    """
    global _config
    _config = config

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    handlers = []

    # 添加控制台处理器
    if config.console_output:
        handlers.append(logging.StreamHandler())

    # 添加文件处理器
    if config.log_dir:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / LOG_FILENAME, encoding="utf-8"))

    package_logger.setLevel(getattr(logging, config.level, logging.WARNING))
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)

    root = Logger(ROOT_LOGGER_NAME, config)
    _loggers.clear()
    _loggers[ROOT_LOGGER_NAME] = root
