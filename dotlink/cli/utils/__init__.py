"""CLI 工具包导出"""

from .formatting import (
    OutputFormatter,
    FormatterConfig,
    Color,
    beautify_path,
)
from .project_utils import (
    RunContext,
    find_repo_root,
    load_run_context,
    streams_are_interactive,
    require_interactive_terminal,
)
from .reporter import ConsoleReporter

__all__ = [
    'OutputFormatter',
    'FormatterConfig',
    'Color',
    'beautify_path',
    'RunContext',
    'find_repo_root',
    'load_run_context',
    'streams_are_interactive',
    'require_interactive_terminal',
    'ConsoleReporter',
]
