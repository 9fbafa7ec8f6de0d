"""dotlink 命令集合"""

from .check import check
from .status import status
from .sync import sync
from .unlink import unlink

__all__ = ['check', 'status', 'sync', 'unlink']
