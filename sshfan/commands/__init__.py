"""命令行命令模块"""

from .config import config_command
from .execute import execute_command
from .version import version_command

__all__ = ["config_command", "execute_command", "version_command"]
