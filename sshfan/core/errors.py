"""sshfan 异常层级"""

from pathlib import Path
from typing import Optional, Union


class SshFanError(Exception):
    """所有 sshfan 异常的基类"""

    pass


class ConfigError(SshFanError):
    """配置文件无法读取、解析或校验失败, 在任何命令执行之前抛出"""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is not None:
            return f"{self.path}: {message}"
        return message


class ConfigNotFoundError(ConfigError):
    """找不到配置文件, 用户也未创建默认配置"""

    def __init__(self, message: str = "No configuration file found"):
        super().__init__(message)


class TransportLaunchError(SshFanError):
    """本地 ssh 客户端无法启动"""

    def __init__(self, message: str, executable: Optional[str] = None):
        super().__init__(message)
        self.executable = executable
