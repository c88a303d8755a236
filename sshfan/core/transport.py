"""远程 shell 传输层: 调用本机安装的 ssh 客户端执行单条命令"""

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from sshfan.core.errors import TransportLaunchError


@dataclass(frozen=True)
class TransportOutput:
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class RemoteShellTransport(ABC):
    """远程 shell 传输接口

    实现类启动不了客户端时必须抛出 TransportLaunchError,
    客户端运行后的任何退出码都通过 TransportOutput 返回。
    """

    @abstractmethod
    def run(self, target: str, options: str, command: str) -> TransportOutput:
        raise NotImplementedError


class SubprocessTransport(RemoteShellTransport):
    """通过子进程调用外部 ssh 客户端"""

    def __init__(self, executable: str = "ssh"):
        self.executable = executable
        self.logger = logging.getLogger(__name__)

    def build_argv(self, target: str, options: str, command: str) -> List[str]:
        """构造子进程参数: 选项、目标地址、远程命令"""
        try:
            option_args = shlex.split(options) if options else []
        except ValueError as e:
            raise TransportLaunchError(
                f"Invalid ssh options {options!r}: {e}", self.executable
            )
        return [self.executable, *option_args, target, command]

    def run(self, target: str, options: str, command: str) -> TransportOutput:
        argv = self.build_argv(target, options, command)
        self.logger.debug(f"Running: {shlex.join(argv)}")

        try:
            proc = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except FileNotFoundError:
            raise TransportLaunchError(
                f"ssh client not found: {self.executable}", self.executable
            )
        except PermissionError:
            raise TransportLaunchError(
                f"ssh client is not executable: {self.executable}", self.executable
            )
        except OSError as e:
            raise TransportLaunchError(
                f"Failed to start {self.executable}: {e}", self.executable
            )
        except ValueError as e:
            # 参数中含 NUL 字节等情况, 子进程无法启动
            raise TransportLaunchError(
                f"Invalid arguments for {self.executable}: {e}", self.executable
            )

        return TransportOutput(
            exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr
        )
