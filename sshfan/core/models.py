from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class InvocationStatus(Enum):
    SUCCESS = "success"
    REMOTE_FAILURE = "remote_failure"
    LAUNCH_FAILURE = "launch_failure"


class FailurePolicy(Enum):
    CONTINUE = "continue"
    HALT = "halt"


@dataclass(frozen=True)
class Config:
    """主机配置: 服务器列表、每台主机的 ssh 选项和登录用户"""

    servers: List[str]
    ssh_options: Dict[str, str] = field(default_factory=dict)
    users: Dict[str, str] = field(default_factory=dict)

    def options_for(self, host: str) -> str:
        """主机的额外 ssh 参数, 未配置时为空字符串"""
        return self.ssh_options.get(host, "")

    def user_for(self, host: str) -> Optional[str]:
        """主机的登录用户, 未配置时交给 ssh 客户端决定"""
        return self.users.get(host) or None


@dataclass(frozen=True)
class Invocation:
    """一次 (主机, 命令) 执行单元"""

    host: str
    command: str
    options: str = ""
    user: Optional[str] = None

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host


@dataclass(frozen=True)
class InvocationResult:
    host: str
    command: str
    status: InvocationStatus
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error_message: str = ""
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == InvocationStatus.SUCCESS

    @property
    def launch_failed(self) -> bool:
        return self.status == InvocationStatus.LAUNCH_FAILURE


@dataclass(frozen=True)
class RunReport:
    """一次分发运行的完整结果, 按主机优先、命令其次的顺序排列"""

    results: Tuple[InvocationResult, ...] = ()
    success: bool = True

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[InvocationResult]:
        return iter(self.results)

    @property
    def failures(self) -> List[InvocationResult]:
        return [r for r in self.results if not r.success]

    @property
    def hosts(self) -> List[str]:
        """按首次出现顺序去重后的主机列表"""
        seen = []
        for result in self.results:
            if result.host not in seen:
                seen.append(result.host)
        return seen

    def results_for(self, host: str) -> List[InvocationResult]:
        return [r for r in self.results if r.host == host]
