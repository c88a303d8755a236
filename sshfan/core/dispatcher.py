import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from sshfan.core.invoker import CommandInvoker
from sshfan.core.models import (
    Config,
    FailurePolicy,
    Invocation,
    InvocationResult,
    RunReport,
)
from sshfan.core.report import aggregate
from sshfan.core.transport import RemoteShellTransport, SubprocessTransport

# (completed, total, result) -> None
ProgressCallback = Callable[[int, int, InvocationResult], None]


class Dispatcher:
    """在所有主机上按顺序执行命令列表

    外层按 servers 顺序遍历主机, 内层按给定顺序遍历命令。
    max_concurrent > 1 时按主机并行, 同一主机上的命令仍然串行,
    结果最终按主机优先的原始顺序返回。
    """

    def __init__(
        self,
        config: Config,
        transport: Optional[RemoteShellTransport] = None,
        policy: FailurePolicy = FailurePolicy.CONTINUE,
        max_concurrent: int = 1,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.config = config
        self.servers = tuple(config.servers)
        self.invoker = CommandInvoker(transport or SubprocessTransport())
        self.policy = policy
        self.max_concurrent = max_concurrent
        self.progress_callback = progress_callback
        self.logger = logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._completed = 0
        self._halted = threading.Event()

    def dispatch(self, commands: Iterable[str]) -> RunReport:
        """执行 主机 x 命令 矩阵并返回运行报告"""
        commands = list(commands)
        if any(not command for command in commands):
            raise ValueError("commands must not contain empty strings")
        if any(not host for host in self.servers):
            raise ValueError("servers must not contain empty hostnames")

        self._completed = 0
        self._halted.clear()
        total = len(self.servers) * len(commands)
        self.logger.info(
            f"Dispatching {len(commands)} command(s) to {len(self.servers)} host(s) "
            f"(policy={self.policy.value}, max_concurrent={self.max_concurrent})"
        )

        if self.max_concurrent == 1 or len(self.servers) <= 1:
            results = self._run_sequential(commands, total)
        else:
            results = self._run_parallel(commands, total)

        report = aggregate(results)
        self.logger.info(
            f"Finished {len(report)}/{total} invocation(s), "
            f"{len(report.failures)} failed"
        )
        return report

    def _run_sequential(self, commands: List[str], total: int) -> List[InvocationResult]:
        results = []
        for host in self.servers:
            if self._halted.is_set():
                break
            results.extend(self._run_host(host, commands, total))
        return results

    def _run_parallel(self, commands: List[str], total: int) -> List[InvocationResult]:
        with ThreadPoolExecutor(max_workers=self.max_concurrent) as executor:
            # 按 servers 中的位置收集, 重复主机互不覆盖
            futures = [
                executor.submit(self._run_host, host, commands, total)
                for host in self.servers
            ]
            per_host = [future.result() for future in futures]

        return [result for host_results in per_host for result in host_results]

    def _run_host(
        self, host: str, commands: List[str], total: int
    ) -> List[InvocationResult]:
        """在单台主机上依次执行全部命令"""
        options = self.config.options_for(host)
        user = self.config.user_for(host)
        results = []

        for command in commands:
            # 遇错停止时, 已观察到失败后不再启动新的执行
            if self._halted.is_set():
                break

            invocation = Invocation(host=host, command=command, options=options, user=user)
            result = self.invoker.invoke(invocation)
            results.append(result)
            self._notify(total, result)

            if not result.success and self.policy == FailurePolicy.HALT:
                self.logger.warning(
                    f"Stopping after failure on {host}: {result.error_message}"
                )
                self._halted.set()
                break

        return results

    def _notify(self, total: int, result: InvocationResult) -> None:
        with self._lock:
            self._completed += 1
            completed = self._completed
            if self.progress_callback:
                self.progress_callback(completed, total, result)
