import time
import logging

from sshfan.core.errors import TransportLaunchError
from sshfan.core.models import Invocation, InvocationResult, InvocationStatus
from sshfan.core.transport import RemoteShellTransport
from sshfan.utils.log import get_host_logger


class CommandInvoker:
    """在单台主机上执行单条命令, 每次调用只启动一个子进程且不重试"""

    def __init__(self, transport: RemoteShellTransport):
        self.transport = transport
        self.logger = logging.getLogger(__name__)

    def invoke(self, invocation: Invocation) -> InvocationResult:
        if not invocation.host:
            raise ValueError("host must not be empty")
        if not invocation.command:
            raise ValueError("command must not be empty")

        host_log = get_host_logger(invocation.host)
        host_log.info(f"$ {invocation.command}")

        start_time = time.time()
        started = time.monotonic()
        try:
            output = self.transport.run(
                invocation.target, invocation.options, invocation.command
            )
        except TransportLaunchError as e:
            host_log.error(f"Launch failed: {e}")
            return InvocationResult(
                host=invocation.host,
                command=invocation.command,
                status=InvocationStatus.LAUNCH_FAILURE,
                error_message=str(e),
                start_time=start_time,
                end_time=time.time(),
                duration=time.monotonic() - started,
            )

        duration = time.monotonic() - started
        if output.exit_code == 0:
            status = InvocationStatus.SUCCESS
            error_message = ""
            host_log.info(f"OK ({duration:.2f}s)")
        else:
            status = InvocationStatus.REMOTE_FAILURE
            error_message = f"Command exited with code {output.exit_code}"
            host_log.warning(
                f"{error_message} ({duration:.2f}s): {output.stderr.strip()[:200]}"
            )

        return InvocationResult(
            host=invocation.host,
            command=invocation.command,
            status=status,
            exit_code=output.exit_code,
            stdout=output.stdout,
            stderr=output.stderr,
            error_message=error_message,
            start_time=start_time,
            end_time=time.time(),
            duration=duration,
        )
