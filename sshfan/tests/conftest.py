import threading
from typing import Dict, List, Optional, Tuple, Union

import pytest

from sshfan.core.errors import TransportLaunchError
from sshfan.core.models import Config
from sshfan.core.transport import RemoteShellTransport, TransportOutput


class FakeTransport(RemoteShellTransport):
    """按 (target, command) 返回预设结果的测试传输层, 记录每次调用"""

    def __init__(
        self,
        outcomes: Optional[Dict[Tuple[str, str], Union[TransportOutput, Exception]]] = None,
        default: Optional[TransportOutput] = None,
    ):
        self.outcomes = outcomes or {}
        self.default = default or TransportOutput(exit_code=0, stdout="ok\n")
        self.calls: List[Tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def run(self, target: str, options: str, command: str) -> TransportOutput:
        with self._lock:
            self.calls.append((target, options, command))
        outcome = self.outcomes.get((target, command), self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class MissingClientTransport(RemoteShellTransport):
    """模拟 ssh 客户端不存在"""

    def __init__(self):
        self.calls = 0

    def run(self, target: str, options: str, command: str) -> TransportOutput:
        self.calls += 1
        raise TransportLaunchError("ssh client not found: /nonexistent/ssh", "/nonexistent/ssh")


@pytest.fixture
def two_hosts() -> Config:
    return Config(servers=["a", "b"])


@pytest.fixture
def sample_config() -> Config:
    return Config(
        servers=["web1", "db1", "cache1"],
        ssh_options={"web1": "-p 2222", "db1": "-o ConnectTimeout=5"},
        users={"web1": "deploy", "cache1": "redis"},
    )


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def missing_client() -> MissingClientTransport:
    return MissingClientTransport()
