import json
import shutil
import threading
import time

import pytest

from sshfan.config.loader import parse_config
from sshfan.core.dispatcher import Dispatcher
from sshfan.core.models import Config, FailurePolicy, InvocationStatus
from sshfan.core.transport import SubprocessTransport, TransportOutput


def pairs(report):
    return [(r.host, r.command) for r in report]


class TestSequentialDispatch:
    """测试串行分发的顺序与失败策略"""

    def test_all_succeed(self, two_hosts, fake_transport):
        report = Dispatcher(two_hosts, fake_transport).dispatch(["echo hi"])

        assert len(report) == 2
        assert all(r.success for r in report)
        assert report.success is True
        assert pairs(report) == [("a", "echo hi"), ("b", "echo hi")]

    def test_host_major_order(self, make_transport):
        config = Config(servers=["h1", "h2", "h3"])
        transport = make_transport()
        report = Dispatcher(config, transport).dispatch(["c1", "c2"])

        expected = [
            ("h1", "c1"), ("h1", "c2"),
            ("h2", "c1"), ("h2", "c2"),
            ("h3", "c1"), ("h3", "c2"),
        ]
        assert pairs(report) == expected
        assert [(t, c) for t, _, c in transport.calls] == expected

    def test_continue_on_failure(self, two_hosts, make_transport):
        transport = make_transport({("a", "c1"): TransportOutput(exit_code=1, stderr="nope")})
        report = Dispatcher(two_hosts, transport, FailurePolicy.CONTINUE).dispatch(["c1", "c2"])

        assert pairs(report) == [("a", "c1"), ("a", "c2"), ("b", "c1"), ("b", "c2")]
        assert [r.success for r in report] == [False, True, True, True]
        assert report.success is False

    def test_halt_on_failure(self, two_hosts, make_transport):
        transport = make_transport({("a", "c1"): TransportOutput(exit_code=1)})
        report = Dispatcher(two_hosts, transport, FailurePolicy.HALT).dispatch(["c1", "c2"])

        assert pairs(report) == [("a", "c1")]
        assert report.results[0].status == InvocationStatus.REMOTE_FAILURE
        assert report.success is False
        assert len(transport.calls) == 1

    def test_halt_after_later_failure_keeps_prefix(self, two_hosts, make_transport):
        transport = make_transport({("b", "c1"): TransportOutput(exit_code=2)})
        report = Dispatcher(two_hosts, transport, FailurePolicy.HALT).dispatch(["c1", "c2"])

        assert pairs(report) == [("a", "c1"), ("a", "c2"), ("b", "c1")]
        assert report.success is False

    def test_default_policy_is_continue(self, two_hosts, fake_transport):
        assert Dispatcher(two_hosts, fake_transport).policy == FailurePolicy.CONTINUE

    def test_missing_client_fills_report(self, two_hosts, missing_client):
        report = Dispatcher(two_hosts, missing_client).dispatch(["c1", "c2"])

        assert len(report) == 4
        assert all(r.status == InvocationStatus.LAUNCH_FAILURE for r in report)
        assert not any(r.status == InvocationStatus.REMOTE_FAILURE for r in report)
        assert report.success is False

    def test_missing_client_with_halt(self, two_hosts, missing_client):
        report = Dispatcher(two_hosts, missing_client, FailurePolicy.HALT).dispatch(["c1", "c2"])
        assert len(report) == 1
        assert report.results[0].launch_failed
        assert missing_client.calls == 1

    def test_per_host_options_and_users(self, sample_config, fake_transport):
        Dispatcher(sample_config, fake_transport).dispatch(["uptime"])

        assert fake_transport.calls == [
            ("deploy@web1", "-p 2222", "uptime"),
            ("db1", "-o ConnectTimeout=5", "uptime"),
            ("redis@cache1", "", "uptime"),
        ]

    def test_duplicate_servers_run_twice(self, fake_transport):
        config = Config(servers=["a", "a"])
        report = Dispatcher(config, fake_transport).dispatch(["ls"])
        assert pairs(report) == [("a", "ls"), ("a", "ls")]

    def test_unused_entries_are_inert(self, fake_transport):
        config = Config(servers=["a"], ssh_options={"ghost": "-p 1"}, users={"ghost": "x"})
        report = Dispatcher(config, fake_transport).dispatch(["ls"])
        assert report.success
        assert fake_transport.calls == [("a", "", "ls")]

    def test_empty_servers(self, fake_transport):
        report = Dispatcher(Config(servers=[]), fake_transport).dispatch(["ls"])
        assert len(report) == 0
        assert report.success is True

    def test_empty_command_rejected_before_running(self, two_hosts, fake_transport):
        with pytest.raises(ValueError):
            Dispatcher(two_hosts, fake_transport).dispatch(["ls", ""])
        assert fake_transport.calls == []

    def test_empty_host_rejected_before_running(self, fake_transport):
        config = Config(servers=["a", ""])
        with pytest.raises(ValueError):
            Dispatcher(config, fake_transport).dispatch(["c1", "c2"])
        assert fake_transport.calls == []

    def test_progress_callback(self, two_hosts, fake_transport):
        seen = []
        dispatcher = Dispatcher(
            two_hosts,
            fake_transport,
            progress_callback=lambda completed, total, result: seen.append(
                (completed, total, result.host)
            ),
        )
        dispatcher.dispatch(["c1", "c2"])
        assert seen == [(1, 4, "a"), (2, 4, "a"), (3, 4, "b"), (4, 4, "b")]

    def test_dispatcher_can_run_twice(self, two_hosts, make_transport):
        transport = make_transport({("a", "c1"): TransportOutput(exit_code=1)})
        dispatcher = Dispatcher(two_hosts, transport, FailurePolicy.HALT)
        assert len(dispatcher.dispatch(["c1"])) == 1
        assert len(dispatcher.dispatch(["c2"])) == 2

    def test_invalid_max_concurrent(self, two_hosts, fake_transport):
        with pytest.raises(ValueError):
            Dispatcher(two_hosts, fake_transport, max_concurrent=0)


class SlowTransport:
    """让前面的主机更慢, 用于检验并行时结果仍按原顺序排列"""

    def __init__(self, delays):
        self.delays = delays
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, target, options, command):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delays.get(target, 0))
        with self._lock:
            self.active -= 1
        exit_code = 1 if command == "fail" else 0
        return TransportOutput(exit_code=exit_code, stdout=f"{target}:{command}")


class TestParallelDispatch:
    """测试按主机并行分发"""

    def test_results_keep_host_major_order(self):
        config = Config(servers=["h1", "h2", "h3"])
        transport = SlowTransport({"h1": 0.05, "h2": 0.02})
        report = Dispatcher(config, transport, max_concurrent=3).dispatch(["c1", "c2"])

        assert pairs(report) == [
            ("h1", "c1"), ("h1", "c2"),
            ("h2", "c1"), ("h2", "c2"),
            ("h3", "c1"), ("h3", "c2"),
        ]
        assert [r.stdout for r in report] == [f"{h}:{c}" for h, c in pairs(report)]
        assert report.success

    def test_concurrency_is_bounded(self):
        config = Config(servers=[f"h{i}" for i in range(6)])
        transport = SlowTransport({f"h{i}": 0.02 for i in range(6)})
        Dispatcher(config, transport, max_concurrent=2).dispatch(["c1"])
        assert transport.max_active <= 2

    def test_continue_runs_full_matrix(self):
        config = Config(servers=["h1", "h2", "h3"])
        report = Dispatcher(config, SlowTransport({}), max_concurrent=2).dispatch(["fail", "ok"])
        assert len(report) == 6
        assert report.success is False

    def test_halt_stops_launching_on_failing_host(self):
        config = Config(servers=["h1", "h2"])
        report = Dispatcher(
            config, SlowTransport({}), FailurePolicy.HALT, max_concurrent=2
        ).dispatch(["fail", "ok"])

        # 每台主机的第一条命令就失败, 之后不再启动新的执行
        assert [r.command for r in report] == ["fail"] * len(report)
        assert 1 <= len(report) <= 2
        assert report.success is False

    def test_duplicate_hosts_kept_separate(self):
        config = Config(servers=["h1", "h1"])
        report = Dispatcher(config, SlowTransport({}), max_concurrent=2).dispatch(["c1"])
        assert pairs(report) == [("h1", "c1"), ("h1", "c1")]


@pytest.mark.skipif(shutil.which("echo") is None, reason="echo not available")
def test_unlaunchable_host_stays_in_report():
    config = parse_config(json.dumps({"servers": ["a", "b\x00c"]}), "json")
    report = Dispatcher(config, SubprocessTransport(shutil.which("echo"))).dispatch(["ls"])

    assert pairs(report) == [("a", "ls"), ("b\x00c", "ls")]
    assert report.results[0].success
    assert report.results[1].status == InvocationStatus.LAUNCH_FAILURE
    assert report.results[1].exit_code is None
    assert report.success is False
