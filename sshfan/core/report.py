from typing import Iterable

from sshfan.core.models import InvocationResult, RunReport


def aggregate(results: Iterable[InvocationResult]) -> RunReport:
    """汇总执行结果, 全部成功时整体才算成功"""
    collected = tuple(results)
    return RunReport(
        results=collected, success=all(r.success for r in collected)
    )
