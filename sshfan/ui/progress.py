import time
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..core.models import InvocationResult, InvocationStatus


@dataclass
class ProgressStats:
    total: int = 0
    completed: int = 0
    success: int = 0
    remote_failure: int = 0
    launch_failure: int = 0


class ProgressDisplay:
    """执行过程中的实时进度显示"""

    def __init__(self, show_details: bool = True, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)
        self.show_details = show_details
        self.stats = ProgressStats()
        self.start_time = time.time()

    def start_execution(self, total_hosts: int, commands: List[str]):
        """开始执行显示"""
        self.stats.total = total_hosts * len(commands)
        self.start_time = time.time()

        command_lines = "\n".join(f"  $ {escape(c)}" for c in commands)
        self.console.print(
            Panel(
                f"[bold blue]Running {len(commands)} command(s) on {total_hosts} hosts[/bold blue]\n"
                f"[yellow]{command_lines}[/yellow]",
                title="sshfan",
                border_style="blue",
            )
        )

    def update_progress(self, completed: int, total: int, result: InvocationResult):
        """更新进度"""
        self.stats.completed = completed

        if result.status == InvocationStatus.SUCCESS:
            self.stats.success += 1
        elif result.status == InvocationStatus.REMOTE_FAILURE:
            self.stats.remote_failure += 1
        else:
            self.stats.launch_failure += 1

        self._display_result(result)

        progress_percent = (completed / total) * 100 if total else 100.0
        elapsed = time.time() - self.start_time
        self.console.print(
            f"Progress: [{progress_percent:5.1f}%] "
            f"({completed}/{total}) "
            f"✓{self.stats.success} "
            f"✗{self.stats.remote_failure} "
            f"⛔{self.stats.launch_failure} "
            f"⚡{elapsed:.1f}s",
            markup=False,
        )

    def _display_result(self, result: InvocationResult):
        status_icons = {
            InvocationStatus.SUCCESS: ("✅", "green"),
            InvocationStatus.REMOTE_FAILURE: ("❌", "red"),
            InvocationStatus.LAUNCH_FAILURE: ("⛔", "yellow"),
        }
        icon, color = status_icons[result.status]

        self.console.print(
            f"{icon} [{color}]{escape(result.host)}[/{color}] "
            f"$ {escape(result.command)} ({result.duration:.2f}s)"
        )

        if self.show_details and not result.success:
            if result.stderr:
                self.console.print(f"   [red]Error: {escape(result.stderr.strip())}[/red]")
            if result.error_message:
                self.console.print(f"   [red]Message: {escape(result.error_message)}[/red]")

    def finish_execution(self):
        elapsed = time.time() - self.start_time
        skipped = self.stats.total - self.stats.completed
        line = (
            f"Completed {self.stats.completed}/{self.stats.total} in {elapsed:.2f}s"
        )
        if skipped:
            line += f", {skipped} skipped"
        self.console.print(f"[bold]{line}[/bold]")


def create_progress_callback(display: ProgressDisplay):
    """创建进度回调函数"""

    def callback(completed: int, total: int, result: InvocationResult):
        display.update_progress(completed, total, result)

    return callback
