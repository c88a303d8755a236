"""输出格式化模块"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from jinja2 import Template
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.models import InvocationResult, InvocationStatus, RunReport

OUTPUT_FORMATS = ["default", "json", "yaml", "template", "none"]

DEFAULT_TEMPLATE = """\
[{{ status }}] {{ host }} $ {{ command }}
{% if stdout %}
{{ stdout.rstrip() }}
{% endif %}
{% if stderr %}
stderr: {{ stderr.rstrip() }}
{% endif %}
{% if error_message %}
error: {{ error_message }}
{% endif %}
"""


def result_to_dict(result: InvocationResult) -> Dict[str, Any]:
    item = result.__dict__.copy()
    # 转换枚举值
    for key, value in item.items():
        if hasattr(value, "value"):
            item[key] = value.value
    return item


class OutputFormatter:
    """运行报告格式化器"""

    def __init__(
        self,
        format_type: str = "default",
        template: Optional[str] = None,
        console: Optional[Console] = None,
    ):
        self.format_type = format_type.lower()
        self.template = template or DEFAULT_TEMPLATE
        self.console = console or Console()

    def format_report(self, report: RunReport) -> str:
        """格式化运行报告"""
        if self.format_type == "none":
            return ""
        elif self.format_type == "json":
            return self._format_json(report)
        elif self.format_type == "yaml":
            return self._format_yaml(report)
        elif self.format_type == "template":
            return self._format_template(report)
        else:
            return format_plain(report)

    def _report_data(self, report: RunReport) -> Dict[str, Any]:
        return {
            "success": report.success,
            "results": [result_to_dict(r) for r in report.results],
        }

    def _format_json(self, report: RunReport) -> str:
        return json.dumps(self._report_data(report), indent=2, ensure_ascii=False)

    def _format_yaml(self, report: RunReport) -> str:
        return yaml.dump(
            self._report_data(report), indent=2, allow_unicode=True, sort_keys=False
        )

    def _format_template(self, report: RunReport) -> str:
        template = Template(self.template, lstrip_blocks=True, trim_blocks=True)
        return "\n".join(template.render(result_to_dict(r)) for r in report.results)

    def print_report(self, report: RunReport, title: Optional[str] = None):
        """使用Rich打印运行报告"""
        if self.format_type == "none":
            return
        if self.format_type != "default":
            self.console.print(
                self.format_report(report),
                markup=False,
                highlight=False,
                emoji=False,
                soft_wrap=True,
            )
            return

        if title:
            self.console.rule(f"[bold]{title}[/bold]")
        for result in report.results:
            self._print_result(result)
        self._print_summary(report)

    def _print_result(self, result: InvocationResult):
        if result.status == InvocationStatus.SUCCESS:
            border_style = "green"
            status_text = "[green]✅ SUCCESS[/green]"
        elif result.status == InvocationStatus.REMOTE_FAILURE:
            border_style = "red"
            status_text = "[red]❌ FAILED[/red]"
        else:
            border_style = "yellow"
            status_text = "[yellow]⛔ LAUNCH FAILED[/yellow]"

        content_lines = [f"{status_text} ({result.duration:.2f}s)"]

        if result.exit_code is not None:
            content_lines.append(f"Exit Code: {result.exit_code}")

        if result.stdout:
            content_lines.append("\n[bold]STDOUT:[/bold]")
            content_lines.append(escape(result.stdout.rstrip()))

        if result.stderr:
            content_lines.append("\n[bold red]STDERR:[/bold red]")
            content_lines.append(f"[red]{escape(result.stderr.rstrip())}[/red]")

        if result.error_message:
            content_lines.append(
                f"\n[bold red]ERROR:[/bold red] [red]{escape(result.error_message)}[/red]"
            )

        self.console.print(
            Panel(
                "\n".join(content_lines),
                title=f"[bold]{escape(result.host)}[/bold] $ {escape(result.command)}",
                title_align="left",
                border_style=border_style,
                expand=False,
            )
        )

    def _print_summary(self, report: RunReport):
        table = Table(title="Run Summary")
        table.add_column("Host", style="cyan")
        table.add_column("Succeeded", style="green")
        table.add_column("Failed", style="red")
        table.add_column("Time", style="yellow")

        for host in report.hosts:
            results = report.results_for(host)
            ok = len([r for r in results if r.success])
            table.add_row(
                escape(host),
                str(ok),
                str(len(results) - ok),
                f"{sum(r.duration for r in results):.2f}s",
            )

        self.console.print(table)
        if report.success:
            self.console.print("[bold green]All commands succeeded[/bold green]")
        else:
            self.console.print(
                f"[bold red]{len(report.failures)} of {len(report)} invocation(s) failed[/bold red]"
            )


def format_plain(report: RunReport) -> str:
    """纯文本格式, 用于默认输出文件和运行日志"""
    output_lines: List[str] = []

    for result in report.results:
        if result.success:
            output_lines.append(
                f"Output from {result.host} $ {result.command}:\n"
                f"{result.stdout}(Duration: {result.duration:.2f}s)"
            )
        else:
            if result.stdout:
                output_lines.append(
                    f"Output from {result.host} $ {result.command}:\n{result.stdout.rstrip()}"
                )
            if result.stderr.strip():
                error = f"{result.stderr.rstrip()} [{result.error_message}]"
            else:
                error = result.error_message
            output_lines.append(
                f"Error from {result.host} $ {result.command}: {error} "
                f"(Duration: {result.duration:.2f}s)"
            )

    return "\n".join(output_lines)


def write_log(report: RunReport, path: Union[str, Path]) -> Path:
    """把运行报告写入日志文件"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(format_plain(report))
        f.write("\n")
    return path
