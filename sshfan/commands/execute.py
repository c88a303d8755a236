"""命令执行命令"""

import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape

from sshfan.config.loader import PARSERS, load_config, resolve_config_path
from sshfan.core.dispatcher import Dispatcher
from sshfan.core.errors import ConfigError
from sshfan.core.models import Config, FailurePolicy, RunReport
from sshfan.core.transport import SubprocessTransport
from sshfan.ui.formatter import OUTPUT_FORMATS, OutputFormatter, write_log
from sshfan.ui.progress import ProgressDisplay, create_progress_callback

err_console = Console(stderr=True)


@click.command()
@click.argument("commands", nargs=-1, required=True)
@click.option("--config", "-c", "config_path", type=click.Path(), help="Config file path")
@click.option(
    "--format",
    "config_format",
    type=click.Choice(sorted(PARSERS)),
    help="Force the config parser instead of detecting it from the file extension",
)
@click.option("--stop-on-error", is_flag=True, help="Stop at the first failed command")
@click.option(
    "--max-concurrent",
    "-j",
    default=1,
    type=click.IntRange(min=1),
    help="Number of hosts to run in parallel",
)
@click.option("--ssh", "ssh_executable", default="ssh", help="ssh client executable")
@click.option(
    "--output",
    "-o",
    type=click.Choice(OUTPUT_FORMATS),
    default="default",
    help="Output format",
)
@click.option("--template", "-T", help="Jinja2 template for template output")
@click.option("--output-file", "-f", type=click.Path(), help="Write formatted output to a file")
@click.option(
    "--log-file",
    type=click.Path(),
    default="output.log",
    show_default=True,
    help="Plain text run log",
)
@click.option("--no-log-file", is_flag=True, help="Do not write the run log")
@click.option("--quiet", "-q", is_flag=True, help="Hide live progress")
def execute_command(
    commands,
    config_path,
    config_format,
    stop_on_error,
    max_concurrent,
    ssh_executable,
    output,
    template,
    output_file,
    log_file,
    no_log_file,
    quiet,
):
    """在配置的所有主机上依次执行 COMMANDS"""

    if any(not command.strip() for command in commands):
        raise click.BadParameter("commands must not be empty", param_hint="COMMANDS")

    try:
        path = resolve_config_path(config_path, interactive=sys.stdin.isatty())
        config = load_config(path, config_format)
    except ConfigError as e:
        err_console.print(f"[red]❌ {escape(str(e))}[/red]", highlight=False)
        sys.exit(1)

    if not config.servers:
        click.echo(f"No servers configured in {path}")
        return

    # 结构化输出时关闭进度显示, 避免混入标准输出
    if output != "default":
        quiet = True

    report = _run(
        config,
        list(commands),
        FailurePolicy.HALT if stop_on_error else FailurePolicy.CONTINUE,
        max_concurrent,
        ssh_executable,
        quiet,
    )

    formatter = OutputFormatter(output, template)
    if output_file and output != "none":
        try:
            file_path = Path(output_file)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(formatter.format_report(report), encoding="utf-8")
        except OSError as e:
            err_console.print(
                f"[red]❌ Failed to write output file: {escape(str(e))}[/red]",
                highlight=False,
            )
            sys.exit(1)
        if not quiet:
            click.echo(f"Results saved to {output_file}")
    elif output in ["json", "yaml", "template"]:
        click.echo(formatter.format_report(report))
    else:
        formatter.print_report(report, "Command Execution Results")

    if not no_log_file:
        try:
            write_log(report, log_file)
        except OSError as e:
            err_console.print(
                f"[red]❌ Failed to write run log: {escape(str(e))}[/red]",
                highlight=False,
            )
            sys.exit(1)

    sys.exit(0 if report.success else 1)


def _run(
    config: Config,
    commands: List[str],
    policy: FailurePolicy,
    max_concurrent: int,
    ssh_executable: str,
    quiet: bool,
) -> RunReport:
    display: Optional[ProgressDisplay] = None
    progress_callback = None
    if not quiet:
        display = ProgressDisplay(show_details=True)
        progress_callback = create_progress_callback(display)
        display.start_execution(len(config.servers), commands)

    dispatcher = Dispatcher(
        config,
        transport=SubprocessTransport(ssh_executable),
        policy=policy,
        max_concurrent=max_concurrent,
        progress_callback=progress_callback,
    )
    report = dispatcher.dispatch(commands)

    if display:
        display.finish_execution()
    return report
