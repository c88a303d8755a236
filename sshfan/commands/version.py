import shutil
import subprocess
import sys

import click
from rich import box
from rich.console import Console
from rich.table import Table

from sshfan import __version__


def get_ssh_version(executable: str = "ssh") -> str:
    """读取本机 ssh 客户端版本, ssh -V 输出在 stderr"""
    path = shutil.which(executable)
    if path is None:
        return "not found"
    try:
        proc = subprocess.run([path, "-V"], capture_output=True, text=True)
    except OSError as e:
        return f"unavailable ({e})"
    return (proc.stderr or proc.stdout).strip() or "unknown"


def print_version():
    click.echo(
        "\n".join(
            [
                f"Version: {__version__}",
                f"Running-Interpreter-Version: Python {' '.join(sys.version.split())}",
                f"Running-Platform: {sys.platform}",
                f"SSH client: {get_ssh_version()}",
            ]
        )
    )


def print_version_by_rich():
    """
    使用 Rich 库输出版本信息
    """
    console = Console()

    table = Table(show_header=False, box=box.ROUNDED, padding=(0, 1))
    table.add_column("Key", style="cyan bold", width=20)
    table.add_column("Value", style="white")

    table.add_row("Program", "sshfan", style="on blue")
    table.add_row("Version", __version__, style="bright_green")
    table.add_row("Python", " ".join(sys.version.split("\n")))
    table.add_row("Platform", sys.platform)
    table.add_row("SSH client", get_ssh_version())

    console.print(table)


@click.command()
@click.option("--simple", "-s", is_flag=True, default=False, help="Plain text output")
def version_command(simple):
    """
    打印版本信息
    """
    if simple:
        print_version()
    else:
        print_version_by_rich()
