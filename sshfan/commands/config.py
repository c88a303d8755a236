"""配置管理命令"""

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sshfan.config.loader import (
    create_default_config,
    default_config_path,
    find_config,
    load_config,
    resolve_config_path,
)
from sshfan.core.errors import ConfigError

console = Console()


@click.group()
def config_command():
    """配置管理命令"""
    pass


@config_command.command("init")
@click.argument("path", type=click.Path(), required=False)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
def init_config(path, force):
    """写入示例配置文件 (默认写到用户配置目录)"""

    try:
        created = create_default_config(path or default_config_path(), force=force)
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)
    console.print(f"[green]✅ Config written to {escape(str(created))}[/green]")


@config_command.command("path")
def show_path():
    """显示将被使用的配置文件路径"""

    path = find_config()
    if path is None:
        console.print(
            f"[yellow]No config found, default location is {escape(str(default_config_path()))}[/yellow]"
        )
        sys.exit(1)
    click.echo(str(path))


@config_command.command("show")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Config file path")
def show_config(config_path):
    """以表格形式显示每台主机的生效配置"""

    try:
        path = resolve_config_path(config_path, interactive=False)
        config = load_config(path)
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)

    table = Table(title=f"Servers ({escape(str(path))})")
    table.add_column("#", style="dim")
    table.add_column("Host", style="cyan")
    table.add_column("User", style="green")
    table.add_column("SSH Options", style="yellow")

    for index, host in enumerate(config.servers, 1):
        table.add_row(
            str(index),
            escape(host),
            escape(config.user_for(host) or "(default)"),
            escape(config.options_for(host) or "-"),
        )

    console.print(table)

    # 配置中存在但不在 servers 里的主机不会生效
    unused = sorted(
        (set(config.ssh_options) | set(config.users)) - set(config.servers)
    )
    if unused:
        console.print(
            f"[yellow]Entries for hosts not in servers are ignored: {escape(', '.join(unused))}[/yellow]"
        )
