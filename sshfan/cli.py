"""主命令行接口"""

import click

from sshfan import __version__
from sshfan.commands.config import config_command
from sshfan.commands.execute import execute_command
from sshfan.commands.version import version_command
from sshfan.utils.log import LOG_LEVELS, setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    "-l",
    default="WARN",
    type=click.Choice(LOG_LEVELS),
    help="Log level",
)
@click.pass_context
def cli(ctx, log_level):
    """sshfan - run shell commands on many hosts through ssh

    Hosts, per-host ssh options and users are read from sshfan.toml
    (or .json / .yaml) in the current directory or the user config directory.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)


# 注册子命令
cli.add_command(execute_command, name="exec")
cli.add_command(config_command, name="config")
cli.add_command(version_command, name="version")


def main():
    """主入口函数"""
    cli()


if __name__ == "__main__":
    main()
