"""sshfan - run shell commands on many hosts through ssh"""

__version__ = "0.3.0"

from .core.dispatcher import Dispatcher
from .core.invoker import CommandInvoker
from .core.report import aggregate
from .core.transport import RemoteShellTransport, SubprocessTransport, TransportOutput
from .core.errors import ConfigError, ConfigNotFoundError, SshFanError, TransportLaunchError
from .config.loader import find_config, load_config
from .core.models import (
    Config,
    FailurePolicy,
    Invocation,
    InvocationResult,
    InvocationStatus,
    RunReport,
)

__all__ = [
    "Dispatcher",
    "CommandInvoker",
    "aggregate",
    "RemoteShellTransport",
    "SubprocessTransport",
    "TransportOutput",
    "ConfigError",
    "ConfigNotFoundError",
    "SshFanError",
    "TransportLaunchError",
    "find_config",
    "load_config",
    "Config",
    "FailurePolicy",
    "Invocation",
    "InvocationResult",
    "InvocationStatus",
    "RunReport",
]
