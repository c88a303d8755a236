"""日志配置"""

import logging

HOST_FORMAT = "%(asctime)s [%(hostname)s][%(levelname)s] %(message)s"
DEFAULT_FORMAT = "%(asctime)s [%(name)s][%(levelname)s] %(message)s"

LOG_LEVELS = ["NOTSET", "DEBUG", "INFO", "WARN", "ERROR", "FATAL"]

host_logger = logging.getLogger("sshfan.host")


def _reset_handler(logger: logging.Logger, fmt: str) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def setup_logging(level: str = "WARN") -> None:
    """配置 sshfan logger 与主机 logger 的格式和级别"""
    root = logging.getLogger("sshfan")
    root.setLevel(level)
    _reset_handler(root, DEFAULT_FORMAT)

    host_logger.setLevel(level)
    # 主机日志单独格式化, 不再向上冒泡
    host_logger.propagate = False
    _reset_handler(host_logger, HOST_FORMAT)


def get_host_logger(host: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logger=host_logger, extra={"hostname": host})
