"""配置文件的查找、加载与默认配置生成"""

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import click
import marshmallow
import marshmallow_dataclass
import yaml

from sshfan.core.errors import ConfigError, ConfigNotFoundError
from sshfan.core.models import Config

logger = logging.getLogger(__name__)

APP_NAME = "sshfan"
CONFIG_STEM = "sshfan"

EXAMPLE_HOST = "example.server.com"
DEFAULT_CONFIG: Dict[str, Any] = {
    "servers": [EXAMPLE_HOST],
    "ssh_options": {EXAMPLE_HOST: "-p 22"},
    "users": {EXAMPLE_HOST: "example"},
}

DEFAULT_TOML = f"""\
servers = ["{EXAMPLE_HOST}"]

[ssh_options]
"{EXAMPLE_HOST}" = "-p 22"

[users]
"{EXAMPLE_HOST}" = "example"
"""

ConfigSchema = marshmallow_dataclass.class_schema(Config)


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text)


# 格式名 -> 解析函数
PARSERS: Dict[str, Callable[[str], Any]] = {
    "toml": _parse_toml,
    "json": _parse_json,
    "yaml": _parse_yaml,
}

# 文件扩展名 -> 格式名, 顺序即查找优先级
EXTENSIONS: Dict[str, str] = {
    ".toml": "toml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def detect_format(path: Path) -> str:
    """根据扩展名判断配置格式"""
    fmt = EXTENSIONS.get(path.suffix.lower())
    if fmt is None:
        raise ConfigError(
            f"Unsupported config format '{path.suffix}', "
            f"expected one of {', '.join(EXTENSIONS)}",
            path,
        )
    return fmt


def parse_config(text: str, fmt: str, path: Optional[Path] = None) -> Config:
    """把配置文本解析并校验为 Config"""
    parser = PARSERS.get(fmt)
    if parser is None:
        raise ConfigError(f"Unknown config format '{fmt}'", path)

    try:
        raw = parser(text)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse {fmt} config: {e}", path)

    if not isinstance(raw, dict):
        raise ConfigError("Config must be a mapping at the top level", path)

    try:
        config = ConfigSchema(unknown=marshmallow.EXCLUDE).load(raw)
    except marshmallow.ValidationError as e:
        raise ConfigError(f"Invalid config: {e.messages}", path)

    blank = [i for i, host in enumerate(config.servers) if not host.strip()]
    if blank:
        raise ConfigError(f"Blank hostname at servers index {blank[0]}", path)

    # 以 - 开头的目标会被 ssh 当作选项解析
    for host in config.servers:
        target = f"{config.user_for(host)}@{host}" if config.user_for(host) else host
        if target.startswith("-"):
            raise ConfigError(f"Host target must not start with '-': {target!r}", path)

    return config


def load_config(path: Union[str, Path], fmt: Optional[str] = None) -> Config:
    """读取配置文件, fmt 为空时按扩展名选择解析器"""
    path = Path(path).expanduser()
    fmt = fmt or detect_format(path)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError("Config file not found", path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file: {e}", path)

    config = parse_config(text, fmt, path)
    logger.debug(f"Loaded {len(config.servers)} server(s) from {path}")
    return config


def user_config_dir() -> Path:
    return Path(click.get_app_dir(APP_NAME))


def find_config_in_cwd(cwd: Optional[Path] = None) -> Optional[Path]:
    cwd = cwd or Path.cwd()
    for suffix in EXTENSIONS:
        candidate = cwd / f"{CONFIG_STEM}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def find_config_in_user_dir(config_dir: Optional[Path] = None) -> Optional[Path]:
    """在用户配置目录中查找第一个 sshfan.* 配置文件"""
    config_dir = config_dir or user_config_dir()
    if not config_dir.is_dir():
        return None

    for candidate in sorted(config_dir.iterdir()):
        if (
            candidate.is_file()
            and candidate.name.startswith(f"{CONFIG_STEM}.")
            and candidate.suffix.lower() in EXTENSIONS
        ):
            return candidate
    return None


def find_config(
    cwd: Optional[Path] = None, config_dir: Optional[Path] = None
) -> Optional[Path]:
    """依次在当前目录和用户配置目录中查找配置文件"""
    return find_config_in_cwd(cwd) or find_config_in_user_dir(config_dir)


def create_default_config(path: Union[str, Path], force: bool = False) -> Path:
    """写入一份示例配置, 格式由扩展名决定"""
    path = Path(path).expanduser()
    fmt = detect_format(path)
    if path.exists() and not force:
        raise ConfigError("Config file already exists", path)

    if fmt == "toml":
        content = DEFAULT_TOML
    elif fmt == "json":
        content = json.dumps(DEFAULT_CONFIG, indent=2) + "\n"
    else:
        content = yaml.safe_dump(DEFAULT_CONFIG, default_flow_style=False)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to write config file: {e}", path)

    logger.info(f"Created default config at {path}")
    return path


def default_config_path() -> Path:
    return user_config_dir() / f"{CONFIG_STEM}.toml"


def prompt_create_default_config() -> Optional[Path]:
    """首次运行时询问是否创建默认配置, 用户拒绝时返回 None"""
    default_path = default_config_path()
    if not click.confirm(
        f"Configuration file not found. Create a default one at {default_path}?",
        default=True,
    ):
        return None
    return create_default_config(default_path)


def resolve_config_path(
    explicit: Optional[Union[str, Path]] = None, interactive: bool = True
) -> Path:
    """确定本次运行使用的配置文件路径

    -c 指定的路径优先, 其次自动查找, 最后在交互模式下提示创建。
    """
    if explicit:
        return Path(explicit).expanduser()

    path = find_config()
    if path is None and interactive:
        path = prompt_create_default_config()
    if path is None:
        raise ConfigNotFoundError()
    return path
