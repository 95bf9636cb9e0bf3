"""Configuration management for context-refs"""

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)


def get_config_dir(override: str | None = None) -> Path:
    """Directory holding config.yaml, created on first use

    An explicit ``override`` wins over CONTEXT_REFS_CONFIG_DIR, which wins
    over ~/.context-refs. A leading ``~`` is expanded in both.
    """
    location = override or os.getenv("CONTEXT_REFS_CONFIG_DIR")
    config_dir = Path(location).expanduser() if location else Path.home() / ".context-refs"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class GatewayConfig(BaseModel):
    """How to reach the MCP gateway that lists files, tables and tools"""

    transport: Literal["stdio", "http"] = "http"
    url: str = Field(default_factory=lambda: os.getenv("CONTEXT_REFS_GATEWAY_URL", "http://localhost:8081/mcp"))
    headers: dict[str, str] = Field(default_factory=dict)
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    init_timeout_seconds: float = 10.0


class ServerBadgeConfig(BaseModel):
    """Extra server badge: the colour and the tools it owns"""

    color: str = "#6f42c1"
    tools: list[str] = Field(default_factory=list)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, value, default)
        return default


class ContextRefsConfig(BaseModel):
    """Main context-refs configuration"""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)

    # Files and tables expire; tools stay loaded until refreshed
    cache_ttl_seconds: float = Field(default_factory=lambda: _env_float("CONTEXT_REFS_CACHE_TTL", 30.0), gt=0)
    fetch_timeout_seconds: float | None = Field(
        default_factory=lambda: _env_float("CONTEXT_REFS_FETCH_TIMEOUT", 30.0),
        description="Upper bound for one candidate fetch; None waits forever",
    )

    # Directory walk
    max_depth: int = Field(default=3, ge=1)
    skip_dirs: list[str] = Field(
        default_factory=lambda: ["node_modules", "dist", "build", ".git", ".vscode", "__pycache__", ".venv"]
    )
    allowed_dotfiles: list[str] = Field(default_factory=lambda: [".env", ".gitignore"])

    server_badges: dict[str, ServerBadgeConfig] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, config_file: Path | None = None, config_dir: Path | None = None) -> "ContextRefsConfig":
        """Load configuration from environment variables and a YAML file

        Args:
            config_file: Optional path to the YAML config file
            config_dir: Optional config directory (defaults to get_config_dir())
        """
        if config_file is None:
            if config_dir is None:
                config_dir = get_config_dir()
            config_file = config_dir / "config.yaml"

        return cls(**load_config_from_yaml(config_file))


def load_config_from_yaml(path: Path) -> dict:
    """Load raw settings from a YAML file

    Environment variables in gateway env values and headers are expanded.
    Invalid files are reported and ignored.

    Args:
        path: Path to config.yaml

    Returns:
        Dictionary of validated settings, empty when the file is missing or invalid
    """
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)

        if not data:
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring %s: top level must be a mapping", path)
            return {}

        gateway = data.get("gateway")
        if isinstance(gateway, dict):
            for key in ("env", "headers"):
                if isinstance(gateway.get(key), dict):
                    gateway[key] = {name: os.path.expandvars(str(value)) for name, value in gateway[key].items()}

        # Validate now so one bad value doesn't break startup later
        ContextRefsConfig(**data)
        return data

    except yaml.YAMLError as e:
        logger.error("Error parsing config YAML %s: %s", path, e)
        return {}
    except ValidationError as e:
        logger.error("Invalid configuration in %s: %s", path, e)
        return {}

