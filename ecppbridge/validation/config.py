"""
ECPP Bridge Configuration - Configuration loading and validation.

This module provides the Config class for managing bridge configuration
from both global (~/.ecppbridge/config.yaml) and local (.ecppbridge/config.yaml)
sources, with environment variable overrides applied last.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ecppbridge.errors import ECPPBridgeError


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant with authorized permissions to access user's private data."
)


class ConfigError(ECPPBridgeError):
    """Raised when there's a configuration error."""

    pass


class ProviderConfig(BaseModel):
    """Configuration for the LLM chat endpoint."""

    name: str = "ollama"
    model: str = "qwen2.5"
    api_base: Optional[str] = None
    api_key: Optional[str] = None
    timeout: int = 120


class ECPPConfig(BaseModel):
    """Configuration for the remote business API."""

    base_url: str = "http://localhost:18000/api/v1"
    auth_header: str = "Authorization"
    timeout: int = 30


class AgentConfig(BaseModel):
    """Configuration for the conversation orchestrator."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tool_iterations: int = Field(default=10, ge=1)


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    level: str = "WARNING"


class BridgeConfig(BaseModel):
    """Complete bridge configuration schema."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    ecpp: ECPPConfig = Field(default_factory=ECPPConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# (section, key) pairs overridden from the environment
ENV_OVERRIDES = {
    "ECPP_BASE_URL": ("ecpp", "base_url"),
    "ECPP_AUTH_HEADER": ("ecpp", "auth_header"),
    "ECPPBRIDGE_PROVIDER": ("provider", "name"),
    "ECPPBRIDGE_MODEL": ("provider", "model"),
    "OLLAMA_HOST": ("provider", "api_base"),
    "OPENAI_API_KEY": ("provider", "api_key"),
    "ECPPBRIDGE_LOG_LEVEL": ("logging", "level"),
}


class Config:
    """
    Bridge configuration manager.

    Handles loading, merging, and validating configuration from:
    - Global: ~/.ecppbridge/config.yaml
    - Local: .ecppbridge/config.yaml (project-specific)
    - Environment variables (see ENV_OVERRIDES)

    Local configuration overrides global configuration, and the
    environment overrides both.

    Example:
        >>> config = Config.load()
        >>> config.merged.ecpp.base_url
        'http://localhost:18000/api/v1'
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".ecppbridge"
    LOCAL_CONFIG_DIR = Path(".ecppbridge")

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Config.

        Args:
            global_config: Global configuration dictionary.
            local_config: Local (project) configuration dictionary.
            environ: Environment mapping used for overrides. Empty when omitted.
        """
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._environ = environ or {}
        self._merged: Optional[BridgeConfig] = None

    @classmethod
    def load(cls) -> "Config":
        """
        Load configuration from default locations and the process environment.

        Returns:
            Config instance with loaded configuration.
        """
        global_config = cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml")
        local_config = cls._load_yaml(cls._find_local_config())

        return cls(global_config=global_config, local_config=local_config, environ=dict(os.environ))

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
                return data if data else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged configuration as a dictionary."""
        merged = self._deep_merge(self._global_config.copy(), self._local_config)
        return self._deep_merge(merged, self._env_config())

    def _env_config(self) -> Dict[str, Any]:
        """Build an override dictionary from the environment."""
        overrides: Dict[str, Any] = {}
        for env_var, (section, key) in ENV_OVERRIDES.items():
            value = self._environ.get(env_var)
            if value:
                overrides.setdefault(section, {})[key] = value
        return overrides

    @property
    def merged(self) -> BridgeConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                merged_dict = self.get_merged_config()
                self._merged = BridgeConfig(**merged_dict)
            except ValidationError as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @classmethod
    def create_default_local(cls, directory: Optional[Path] = None) -> Path:
        """Write a default local configuration file and return its path."""
        config_dir = (directory or Path.cwd()) / cls.LOCAL_CONFIG_DIR
        config_file = config_dir / "config.yaml"

        if config_file.exists():
            return config_file

        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            yaml.dump(BridgeConfig().model_dump(), f, default_flow_style=False, sort_keys=False)

        return config_file
