"""Configuration management with YAML and environment variable support"""

import os
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_FILE_ENV = "APP_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"


class BaseConfigSection(BaseSettings):
    """Base class for all config sections with correct environment variable precedence.

    This class customizes the settings source priority to ensure that:
    1. Environment variables have highest priority
    2. Init kwargs (YAML data) have second priority
    3. Default values have lowest priority

    This allows environment variables to override YAML configuration as expected.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority: env vars > init kwargs > defaults."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


class ServerConfig(BaseConfigSection):
    """Server configuration"""

    host: str = (
        "0.0.0.0"  # nosec B104 - Intentional binding to all interfaces for containerized deployment
    )
    port: int = 60001

    model_config = SettingsConfigDict(env_prefix="APP_SERVER_")


class TransferConfig(BaseConfigSection):
    """porklock invocation parameters shared by every transfer"""

    executable: str = "porklock"
    jar_path: str = "/usr/src/app/porklock-standalone.jar"
    log_dir: str = "/input-files"
    user: Optional[str] = None
    upload_destination: Optional[str] = None
    download_destination: str = "/input-files"
    excludes_file: str = "/excludes/excludes-file"
    path_list_file: str = "/input-paths/input-path-list"
    irods_config: str = "/etc/porklock/irods-config.properties"
    invocation_id: Optional[str] = None
    file_metadata: List[str] = Field(default_factory=list)

    model_config = SettingsConfigDict(env_prefix="APP_TRANSFER_")

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("user", "upload_destination", "invocation_id")

    def missing_required(self) -> List[str]:
        """Names of required settings that are unset or blank."""
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]


class LoggingConfig(BaseConfigSection):
    """Logging configuration"""

    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="APP_LOGGING_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("format must be 'json' or 'console'")
        return v


class Config(BaseSettings):
    """Main application configuration"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    transfer: TransferConfig = Field(default_factory=TransferConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="APP_")


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from YAML file with environment variable overrides.

        Thanks to BaseConfigSection.settings_customise_sources(), environment variables
        automatically take precedence over YAML values, which in turn take precedence
        over defaults.
        """
        config_data: Dict[str, Any] = {}

        if os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data

        self._config = Config(
            server=ServerConfig(**config_data.get("server", {})),
            transfer=TransferConfig(**config_data.get("transfer", {})),
            logging=LoggingConfig(**config_data.get("logging", {})),
        )

        return self._config

    def validate(self) -> bool:
        """Validate the loaded configuration.

        Raises:
            ValueError: If configuration is not loaded or required
                transfer settings are missing.
        """
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")

        missing = self._config.transfer.missing_required()
        if missing:
            names = ", ".join(f"transfer.{name}" for name in missing)
            raise ValueError(f"Missing required configuration: {names}")

        return True

    @property
    def config(self) -> Config:
        """Get the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")
        return self._config
