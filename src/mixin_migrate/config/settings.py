"""Migration settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Command-line flags (applied by ``mixin_migrate.main``)
2. Environment variables (prefix: ``MIXIN_MIGRATE_``)
3. YAML config file (``--config path`` or ``MIXIN_MIGRATE_CONFIG_PATH`` env var)
4. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hard upper bound on inputs per safe transaction
MAX_SPEND_GROUP_COUNT = 256

DEFAULT_MEMO = "migrate by mixin-migrate"


class LogLevel(enum.StrEnum):
    """Accepted log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class MigrateConfig(BaseSettings):
    """Settings for one migration run.

    ``keystore_path`` and ``ledger_factory`` have no usable default; the
    entry point refuses to start without them.
    """

    model_config = SettingsConfigDict(
        env_prefix="MIXIN_MIGRATE_",
        case_sensitive=False,
    )

    config_path: str = ""
    keystore_path: str = Field(default="", description="Path to the JSON keystore")
    spend_group_count: int = Field(
        default=MAX_SPEND_GROUP_COUNT,
        ge=1,
        le=MAX_SPEND_GROUP_COUNT,
        description="Maximum number of outputs spent by one transaction",
    )
    utxo_page_size: int = Field(default=500, ge=1, le=500)
    memo: str = DEFAULT_MEMO
    ledger_factory: str = Field(
        default="",
        description="Import string 'module:callable' building the ledger client",
    )
    lookup_url: str = "https://echo.yiplee.com"
    lookup_timeout: float = 30.0
    log_level: LogLevel = LogLevel.INFO

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the explicit values."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        for key, val in _load_yaml(config_path).items():
            if key not in values or values[key] is None:
                values[key] = val
        return values
